"""S3-compatible storage backend using requests (works with Storadera, MinIO, AWS)."""

import io
import logging
import re
import time
from typing import BinaryIO, Iterator
from xml.etree import ElementTree

import requests
from requests.adapters import HTTPAdapter
from requests_aws4auth import AWS4Auth
from urllib3.util.retry import Retry

from blobbench.errors import BackendIOError, NotFoundError, RangeError
from blobbench.handle import FileType, Handle
from blobbench.layout import name_from_path, object_path, type_prefix
from blobbench.storage.base import BoundedReader, check_range, read_full

logger = logging.getLogger(__name__)

_REDIRECTS = (301, 302, 307, 308)
_CONTENT_RANGE = re.compile(r"^bytes (\d+)-(\d+)/(\d+)$")
_S3_NS = {"s3": "http://s3.amazonaws.com/doc/2006-03-01/"}


class S3RequestsStorage:
    """Storage backend using requests + AWS4Auth.

    Objects live under `<prefix>/<layout path>` inside the bucket. Connection
    errors and timeouts are retried with exponential backoff; HTTP status
    errors are not.
    """

    def __init__(
        self,
        endpoint: str,
        access_key: str,
        secret_key: str,
        bucket: str,
        region: str | None = None,
        prefix: str = "",
        max_retries: int = 5,
        timeout: int = 300,
        session: requests.Session | None = None,
    ):
        self.bucket = bucket
        self.endpoint = endpoint.rstrip("/")
        self.base_url = f"{self.endpoint}/{bucket}"
        self.prefix = prefix.strip("/")
        self.max_retries = max(1, max_retries)
        self.timeout = timeout

        if session is None:
            session = requests.Session()

            # Retry server errors inside the transport adapter
            retry_strategy = Retry(
                total=max_retries,
                backoff_factor=2,
                status_forcelist=[500, 502, 503, 504],
                allowed_methods=["HEAD", "GET", "PUT", "DELETE"],
            )
            adapter = HTTPAdapter(max_retries=retry_strategy)
            session.mount("http://", adapter)
            session.mount("https://", adapter)
            session.max_redirects = 0

        # AWS4Auth with empty region (works for most S3-compatible providers)
        session.auth = AWS4Auth(access_key, secret_key, region or "", "s3")
        self.session = session

        self._ensure_bucket()
        self.name = f"S3 bucket '{bucket}' at {endpoint}"
        if self.prefix:
            self.name += f" (prefix '{self.prefix}')"

    def _key(self, path: str) -> str:
        return f"{self.prefix}/{path}" if self.prefix else path

    def _url(self, handle: Handle) -> str:
        return f"{self.base_url}/{self._key(object_path(handle))}"

    def _request(self, method: str, url: str, what: str, **kwargs) -> requests.Response:
        """Send one request, retrying timeouts and connection errors."""
        kwargs.setdefault("timeout", self.timeout)
        kwargs.setdefault("allow_redirects", False)

        for attempt in range(self.max_retries):
            try:
                resp = self.session.request(method, url, **kwargs)
            except (requests.exceptions.Timeout, requests.exceptions.ConnectionError) as e:
                if attempt >= self.max_retries - 1:
                    raise BackendIOError(
                        f"{what} failed after {self.max_retries} attempts: {e}"
                    ) from e
                wait_time = 2 ** attempt  # Exponential backoff: 1, 2, 4, 8, 16 seconds
                logger.warning(
                    "%s timed out, retrying in %ds (attempt %d/%d)",
                    what, wait_time, attempt + 1, self.max_retries,
                )
                time.sleep(wait_time)
                continue
            except requests.exceptions.RequestException as e:
                raise BackendIOError(f"{what} failed: {e}") from e

            if resp.status_code in _REDIRECTS:
                location = resp.headers.get("Location", "unknown")
                resp.close()
                raise BackendIOError(f"{what} redirected to: {location}")
            return resp

        raise BackendIOError(f"{what} failed: no attempts made")

    def _ensure_bucket(self) -> None:
        """Check bucket exists."""
        resp = self._request("HEAD", self.base_url, "Bucket check", timeout=10)
        if resp.status_code == 404:
            raise BackendIOError(f"Bucket '{self.bucket}' does not exist. Create it first.")
        if resp.status_code != 200:
            raise BackendIOError(f"Cannot access bucket '{self.bucket}': {resp.status_code}")

    def save(self, handle: Handle, reader: BinaryIO) -> None:
        """Upload the stream content with a single PUT."""
        url = self._url(handle)
        content = reader.read()
        resp = self._request(
            "PUT",
            url,
            f"Save {handle}",
            data=content,
            headers={"Content-Type": "application/octet-stream"},
        )
        if resp.status_code not in (200, 201):
            raise BackendIOError(f"Save {handle} failed: {resp.status_code} {resp.text}")
        logger.debug("saved %s (%d bytes)", handle, len(content))

    def load(self, handle: Handle, length: int = 0, offset: int = 0) -> BinaryIO:
        """Stream a window of the object using an HTTP Range request."""
        if length < 0 or offset < 0:
            raise RangeError(handle, offset, length)

        url = self._url(handle)
        headers = {}
        if length > 0:
            headers["Range"] = f"bytes={offset}-{offset + length - 1}"
        elif offset > 0:
            headers["Range"] = f"bytes={offset}-"

        resp = self._request("GET", url, f"Load {handle}", headers=headers, stream=True)
        try:
            if resp.status_code == 404:
                raise NotFoundError(handle)
            if resp.status_code == 416:
                # Range starts past the end; an empty read at the very end is valid
                resp.close()
                count = check_range(handle, self.stat(handle), length, offset)
                return BoundedReader(io.BytesIO(b""), count)
            if resp.status_code == 206:
                match = _CONTENT_RANGE.match(resp.headers.get("Content-Range", ""))
                if match is None:
                    raise BackendIOError(f"Load {handle}: invalid Content-Range header")
                count = check_range(handle, int(match.group(3)), length, offset)
            elif resp.status_code == 200:
                # Server ignored the Range header, skip up to the offset
                size = resp.headers.get("Content-Length")
                size = int(size) if size is not None else self.stat(handle)
                count = check_range(handle, size, length, offset)
                if offset:
                    read_full(resp.raw, offset)
            else:
                raise BackendIOError(f"Load {handle} failed: {resp.status_code}")
        except BaseException:
            resp.close()
            raise

        return BoundedReader(resp.raw, count, on_close=resp.close)

    def _head(self, handle: Handle) -> requests.Response:
        resp = self._request("HEAD", self._url(handle), f"Stat {handle}", timeout=10)
        if resp.status_code not in (200, 404):
            raise BackendIOError(f"Stat {handle} failed: {resp.status_code}")
        return resp

    def test(self, handle: Handle) -> bool:
        """Check if an object exists in S3."""
        return self._head(handle).status_code == 200

    def stat(self, handle: Handle) -> int:
        resp = self._head(handle)
        if resp.status_code == 404:
            raise NotFoundError(handle)
        size = resp.headers.get("Content-Length")
        if size is None:
            raise BackendIOError(f"Stat {handle}: missing Content-Length header")
        return int(size)

    def remove(self, handle: Handle) -> None:
        """Delete an object; S3 ignores missing keys, so check first."""
        if not self.test(handle):
            raise NotFoundError(handle)
        resp = self._request("DELETE", self._url(handle), f"Remove {handle}", timeout=10)
        if resp.status_code not in (200, 204):
            raise BackendIOError(f"Remove {handle} failed: {resp.status_code}")
        logger.debug("removed %s", handle)

    def _list_keys(self, prefix: str) -> Iterator[str]:
        """List all keys with the given prefix."""
        continuation_token = None

        while True:
            params = {"list-type": "2", "prefix": prefix}
            if continuation_token:
                params["continuation-token"] = continuation_token

            resp = self._request("GET", self.base_url, f"List {prefix}", params=params, timeout=30)
            if resp.status_code != 200:
                raise BackendIOError(f"List {prefix} failed: {resp.status_code}")

            root = ElementTree.fromstring(resp.content)
            for content in root.findall(".//s3:Contents", _S3_NS):
                key_elem = content.find("s3:Key", _S3_NS)
                if key_elem is not None and key_elem.text:
                    yield key_elem.text

            # Check for more pages
            is_truncated = root.find(".//s3:IsTruncated", _S3_NS)
            if is_truncated is None or is_truncated.text != "true":
                break
            token_elem = root.find(".//s3:NextContinuationToken", _S3_NS)
            if token_elem is None:
                break
            continuation_token = token_elem.text

    def list(self, file_type: FileType) -> Iterator[str]:
        """List object names of one type. The config object has the empty name."""
        if file_type == FileType.CONFIG:
            if self.test(Handle(FileType.CONFIG)):
                yield ""
            return
        for key in self._list_keys(self._key(type_prefix(file_type)) + "/"):
            yield name_from_path(key)

    def delete_all(self) -> int:
        """Delete every object under the prefix. Returns count of deleted objects."""
        deleted = 0
        for file_type in FileType:
            for name in list(self.list(file_type)):
                self.remove(Handle(file_type, name))
                deleted += 1
        return deleted

    def close(self) -> None:
        self.session.close()
