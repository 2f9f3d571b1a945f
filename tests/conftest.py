"""Shared test fixtures: backends and a fake S3 endpoint."""

import io
import re
from urllib.parse import urlsplit

import pytest
from requests.structures import CaseInsensitiveDict

from blobbench.storage import LocalStorage, MemoryStorage, S3RequestsStorage

ENDPOINT = "http://s3.test"
BUCKET = "bench"

_RANGE = re.compile(r"^bytes=(\d+)-(\d*)$")


class FakeResponse:
    def __init__(self, status_code, body=b"", headers=None):
        self.status_code = status_code
        self.content = body
        self.text = body.decode("utf-8", "replace")
        self.headers = CaseInsensitiveDict(headers or {})
        self.raw = io.BytesIO(body)
        self.closed = False

    def close(self):
        self.closed = True
        self.raw.close()


class FakeS3Session:
    """In-process stand-in for requests.Session talking to one S3 bucket."""

    def __init__(self, bucket_exists=True, ignore_range=False, send_length=True):
        self.objects: dict[str, bytes] = {}
        self.bucket_exists = bucket_exists
        self.ignore_range = ignore_range
        self.send_length = send_length
        self.requests = []
        self.responses = []
        self.auth = None
        self.closed = False

    def request(self, method, url, headers=None, data=None, params=None, **kwargs):
        headers = headers or {}
        self.requests.append((method, url, dict(headers), params))
        resp = self._handle(method, url, headers, data, params)
        self.responses.append(resp)
        return resp

    def _handle(self, method, url, headers, data, params):
        path = urlsplit(url).path.lstrip("/")
        bucket, _, key = path.partition("/")
        if bucket != BUCKET or not self.bucket_exists:
            return FakeResponse(404)
        if not key:
            if method == "HEAD":
                return FakeResponse(200)
            return self._list(params or {})

        if method == "PUT":
            self.objects[key] = bytes(data)
            return FakeResponse(200)
        if method == "DELETE":
            self.objects.pop(key, None)
            return FakeResponse(204)

        blob = self.objects.get(key)
        if blob is None:
            return FakeResponse(404)
        if method == "HEAD":
            return FakeResponse(200, headers={"Content-Length": str(len(blob))})

        match = _RANGE.match(headers.get("Range", ""))
        if match is None or self.ignore_range:
            if not self.send_length:
                return FakeResponse(200, blob)
            return FakeResponse(200, blob, {"Content-Length": str(len(blob))})
        start = int(match.group(1))
        if start >= len(blob):
            return FakeResponse(416)
        end = int(match.group(2)) if match.group(2) else len(blob) - 1
        end = min(end, len(blob) - 1)
        return FakeResponse(
            206,
            blob[start:end + 1],
            {"Content-Range": f"bytes {start}-{end}/{len(blob)}"},
        )

    def _list(self, params):
        prefix = params.get("prefix", "")
        keys = sorted(k for k in self.objects if k.startswith(prefix))
        contents = "".join(f"<Contents><Key>{k}</Key></Contents>" for k in keys)
        body = (
            '<?xml version="1.0" encoding="UTF-8"?>'
            '<ListBucketResult xmlns="http://s3.amazonaws.com/doc/2006-03-01/">'
            f"{contents}<IsTruncated>false</IsTruncated></ListBucketResult>"
        )
        return FakeResponse(200, body.encode())

    def close(self):
        self.closed = True


def make_s3(session=None, prefix="bench-prefix"):
    return S3RequestsStorage(
        endpoint=ENDPOINT,
        access_key="key",
        secret_key="secret",
        bucket=BUCKET,
        prefix=prefix,
        session=session or FakeS3Session(),
    )


@pytest.fixture
def s3_session():
    return FakeS3Session()


@pytest.fixture(params=["memory", "local", "s3"])
def backend_factory(request, tmp_path):
    """Return a zero-argument opener for one backend type.

    Every opened backend shares the same underlying storage, so objects
    survive close/open like a real provider.
    """
    if request.param == "memory":
        shared = MemoryStorage()

        class _Reopened(MemoryStorage):
            def __init__(self):
                super().__init__()
                self._blobs = shared._blobs

        return _Reopened
    if request.param == "local":
        return lambda: LocalStorage(tmp_path / "repo")
    session = FakeS3Session()
    return lambda: make_s3(session)


@pytest.fixture
def backend(backend_factory):
    be = backend_factory()
    yield be
    be.close()
