"""In-memory storage backend for tests and baseline measurements."""

import io
import logging
import threading
from typing import BinaryIO, Iterator

from blobbench.errors import BackendIOError, NotFoundError
from blobbench.handle import FileType, Handle
from blobbench.storage.base import BoundedReader, check_range

logger = logging.getLogger(__name__)


class MemoryStorage:
    """Storage backend keeping every blob in a dict."""

    def __init__(self):
        self._blobs: dict[Handle, bytes] = {}
        self._lock = threading.Lock()
        self._closed = False
        self.name = f"memory ({id(self):#x})"

    def _check_open(self) -> None:
        if self._closed:
            raise BackendIOError("memory backend is closed")

    def save(self, handle: Handle, reader: BinaryIO) -> None:
        """Read the whole stream, then store it in one step."""
        handle.validate()
        data = reader.read()
        with self._lock:
            self._check_open()
            self._blobs[handle] = bytes(data)
        logger.debug("saved %s (%d bytes)", handle, len(data))

    def load(self, handle: Handle, length: int = 0, offset: int = 0) -> BinaryIO:
        """Return a stream over a window of the stored blob."""
        handle.validate()
        with self._lock:
            self._check_open()
            data = self._blobs.get(handle)
        if data is None:
            raise NotFoundError(handle)
        count = check_range(handle, len(data), length, offset)
        return BoundedReader(io.BytesIO(data[offset:offset + count]), count)

    def remove(self, handle: Handle) -> None:
        """Drop the blob from the dict."""
        handle.validate()
        with self._lock:
            self._check_open()
            if self._blobs.pop(handle, None) is None:
                raise NotFoundError(handle)
        logger.debug("removed %s", handle)

    def test(self, handle: Handle) -> bool:
        handle.validate()
        with self._lock:
            self._check_open()
            return handle in self._blobs

    def stat(self, handle: Handle) -> int:
        handle.validate()
        with self._lock:
            self._check_open()
            data = self._blobs.get(handle)
        if data is None:
            raise NotFoundError(handle)
        return len(data)

    def list(self, file_type: FileType) -> Iterator[str]:
        with self._lock:
            self._check_open()
            names = sorted(h.name for h in self._blobs if h.type == file_type)
        yield from names

    def delete_all(self) -> int:
        """Remove every stored blob. Returns count of deleted blobs."""
        with self._lock:
            deleted = len(self._blobs)
            self._blobs.clear()
        return deleted

    def close(self) -> None:
        self._closed = True
