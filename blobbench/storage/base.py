"""Storage backend protocol definition and shared range-read helpers."""

import io
from typing import BinaryIO, Callable, Iterator, Protocol, runtime_checkable

from blobbench.errors import RangeError, ShortReadError
from blobbench.handle import FileType, Handle


@runtime_checkable
class StorageBackend(Protocol):
    """Protocol for blob storage backends (memory, local filesystem or S3-compatible).

    Every operation may block on I/O. Implementations must be safe to call
    from several threads at once. Provider failures are raised as
    BackendIOError; nothing is retried at the contract level.
    """

    name: str

    def save(self, handle: Handle, reader: BinaryIO) -> None:
        """Store everything readable from `reader` under `handle`.

        Replaces existing content. Either the whole stream is committed or
        the previous state is left untouched and an error is raised.
        """
        ...

    def load(self, handle: Handle, length: int = 0, offset: int = 0) -> BinaryIO:
        """Open a stream over `length` bytes starting at `offset`.

        `length == 0` reads from `offset` to the end of the blob. Raises
        NotFoundError if nothing is stored under `handle` and RangeError if
        the window does not fit inside the blob. The caller must close the
        returned stream.
        """
        ...

    def remove(self, handle: Handle) -> None:
        """Delete the object. Raises NotFoundError if it does not exist."""
        ...

    def test(self, handle: Handle) -> bool:
        """Check whether an object exists."""
        ...

    def stat(self, handle: Handle) -> int:
        """Return the size of the stored blob in bytes."""
        ...

    def list(self, file_type: FileType) -> Iterator[str]:
        """List the names of all objects of one type."""
        ...

    def close(self) -> None:
        """Release connections and other resources held by the backend."""
        ...


def check_range(handle: Handle, size: int, length: int, offset: int) -> int:
    """Validate a load window against the blob size.

    Returns the number of bytes the window covers.
    """
    if length < 0 or offset < 0 or offset > size:
        raise RangeError(handle, offset, length, size)
    if length == 0:
        return size - offset
    if offset + length > size:
        raise RangeError(handle, offset, length, size)
    return length


class BoundedReader(io.RawIOBase):
    """Read exactly `length` bytes from an underlying stream.

    Raises ShortReadError when the source runs dry early. Closing the reader
    closes the source and calls `on_close`, if given.
    """

    def __init__(
        self,
        raw: BinaryIO,
        length: int,
        on_close: Callable[[], None] | None = None,
    ):
        super().__init__()
        self._raw = raw
        self._length = length
        self._remaining = length
        self._on_close = on_close

    @property
    def length(self) -> int:
        return self._length

    def readable(self) -> bool:
        return True

    def readinto(self, buf) -> int:
        if self._remaining == 0 or len(buf) == 0:
            return 0
        want = min(len(buf), self._remaining)
        chunk = self._raw.read(want)
        if not chunk:
            raise ShortReadError(self._length, self._length - self._remaining)
        n = len(chunk)
        buf[:n] = chunk
        self._remaining -= n
        return n

    def close(self) -> None:
        if self.closed:
            return
        try:
            self._raw.close()
            if self._on_close is not None:
                self._on_close()
        finally:
            super().close()


def read_full(stream: BinaryIO, length: int) -> bytes:
    """Read exactly `length` bytes from `stream` or raise ShortReadError."""
    buf = bytearray(length)
    view = memoryview(buf)
    got = 0
    while got < length:
        n = stream.readinto(view[got:])
        if not n:
            raise ShortReadError(length, got)
        got += n
    return bytes(buf)
