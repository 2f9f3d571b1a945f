"""Local filesystem storage backend."""

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import BinaryIO, Iterator

from blobbench.errors import BackendIOError, NotFoundError
from blobbench.handle import FileType, Handle
from blobbench.layout import object_path, type_prefix
from blobbench.storage.base import BoundedReader, check_range

logger = logging.getLogger(__name__)

_TEMP_PREFIX = ".tmp-"


def _fsync_dir(path: Path) -> None:
    """Fsync a directory so a rename inside it is durable.

    Best effort: some platforms and filesystems do not support it.
    """
    try:
        fd = os.open(str(path), os.O_RDONLY)
        try:
            os.fsync(fd)
        finally:
            os.close(fd)
    except OSError:
        logger.debug("Directory fsync not supported for %s", path)


class LocalStorage:
    """Storage backend using local filesystem."""

    def __init__(self, base_path: str | Path):
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)
        self.name = f"local filesystem ({self.base_path.absolute()})"

    def _resolve(self, handle: Handle) -> Path:
        """Resolve a handle to a full path."""
        return self.base_path / object_path(handle)

    def save(self, handle: Handle, reader: BinaryIO) -> None:
        """Write to a temp file next to the target, then rename it into place."""
        path = self._resolve(handle)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=_TEMP_PREFIX, dir=path.parent)
        except OSError as e:
            raise BackendIOError(f"Save {handle} failed: {e}") from e

        try:
            with os.fdopen(fd, "wb") as f:
                shutil.copyfileobj(reader, f, 1024 * 1024)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except BaseException as e:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            if isinstance(e, OSError):
                raise BackendIOError(f"Save {handle} failed: {e}") from e
            raise

        _fsync_dir(path.parent)
        logger.debug("saved %s to %s", handle, path)

    def load(self, handle: Handle, length: int = 0, offset: int = 0) -> BinaryIO:
        """Open the file and position it at `offset`."""
        path = self._resolve(handle)
        try:
            f = open(path, "rb")
        except FileNotFoundError as e:
            raise NotFoundError(handle) from e
        except OSError as e:
            raise BackendIOError(f"Load {handle} failed: {e}") from e

        try:
            size = os.fstat(f.fileno()).st_size
            count = check_range(handle, size, length, offset)
            f.seek(offset)
        except BaseException:
            f.close()
            raise
        return BoundedReader(f, count)

    def remove(self, handle: Handle) -> None:
        """Delete the file."""
        path = self._resolve(handle)
        try:
            path.unlink()
        except FileNotFoundError as e:
            raise NotFoundError(handle) from e
        except OSError as e:
            raise BackendIOError(f"Remove {handle} failed: {e}") from e
        logger.debug("removed %s", handle)

    def test(self, handle: Handle) -> bool:
        """Check if a file exists."""
        return self._resolve(handle).is_file()

    def stat(self, handle: Handle) -> int:
        try:
            return self._resolve(handle).stat().st_size
        except FileNotFoundError as e:
            raise NotFoundError(handle) from e
        except OSError as e:
            raise BackendIOError(f"Stat {handle} failed: {e}") from e

    def list(self, file_type: FileType) -> Iterator[str]:
        """List all object names of one type.

        The config object is listed under the empty name.
        """
        if file_type == FileType.CONFIG:
            if (self.base_path / type_prefix(file_type)).is_file():
                yield ""
            return

        search_path = self.base_path / type_prefix(file_type)
        if not search_path.is_dir():
            return

        paths = search_path.rglob("*") if file_type == FileType.DATA else search_path.iterdir()
        for path in sorted(paths):
            if path.is_file() and not path.name.startswith(_TEMP_PREFIX):
                yield path.name

    def delete_all(self) -> int:
        """Delete every object of every type. Returns count of deleted files."""
        deleted = 0
        for file_type in FileType:
            for name in list(self.list(file_type)):
                self.remove(Handle(file_type, name))
                deleted += 1

        # Clean up empty directories
        for dirpath in sorted(self.base_path.rglob("*"), reverse=True):
            if dirpath.is_dir() and not any(dirpath.iterdir()):
                dirpath.rmdir()
        return deleted

    def close(self) -> None:
        """Nothing to release for plain files."""
        pass
