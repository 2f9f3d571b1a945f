"""Tests for LocalStorage specifics: on-disk layout and atomic saves."""

import io
from pathlib import Path

import pytest

from blobbench.errors import BackendIOError
from blobbench.handle import FileType, Handle
from blobbench.ids import hash_bytes
from blobbench.storage import LocalStorage


class FailingReader(io.RawIOBase):
    """Deliver some bytes, then fail like a broken connection."""

    def __init__(self, data: bytes):
        self._data = io.BytesIO(data)
        self._reads = 0

    def readable(self) -> bool:
        return True

    def readinto(self, buf) -> int:
        self._reads += 1
        if self._reads > 1:
            raise OSError("connection reset")
        chunk = self._data.read(len(buf))
        buf[: len(chunk)] = chunk
        return len(chunk)


def test_creates_base_directory(tmp_path: Path) -> None:
    root = tmp_path / "nested" / "repo"
    LocalStorage(root)
    assert root.is_dir()


def test_data_layout_on_disk(tmp_path: Path) -> None:
    storage = LocalStorage(tmp_path)
    data = b"some data"
    handle = Handle(FileType.DATA, str(hash_bytes(data)))
    storage.save(handle, io.BytesIO(data))
    assert (tmp_path / "data" / handle.name[:2] / handle.name).read_bytes() == data


def test_failed_save_keeps_previous_content(tmp_path: Path) -> None:
    storage = LocalStorage(tmp_path)
    handle = Handle(FileType.SNAPSHOT, "snap")
    storage.save(handle, io.BytesIO(b"committed"))

    with pytest.raises(BackendIOError):
        storage.save(handle, FailingReader(b"x" * (4 * 1024 * 1024)))

    with storage.load(handle) as rd:
        assert rd.read() == b"committed"
    assert list((tmp_path / "snapshots").iterdir()) == [tmp_path / "snapshots" / "snap"]


def test_failed_first_save_leaves_nothing(tmp_path: Path) -> None:
    storage = LocalStorage(tmp_path)
    handle = Handle(FileType.SNAPSHOT, "snap")

    with pytest.raises(BackendIOError):
        storage.save(handle, FailingReader(b"x" * (4 * 1024 * 1024)))

    assert storage.test(handle) is False
    assert list(storage.list(FileType.SNAPSHOT)) == []


def test_load_stream_holds_file_until_closed(tmp_path: Path) -> None:
    storage = LocalStorage(tmp_path)
    handle = Handle(FileType.KEY, "key")
    storage.save(handle, io.BytesIO(b"0123456789"))
    rd = storage.load(handle, 4, 3)
    assert rd.read() == b"3456"
    rd.close()
    assert rd.closed


def test_delete_all(tmp_path: Path) -> None:
    storage = LocalStorage(tmp_path / "repo")
    for i in range(3):
        data = f"blob {i}".encode()
        storage.save(Handle(FileType.DATA, str(hash_bytes(data))), io.BytesIO(data))
    storage.save(Handle(FileType.CONFIG), io.BytesIO(b"{}"))

    assert storage.delete_all() == 4
    assert list(storage.list(FileType.DATA)) == []
    assert list((tmp_path / "repo").iterdir()) == []
