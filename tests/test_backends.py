"""Contract tests run against every backend implementation."""

import io

import pytest

from blobbench.errors import BackendIOError, NotFoundError, RangeError
from blobbench.handle import FileType, Handle
from blobbench.ids import hash_bytes
from blobbench.random_data import random_bytes
from blobbench.storage import MemoryStorage, StorageBackend, read_full

LENGTH = 64 * 1024 + 2123


def save_random(backend, length=LENGTH, seed=23, file_type=FileType.DATA):
    data = random_bytes(seed, length)
    handle = Handle(file_type, str(hash_bytes(data)))
    backend.save(handle, io.BytesIO(data))
    return data, handle


def load(backend, handle, length=0, offset=0) -> bytes:
    with backend.load(handle, length, offset) as rd:
        return rd.read()


def test_satisfies_protocol(backend) -> None:
    assert isinstance(backend, StorageBackend)
    assert backend.name


def test_round_trip(backend) -> None:
    data, handle = save_random(backend)
    assert load(backend, handle) == data


def test_empty_blob(backend) -> None:
    handle = Handle(FileType.DATA, str(hash_bytes(b"")))
    backend.save(handle, io.BytesIO(b""))
    assert load(backend, handle) == b""
    assert backend.stat(handle) == 0


@pytest.mark.parametrize("length", [1, 2, 555, LENGTH // 4 + 555, LENGTH - 1, LENGTH])
def test_prefix(backend, length: int) -> None:
    data, handle = save_random(backend)
    assert load(backend, handle, length, 0) == data[:length]


@pytest.mark.parametrize(
    ("length", "offset"),
    [
        (LENGTH // 4 + 555, 8273),
        (1, LENGTH - 1),
        (0, 8273),
        (0, LENGTH),
        (100, LENGTH - 100),
    ],
)
def test_window(backend, length: int, offset: int) -> None:
    data, handle = save_random(backend)
    expected = data[offset:offset + length] if length else data[offset:]
    assert load(backend, handle, length, offset) == expected


def test_read_full_from_stream(backend) -> None:
    data, handle = save_random(backend)
    with backend.load(handle, 1000, 10) as rd:
        assert read_full(rd, 1000) == data[10:1010]


def test_idempotent_resave(backend) -> None:
    data, handle = save_random(backend)
    backend.save(handle, io.BytesIO(data))
    assert load(backend, handle) == data
    assert backend.stat(handle) == len(data)


def test_overwrite_replaces_content(backend) -> None:
    handle = Handle(FileType.LOCK, "lock-1")
    backend.save(handle, io.BytesIO(b"first version"))
    backend.save(handle, io.BytesIO(b"second"))
    assert load(backend, handle) == b"second"


def test_remove_then_load_fails(backend) -> None:
    _, handle = save_random(backend)
    backend.remove(handle)
    with pytest.raises(NotFoundError):
        backend.load(handle)
    with pytest.raises(NotFoundError):
        backend.load(handle, 10, 5)
    assert backend.test(handle) is False


def test_remove_missing_is_not_found(backend) -> None:
    with pytest.raises(NotFoundError):
        backend.remove(Handle(FileType.DATA, "00" * 32))


def test_stat_missing_is_not_found(backend) -> None:
    with pytest.raises(NotFoundError):
        backend.stat(Handle(FileType.DATA, "00" * 32))


@pytest.mark.parametrize(
    ("length", "offset"),
    [
        (2, LENGTH - 1),
        (1, LENGTH),
        (LENGTH + 1, 0),
        (0, LENGTH + 1),
        (-1, 0),
        (0, -1),
    ],
)
def test_range_rejection(backend, length: int, offset: int) -> None:
    _, handle = save_random(backend)
    with pytest.raises(RangeError):
        backend.load(handle, length, offset)


def test_stat_test_list(backend) -> None:
    data, handle = save_random(backend)
    other_data, other = save_random(backend, length=100, seed=99)
    assert backend.test(handle)
    assert backend.stat(handle) == len(data)
    assert sorted(backend.list(FileType.DATA)) == sorted([handle.name, other.name])
    assert list(backend.list(FileType.SNAPSHOT)) == []


def test_list_config(backend) -> None:
    assert list(backend.list(FileType.CONFIG)) == []
    backend.save(Handle(FileType.CONFIG), io.BytesIO(b"{}"))
    assert list(backend.list(FileType.CONFIG)) == [""]


def test_categories_are_separate_namespaces(backend) -> None:
    data, handle = save_random(backend)
    other = Handle(FileType.INDEX, handle.name)
    backend.save(other, io.BytesIO(b"index content"))
    assert load(backend, handle) == data
    assert load(backend, other) == b"index content"
    backend.remove(other)
    assert load(backend, handle) == data
    assert list(backend.list(FileType.INDEX)) == []


def test_objects_survive_reopen(backend_factory) -> None:
    first = backend_factory()
    data, handle = save_random(first)
    first.close()

    second = backend_factory()
    try:
        assert load(second, handle) == data
    finally:
        second.close()


def test_memory_rejects_calls_after_close() -> None:
    backend = MemoryStorage()
    data, handle = save_random(backend)
    backend.close()
    for call in (
        lambda: backend.save(handle, io.BytesIO(data)),
        lambda: backend.load(handle),
        lambda: backend.remove(handle),
        lambda: backend.test(handle),
        lambda: backend.stat(handle),
        lambda: list(backend.list(FileType.DATA)),
    ):
        with pytest.raises(BackendIOError):
            call()
