"""Storage backend implementations."""

from blobbench.storage.base import BoundedReader, StorageBackend, check_range, read_full
from blobbench.storage.factory import close_storage, open_storage
from blobbench.storage.local import LocalStorage
from blobbench.storage.memory import MemoryStorage
from blobbench.storage.s3 import S3RequestsStorage

__all__ = [
    "BoundedReader",
    "StorageBackend",
    "check_range",
    "read_full",
    "open_storage",
    "close_storage",
    "LocalStorage",
    "MemoryStorage",
    "S3RequestsStorage",
]
