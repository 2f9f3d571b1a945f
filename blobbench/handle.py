"""Handles address stored objects by category and name."""

from dataclasses import dataclass
from enum import Enum

from blobbench.errors import InvalidHandleError


class FileType(str, Enum):
    """Object categories; each one is a separate namespace."""

    DATA = "data"
    KEY = "key"
    LOCK = "lock"
    SNAPSHOT = "snapshot"
    INDEX = "index"
    CONFIG = "config"


@dataclass(frozen=True)
class Handle:
    """Immutable (type, name) pair identifying one stored object."""

    type: FileType
    name: str = ""

    def validate(self) -> None:
        """Raise InvalidHandleError if the handle cannot address an object."""
        if not isinstance(self.type, FileType):
            raise InvalidHandleError(f"invalid type {self.type!r}")
        if self.type == FileType.CONFIG:
            return
        if not self.name:
            raise InvalidHandleError(f"invalid name for {self.type.value} handle: empty")
        if "/" in self.name or self.name in (".", ".."):
            raise InvalidHandleError(f"invalid name {self.name!r}")

    def __str__(self) -> str:
        if self.type == FileType.CONFIG:
            return "<config>"
        return f"<{self.type.value}/{self.name[:8]}>"
