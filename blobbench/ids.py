"""Content identifiers: SHA-256 digests used as blob names."""

import hashlib
import re
from dataclasses import dataclass
from typing import BinaryIO

ID_SIZE = hashlib.sha256().digest_size

_HEX_ID = re.compile(r"^[0-9a-f]{64}$")


@dataclass(frozen=True)
class ID:
    """SHA-256 digest of a blob's content."""

    digest: bytes

    def __post_init__(self):
        if len(self.digest) != ID_SIZE:
            raise ValueError(f"invalid ID length {len(self.digest)}, want {ID_SIZE}")

    def __str__(self) -> str:
        return self.digest.hex()

    def short(self) -> str:
        """Return the first eight hex characters, for display."""
        return str(self)[:8]

    @classmethod
    def parse(cls, text: str) -> "ID":
        """Parse a 64-character lowercase hex string."""
        if not _HEX_ID.fullmatch(text):
            raise ValueError(f"invalid ID {text!r}: must be 64 hex characters")
        return cls(bytes.fromhex(text))


def hash_bytes(data: bytes) -> ID:
    """Compute the ID of a byte string."""
    return ID(hashlib.sha256(data).digest())


def hash_stream(reader: BinaryIO, chunk_size: int = 64 * 1024) -> ID:
    """Compute the ID of everything remaining in a readable stream."""
    sha256 = hashlib.sha256()
    for chunk in iter(lambda: reader.read(chunk_size), b""):
        sha256.update(chunk)
    return ID(sha256.digest())
