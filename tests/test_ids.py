"""Tests for content identifiers."""

import hashlib
import io

import pytest

from blobbench.ids import ID, hash_bytes, hash_stream


def test_hash_is_sha256() -> None:
    data = b"hello blob"
    assert str(hash_bytes(data)) == hashlib.sha256(data).hexdigest()


def test_hash_of_empty_content() -> None:
    assert str(hash_bytes(b"")) == "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"


def test_equal_content_equal_id() -> None:
    assert hash_bytes(b"abc") == hash_bytes(bytes(b"abc"))
    assert hash_bytes(b"abc") != hash_bytes(b"abd")


def test_hash_stream_matches_hash_bytes() -> None:
    data = bytes(range(256)) * 1000
    assert hash_stream(io.BytesIO(data), chunk_size=1000) == hash_bytes(data)


def test_short_form() -> None:
    id_ = hash_bytes(b"x")
    assert id_.short() == str(id_)[:8]


def test_parse_round_trip() -> None:
    id_ = hash_bytes(b"x")
    assert ID.parse(str(id_)) == id_


@pytest.mark.parametrize("text", ["", "abc", "G" * 64, "A" * 64, "a" * 63, "a" * 65])
def test_parse_rejects_invalid(text: str) -> None:
    with pytest.raises(ValueError):
        ID.parse(text)


def test_id_requires_digest_size() -> None:
    with pytest.raises(ValueError):
        ID(b"short")
