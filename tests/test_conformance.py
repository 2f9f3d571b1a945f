"""Tests for the conformance suite."""

import io

import pytest

from blobbench.benchmarks import LoadBenchmark, SaveBenchmark
from blobbench.conformance import CheckResult, ConformanceSuite
from blobbench.errors import NotFoundError
from blobbench.storage import MemoryStorage
from blobbench.storage.base import BoundedReader

LENGTH = 64 * 1024 + 2123


class TruncatingStorage(MemoryStorage):
    """Return whatever is available instead of rejecting bad windows."""

    def load(self, handle, length=0, offset=0):
        data = self._blobs.get(handle)
        if data is None:
            raise NotFoundError(handle)
        chunk = data[offset:offset + length] if length else data[offset:]
        return BoundedReader(io.BytesIO(chunk), len(chunk))


class ForgivingRemoveStorage(MemoryStorage):
    """Treat removing a missing object as success."""

    def remove(self, handle):
        self._blobs.pop(handle, None)


def test_all_checks_pass(backend_factory) -> None:
    suite = ConformanceSuite(backend_factory, blob_length=LENGTH)
    results = suite.run()
    assert [r.name for r in results] == list(suite.checks())
    assert all(r.passed for r in results), [str(r) for r in results if not r.passed]


def test_truncating_backend_fails_range_rejection() -> None:
    results = {r.name: r for r in ConformanceSuite(TruncatingStorage, blob_length=LENGTH).run()}
    assert results["round-trip"].passed
    assert not results["range-rejection"].passed
    assert "RangeError" in results["range-rejection"].detail


def test_forgiving_remove_fails_not_found_check() -> None:
    results = ConformanceSuite(ForgivingRemoveStorage, blob_length=LENGTH).run(["remove-not-found"])
    assert len(results) == 1
    assert not results[0].passed
    assert "NotFoundError" in results[0].detail


def test_unknown_check() -> None:
    with pytest.raises(ValueError):
        ConformanceSuite(MemoryStorage, blob_length=LENGTH).run(["no-such-check"])


def test_check_result_str() -> None:
    assert str(CheckResult("round-trip", True, "", 0.5)).startswith("PASS | round-trip")
    assert "broken" in str(CheckResult("prefix", False, "broken", 0.1))


def test_full_size_blob_scenario(backend_factory) -> None:
    """Save a (1 << 24) + 2123 byte blob and read it back in full and in windows."""
    length = (1 << 24) + 2123
    load = LoadBenchmark(backend_factory, seed=23, blob_length=length, iterations=1)
    assert load.run_full().bytes_per_op == length
    assert load.run_partial().bytes_per_op == 4194390
    assert load.run_partial_offset().bytes_per_op == 4194390

    results = ConformanceSuite(backend_factory, seed=23, blob_length=length).run(
        ["remove-not-found"]
    )
    assert results[0].passed


def test_full_size_churn(backend_factory) -> None:
    length = (1 << 24) + 2123
    result = SaveBenchmark(backend_factory, seed=23, blob_length=length, iterations=3).run()
    assert result.iterations == 3
    assert result.total_bytes == 3 * length
