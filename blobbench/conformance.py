"""Conformance checks for storage backends.

Each check opens its own backend session, saves the fixtures it needs and
removes them again, so checks never see each other's objects.
"""

import io
import logging
import time
from dataclasses import dataclass
from typing import Callable

from blobbench.benchmarks.base import BaseBenchmark
from blobbench.errors import BackendError, NotFoundError, RangeError, ScenarioError, VerificationError
from blobbench.handle import FileType, Handle
from blobbench.storage.base import StorageBackend, read_full

logger = logging.getLogger(__name__)

WINDOW_OFFSET = 8273


@dataclass
class CheckResult:
    """Outcome of one conformance check."""

    name: str
    passed: bool
    detail: str = ""
    duration: float = 0.0

    def __str__(self) -> str:
        status = "PASS" if self.passed else "FAIL"
        line = f"{status:4s} | {self.name:24s} | {self.duration * 1000:9.2f} ms"
        if self.detail:
            line += f" | {self.detail}"
        return line


class ConformanceSuite(BaseBenchmark):
    """Run the backend contract checks against one storage implementation."""

    def checks(self) -> dict[str, Callable[[], None]]:
        return {
            "round-trip": self.check_round_trip,
            "prefix": self.check_prefix,
            "window": self.check_window,
            "idempotent-resave": self.check_idempotent_resave,
            "remove-not-found": self.check_remove_not_found,
            "range-rejection": self.check_range_rejection,
            "stat-list": self.check_stat_list,
            "category-isolation": self.check_category_isolation,
        }

    def run(self, names: list[str] | None = None) -> list[CheckResult]:
        """Run all checks (or the named ones) and collect their outcomes."""
        checks = self.checks()
        selected = names or list(checks)
        results = []
        for name in selected:
            if name not in checks:
                raise ValueError(f"unknown check: {name}")
            start = time.perf_counter()
            try:
                checks[name]()
            except ScenarioError as e:
                logger.info("check %s failed: %s", name, e)
                results.append(CheckResult(name, False, str(e), time.perf_counter() - start))
            else:
                results.append(CheckResult(name, True, "", time.perf_counter() - start))
        return results

    def _load_and_verify(
        self, scenario: str, backend: StorageBackend, handle: Handle, data: bytes, length: int, offset: int
    ) -> None:
        expected = data[offset:offset + length] if length else data[offset:]
        with self._phase(scenario, "load", handle):
            with backend.load(handle, length, offset) as rd:
                actual = read_full(rd, len(expected))
                if rd.read(1):
                    raise VerificationError(handle, f"stream longer than {len(expected)} bytes")
        with self._phase(scenario, "verify", handle):
            self.verify(handle, expected, actual)

    def _expect_error(self, scenario: str, handle: Handle, error: type, call: Callable[[], object]) -> None:
        """Fail the check unless `call` raises `error`."""
        with self._phase(scenario, "verify", handle):
            try:
                result = call()
            except error:
                return
            except BackendError as e:
                raise VerificationError(
                    handle, f"expected {error.__name__}, got {type(e).__name__}: {e}"
                ) from e
            if hasattr(result, "close"):
                result.close()
            raise VerificationError(handle, f"expected {error.__name__}, call succeeded")

    def check_round_trip(self) -> None:
        """Load(h, 0, 0) returns exactly the saved content."""
        scenario = "round-trip"
        with self.session(scenario) as backend:
            with self.fixture(backend, scenario) as (data, handle):
                self._load_and_verify(scenario, backend, handle, data, 0, 0)

    def check_prefix(self) -> None:
        """Load(h, k, 0) returns the first k bytes."""
        scenario = "prefix"
        size = self.blob_length
        lengths = sorted({k for k in (1, 2, 511, size // 4 + 555, size - 1, size) if 0 < k <= size})
        with self.session(scenario) as backend:
            with self.fixture(backend, scenario) as (data, handle):
                for length in lengths:
                    self._load_and_verify(scenario, backend, handle, data, length, 0)

    def check_window(self) -> None:
        """Load(h, length, offset) returns data[offset:offset+length]."""
        scenario = "window"
        size = self.blob_length
        windows = [
            (size // 4 + 555, WINDOW_OFFSET),
            (1, size - 1),
            (size // 3, size // 2),
            (0, size // 2),
            (0, size),
        ]
        with self.session(scenario) as backend:
            with self.fixture(backend, scenario) as (data, handle):
                for length, offset in windows:
                    if offset + length <= size:
                        self._load_and_verify(scenario, backend, handle, data, length, offset)

    def check_idempotent_resave(self) -> None:
        """Saving identical content again leaves loads unchanged."""
        scenario = "idempotent-resave"
        with self.session(scenario) as backend:
            with self.fixture(backend, scenario) as (data, handle):
                with self._phase(scenario, "save", handle):
                    backend.save(handle, io.BytesIO(data))
                with self._phase(scenario, "verify", handle):
                    size = backend.stat(handle)
                    if size != len(data):
                        raise VerificationError(handle, f"size after re-save: want {len(data)}, got {size}")
                self._load_and_verify(scenario, backend, handle, data, 0, 0)

    def check_remove_not_found(self) -> None:
        """After Remove, Load and Remove fail with NotFound."""
        scenario = "remove-not-found"
        with self.session(scenario) as backend:
            with self._phase(scenario, "save"):
                data, handle = self.save_random_blob(backend)
            with self._phase(scenario, "remove", handle):
                backend.remove(handle)
            self._expect_error(scenario, handle, NotFoundError, lambda: backend.load(handle, 0, 0))
            self._expect_error(scenario, handle, NotFoundError, lambda: backend.load(handle, 1, 1))
            self._expect_error(scenario, handle, NotFoundError, lambda: backend.remove(handle))
            self._expect_error(scenario, handle, NotFoundError, lambda: backend.stat(handle))
            with self._phase(scenario, "verify", handle):
                if backend.test(handle):
                    raise VerificationError(handle, "object still exists after remove")

    def check_range_rejection(self) -> None:
        """Windows outside the blob fail with RangeError, never a truncated stream."""
        scenario = "range-rejection"
        size = self.blob_length
        windows = [
            (2, size - 1),
            (size + 1, 0),
            (1, size),
            (0, size + 1),
            (-1, 0),
            (0, -1),
        ]
        with self.session(scenario) as backend:
            with self.fixture(backend, scenario) as (data, handle):
                for length, offset in windows:
                    self._expect_error(
                        scenario,
                        handle,
                        RangeError,
                        lambda length=length, offset=offset: backend.load(handle, length, offset),
                    )

    def check_stat_list(self) -> None:
        """Saved objects are reported by Test, Stat and List."""
        scenario = "stat-list"
        with self.session(scenario) as backend:
            with self.fixture(backend, scenario) as (data, handle):
                with self._phase(scenario, "verify", handle):
                    if not backend.test(handle):
                        raise VerificationError(handle, "test() reports missing object")
                    size = backend.stat(handle)
                    if size != len(data):
                        raise VerificationError(handle, f"stat(): want {len(data)}, got {size}")
                    names = set(backend.list(FileType.DATA))
                    if handle.name not in names:
                        raise VerificationError(handle, "list() does not include saved object")

    def check_category_isolation(self) -> None:
        """Equal names in different categories do not collide."""
        scenario = "category-isolation"
        with self.session(scenario) as backend:
            with self.fixture(backend, scenario) as (data, handle):
                other_data, _ = self.random_blob(seed=self.seed + 1)
                other = Handle(FileType.SNAPSHOT, handle.name)
                with self._phase(scenario, "save", other):
                    backend.save(other, io.BytesIO(other_data))
                try:
                    self._load_and_verify(scenario, backend, handle, data, 0, 0)
                    self._load_and_verify(scenario, backend, other, other_data, 0, 0)
                    with self._phase(scenario, "remove", other):
                        backend.remove(other)
                    self._load_and_verify(scenario, backend, handle, data, 0, 0)
                except BaseException:
                    self.discard(backend, other)
                    raise
