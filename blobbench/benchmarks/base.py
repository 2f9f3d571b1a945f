"""Base benchmark class and the scenario lifecycle shared by all benchmarks."""

import io
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator

from blobbench.config import DEFAULT_BLOB_LENGTH, DEFAULT_SEED
from blobbench.errors import BackendError, ScenarioError, VerificationError
from blobbench.handle import FileType, Handle
from blobbench.ids import hash_bytes
from blobbench.random_data import random_bytes
from blobbench.storage.base import StorageBackend
from blobbench.utils import format_size

logger = logging.getLogger(__name__)

OpenBackend = Callable[[], StorageBackend]
CloseBackend = Callable[[StorageBackend], None]


@dataclass
class BenchmarkResult:
    """Result of a completed benchmark scenario."""

    scenario: str
    blob_length: int
    bytes_per_op: int
    iterations: int
    duration: float
    throughput_mbps: float
    ops_per_sec: float
    avg_latency_ms: float
    min_latency_ms: float
    max_latency_ms: float
    variance_pct: float = 0.0  # Variance in throughput (for multiple runs)
    runs: int = 1  # Number of times this scenario was run

    @property
    def total_bytes(self) -> int:
        return self.bytes_per_op * self.iterations

    def __str__(self) -> str:
        """Format result as string."""
        size_str = format_size(self.bytes_per_op)
        variance_str = f"±{self.variance_pct:.1f}%" if self.variance_pct > 0 else "N/A"

        return (
            f"{self.scenario:18s} | "
            f"Size: {size_str:8s} | "
            f"Iter: {self.iterations:5d} | "
            f"Throughput: {self.throughput_mbps:8.2f} MB/s | "
            f"Ops/s: {self.ops_per_sec:7.2f} | "
            f"Latency: {self.avg_latency_ms:8.2f}ms | "
            f"Variance: {variance_str:>8s}"
        )


class Timer:
    """Wall-clock timer with an explicit reset boundary.

    Everything before the last reset() is excluded from the measurement.
    """

    def __init__(self):
        self._start = time.perf_counter()

    def reset(self) -> None:
        self._start = time.perf_counter()

    def elapsed(self) -> float:
        return time.perf_counter() - self._start


class BaseBenchmark:
    """Base class for benchmarks.

    Each scenario opens its own backend through `open_backend`, works on
    freshly generated fixtures and always closes the backend again.
    """

    def __init__(
        self,
        open_backend: OpenBackend,
        close_backend: CloseBackend | None = None,
        seed: int = DEFAULT_SEED,
        blob_length: int = DEFAULT_BLOB_LENGTH,
        iterations: int = 10,
    ):
        if blob_length <= 0:
            raise ValueError(f"blob_length must be > 0, got {blob_length}")
        if iterations <= 0:
            raise ValueError(f"iterations must be > 0, got {iterations}")
        self.open_backend = open_backend
        self.close_backend = close_backend or (lambda backend: backend.close())
        self.seed = seed
        self.blob_length = blob_length
        self.iterations = iterations

    @contextmanager
    def _phase(self, scenario: str, phase: str, handle: Handle | None = None) -> Iterator[None]:
        """Turn contract and verification errors into a ScenarioError."""
        try:
            yield
        except (BackendError, VerificationError, OSError) as e:
            raise ScenarioError(scenario, phase, e, handle) from e

    @contextmanager
    def session(self, scenario: str) -> Iterator[StorageBackend]:
        """Open a backend for one scenario and close it on every exit path."""
        with self._phase(scenario, "setup"):
            backend = self.open_backend()
        try:
            yield backend
        except BaseException:
            try:
                self.close_backend(backend)
            except (BackendError, OSError) as e:
                logger.warning("%s: closing %s failed: %s", scenario, backend.name, e)
            raise
        with self._phase(scenario, "cleanup"):
            self.close_backend(backend)

    def random_blob(self, length: int | None = None, seed: int | None = None) -> tuple[bytes, Handle]:
        """Generate fixture content and its content-addressed handle."""
        data = random_bytes(
            self.seed if seed is None else seed,
            self.blob_length if length is None else length,
        )
        return data, Handle(FileType.DATA, str(hash_bytes(data)))

    def save_random_blob(
        self, backend: StorageBackend, length: int | None = None, seed: int | None = None
    ) -> tuple[bytes, Handle]:
        """Generate a blob, save it and return its content and handle."""
        data, handle = self.random_blob(length, seed)
        backend.save(handle, io.BytesIO(data))
        return data, handle

    def discard(self, backend: StorageBackend, handle: Handle) -> None:
        """Remove a leftover object after a failure, keeping the original error."""
        try:
            if backend.test(handle):
                backend.remove(handle)
        except (BackendError, OSError) as e:
            logger.warning("cleanup of %s failed: %s", handle, e)

    @contextmanager
    def fixture(
        self, backend: StorageBackend, scenario: str, length: int | None = None, seed: int | None = None
    ) -> Iterator[tuple[bytes, Handle]]:
        """Save a random blob for the scenario and remove it afterwards."""
        data, handle = self.random_blob(length, seed)
        with self._phase(scenario, "save", handle):
            backend.save(handle, io.BytesIO(data))
        try:
            yield data, handle
        except BaseException:
            self.discard(backend, handle)
            raise
        with self._phase(scenario, "cleanup", handle):
            backend.remove(handle)

    def verify(self, handle: Handle, expected: bytes, actual: bytes) -> None:
        """Raise VerificationError unless both byte strings are equal."""
        if len(actual) != len(expected):
            raise VerificationError(
                handle, f"wrong number of bytes read: want {len(expected)}, got {len(actual)}"
            )
        if actual != expected:
            raise VerificationError(handle, "wrong bytes returned")

    def _measure(self, scenario: str, bytes_per_op: int, op: Callable[[], None]) -> BenchmarkResult:
        """Run `op` once per iteration and build the result.

        Only the loop is timed; fixture setup happens before the call.
        """
        latencies = []
        timer = Timer()
        timer.reset()
        for _ in range(self.iterations):
            op_start = time.perf_counter()
            op()
            latencies.append((time.perf_counter() - op_start) * 1000)  # ms

        duration = max(timer.elapsed(), 1e-9)
        total_bytes = bytes_per_op * self.iterations

        return BenchmarkResult(
            scenario=scenario,
            blob_length=self.blob_length,
            bytes_per_op=bytes_per_op,
            iterations=self.iterations,
            duration=duration,
            throughput_mbps=(total_bytes / (1024 * 1024)) / duration,
            ops_per_sec=self.iterations / duration,
            avg_latency_ms=sum(latencies) / len(latencies),
            min_latency_ms=min(latencies),
            max_latency_ms=max(latencies),
        )


def run_multiple_times(
    test_func: Callable[[], BenchmarkResult],
    runs: int,
    on_run: Callable[[int, BenchmarkResult], None] | None = None,
) -> BenchmarkResult:
    """Run a scenario several times and return averaged results.

    A failing run propagates its ScenarioError; no average is produced.
    """
    if runs <= 0:
        runs = 1

    all_results = []
    for i in range(runs):
        result = test_func()
        all_results.append(result)
        if on_run is not None:
            on_run(i, result)

    # Calculate averages
    avg_throughput = sum(r.throughput_mbps for r in all_results) / len(all_results)
    avg_ops = sum(r.ops_per_sec for r in all_results) / len(all_results)
    avg_latency = sum(r.avg_latency_ms for r in all_results) / len(all_results)

    # Calculate variance (standard deviation of throughput as percentage)
    if len(all_results) > 1:
        throughputs = [r.throughput_mbps for r in all_results]
        mean = sum(throughputs) / len(throughputs)
        variance = sum((x - mean) ** 2 for x in throughputs) / len(throughputs)
        std_dev = variance ** 0.5
        variance_pct = (std_dev / mean * 100) if mean > 0 else 0
    else:
        variance_pct = 0

    # Use the first result as template and override with averages
    template = all_results[0]
    return BenchmarkResult(
        scenario=template.scenario,
        blob_length=template.blob_length,
        bytes_per_op=template.bytes_per_op,
        iterations=template.iterations,
        duration=sum(r.duration for r in all_results) / len(all_results),
        throughput_mbps=avg_throughput,
        ops_per_sec=avg_ops,
        avg_latency_ms=avg_latency,
        min_latency_ms=min(r.min_latency_ms for r in all_results),
        max_latency_ms=max(r.max_latency_ms for r in all_results),
        variance_pct=variance_pct,
        runs=runs,
    )
