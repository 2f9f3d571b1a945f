"""Load benchmark implementation: full, prefix and windowed reads."""

from blobbench.benchmarks.base import BaseBenchmark, BenchmarkResult
from blobbench.storage.base import read_full

PARTIAL_EXTRA = 555
PARTIAL_OFFSET = 8273


def partial_window_length(blob_length: int) -> int:
    return blob_length // 4 + PARTIAL_EXTRA


def window_fits(blob_length: int, length: int, offset: int) -> bool:
    """Whether `length` bytes at `offset` lie inside a blob of `blob_length` bytes."""
    return 0 <= offset <= blob_length and offset + length <= blob_length


class LoadBenchmark(BaseBenchmark):
    """Benchmark for load operations.

    Every iteration loads the window, reads it completely, closes the
    stream and compares the bytes with the source fixture.
    """

    @property
    def window_length(self) -> int:
        return partial_window_length(self.blob_length)

    def run_full(self) -> BenchmarkResult:
        """Load the complete blob (length 0, offset 0)."""
        return self._run_load("LOAD-FULL", length=0, offset=0)

    def run_partial(self, length: int | None = None) -> BenchmarkResult:
        """Load a prefix of the blob."""
        if length is None:
            length = self.window_length
        return self._run_load("LOAD-PARTIAL", length=length, offset=0)

    def run_partial_offset(self, length: int | None = None, offset: int = PARTIAL_OFFSET) -> BenchmarkResult:
        """Load a fixed-size window starting at a non-zero offset."""
        if length is None:
            length = self.window_length
        return self._run_load("LOAD-PARTIAL-OFFSET", length=length, offset=offset)

    def _run_load(self, scenario: str, length: int, offset: int) -> BenchmarkResult:
        if length < 0 or not window_fits(self.blob_length, length, offset):
            raise ValueError(
                f"window offset {offset}, length {length} does not fit a blob of {self.blob_length} bytes"
            )

        with self.session(scenario) as backend:
            with self.fixture(backend, scenario) as (data, handle):
                expected = data[offset:offset + length] if length else data[offset:]

                def load_once() -> None:
                    with self._phase(scenario, "load", handle):
                        with backend.load(handle, length, offset) as rd:
                            buf = read_full(rd, len(expected))
                    with self._phase(scenario, "verify", handle):
                        self.verify(handle, expected, buf)

                return self._measure(scenario, len(expected), load_once)
