"""Save benchmark implementation: save/remove churn."""

import io

from blobbench.benchmarks.base import BaseBenchmark, BenchmarkResult


class SaveBenchmark(BaseBenchmark):
    """Benchmark for save operations.

    Saves the same content under its content-derived handle and removes it
    again right away, without ever loading it.
    """

    def run(self) -> BenchmarkResult:
        """Run the save/remove churn scenario."""
        scenario = "SAVE-REMOVE"
        data, handle = self.random_blob()
        rd = io.BytesIO(data)

        with self.session(scenario) as backend:

            def churn_once() -> None:
                rd.seek(0)
                with self._phase(scenario, "save", handle):
                    backend.save(handle, rd)
                with self._phase(scenario, "remove", handle):
                    backend.remove(handle)

            try:
                return self._measure(scenario, len(data), churn_once)
            except BaseException:
                self.discard(backend, handle)
                raise
