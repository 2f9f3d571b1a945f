"""Benchmark implementations."""

from blobbench.benchmarks.base import BaseBenchmark, BenchmarkResult, Timer, run_multiple_times
from blobbench.benchmarks.load_benchmark import LoadBenchmark
from blobbench.benchmarks.save_benchmark import SaveBenchmark

__all__ = [
    "BaseBenchmark",
    "BenchmarkResult",
    "Timer",
    "run_multiple_times",
    "LoadBenchmark",
    "SaveBenchmark",
]
