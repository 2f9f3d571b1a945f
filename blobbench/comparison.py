"""Comparison and reporting for benchmark results."""

from dataclasses import dataclass

from blobbench.benchmarks.base import BenchmarkResult
from blobbench.utils import format_size, get_missing_tests

SCENARIOS = ["LOAD-FULL", "LOAD-PARTIAL", "LOAD-PARTIAL-OFFSET", "SAVE-REMOVE"]

_SCENARIO_NAMES = {
    "LOAD-FULL": "FULL LOAD",
    "LOAD-PARTIAL": "PARTIAL LOAD",
    "LOAD-PARTIAL-OFFSET": "PARTIAL LOAD WITH OFFSET",
    "SAVE-REMOVE": "SAVE/REMOVE CHURN",
}


@dataclass
class ProviderResults:
    """Results for a single provider."""

    provider_name: str
    results: list[BenchmarkResult]


class BenchmarkComparison:
    """Compare benchmark results across providers."""

    def __init__(self, provider_results: list[ProviderResults]):
        self.provider_results = provider_results

    def grouped(self) -> dict[tuple[str, int], dict[str, BenchmarkResult]]:
        """Group results by (scenario, bytes per op), keyed by provider.

        When a provider has several results for the same key the first one
        (the most recent, for database queries) wins.
        """
        grouped: dict[tuple[str, int], dict[str, BenchmarkResult]] = {}
        for provider_result in self.provider_results:
            for result in provider_result.results:
                key = (result.scenario, result.bytes_per_op)
                grouped.setdefault(key, {}).setdefault(provider_result.provider_name, result)
        return grouped

    def ranking(self, scenario: str, bytes_per_op: int) -> list[tuple[str, BenchmarkResult]]:
        """Return providers ordered by throughput for one scenario."""
        providers = self.grouped().get((scenario, bytes_per_op), {})
        return sorted(providers.items(), key=lambda x: x[1].throughput_mbps, reverse=True)

    def print_summary(self) -> None:
        """Print a summary comparison of all providers."""
        if not self.provider_results:
            return

        print("\n" + "=" * 120)
        print("PROVIDER PERFORMANCE COMPARISON")
        print("=" * 120)

        missing_tests = get_missing_tests(self.provider_results)
        if missing_tests:
            print("\nNOTE: Some providers are missing scenario results:")
            for (scenario, size), missing_providers in sorted(missing_tests.items()):
                providers_str = ", ".join(missing_providers)
                print(f"   * {scenario} @ {format_size(size)}: {providers_str} not tested")

        grouped = self.grouped()
        sorted_keys = sorted(grouped, key=lambda x: (self._scenario_order(x[0]), x[1]))

        current = None
        for scenario, size in sorted_keys:
            ranking = self.ranking(scenario, size)
            if len(ranking) < 2:
                continue

            if scenario != current:
                current = scenario
                print(f"\n{_SCENARIO_NAMES.get(scenario, scenario)}")
                print("-" * 120)

            print(f"\n  Bytes per op: {format_size(size)}")
            print(
                f"  {'Provider':<15} | {'Throughput':>15} | {'Ops/s':>10} | "
                f"{'Latency':>12} | {'vs Best':>10} | {'Winner':>6}"
            )
            print("  " + "-" * 90)

            best_throughput = ranking[0][1].throughput_mbps
            for provider_name, result in ranking:
                diff_pct = (
                    ((result.throughput_mbps - best_throughput) / best_throughput * 100)
                    if best_throughput > 0
                    else 0
                )
                winner_mark = "BEST" if diff_pct == 0 else ""
                diff_str = "baseline" if diff_pct == 0 else f"{diff_pct:+.1f}%"

                print(
                    f"  {provider_name:<15} | {result.throughput_mbps:>10.2f} MB/s | "
                    f"{result.ops_per_sec:>10.2f} | {result.avg_latency_ms:>9.2f} ms | "
                    f"{diff_str:>10} | {winner_mark:>6}"
                )

        print("\n" + "=" * 120)

    @staticmethod
    def _scenario_order(scenario: str) -> int:
        """Get sort order for a scenario."""
        return SCENARIOS.index(scenario) if scenario in SCENARIOS else 99
