"""Command-line interface for benchmarking and conformance checks."""

import argparse
import logging
import sys
import traceback

from blobbench.benchmarks import LoadBenchmark, SaveBenchmark, run_multiple_times
from blobbench.benchmarks.load_benchmark import PARTIAL_OFFSET, partial_window_length, window_fits
from blobbench.comparison import BenchmarkComparison, ProviderResults
from blobbench.config import Config, ProviderConfig
from blobbench.conformance import ConformanceSuite
from blobbench.database import BenchmarkDatabase
from blobbench.errors import BackendError, ScenarioError
from blobbench.storage import close_storage, open_storage
from blobbench.utils import format_size

SCENARIO_CHOICES = ["full", "partial", "offset", "save"]
WINDOW_OFFSETS = {"partial": 0, "offset": PARTIAL_OFFSET}


def select_providers(config: Config, names: list[str] | None) -> list[ProviderConfig]:
    """Resolve provider names, or all enabled providers, and validate them."""
    if names:
        providers = []
        for name in names:
            provider = config.get_provider(name)
            if not provider:
                print(f"Error: Provider '{name}' not found in config", file=sys.stderr)
                sys.exit(1)
            providers.append(provider)
    else:
        providers = config.get_enabled_providers()

    if not providers:
        print("Error: No providers enabled", file=sys.stderr)
        sys.exit(1)

    for provider in providers:
        try:
            provider.validate()
        except ValueError as e:
            print(f"Configuration error for provider '{provider.name}': {e}", file=sys.stderr)
            sys.exit(1)
    return providers


def fitting_scenarios(scenarios: list[str], blob_length: int) -> list[str]:
    """Drop load scenarios whose window does not fit the blob, reporting each one."""
    window = partial_window_length(blob_length)
    fitting = []
    for scenario in scenarios:
        offset = WINDOW_OFFSETS.get(scenario)
        if offset is not None and not window_fits(blob_length, window, offset):
            print(
                f"Skipping scenario '{scenario}': {window} bytes at offset {offset} "
                f"do not fit a blob of {blob_length} bytes",
                file=sys.stderr,
            )
            continue
        fitting.append(scenario)
    return fitting


def run_benchmark_suite(
    provider: ProviderConfig,
    config: Config,
    scenarios: list[str],
    iterations: int,
    runs_per_test: int,
    blob_length: int,
    db: BenchmarkDatabase | None = None,
    run_id: int | None = None,
):
    """Run the selected scenarios for a single provider.

    The first failing scenario aborts the suite; only completed results are
    returned and stored.
    """
    settings = config.benchmark

    def opener():
        return open_storage(provider, settings)

    common = dict(
        open_backend=opener,
        close_backend=close_storage,
        seed=settings.seed,
        blob_length=blob_length,
        iterations=iterations,
    )
    load_bench = LoadBenchmark(**common)
    save_bench = SaveBenchmark(**common)
    scenario_funcs = {
        "full": load_bench.run_full,
        "partial": load_bench.run_partial,
        "offset": load_bench.run_partial_offset,
        "save": save_bench.run,
    }

    print(f"\n{'=' * 120}")
    print(f"BENCHMARKING: {provider.name}")
    print(f"Blob length: {blob_length} bytes, {iterations} iteration(s), {runs_per_test} run(s) per scenario")
    print("=" * 120)

    results = []
    for scenario in scenarios:
        runs = []
        result = run_multiple_times(scenario_funcs[scenario], runs_per_test, lambda i, r: runs.append(r))
        # Per-run numbers are shown only once every run of the scenario completed
        if runs_per_test > 1:
            for index, run in enumerate(runs):
                print(f"  [run {index + 1}/{runs_per_test}] OK - {run.throughput_mbps:.2f} MB/s")
        print(result)
        results.append(result)
        if db and run_id:
            db.add_result(run_id, provider.name, provider.type, result)

    print("=" * 120)
    return results


def cmd_run(args, config: Config):
    """Run benchmarks."""
    providers = select_providers(config, args.provider)
    scenarios = args.scenario or SCENARIO_CHOICES
    iterations = args.iterations or config.benchmark.iterations
    runs_per_test = args.runs or config.benchmark.runs_per_test
    blob_length = args.length or config.benchmark.blob_length

    scenarios = fitting_scenarios(scenarios, blob_length)
    if not scenarios:
        print(f"Error: No selected scenario fits a blob of {blob_length} bytes", file=sys.stderr)
        sys.exit(1)

    with BenchmarkDatabase(config.benchmark.database) as db:
        run_id = db.create_run(
            run_name=args.name,
            kind="benchmark",
            blob_length=blob_length,
            iterations=iterations,
            notes=args.notes,
        )

        print("\n" + "=" * 120)
        print("BLOB BACKEND BENCHMARK")
        print(f"Run ID: {run_id}")
        if args.name:
            print(f"Run Name: {args.name}")
        print(f"Scenarios: {', '.join(scenarios)}")
        print(f"Providers: {', '.join(p.name for p in providers)}")
        print("=" * 120)

        all_results = []
        failed = False
        for provider in providers:
            try:
                results = run_benchmark_suite(
                    provider, config, scenarios, iterations, runs_per_test, blob_length, db, run_id
                )
                all_results.append(ProviderResults(provider.name, results))
            except ScenarioError as e:
                failed = True
                print(
                    f"\nBenchmark of {provider.name} aborted in scenario {e.scenario}, "
                    f"phase {e.phase}: {e.cause}",
                    file=sys.stderr,
                )

    if len(all_results) > 1 and args.compare:
        BenchmarkComparison(all_results).print_summary()

    print(f"\nResults saved to database (run_id: {run_id})")
    if failed:
        sys.exit(1)


def cmd_check(args, config: Config):
    """Run conformance checks."""
    providers = select_providers(config, args.provider)
    blob_length = args.length or config.benchmark.blob_length

    failures = 0
    with BenchmarkDatabase(config.benchmark.database) as db:
        run_id = db.create_run(run_name=args.name, kind="conformance", blob_length=blob_length)

        for provider in providers:
            suite = ConformanceSuite(
                open_backend=lambda provider=provider: open_storage(provider, config.benchmark),
                close_backend=close_storage,
                seed=config.benchmark.seed,
                blob_length=blob_length,
            )
            print(f"\n{'=' * 120}")
            print(f"CONFORMANCE: {provider.name}")
            print("=" * 120)
            for check in suite.run(args.check):
                print(check)
                db.add_check(run_id, provider.name, check)
                if not check.passed:
                    failures += 1

    print(f"\n{failures} check(s) failed" if failures else "\nAll checks passed")
    if failures:
        sys.exit(1)


def cmd_list(args, config: Config):
    """List runs."""
    with BenchmarkDatabase(config.benchmark.database) as db:
        runs = db.get_runs(limit=args.limit)

    if not runs:
        print("No runs found")
        return

    print("\n" + "=" * 120)
    print("RUNS")
    print("=" * 120)
    print(
        f"{'ID':<6} | {'Timestamp':<26} | {'Name':<20} | {'Kind':<12} | "
        f"{'Blob':>8} | {'Iter':>6} | {'Notes':<30}"
    )
    print("=" * 120)

    for run in runs:
        run_name = run["run_name"] or "-"
        notes = run["notes"] or "-"
        blob = format_size(run["blob_length"]) if run["blob_length"] else "-"
        iterations = run["iterations"] if run["iterations"] is not None else "-"
        print(
            f"{run['id']:<6} | {run['timestamp']:<26} | {run_name:<20} | "
            f"{run['kind']:<12} | {blob:>8} | {iterations:>6} | {notes:<30}"
        )

    print("=" * 120)


def cmd_show(args, config: Config):
    """Show results for a specific run."""
    with BenchmarkDatabase(config.benchmark.database) as db:
        results = db.get_run_results(args.run_id)
        checks = db.get_run_checks(args.run_id)

    if not results and not checks:
        print(f"No results found for run {args.run_id}")
        return

    print("\n" + "=" * 120)
    print(f"RESULTS - Run #{args.run_id}")
    print("=" * 120)

    if results:
        print(
            f"{'Provider':<15} | {'Scenario':<20} | {'Size':>8} | {'Iter':>6} | "
            f"{'Throughput':>12} | {'Ops/s':>10} | {'Avg Latency':>12}"
        )
        print("-" * 120)
        for result in results:
            print(
                f"{result['provider_name']:<15} | {result['scenario']:<20} | "
                f"{format_size(result['bytes_per_op']):>8} | {result['iterations']:>6} | "
                f"{result['throughput_mbps']:>7.2f} MB/s | {result['ops_per_sec']:>10.2f} | "
                f"{result['avg_latency_ms']:>9.2f} ms"
            )

    if checks:
        print(f"{'Provider':<15} | {'Check':<24} | {'Status':<6} | Detail")
        print("-" * 120)
        for check in checks:
            status = "PASS" if check["passed"] else "FAIL"
            print(
                f"{check['provider_name']:<15} | {check['name']:<24} | {status:<6} | "
                f"{check['detail'] or ''}"
            )

    print("=" * 120)


def cmd_compare(args, config: Config):
    """Compare providers."""
    with BenchmarkDatabase(config.benchmark.database) as db:
        if args.providers:
            provider_names = args.providers
        else:
            provider_names = [s["provider_name"] for s in db.get_provider_stats()]

        all_provider_results = []
        for provider_name in provider_names:
            results = db.get_recent_results(provider_name)
            if results:
                all_provider_results.append(ProviderResults(provider_name, results))

    if not all_provider_results:
        print("No results found for comparison")
        return

    BenchmarkComparison(all_provider_results).print_summary()


def cmd_stats(args, config: Config):
    """Show statistics."""
    with BenchmarkDatabase(config.benchmark.database) as db:
        stats = db.get_provider_stats(args.provider)

    if not stats:
        print("No statistics available")
        return

    print("\n" + "=" * 120)
    print("PROVIDER STATISTICS")
    print("=" * 120)
    print(
        f"{'Provider':<15} | {'Runs':>6} | {'Tests':>6} | {'Avg Throughput':>15} | "
        f"{'Max Throughput':>15} | {'Avg Ops/s':>12} | {'Avg Latency':>12}"
    )
    print("=" * 120)

    for row in stats:
        print(
            f"{row['provider_name']:<15} | {row['run_count']:>6} | {row['test_count']:>6} | "
            f"{row['avg_throughput']:>10.2f} MB/s | {row['max_throughput']:>10.2f} MB/s | "
            f"{row['avg_ops']:>12.2f} | {row['avg_latency']:>9.2f} ms"
        )

    print("=" * 120)


def cmd_clean(args, config: Config):
    """Delete every object stored through the configured providers."""
    providers = select_providers(config, [args.provider] if args.provider else None)

    if not args.all:
        provider_names = ", ".join(p.name for p in providers)
        response = input(
            f"\nDelete all objects from providers: {provider_names}?\n"
            f"This will permanently delete all stored blobs. Continue? [y/N]: "
        )
        if response.lower() not in ("y", "yes"):
            print("Cancelled")
            return

    print("\n" + "=" * 80)
    print("CLEANING OBJECTS")
    print("=" * 80)

    total_deleted = 0
    for provider in providers:
        try:
            storage = open_storage(provider, config.benchmark)
        except BackendError as e:
            print(f"{provider.name}: Error opening storage: {e}", file=sys.stderr)
            continue
        try:
            if not hasattr(storage, "delete_all"):
                print(f"{provider.name}: Cleanup not supported for this storage type")
                continue
            deleted = storage.delete_all()
            print(f"{provider.name}: Deleted {deleted} objects")
            total_deleted += deleted
        except BackendError as e:
            print(f"{provider.name}: Error during cleanup: {e}", file=sys.stderr)
        finally:
            close_storage(storage)

    print("\n" + "=" * 80)
    print(f"Total objects deleted: {total_deleted}")
    print("=" * 80)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Check and benchmark content-addressed blob storage backends"
    )
    parser.add_argument("--config", default="config.toml", help="Path to configuration file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Run benchmarks
    run_parser = subparsers.add_parser("run", help="Run benchmarks")
    run_parser.add_argument(
        "--provider",
        "-p",
        action="append",
        help="Provider(s) to benchmark (default: all enabled)",
    )
    run_parser.add_argument(
        "--scenario",
        "-s",
        action="append",
        choices=SCENARIO_CHOICES,
        help="Scenario(s) to run (default: all)",
    )
    run_parser.add_argument("--name", "-n", help="Name for this benchmark run")
    run_parser.add_argument("--notes", help="Notes about this run")
    run_parser.add_argument("--iterations", "-i", type=int, help="Iterations per scenario")
    run_parser.add_argument("--runs", "-r", type=int, help="Number of times to run each scenario")
    run_parser.add_argument("--length", "-l", type=int, help="Blob length in bytes")
    run_parser.add_argument(
        "--no-compare",
        dest="compare",
        action="store_false",
        help="Don't show comparison",
    )

    # Conformance checks
    check_parser = subparsers.add_parser("check", help="Run conformance checks")
    check_parser.add_argument("--provider", "-p", action="append", help="Provider(s) to check")
    check_parser.add_argument("--check", "-c", action="append", help="Check(s) to run (default: all)")
    check_parser.add_argument("--name", "-n", help="Name for this run")
    check_parser.add_argument("--length", "-l", type=int, help="Blob length in bytes")

    # List runs
    list_parser = subparsers.add_parser("list", help="List runs")
    list_parser.add_argument("--limit", type=int, default=20, help="Number of runs to show")

    # Show run results
    show_parser = subparsers.add_parser("show", help="Show results for a specific run")
    show_parser.add_argument("run_id", type=int, help="Run ID to show")

    # Compare providers
    compare_parser = subparsers.add_parser("compare", help="Compare provider performance")
    compare_parser.add_argument(
        "--providers", "-p", nargs="+", help="Providers to compare (default: all)"
    )

    # Show statistics
    stats_parser = subparsers.add_parser("stats", help="Show provider statistics")
    stats_parser.add_argument("--provider", "-p", help="Provider to show stats for (default: all)")

    # Clean up stored objects
    clean_parser = subparsers.add_parser("clean", help="Delete stored objects")
    clean_parser.add_argument("--provider", "-p", help="Provider to clean (default: all enabled)")
    clean_parser.add_argument(
        "--all", "-a", action="store_true", help="Clean without confirmation"
    )

    return parser


COMMANDS = {
    "run": cmd_run,
    "check": cmd_check,
    "list": cmd_list,
    "show": cmd_show,
    "compare": cmd_compare,
    "stats": cmd_stats,
    "clean": cmd_clean,
}


def main(argv: list[str] | None = None):
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        config = Config.from_file(args.config)
        config.validate()
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        COMMANDS[args.command](args, config)
    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        sys.exit(1)
    except (BackendError, ScenarioError) as e:
        print(f"\n\nError: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"\n\nError: {e}", file=sys.stderr)
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
