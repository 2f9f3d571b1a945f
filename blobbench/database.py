"""SQLite database for storing benchmark and conformance results."""

import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any

from blobbench.benchmarks.base import BenchmarkResult
from blobbench.conformance import CheckResult

logger = logging.getLogger(__name__)


class BenchmarkDatabase:
    """Database for storing and querying benchmark results.

    Only completed scenarios are stored; aborted runs never reach it.
    """

    def __init__(self, db_path: str | Path = "benchmark_results.db"):
        self.db_path = Path(db_path)
        self.conn = sqlite3.connect(self.db_path)
        self.conn.row_factory = sqlite3.Row
        self._create_tables()

    def _create_tables(self) -> None:
        """Create database tables if they don't exist."""
        cursor = self.conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS benchmark_runs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                timestamp TEXT NOT NULL,
                run_name TEXT,
                kind TEXT NOT NULL,
                blob_length INTEGER,
                iterations INTEGER,
                notes TEXT
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS results (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                run_id INTEGER NOT NULL,
                provider_name TEXT NOT NULL,
                provider_type TEXT NOT NULL,
                scenario TEXT NOT NULL,
                blob_length INTEGER NOT NULL,
                bytes_per_op INTEGER NOT NULL,
                iterations INTEGER NOT NULL,
                duration REAL NOT NULL,
                throughput_mbps REAL NOT NULL,
                ops_per_sec REAL NOT NULL,
                avg_latency_ms REAL NOT NULL,
                min_latency_ms REAL NOT NULL,
                max_latency_ms REAL NOT NULL,
                variance_pct REAL DEFAULT 0.0,
                runs INTEGER DEFAULT 1,
                FOREIGN KEY (run_id) REFERENCES benchmark_runs (id)
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS checks (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                run_id INTEGER NOT NULL,
                provider_name TEXT NOT NULL,
                name TEXT NOT NULL,
                passed INTEGER NOT NULL,
                detail TEXT,
                duration REAL NOT NULL,
                FOREIGN KEY (run_id) REFERENCES benchmark_runs (id)
            )
        """)

        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_results_run_id ON results (run_id)"
        )
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_results_provider ON results (provider_name)"
        )
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_checks_run_id ON checks (run_id)"
        )

        self.conn.commit()

    def create_run(
        self,
        run_name: str | None = None,
        kind: str = "benchmark",
        blob_length: int | None = None,
        iterations: int | None = None,
        notes: str | None = None,
    ) -> int:
        """Create a new run and return its ID."""
        cursor = self.conn.cursor()
        timestamp = datetime.now().isoformat()

        cursor.execute(
            """
            INSERT INTO benchmark_runs (timestamp, run_name, kind, blob_length, iterations, notes)
            VALUES (?, ?, ?, ?, ?, ?)
        """,
            (timestamp, run_name, kind, blob_length, iterations, notes),
        )

        self.conn.commit()
        logger.debug("created run %d (%s)", cursor.lastrowid, kind)
        return cursor.lastrowid

    def add_result(
        self, run_id: int, provider_name: str, provider_type: str, result: BenchmarkResult
    ) -> None:
        """Add a completed benchmark result to the database."""
        cursor = self.conn.cursor()

        cursor.execute(
            """
            INSERT INTO results (
                run_id, provider_name, provider_type, scenario,
                blob_length, bytes_per_op, iterations, duration,
                throughput_mbps, ops_per_sec,
                avg_latency_ms, min_latency_ms, max_latency_ms,
                variance_pct, runs
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
            (
                run_id,
                provider_name,
                provider_type,
                result.scenario,
                result.blob_length,
                result.bytes_per_op,
                result.iterations,
                result.duration,
                result.throughput_mbps,
                result.ops_per_sec,
                result.avg_latency_ms,
                result.min_latency_ms,
                result.max_latency_ms,
                result.variance_pct,
                result.runs,
            ),
        )

        self.conn.commit()

    def add_check(self, run_id: int, provider_name: str, check: CheckResult) -> None:
        """Add one conformance check outcome."""
        self.conn.execute(
            """
            INSERT INTO checks (run_id, provider_name, name, passed, detail, duration)
            VALUES (?, ?, ?, ?, ?, ?)
        """,
            (run_id, provider_name, check.name, int(check.passed), check.detail, check.duration),
        )
        self.conn.commit()

    def get_runs(self, limit: int = 20) -> list[dict[str, Any]]:
        """Get recent runs."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            SELECT id, timestamp, run_name, kind, blob_length, iterations, notes
            FROM benchmark_runs
            ORDER BY timestamp DESC, id DESC
            LIMIT ?
        """,
            (limit,),
        )

        return [dict(row) for row in cursor.fetchall()]

    def get_run_results(self, run_id: int) -> list[dict[str, Any]]:
        """Get all benchmark results for a specific run."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            SELECT * FROM results
            WHERE run_id = ?
            ORDER BY provider_name, scenario, bytes_per_op
        """,
            (run_id,),
        )

        return [dict(row) for row in cursor.fetchall()]

    def get_run_checks(self, run_id: int) -> list[dict[str, Any]]:
        """Get all conformance check outcomes for a specific run."""
        cursor = self.conn.cursor()
        cursor.execute(
            "SELECT * FROM checks WHERE run_id = ? ORDER BY provider_name, id",
            (run_id,),
        )
        return [dict(row) for row in cursor.fetchall()]

    def get_recent_results(self, provider_name: str, limit: int = 50) -> list[BenchmarkResult]:
        """Get the most recent results of one provider as BenchmarkResult objects."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            SELECT * FROM results
            WHERE provider_name = ?
            ORDER BY run_id DESC
            LIMIT ?
        """,
            (provider_name, limit),
        )
        return [
            BenchmarkResult(
                scenario=row["scenario"],
                blob_length=row["blob_length"],
                bytes_per_op=row["bytes_per_op"],
                iterations=row["iterations"],
                duration=row["duration"],
                throughput_mbps=row["throughput_mbps"],
                ops_per_sec=row["ops_per_sec"],
                avg_latency_ms=row["avg_latency_ms"],
                min_latency_ms=row["min_latency_ms"],
                max_latency_ms=row["max_latency_ms"],
                variance_pct=row["variance_pct"],
                runs=row["runs"],
            )
            for row in cursor.fetchall()
        ]

    def get_provider_stats(self, provider_name: str | None = None) -> list[dict[str, Any]]:
        """Get statistics for a provider or all providers."""
        cursor = self.conn.cursor()

        query = """
            SELECT
                provider_name,
                COUNT(DISTINCT run_id) as run_count,
                COUNT(*) as test_count,
                AVG(throughput_mbps) as avg_throughput,
                MAX(throughput_mbps) as max_throughput,
                AVG(ops_per_sec) as avg_ops,
                AVG(avg_latency_ms) as avg_latency,
                MIN(avg_latency_ms) as min_latency
            FROM results
        """
        params = []

        if provider_name:
            query += " WHERE provider_name = ?"
            params.append(provider_name)

        query += " GROUP BY provider_name ORDER BY avg_throughput DESC"

        cursor.execute(query, params)
        return [dict(row) for row in cursor.fetchall()]

    def close(self) -> None:
        """Close database connection."""
        self.conn.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
