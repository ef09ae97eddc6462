from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import timezone
from pathlib import Path
from typing import Iterable

import duckdb
import pandas as pd

from apiperf.config import SuiteConfig
from apiperf.metrics import BatchResult, StressReport
from apiperf.reporting import ReportEntry


@dataclass(slots=True)
class Storage:
    db_path: Path

    def __post_init__(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _connect(self) -> duckdb.DuckDBPyConnection:
        return duckdb.connect(str(self.db_path))

    def _init_schema(self) -> None:
        with self._connect() as con:
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS run_meta (
                    run_id TEXT PRIMARY KEY,
                    created_at TIMESTAMP,
                    config_json TEXT,
                    notes TEXT
                );
                """
            )
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS batch_results (
                    run_id TEXT,
                    check_name TEXT,
                    concurrency INTEGER,
                    total INTEGER,
                    success_count INTEGER,
                    failure_count INTEGER,
                    avg_latency_ms INTEGER,
                    min_latency_ms INTEGER,
                    max_latency_ms INTEGER,
                    success_rate_percent DOUBLE,
                    measured_count INTEGER,
                    p50_ms DOUBLE,
                    p95_ms DOUBLE,
                    p99_ms DOUBLE
                );
                """
            )
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS stress_reports (
                    run_id TEXT,
                    breaking_point INTEGER,
                    threshold_percent DOUBLE,
                    max_concurrency INTEGER,
                    interrupted BOOLEAN,
                    skipped_levels TEXT
                );
                """
            )
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS report_entries (
                    run_id TEXT,
                    check_name TEXT,
                    status TEXT,
                    message TEXT,
                    created_at TIMESTAMP
                );
                """
            )

    def run_exists(self, run_id: str) -> bool:
        with self._connect() as con:
            result = con.execute(
                "SELECT COUNT(*) FROM run_meta WHERE run_id = ?",
                [run_id],
            ).fetchone()
            return bool(result and result[0] > 0)

    def save_run(self, config: SuiteConfig, run_id: str) -> None:
        if self.run_exists(run_id):
            msg = f"Run {run_id} already exists"
            raise ValueError(msg)
        config_json = json.dumps(config.to_metadata())
        with self._connect() as con:
            con.execute(
                "INSERT INTO run_meta VALUES (?, ?, ?, ?)",
                [run_id, config.created_at.astimezone(timezone.utc).replace(tzinfo=None), config_json, config.notes],
            )

    def save_batch(self, run_id: str, check: str, concurrency: int, result: BatchResult) -> None:
        self._insert_batches(run_id, check, [(concurrency, result)])

    def save_stress_report(self, run_id: str, report: StressReport) -> None:
        self._insert_batches(run_id, "stress", [(level.concurrency, level.result) for level in report.levels])
        with self._connect() as con:
            con.execute(
                "INSERT INTO stress_reports VALUES (?, ?, ?, ?, ?, ?)",
                [
                    run_id,
                    report.breaking_point,
                    report.threshold_percent,
                    report.max_concurrency,
                    report.interrupted,
                    json.dumps(list(report.skipped_levels)),
                ],
            )

    def save_entries(self, entries: Iterable[ReportEntry]) -> None:
        entries_df = pd.DataFrame(
            [
                {
                    "run_id": e.run_id,
                    "check_name": e.check,
                    "status": e.status.value,
                    "message": e.message,
                    "created_at": e.created_at.astimezone(timezone.utc).replace(tzinfo=None),
                }
                for e in entries
            ]
        )
        if entries_df.empty:
            return
        with self._connect() as con:
            con.execute("INSERT INTO report_entries SELECT * FROM entries_df")

    def _insert_batches(self, run_id: str, check: str, rows: list[tuple[int, BatchResult]]) -> None:
        batches_df = pd.DataFrame(
            [
                {
                    "run_id": run_id,
                    "check_name": check,
                    "concurrency": concurrency,
                    "total": r.total,
                    "success_count": r.success_count,
                    "failure_count": r.failure_count,
                    "avg_latency_ms": r.avg_latency_ms,
                    "min_latency_ms": r.min_latency_ms,
                    "max_latency_ms": r.max_latency_ms,
                    "success_rate_percent": r.success_rate_percent,
                    "measured_count": r.measured_count,
                    "p50_ms": r.p50_ms,
                    "p95_ms": r.p95_ms,
                    "p99_ms": r.p99_ms,
                }
                for concurrency, r in rows
            ]
        )
        if batches_df.empty:
            return
        with self._connect() as con:
            con.execute("INSERT INTO batch_results SELECT * FROM batches_df")

    def list_runs(self) -> pd.DataFrame:
        with self._connect() as con:
            return con.execute(
                "SELECT run_id, created_at, notes FROM run_meta ORDER BY created_at DESC"
            ).fetchdf()

    def load_run_meta(self, run_id: str) -> dict[str, object] | None:
        with self._connect() as con:
            row = con.execute(
                "SELECT config_json FROM run_meta WHERE run_id = ?",
                [run_id],
            ).fetchone()
            if not row:
                return None
            return json.loads(row[0])

    def load_batches(self, run_id: str, check: str | None = None) -> pd.DataFrame:
        with self._connect() as con:
            if check is None:
                return con.execute(
                    "SELECT * FROM batch_results WHERE run_id = ? ORDER BY check_name, concurrency",
                    [run_id],
                ).fetchdf()
            return con.execute(
                "SELECT * FROM batch_results WHERE run_id = ? AND check_name = ? ORDER BY concurrency",
                [run_id, check],
            ).fetchdf()

    def load_stress_levels(self, run_id: str) -> pd.DataFrame:
        return self.load_batches(run_id, "stress")

    def load_stress_summary(self, run_id: str) -> dict[str, object] | None:
        with self._connect() as con:
            row = con.execute(
                "SELECT breaking_point, threshold_percent, max_concurrency, interrupted, skipped_levels "
                "FROM stress_reports WHERE run_id = ?",
                [run_id],
            ).fetchone()
            if not row:
                return None
            return {
                "breaking_point": row[0],
                "threshold_percent": row[1],
                "max_concurrency": row[2],
                "interrupted": row[3],
                "skipped_levels": json.loads(row[4]) if row[4] else [],
            }

    def load_entries(self, run_id: str) -> pd.DataFrame:
        with self._connect() as con:
            return con.execute(
                "SELECT * FROM report_entries WHERE run_id = ? ORDER BY created_at",
                [run_id],
            ).fetchdf()
