from __future__ import annotations

import pytest

from apiperf.config import SuiteConfig, TargetConfig
from apiperf.metrics import StressLevel, StressReport, summarize
from apiperf.reporting import MemoryReportSink, RunContext
from apiperf.storage import Storage

from fakes import ok, transport_failure


def _report() -> StressReport:
    levels = (
        StressLevel(5, summarize([ok(12)] * 5)),
        StressLevel(10, summarize([ok(20)] * 6 + [transport_failure()] * 4)),
    )
    return StressReport(
        levels=levels, breaking_point=10, threshold_percent=70.0, max_concurrency=50, skipped_levels=(60,)
    )


def test_stress_report_round_trip(tmp_path) -> None:
    storage = Storage(tmp_path / "results.duckdb")
    config = SuiteConfig(target=TargetConfig(base_url="http://svc.test"), notes="nightly")
    storage.save_run(config, "run-1")
    storage.save_stress_report("run-1", _report())
    storage.save_batch("run-1", "load", 10, summarize([ok(30)] * 9 + [transport_failure()]))

    assert storage.run_exists("run-1")
    assert storage.load_run_meta("run-1")["stress"]["levels"] == [5, 10, 20, 30, 50]
    levels = storage.load_stress_levels("run-1")
    assert levels["concurrency"].tolist() == [5, 10]
    assert levels["success_rate_percent"].tolist() == [100.0, 60.0]
    assert storage.load_stress_summary("run-1")["breaking_point"] == 10
    assert storage.load_stress_summary("run-1")["skipped_levels"] == [60]
    assert len(storage.load_batches("run-1")) == 3
    assert storage.list_runs()["notes"].tolist() == ["nightly"]


def test_duplicate_run_rejected(tmp_path) -> None:
    storage = Storage(tmp_path / "results.duckdb")
    config = SuiteConfig(target=TargetConfig(base_url="http://svc.test"))
    storage.save_run(config, "run-1")
    with pytest.raises(ValueError):
        storage.save_run(config, "run-1")


def test_report_entries_saved(tmp_path) -> None:
    storage = Storage(tmp_path / "results.duckdb")
    sink = MemoryReportSink()
    ctx = RunContext(run_id="run-2", sink=sink).for_check("load")
    ctx.info("Sending 50 requests")
    ctx.passed("done")
    storage.save_entries(sink.entries)
    storage.save_entries([])
    entries = storage.load_entries("run-2")
    assert sorted(entries["status"].tolist()) == ["info", "pass"]
    assert set(entries["check_name"]) == {"load"}
