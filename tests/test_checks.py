from __future__ import annotations

import asyncio

from apiperf.checks import benchmark_response_time, measure_throughput, run_load_test, run_stress_test
from apiperf.config import BenchmarkConfig, LoadTestConfig, StressConfig, ThroughputConfig
from apiperf.loadgen import RequestSpec, fixed_request
from apiperf.metrics import ErrorKind, RequestOutcome
from apiperf.reporting import MemoryReportSink, RunContext, Status

from fakes import ScriptedExecutor, index_of, indexed_request, ok, transport_failure

SPEC = RequestSpec(url="http://svc.test/activities/1")


def _context() -> tuple[RunContext, MemoryReportSink]:
    sink = MemoryReportSink()
    return RunContext(run_id="run-1", sink=sink), sink


def test_benchmark_passes_under_threshold() -> None:
    ctx, sink = _context()
    result = asyncio.run(
        benchmark_response_time(ScriptedExecutor(lambda spec: ok(250)), SPEC, BenchmarkConfig(), ctx)
    )
    assert result.passed
    assert sink.for_check("response_time")[-1].status is Status.PASS


def test_benchmark_fails_when_slow_or_broken() -> None:
    ctx, sink = _context()
    slow = asyncio.run(
        benchmark_response_time(
            ScriptedExecutor(lambda spec: ok(3000)), SPEC, BenchmarkConfig(response_time_threshold_ms=3000), ctx
        )
    )
    broken = asyncio.run(
        benchmark_response_time(
            ScriptedExecutor(lambda spec: RequestOutcome.failed(ErrorKind.TIMEOUT)), SPEC, BenchmarkConfig(), ctx
        )
    )
    assert not slow.passed
    assert not broken.passed
    assert sink.failed()


def test_load_test_uses_acceptance_threshold() -> None:
    ctx, sink = _context()
    config = LoadTestConfig(concurrent_users=4, requests_per_user=5, success_threshold_percent=80.0)
    executor = ScriptedExecutor(
        lambda spec: transport_failure() if index_of(spec) % 5 == 0 else ok(),
        delay=lambda spec: 0.01,
    )
    result = asyncio.run(run_load_test(executor, indexed_request, config, ctx))
    assert result.batch.total == 20
    assert result.batch.success_rate_percent == 80.0
    assert result.passed
    assert executor.peak_in_flight <= 4
    assert sink.for_check("load")[-1].status is Status.PASS


def test_load_test_below_threshold_fails() -> None:
    ctx, sink = _context()
    config = LoadTestConfig(concurrent_users=2, requests_per_user=5)
    executor = ScriptedExecutor(lambda spec: transport_failure() if index_of(spec) < 3 else ok())
    result = asyncio.run(run_load_test(executor, indexed_request, config, ctx))
    assert result.batch.success_rate_percent == 70.0
    assert not result.passed
    assert sink.for_check("load")[-1].status is Status.FAIL


def test_stress_test_reports_breaking_point_as_warning() -> None:
    ctx, sink = _context()
    executor = ScriptedExecutor(lambda spec: ok() if index_of(spec) < 12 else transport_failure())
    report = asyncio.run(run_stress_test(executor, indexed_request, StressConfig(), ctx))
    assert report.breaking_point == 20
    entries = sink.for_check("stress")
    assert entries[-1].status is Status.WARNING
    assert sum(1 for e in entries if e.message.startswith("Concurrency:")) == 3


def test_stress_test_holding_up_passes() -> None:
    ctx, sink = _context()
    config = StressConfig(levels=(2, 4, 8), max_concurrency=8)
    report = asyncio.run(run_stress_test(ScriptedExecutor(lambda spec: ok()), fixed_request(SPEC), config, ctx))
    assert report.breaking_point is None
    assert len(report.levels) == 3
    assert sink.for_check("stress")[-1].status is Status.PASS


def test_throughput_counts_sequential_requests() -> None:
    ctx, sink = _context()
    executor = ScriptedExecutor(lambda spec: ok(), delay=lambda spec: 0.001)
    result = asyncio.run(measure_throughput(executor, SPEC, ThroughputConfig(total_requests=10), ctx))
    assert result.total_requests == 10
    assert result.success_count == 10
    assert result.requests_per_second > 0
    assert executor.peak_in_flight == 1
    assert result.passed


def test_throughput_fails_without_successes() -> None:
    ctx, sink = _context()
    result = asyncio.run(
        measure_throughput(ScriptedExecutor(lambda spec: transport_failure()), SPEC, ThroughputConfig(5), ctx)
    )
    assert result.success_count == 0
    assert not result.passed
    assert sink.for_check("throughput")[-1].status is Status.FAIL


def test_stress_test_with_no_runnable_level_warns() -> None:
    ctx, sink = _context()
    config = StressConfig(levels=(60, 80), max_concurrency=50)
    report = asyncio.run(run_stress_test(ScriptedExecutor(lambda spec: ok()), fixed_request(SPEC), config, ctx))
    assert report.skipped_levels == (60, 80)
    assert sink.for_check("stress")[-1].status is Status.WARNING
