from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass

from apiperf.config import BenchmarkConfig, LoadTestConfig, StressConfig, ThroughputConfig
from apiperf.loadgen import (
    ConcurrentBatchRunner,
    RequestExecutor,
    RequestFactory,
    RequestSpec,
    StressEscalator,
)
from apiperf.metrics import BatchResult, RequestOutcome, StressReport
from apiperf.reporting import RunContext

logger = logging.getLogger(__name__)

BENCHMARK = "response_time"
LOAD = "load"
STRESS = "stress"
THROUGHPUT = "throughput"


@dataclass(frozen=True, slots=True)
class BenchmarkResult:
    outcome: RequestOutcome
    threshold_ms: int
    passed: bool


@dataclass(frozen=True, slots=True)
class LoadTestResult:
    batch: BatchResult
    threshold_percent: float
    passed: bool


@dataclass(frozen=True, slots=True)
class ThroughputResult:
    total_requests: int
    success_count: int
    elapsed_ms: int
    requests_per_second: float
    passed: bool


async def benchmark_response_time(
    executor: RequestExecutor,
    spec: RequestSpec,
    config: BenchmarkConfig,
    ctx: RunContext,
) -> BenchmarkResult:
    ctx = ctx.for_check(BENCHMARK)
    ctx.info(f"Measuring response time for {spec.method} {spec.url}")
    outcome = await executor.execute(spec)
    threshold = config.response_time_threshold_ms
    passed = outcome.success and outcome.latency_ms < threshold
    if passed:
        ctx.passed(f"Response time: {outcome.latency_ms}ms (threshold: {threshold}ms)")
    elif not outcome.success:
        kind = outcome.error_kind.value if outcome.error_kind else "unknown"
        ctx.failed(f"Request failed ({kind}, status {outcome.status_code})")
    else:
        ctx.failed(f"Response time {outcome.latency_ms}ms exceeded threshold of {threshold}ms")
    return BenchmarkResult(outcome=outcome, threshold_ms=threshold, passed=passed)


async def run_load_test(
    executor: RequestExecutor,
    request_factory: RequestFactory,
    config: LoadTestConfig,
    ctx: RunContext,
    runner: ConcurrentBatchRunner | None = None,
) -> LoadTestResult:
    ctx = ctx.for_check(LOAD)
    runner = runner or ConcurrentBatchRunner(max_workers=config.concurrent_users)
    total = config.total_requests
    ctx.info(
        f"Sending {total} concurrent requests ({config.concurrent_users} users x "
        f"{config.requests_per_user} requests each)"
    )
    batch = await runner.run(total, executor, request_factory, config.batch_timeout_sec)
    ctx.info(f"Results: Total={batch.total}, Success={batch.success_count}, Failed={batch.failure_count}")
    ctx.info(
        f"Response Times: Avg={batch.avg_latency_ms}ms, Min={batch.min_latency_ms}ms, "
        f"Max={batch.max_latency_ms}ms, p95={batch.p95_ms:.0f}ms"
    )
    threshold = config.success_threshold_percent
    passed = batch.success_rate_percent >= threshold
    if passed:
        ctx.passed(
            f"Load test completed with {batch.success_rate_percent:.1f}% success rate | "
            f"Avg response: {batch.avg_latency_ms}ms"
        )
    else:
        ctx.failed(
            f"Success rate {batch.success_rate_percent:.1f}% is below acceptable threshold of {threshold:.1f}%"
        )
    return LoadTestResult(batch=batch, threshold_percent=threshold, passed=passed)


async def run_stress_test(
    executor: RequestExecutor,
    request_factory: RequestFactory,
    config: StressConfig,
    ctx: RunContext,
    runner: ConcurrentBatchRunner | None = None,
    stop: asyncio.Event | None = None,
) -> StressReport:
    ctx = ctx.for_check(STRESS)
    ctx.info("Gradually increasing concurrent load to find the breaking point")
    escalator = StressEscalator(
        max_concurrency=config.max_concurrency,
        batch_timeout_sec=config.batch_timeout_sec,
    )
    report = await escalator.escalate(
        config.levels,
        runner or ConcurrentBatchRunner(),
        executor,
        request_factory,
        config.breaking_threshold_percent,
        stop=stop,
    )
    for level in report.levels:
        ctx.info(
            f"Concurrency: {level.concurrency} | Success Rate: "
            f"{level.result.success_rate_percent:.1f}% | Failures: {level.result.failure_count}"
        )
    if report.held_up:
        ctx.passed(report.summary())
    else:
        ctx.warning(report.summary())
    return report


async def measure_throughput(
    executor: RequestExecutor,
    spec: RequestSpec,
    config: ThroughputConfig,
    ctx: RunContext,
) -> ThroughputResult:
    ctx = ctx.for_check(THROUGHPUT)
    total = config.total_requests
    ctx.info(f"Sending {total} sequential requests")
    success_count = 0
    start = time.perf_counter()
    for _ in range(total):
        outcome = await executor.execute(spec)
        if outcome.success:
            success_count += 1
    elapsed = time.perf_counter() - start
    rps = total / elapsed if elapsed > 0 else 0.0
    elapsed_ms = round(elapsed * 1000.0)
    ctx.info(f"Completed {total} requests in {elapsed_ms}ms")
    ctx.info(f"Success count: {success_count}/{total}")
    passed = success_count > 0
    if passed:
        ctx.passed(f"Throughput measured at {rps:.2f} req/s")
    else:
        ctx.failed("No request succeeded")
    return ThroughputResult(
        total_requests=total,
        success_count=success_count,
        elapsed_ms=elapsed_ms,
        requests_per_second=rps,
        passed=passed,
    )
