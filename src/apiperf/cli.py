from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import uuid
from pathlib import Path

import httpx

from apiperf.checks import benchmark_response_time, measure_throughput, run_load_test, run_stress_test
from apiperf.config import (
    BenchmarkConfig,
    LoadTestConfig,
    StressConfig,
    SuiteConfig,
    TargetConfig,
    ThroughputConfig,
)
from apiperf.loadgen import HttpRequestExecutor, RequestSpec, fixed_request
from apiperf.reporting import MemoryReportSink, RunContext
from apiperf.storage import Storage, default_storage

CHECKS = ("benchmark", "load", "stress", "throughput")


def _parse_levels(raw: str) -> tuple[int, ...]:
    try:
        levels = tuple(int(part) for part in raw.split(",") if part.strip())
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid levels: {raw!r}") from exc
    if not levels or any(level <= 0 for level in levels):
        raise argparse.ArgumentTypeError(f"Levels must be positive integers: {raw!r}")
    if any(later <= earlier for earlier, later in zip(levels, levels[1:])):
        raise argparse.ArgumentTypeError(f"Levels must be strictly ascending: {raw!r}")
    return levels


async def run_suite(config: SuiteConfig, checks: list[str], storage: Storage) -> tuple[str, bool]:
    run_id = config.run_id or uuid.uuid4().hex
    storage.save_run(config, run_id)
    sink = MemoryReportSink()
    ctx = RunContext(run_id=run_id, sink=sink)
    spec = RequestSpec.from_target(config.target)
    factory = fixed_request(spec)
    passed = True
    try:
        async with httpx.AsyncClient() as client:
            executor = HttpRequestExecutor(client)
            if "benchmark" in checks:
                bench = await benchmark_response_time(executor, spec, config.benchmark, ctx)
                passed &= bench.passed
            if "load" in checks:
                load = await run_load_test(executor, factory, config.load, ctx)
                storage.save_batch(run_id, "load", config.load.concurrent_users, load.batch)
                passed &= load.passed
            if "stress" in checks:
                report = await run_stress_test(executor, factory, config.stress, ctx)
                storage.save_stress_report(run_id, report)
            if "throughput" in checks:
                throughput = await measure_throughput(executor, spec, config.throughput, ctx)
                passed &= throughput.passed
    finally:
        storage.save_entries(sink.entries)
    return run_id, passed


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="API performance harness")
    parser.add_argument("--target", required=True, help="Target URL")
    parser.add_argument("--method", default="GET")
    parser.add_argument("--timeout", type=float, default=10.0)
    parser.add_argument("--check", choices=[*CHECKS, "all"], action="append")
    parser.add_argument("--run-id", default=None)
    parser.add_argument("--notes", default="")
    parser.add_argument("--db", type=Path, default=None, help="DuckDB file for results")
    parser.add_argument("--log-level", default="INFO")

    parser.add_argument("--response-time-threshold-ms", type=int, default=3000)

    parser.add_argument("--users", type=int, default=10)
    parser.add_argument("--requests-per-user", type=int, default=5)
    parser.add_argument("--load-threshold", type=float, default=80.0)
    parser.add_argument("--load-timeout", type=float, default=60.0)

    parser.add_argument("--levels", type=_parse_levels, default=(5, 10, 20, 30, 50))
    parser.add_argument("--max-concurrency", type=int, default=50)
    parser.add_argument("--stress-threshold", type=float, default=70.0)
    parser.add_argument("--stress-timeout", type=float, default=30.0)

    parser.add_argument("--throughput-requests", type=int, default=20)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    checks = list(CHECKS) if not args.check or "all" in args.check else args.check
    config = SuiteConfig(
        target=TargetConfig(base_url=args.target, method=args.method, timeout_sec=args.timeout),
        benchmark=BenchmarkConfig(response_time_threshold_ms=args.response_time_threshold_ms),
        load=LoadTestConfig(
            concurrent_users=args.users,
            requests_per_user=args.requests_per_user,
            success_threshold_percent=args.load_threshold,
            batch_timeout_sec=args.load_timeout,
        ),
        stress=StressConfig(
            levels=args.levels,
            max_concurrency=args.max_concurrency,
            breaking_threshold_percent=args.stress_threshold,
            batch_timeout_sec=args.stress_timeout,
        ),
        throughput=ThroughputConfig(total_requests=args.throughput_requests),
        run_id=args.run_id,
        notes=args.notes,
    )
    storage = Storage(args.db) if args.db else default_storage()
    run_id, passed = asyncio.run(run_suite(config, checks, storage))
    print(f"Run complete: {run_id} ({'passed' if passed else 'failed'})")
    return 0 if passed else 1


if __name__ == "__main__":
    sys.exit(main())
