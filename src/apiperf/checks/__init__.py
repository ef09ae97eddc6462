from __future__ import annotations

from apiperf.checks.performance import (
    BenchmarkResult,
    LoadTestResult,
    ThroughputResult,
    benchmark_response_time,
    measure_throughput,
    run_load_test,
    run_stress_test,
)

__all__ = [
    "BenchmarkResult",
    "LoadTestResult",
    "ThroughputResult",
    "benchmark_response_time",
    "measure_throughput",
    "run_load_test",
    "run_stress_test",
]
