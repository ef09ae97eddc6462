from __future__ import annotations

from apiperf.config.models import (
    BenchmarkConfig,
    LoadTestConfig,
    StressConfig,
    SuiteConfig,
    TargetConfig,
    ThroughputConfig,
)

__all__ = [
    "BenchmarkConfig",
    "LoadTestConfig",
    "StressConfig",
    "SuiteConfig",
    "TargetConfig",
    "ThroughputConfig",
]
