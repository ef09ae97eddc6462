from __future__ import annotations

from apiperf.metrics.aggregator import summarize
from apiperf.metrics.models import (
    UNMEASURED_LATENCY_MS,
    BatchResult,
    ErrorKind,
    RequestOutcome,
    StressLevel,
    StressReport,
)

__all__ = [
    "UNMEASURED_LATENCY_MS",
    "BatchResult",
    "ErrorKind",
    "RequestOutcome",
    "StressLevel",
    "StressReport",
    "summarize",
]
