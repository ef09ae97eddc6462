from __future__ import annotations

from apiperf.errors import HarnessError, InfrastructureError
from apiperf.loadgen import (
    ConcurrentBatchRunner,
    HttpRequestExecutor,
    RequestExecutor,
    RequestSpec,
    StressEscalator,
    fixed_request,
)
from apiperf.metrics import BatchResult, ErrorKind, RequestOutcome, StressLevel, StressReport, summarize

__all__ = [
    "BatchResult",
    "ConcurrentBatchRunner",
    "ErrorKind",
    "HarnessError",
    "HttpRequestExecutor",
    "InfrastructureError",
    "RequestExecutor",
    "RequestOutcome",
    "RequestSpec",
    "StressEscalator",
    "StressLevel",
    "StressReport",
    "fixed_request",
    "summarize",
]
