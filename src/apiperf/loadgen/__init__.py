from __future__ import annotations

from apiperf.loadgen.client import (
    HttpRequestExecutor,
    RequestExecutor,
    RequestFactory,
    RequestSpec,
    fixed_request,
)
from apiperf.loadgen.escalator import StressEscalator
from apiperf.loadgen.runner import ConcurrentBatchRunner, OutcomeCollector

__all__ = [
    "ConcurrentBatchRunner",
    "HttpRequestExecutor",
    "OutcomeCollector",
    "RequestExecutor",
    "RequestFactory",
    "RequestSpec",
    "StressEscalator",
    "fixed_request",
]
