from __future__ import annotations

from typing import Iterable

import numpy as np

from apiperf.metrics.models import BatchResult, RequestOutcome


def summarize(outcomes: Iterable[RequestOutcome]) -> BatchResult:
    """Reduce a batch of outcomes to summary statistics.

    The result depends only on the multiset of outcomes, never on their order.
    Unmeasured (sentinel) latencies count towards totals but are left out of
    every latency statistic.
    """
    total = 0
    success_count = 0
    latencies: list[int] = []
    for outcome in outcomes:
        total += 1
        if outcome.success:
            success_count += 1
        if outcome.measured:
            latencies.append(outcome.latency_ms)

    if latencies:
        avg = sum(latencies) // len(latencies)
        low = min(latencies)
        high = max(latencies)
        p50 = float(np.percentile(latencies, 50))
        p95 = float(np.percentile(latencies, 95))
        p99 = float(np.percentile(latencies, 99))
    else:
        avg = low = high = 0
        p50 = p95 = p99 = 0.0

    rate = (success_count * 100.0 / total) if total else 0.0
    return BatchResult(
        total=total,
        success_count=success_count,
        failure_count=total - success_count,
        avg_latency_ms=avg,
        min_latency_ms=low,
        max_latency_ms=high,
        success_rate_percent=rate,
        measured_count=len(latencies),
        p50_ms=p50,
        p95_ms=p95,
        p99_ms=p99,
    )
