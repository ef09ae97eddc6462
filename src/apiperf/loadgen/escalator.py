from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Sequence

from apiperf.loadgen.client import RequestExecutor, RequestFactory
from apiperf.loadgen.runner import ConcurrentBatchRunner
from apiperf.metrics import StressLevel, StressReport

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StressEscalator:
    max_concurrency: int = 50
    batch_timeout_sec: float = 30.0

    async def escalate(
        self,
        levels: Sequence[int],
        runner: ConcurrentBatchRunner,
        executor: RequestExecutor,
        request_factory: RequestFactory,
        threshold_percent: float,
        stop: asyncio.Event | None = None,
    ) -> StressReport:
        """Run one batch per level until the success rate drops below the threshold.

        Levels are attempted in the given order and never above
        ``max_concurrency``. ``stop`` is only consulted between levels, so a
        level that has started always runs to completion.
        """
        _validate_levels(levels)
        completed: list[StressLevel] = []
        breaking_point: int | None = None
        interrupted = False
        skipped: tuple[int, ...] = ()

        for position, concurrency in enumerate(levels):
            if concurrency > self.max_concurrency:
                logger.info(
                    "Skipping levels from %d: above max concurrency %d",
                    concurrency,
                    self.max_concurrency,
                )
                skipped = tuple(levels[position:])
                break
            if stop is not None and stop.is_set():
                interrupted = True
                skipped = tuple(levels[position:])
                logger.info("Escalation stopped before level %d", concurrency)
                break
            result = await runner.run(concurrency, executor, request_factory, self.batch_timeout_sec)
            completed.append(StressLevel(concurrency=concurrency, result=result))
            logger.info(
                "Level %d: success rate %.1f%%, failures %d, avg %dms",
                concurrency,
                result.success_rate_percent,
                result.failure_count,
                result.avg_latency_ms,
            )
            if result.success_rate_percent < threshold_percent:
                breaking_point = concurrency
                logger.info("Breaking point detected at %d concurrent requests", concurrency)
                break

        return StressReport(
            levels=tuple(completed),
            breaking_point=breaking_point,
            threshold_percent=threshold_percent,
            max_concurrency=self.max_concurrency,
            interrupted=interrupted,
            skipped_levels=skipped,
        )


def _validate_levels(levels: Sequence[int]) -> None:
    previous = 0
    for level in levels:
        if level <= previous:
            msg = f"Levels must be strictly ascending positive integers, got {list(levels)}"
            raise ValueError(msg)
        previous = level
