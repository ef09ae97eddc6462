from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field

from apiperf.errors import HarnessError, InfrastructureError
from apiperf.loadgen.client import RequestExecutor, RequestFactory
from apiperf.metrics import BatchResult, ErrorKind, RequestOutcome, summarize

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class OutcomeCollector:
    """Lock-guarded sink shared by all units of one batch.

    Once closed, late outcomes are dropped so a unit that finishes after the
    batch deadline is never counted twice.
    """

    successes: int = 0
    failures: int = 0
    outcomes: list[RequestOutcome] = field(default_factory=list)
    closed: bool = False
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    async def record(self, outcome: RequestOutcome) -> bool:
        async with self._lock:
            if self.closed:
                return False
            if outcome.success:
                self.successes += 1
            else:
                self.failures += 1
            self.outcomes.append(outcome)
            return True

    async def close(self) -> None:
        async with self._lock:
            self.closed = True

    def __len__(self) -> int:
        return len(self.outcomes)


@dataclass(frozen=True, slots=True)
class ConcurrentBatchRunner:
    """Fans a batch of requests out over asyncio tasks.

    ``max_workers=None`` lets every unit run at once; a cap queues the rest
    behind a semaphore. Either way all units are scheduled before the caller
    starts waiting.
    """

    max_workers: int | None = None

    def __post_init__(self) -> None:
        if self.max_workers is not None and self.max_workers <= 0:
            msg = f"max_workers must be positive, got {self.max_workers}"
            raise ValueError(msg)

    async def run(
        self,
        n: int,
        executor: RequestExecutor,
        request_factory: RequestFactory,
        batch_timeout_sec: float,
    ) -> BatchResult:
        if n < 0:
            msg = f"Batch size must be non-negative, got {n}"
            raise ValueError(msg)
        if batch_timeout_sec <= 0:
            msg = f"Batch timeout must be positive, got {batch_timeout_sec}"
            raise ValueError(msg)
        if n == 0:
            return summarize([])

        collector = OutcomeCollector()
        slots = asyncio.Semaphore(min(n, self.max_workers or n))
        tasks: list[asyncio.Task[None]] = []
        started = time.perf_counter()
        logger.debug("Starting batch of %d units (workers=%s)", n, self.max_workers or n)
        try:
            try:
                for index in range(n):
                    tasks.append(
                        asyncio.create_task(
                            _run_unit(index, executor, request_factory, collector, slots)
                        )
                    )
            except (RuntimeError, MemoryError, OSError) as exc:
                msg = f"Could not schedule unit {len(tasks) + 1} of {n}"
                raise InfrastructureError(msg) from exc
            await asyncio.wait(tasks, timeout=batch_timeout_sec)
            await collector.close()
        finally:
            await _release(tasks)

        errors = [task.exception() for task in tasks if not task.cancelled()]
        for error in errors:
            if error is not None:
                raise error

        missing = n - len(collector)
        if missing:
            logger.warning(
                "%d of %d units still running after %.1fs; recorded as failures",
                missing,
                n,
                batch_timeout_sec,
            )
        outcomes = collector.outcomes + [
            RequestOutcome.failed(ErrorKind.BATCH_TIMEOUT) for _ in range(missing)
        ]
        result = summarize(outcomes)
        if (
            collector.successes + collector.failures != len(collector)
            or collector.successes != result.success_count
            or collector.failures + missing != result.failure_count
        ):
            msg = (
                f"Outcome counters diverged: {collector.successes} ok / {collector.failures} failed "
                f"recorded, {result.success_count} / {result.failure_count} summarized"
            )
            raise HarnessError(msg)
        logger.debug(
            "Batch of %d finished in %.3fs: %d ok, %d failed",
            n,
            time.perf_counter() - started,
            result.success_count,
            result.failure_count,
        )
        return result


async def _run_unit(
    index: int,
    executor: RequestExecutor,
    request_factory: RequestFactory,
    collector: OutcomeCollector,
    slots: asyncio.Semaphore,
) -> None:
    async with slots:
        try:
            outcome = await executor.execute(request_factory(index))
        except InfrastructureError:
            raise
        except Exception:
            logger.warning("Unit %d raised; recording as failure", index, exc_info=True)
            outcome = RequestOutcome.failed(ErrorKind.OTHER)
    await collector.record(outcome)


async def _release(tasks: list[asyncio.Task[None]]) -> None:
    outstanding = [task for task in tasks if not task.done()]
    for task in outstanding:
        task.cancel()
    if outstanding:
        await asyncio.gather(*outstanding, return_exceptions=True)
