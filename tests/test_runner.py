from __future__ import annotations

import asyncio
import time

import pytest

from apiperf.errors import InfrastructureError
from apiperf.loadgen import ConcurrentBatchRunner, OutcomeCollector, RequestSpec, fixed_request
from apiperf.metrics import RequestOutcome

from fakes import ScriptedExecutor, index_of, indexed_request, ok, transport_failure


def test_eight_of_ten_succeed() -> None:
    executor = ScriptedExecutor(lambda spec: transport_failure() if index_of(spec) >= 8 else ok(20))
    result = asyncio.run(ConcurrentBatchRunner().run(10, executor, indexed_request, 5.0))
    assert result.total == 10
    assert result.success_count == 8
    assert result.failure_count == 2
    assert result.success_rate_percent == 80.0
    assert result.measured_count == 8
    assert executor.calls == 10


def test_all_units_run_concurrently_when_uncapped() -> None:
    executor = ScriptedExecutor(lambda spec: ok(), delay=lambda spec: 0.05)
    asyncio.run(ConcurrentBatchRunner().run(25, executor, indexed_request, 5.0))
    assert executor.peak_in_flight == 25


def test_worker_cap_queues_remaining_units() -> None:
    executor = ScriptedExecutor(lambda spec: ok(), delay=lambda spec: 0.01)
    result = asyncio.run(ConcurrentBatchRunner(max_workers=3).run(12, executor, indexed_request, 5.0))
    assert executor.peak_in_flight <= 3
    assert result.total == 12
    assert result.success_count == 12


def test_timed_out_units_become_failures() -> None:
    executor = ScriptedExecutor(
        lambda spec: ok(5),
        delay=lambda spec: 30.0 if index_of(spec) < 3 else 0.0,
    )

    async def go():
        started = time.perf_counter()
        result = await ConcurrentBatchRunner().run(10, executor, indexed_request, 0.2)
        leftover = [t for t in asyncio.all_tasks() if t is not asyncio.current_task()]
        return result, time.perf_counter() - started, leftover

    result, elapsed, leftover = asyncio.run(go())
    assert elapsed < 5.0
    assert leftover == []
    assert result.total == 10
    assert result.failure_count == 3
    assert result.measured_count == 7
    assert result.success_rate_percent == 70.0


def test_raising_executor_is_absorbed() -> None:
    def script(spec: RequestSpec) -> RequestOutcome:
        if index_of(spec) == 0:
            raise KeyError("unexpected")
        return ok()

    result = asyncio.run(ConcurrentBatchRunner().run(4, ScriptedExecutor(script), indexed_request, 5.0))
    assert result.total == 4
    assert result.failure_count == 1


def test_infrastructure_error_propagates() -> None:
    def script(spec: RequestSpec) -> RequestOutcome:
        raise InfrastructureError("no sockets left")

    with pytest.raises(InfrastructureError):
        asyncio.run(ConcurrentBatchRunner().run(3, ScriptedExecutor(script), indexed_request, 5.0))


def test_identical_requests_from_fixed_factory() -> None:
    seen: list[str] = []

    def script(spec: RequestSpec) -> RequestOutcome:
        seen.append(spec.url)
        return ok()

    spec = RequestSpec(url="http://svc.test/activities")
    asyncio.run(ConcurrentBatchRunner().run(5, ScriptedExecutor(script), fixed_request(spec), 5.0))
    assert seen == [spec.url] * 5


def test_empty_batch_and_invalid_arguments() -> None:
    runner = ConcurrentBatchRunner()
    executor = ScriptedExecutor(lambda spec: ok())
    assert asyncio.run(runner.run(0, executor, indexed_request, 1.0)).total == 0
    with pytest.raises(ValueError):
        asyncio.run(runner.run(-1, executor, indexed_request, 1.0))
    with pytest.raises(ValueError):
        asyncio.run(runner.run(1, executor, indexed_request, 0))
    with pytest.raises(ValueError):
        ConcurrentBatchRunner(max_workers=0)


def test_collector_counts_every_concurrent_record() -> None:
    async def go() -> tuple[OutcomeCollector, bool]:
        collector = OutcomeCollector()

        async def unit(index: int) -> None:
            await asyncio.sleep(0)
            await collector.record(ok() if index % 3 else transport_failure())

        await asyncio.gather(*(unit(i) for i in range(500)))
        await collector.close()
        late = await collector.record(ok())
        return collector, late

    collector, late = asyncio.run(go())
    assert collector.successes == 333
    assert collector.failures == 167
    assert len(collector) == 500
    assert late is False
