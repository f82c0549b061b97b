from __future__ import annotations

import asyncio

import pytest

from apiload.errors import BackendAcquisitionError
from apiload.loadgen.scheduler import BatchScheduler, SchedulerState
from apiload.metrics import MetricsAggregator

from conftest import StubRequester

TARGETS = ["https://a.test/one", "https://b.test/two"]


def _scheduler(
    requester: StubRequester,
    aggregator: MetricsAggregator,
    sleeps: list[float] | None = None,
    **kwargs: int,
) -> BatchScheduler:
    async def fake_sleep(seconds: float) -> None:
        if sleeps is not None:
            sleeps.append(seconds)

    params = {"concurrent_requests": 2, "requests_per_batch": 3, "total_batches": 2}
    params.update(kwargs)
    return BatchScheduler(
        TARGETS,
        requester,
        aggregator,
        delay_sec=1.5,
        sleep=fake_sleep,
        **params,
    )


def test_all_success_scenario(stub_requester: StubRequester) -> None:
    aggregator = MetricsAggregator(TARGETS)
    scheduler = _scheduler(stub_requester, aggregator)
    asyncio.run(scheduler.run())

    assert aggregator.summary.total == 12
    assert aggregator.summary.successful == 12
    for metrics in aggregator.targets:
        assert metrics.successful == 6
        assert metrics.failed == 0
    for stats in aggregator.statistics():
        assert stats is not None
        assert {stats.min_ms, stats.max_ms, stats.avg_ms, stats.median_ms, stats.p95_ms, stats.p99_ms} == {100}
    assert scheduler.state is SchedulerState.DONE


def test_rate_limited_scenario() -> None:
    requester = StubRequester(status_code=429)
    aggregator = MetricsAggregator(TARGETS)
    asyncio.run(_scheduler(requester, aggregator).run())

    summary = aggregator.summary
    assert summary.failed == summary.total == 12
    assert summary.rate_limited == summary.total
    for metrics in aggregator.targets:
        assert metrics.total == metrics.successful + metrics.failed
        assert len(metrics.errors) == metrics.failed


def test_work_is_issued_target_major(stub_requester: StubRequester) -> None:
    aggregator = MetricsAggregator(TARGETS)
    asyncio.run(_scheduler(stub_requester, aggregator, total_batches=1).run())
    assert stub_requester.attempts == [TARGETS[0]] * 3 + [TARGETS[1]] * 3


def test_delay_only_between_batches(stub_requester: StubRequester) -> None:
    sleeps: list[float] = []
    aggregator = MetricsAggregator(TARGETS)
    asyncio.run(_scheduler(stub_requester, aggregator, sleeps, total_batches=4).run())
    assert sleeps == [1.5, 1.5, 1.5]
    assert aggregator.summary.total == len(TARGETS) * 3 * 4


def test_backend_opened_and_closed_once(stub_requester: StubRequester) -> None:
    aggregator = MetricsAggregator(TARGETS)
    asyncio.run(_scheduler(stub_requester, aggregator, total_batches=3).run())
    assert stub_requester.opened == 1
    assert stub_requester.closed == 1


def test_progress_reported_per_batch(stub_requester: StubRequester) -> None:
    seen: list[tuple[int, int]] = []

    async def progress(batch: int, total: int) -> None:
        seen.append((batch, total))

    scheduler = BatchScheduler(
        TARGETS,
        stub_requester,
        MetricsAggregator(TARGETS),
        concurrent_requests=1,
        requests_per_batch=1,
        total_batches=2,
        progress=progress,
    )
    asyncio.run(scheduler.run())
    assert seen == [(1, 2), (2, 2)]


def test_backend_failure_aborts_run() -> None:
    class BrokenRequester(StubRequester):
        async def open(self) -> None:
            raise BackendAcquisitionError("no browser")

    requester = BrokenRequester()
    aggregator = MetricsAggregator(TARGETS)
    scheduler = _scheduler(requester, aggregator)
    with pytest.raises(BackendAcquisitionError):
        asyncio.run(scheduler.run())
    assert requester.attempts == []
    assert aggregator.summary.total == 0


def test_backend_closed_when_batch_raises() -> None:
    class ExplodingRequester(StubRequester):
        async def attempt(self, target: str):
            raise RuntimeError("bug")

    requester = ExplodingRequester()
    scheduler = _scheduler(requester, MetricsAggregator(TARGETS))
    with pytest.raises(RuntimeError):
        asyncio.run(scheduler.run())
    assert requester.closed == 1


def test_scheduler_runs_once(stub_requester: StubRequester) -> None:
    scheduler = _scheduler(stub_requester, MetricsAggregator(TARGETS), total_batches=1)
    asyncio.run(scheduler.run())
    with pytest.raises(RuntimeError):
        asyncio.run(scheduler.run())
