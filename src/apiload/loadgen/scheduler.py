from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Sequence

from apiload.loadgen.limiter import run_bounded
from apiload.loadgen.requester import Requester
from apiload.metrics import MetricsAggregator

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], Awaitable[None]]
Sleep = Callable[[float], Awaitable[None]]


class SchedulerState(str, Enum):
    IDLE = "idle"
    RUNNING_BATCH = "running_batch"
    DELAYING = "delaying"
    DONE = "done"


class BatchScheduler:
    def __init__(
        self,
        targets: Sequence[str],
        requester: Requester,
        aggregator: MetricsAggregator,
        concurrent_requests: int,
        requests_per_batch: int,
        total_batches: int,
        delay_sec: float = 0.0,
        progress: ProgressCallback | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.targets = list(targets)
        self.requester = requester
        self.aggregator = aggregator
        self.concurrent_requests = concurrent_requests
        self.requests_per_batch = requests_per_batch
        self.total_batches = total_batches
        self.delay_sec = delay_sec
        self.progress = progress
        self._sleep = sleep
        self.state = SchedulerState.IDLE
        self.current_batch = 0

    async def run(self) -> None:
        if self.state is not SchedulerState.IDLE:
            msg = f"Scheduler already {self.state.value}"
            raise RuntimeError(msg)
        await self.requester.open()
        try:
            for batch in range(1, self.total_batches + 1):
                await self._run_batch(batch)
                if batch < self.total_batches:
                    self.state = SchedulerState.DELAYING
                    logger.info("Waiting %.0fms before next batch", self.delay_sec * 1000.0)
                    await self._sleep(self.delay_sec)
            self.state = SchedulerState.DONE
        finally:
            await self.requester.close()

    async def _run_batch(self, batch: int) -> None:
        self.state = SchedulerState.RUNNING_BATCH
        self.current_batch = batch
        logger.info("Starting batch %d/%d", batch, self.total_batches)
        work = [
            self._work_item(index, target)
            for index, target in enumerate(self.targets)
            for _ in range(self.requests_per_batch)
        ]
        await run_bounded(work, self.concurrent_requests)
        logger.info("Completed batch %d/%d", batch, self.total_batches)
        if self.progress:
            await self.progress(batch, self.total_batches)

    def _work_item(self, index: int, target: str) -> Callable[[], Awaitable[None]]:
        async def attempt() -> None:
            outcome = await self.requester.attempt(target)
            self.aggregator.record(index, outcome)

        return attempt
