from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Iterable, TypeVar

T = TypeVar("T")

WorkItem = Callable[[], Awaitable[T]]


async def run_bounded(work: Iterable[WorkItem[T]], limit: int) -> list[T]:
    """Run ``work`` with at most ``limit`` items executing at once.

    Items are started in iteration order; a slot is taken before an item is
    started and given back when its task finishes. Results come back in
    iteration order regardless of completion order. If an item raises, the
    items still running are cancelled and awaited before the error propagates.
    """
    if limit < 1:
        msg = f"limit must be >= 1, got {limit}"
        raise ValueError(msg)
    slots = asyncio.Semaphore(limit)
    tasks: list[asyncio.Task[T]] = []
    try:
        for item in work:
            await slots.acquire()
            task = asyncio.create_task(_run_item(item))
            task.add_done_callback(lambda _task: slots.release())
            tasks.append(task)
        if not tasks:
            return []
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


async def _run_item(item: WorkItem[T]) -> T:
    return await item()
