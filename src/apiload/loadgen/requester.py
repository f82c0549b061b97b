from __future__ import annotations

from typing import Protocol

from apiload.config import Backend, RunConfig
from apiload.loadgen.browser import BrowserRequester
from apiload.loadgen.client import HttpRequester
from apiload.metrics import Outcome


class Requester(Protocol):
    """One request backend, owned by the scheduler for the whole run.

    ``attempt`` must not raise: every failure comes back as an Outcome with
    ``success=False`` and ``error`` set. ``open`` raises
    BackendAcquisitionError when the backend cannot be started.
    """

    async def open(self) -> None:
        ...

    async def attempt(self, target: str) -> Outcome:
        ...

    async def close(self) -> None:
        ...


def requester_for(config: RunConfig) -> Requester:
    if config.backend is Backend.HTTP:
        return HttpRequester(
            timeout_sec=config.timeout_sec,
            headers=config.headers,
            max_connections=config.concurrent_requests,
        )
    if config.backend is Backend.BROWSER:
        return BrowserRequester(
            timeout_ms=config.timeout_ms,
            headless=config.headless,
            headers=config.headers,
        )
    msg = f"Unsupported backend: {config.backend}"
    raise ValueError(msg)
