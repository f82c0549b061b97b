from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

import pytest

from apiload.metrics import ErrorInfo, ErrorType, Outcome


@dataclass(slots=True)
class StubRequester:
    status_code: int = 200
    response_time_ms: int = 100
    opened: int = 0
    closed: int = 0
    attempts: list[str] = field(default_factory=list)

    async def open(self) -> None:
        self.opened += 1

    async def close(self) -> None:
        self.closed += 1

    async def attempt(self, target: str) -> Outcome:
        self.attempts.append(target)
        await asyncio.sleep(0)
        if 200 <= self.status_code < 300:
            return Outcome(True, self.status_code, self.response_time_ms)
        return Outcome(
            success=False,
            status_code=self.status_code,
            response_time_ms=self.response_time_ms,
            error=ErrorInfo(f"status {self.status_code}", ErrorType.HTTP_STATUS.value),
        )


@pytest.fixture
def stub_requester() -> StubRequester:
    return StubRequester()
