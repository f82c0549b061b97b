from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

RATE_LIMIT_STATUS = 429


class ErrorType(str, Enum):
    TIMEOUT = "timeout"
    CONNECT = "connect"
    READ = "read"
    HTTP_STATUS = "http_status"
    NAVIGATION = "navigation"
    OTHER = "other"


@dataclass(frozen=True, slots=True)
class ErrorInfo:
    message: str
    code: str | None = None


@dataclass(frozen=True, slots=True)
class Outcome:
    success: bool
    status_code: int
    response_time_ms: int
    error: ErrorInfo | None = None

    @property
    def rate_limited(self) -> bool:
        return self.status_code == RATE_LIMIT_STATUS


@dataclass(frozen=True, slots=True)
class ErrorRecord:
    timestamp: datetime
    status_code: int
    error: ErrorInfo | None


@dataclass(frozen=True, slots=True)
class Statistics:
    min_ms: int
    max_ms: int
    avg_ms: float
    median_ms: int
    p95_ms: int
    p99_ms: int


@dataclass(slots=True)
class TargetMetrics:
    target: str
    total: int = 0
    successful: int = 0
    failed: int = 0
    rate_limited: int = 0
    latencies_ms: list[int] = field(default_factory=list)
    errors: list[ErrorRecord] = field(default_factory=list)


@dataclass(slots=True)
class RunSummary:
    start_time: datetime | None = None
    end_time: datetime | None = None
    total: int = 0
    successful: int = 0
    failed: int = 0
    rate_limited: int = 0
