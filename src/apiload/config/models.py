from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Mapping
from urllib.parse import urlparse

from apiload.errors import ConfigError


class Backend(str, Enum):
    HTTP = "http"
    BROWSER = "browser"


DEFAULT_HEADERS: Mapping[str, str] = {
    "User-Agent": "API-Testing-Tool/1.0",
    "Accept": "application/json",
}


@dataclass(frozen=True, slots=True)
class RunConfig:
    concurrent_requests: int = 5
    requests_per_batch: int = 100
    delay_between_batches_ms: float = 2000
    total_batches: int = 10
    log_to_console: bool = True
    log_to_file: bool = True
    log_file_path: Path = Path("./api-test-results.json")
    backend: Backend = Backend.HTTP
    timeout_ms: float = 10000
    headless: bool = True
    headers: Mapping[str, str] = field(default_factory=lambda: dict(DEFAULT_HEADERS))
    history_db: Path | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        _require_int("concurrent_requests", self.concurrent_requests, minimum=1)
        _require_int("requests_per_batch", self.requests_per_batch, minimum=1)
        _require_int("total_batches", self.total_batches, minimum=1)
        if self.delay_between_batches_ms < 0:
            msg = f"delay_between_batches_ms must be >= 0, got {self.delay_between_batches_ms}"
            raise ConfigError(msg)
        if self.timeout_ms <= 0:
            msg = f"timeout_ms must be > 0, got {self.timeout_ms}"
            raise ConfigError(msg)

    @property
    def timeout_sec(self) -> float:
        return self.timeout_ms / 1000.0

    @property
    def delay_sec(self) -> float:
        return self.delay_between_batches_ms / 1000.0

    def to_metadata(self) -> Mapping[str, Any]:
        return {
            "created_at": self.created_at.isoformat(),
            "concurrent_requests": self.concurrent_requests,
            "requests_per_batch": self.requests_per_batch,
            "delay_between_batches_ms": self.delay_between_batches_ms,
            "total_batches": self.total_batches,
            "backend": self.backend.value,
            "timeout_ms": self.timeout_ms,
            "headless": self.headless,
            "headers": dict(self.headers),
        }


def validate_targets(targets: Iterable[str]) -> list[str]:
    result = list(targets)
    if not result:
        msg = "At least one target URL is required"
        raise ConfigError(msg)
    for target in result:
        parsed = urlparse(target)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            msg = f"Not an http(s) URL: {target!r}"
            raise ConfigError(msg)
    return result


def _require_int(name: str, value: int, minimum: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        msg = f"{name} must be an integer >= {minimum}, got {value!r}"
        raise ConfigError(msg)
