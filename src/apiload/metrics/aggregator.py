from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Iterable

from apiload.metrics.models import ErrorRecord, Outcome, RunSummary, Statistics, TargetMetrics
from apiload.metrics.statistics import compute_statistics

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MetricsAggregator:
    """Per-target and run-wide counters fed one Outcome at a time.

    All calls happen on the event loop thread, so nothing here is locked.
    Targets are addressed by their position in the run's target list, which
    keeps repeated URLs independent.
    """

    def __init__(self, targets: Iterable[str], clock: Clock = _utcnow) -> None:
        self._clock = clock
        self.summary = RunSummary()
        self.targets: list[TargetMetrics] = [TargetMetrics(target=t) for t in targets]

    def start(self) -> None:
        self.summary.start_time = self._clock()

    def finish(self) -> None:
        self.summary.end_time = self._clock()

    def record(self, index: int, outcome: Outcome) -> None:
        metrics = self.targets[index]
        summary = self.summary
        metrics.total += 1
        summary.total += 1
        if outcome.success:
            metrics.successful += 1
            summary.successful += 1
        else:
            metrics.failed += 1
            summary.failed += 1
            metrics.errors.append(
                ErrorRecord(
                    timestamp=self._clock(),
                    status_code=outcome.status_code,
                    error=outcome.error,
                )
            )
        if outcome.rate_limited:
            metrics.rate_limited += 1
            summary.rate_limited += 1
        metrics.latencies_ms.append(outcome.response_time_ms)
        _log_outcome(metrics.target, outcome)

    def statistics(self) -> list[Statistics | None]:
        return [compute_statistics(m.latencies_ms) for m in self.targets]


def _log_outcome(target: str, outcome: Outcome) -> None:
    suffix = " (RATE LIMITED)" if outcome.rate_limited else ""
    if outcome.success:
        logger.info(
            "%s: SUCCESS - Status: %d - Time: %dms%s",
            target,
            outcome.status_code,
            outcome.response_time_ms,
            suffix,
        )
    else:
        logger.warning(
            "%s: FAILED - Status: %d - Time: %dms%s",
            target,
            outcome.status_code,
            outcome.response_time_ms,
            suffix,
        )
