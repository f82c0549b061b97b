from __future__ import annotations

from apiload.metrics.aggregator import MetricsAggregator
from apiload.metrics.models import (
    ErrorInfo,
    ErrorRecord,
    ErrorType,
    Outcome,
    RunSummary,
    Statistics,
    TargetMetrics,
)
from apiload.metrics.statistics import compute_statistics

__all__ = [
    "ErrorInfo",
    "ErrorRecord",
    "ErrorType",
    "MetricsAggregator",
    "Outcome",
    "RunSummary",
    "Statistics",
    "TargetMetrics",
    "compute_statistics",
]
