from __future__ import annotations

import math
from typing import Sequence

import numpy as np

from apiload.metrics.models import Statistics


def compute_statistics(samples: Sequence[int]) -> Statistics | None:
    """Nearest-rank latency statistics over ``samples``.

    Percentiles are read straight from the sorted samples at index
    ``floor(q * n)`` (clamped to ``n - 1``); nothing is interpolated.
    Returns ``None`` when there are no samples. ``samples`` is left untouched.
    """
    n = len(samples)
    if n == 0:
        return None
    ordered = np.sort(np.asarray(samples, dtype=np.int64))
    return Statistics(
        min_ms=int(ordered[0]),
        max_ms=int(ordered[-1]),
        avg_ms=int(ordered.sum()) / n,
        median_ms=_nearest_rank(ordered, 0.5),
        p95_ms=_nearest_rank(ordered, 0.95),
        p99_ms=_nearest_rank(ordered, 0.99),
    )


def _nearest_rank(ordered: np.ndarray, quantile: float) -> int:
    n = len(ordered)
    idx = min(math.floor(n * quantile), n - 1)
    return int(ordered[idx])
