from __future__ import annotations

from apiload.config.models import DEFAULT_HEADERS, Backend, RunConfig, validate_targets

__all__ = ["DEFAULT_HEADERS", "Backend", "RunConfig", "validate_targets"]
