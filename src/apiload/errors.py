from __future__ import annotations


class ApiLoadError(Exception):
    """Base class for errors raised by apiload."""


class ConfigError(ApiLoadError, ValueError):
    """Invalid run configuration or target list."""


class BackendAcquisitionError(ApiLoadError):
    """The requester backend could not be opened; the run cannot proceed."""
