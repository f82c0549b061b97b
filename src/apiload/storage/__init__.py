from __future__ import annotations

from pathlib import Path

from apiload.storage.duckdb_store import Storage

DEFAULT_DB_PATH = Path(".apiload/apiload.duckdb")

__all__ = ["DEFAULT_DB_PATH", "Storage"]
