from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import duckdb
import pandas as pd

from apiload.config import RunConfig
from apiload.report import Report

TARGET_COLUMNS = [
    "run_id",
    "target",
    "total_requests",
    "successful_requests",
    "failed_requests",
    "rate_limited",
    "min_ms",
    "max_ms",
    "avg_ms",
    "median_ms",
    "p95_ms",
    "p99_ms",
]

ERROR_COLUMNS = ["run_id", "target", "time", "status_code", "message", "code"]

_STAT_KEYS = {
    "min_ms": "minResponseTime",
    "max_ms": "maxResponseTime",
    "avg_ms": "avgResponseTime",
    "median_ms": "medianResponseTime",
    "p95_ms": "p95ResponseTime",
    "p99_ms": "p99ResponseTime",
}


@dataclass(slots=True)
class Storage:
    db_path: Path

    def __post_init__(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _connect(self) -> duckdb.DuckDBPyConnection:
        return duckdb.connect(str(self.db_path))

    def _init_schema(self) -> None:
        with self._connect() as con:
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS run_meta (
                    run_id TEXT PRIMARY KEY,
                    started_at TIMESTAMP,
                    ended_at TIMESTAMP,
                    total_requests INTEGER,
                    successful_requests INTEGER,
                    failed_requests INTEGER,
                    rate_limited INTEGER,
                    config_json TEXT
                );
                """
            )
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS target_results (
                    run_id TEXT,
                    target TEXT,
                    total_requests INTEGER,
                    successful_requests INTEGER,
                    failed_requests INTEGER,
                    rate_limited INTEGER,
                    min_ms DOUBLE,
                    max_ms DOUBLE,
                    avg_ms DOUBLE,
                    median_ms DOUBLE,
                    p95_ms DOUBLE,
                    p99_ms DOUBLE
                );
                """
            )
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS request_errors (
                    run_id TEXT,
                    target TEXT,
                    time TEXT,
                    status_code INTEGER,
                    message TEXT,
                    code TEXT
                );
                """
            )

    def run_exists(self, run_id: str) -> bool:
        with self._connect() as con:
            result = con.execute(
                "SELECT COUNT(*) FROM run_meta WHERE run_id = ?",
                [run_id],
            ).fetchone()
            return bool(result and result[0] > 0)

    def save_run(self, config: RunConfig, run_id: str, report: Report) -> None:
        if self.run_exists(run_id):
            msg = f"Run {run_id} already exists"
            raise ValueError(msg)
        summary = report["summary"]
        config_json = json.dumps(config.to_metadata())
        target_rows: list[dict[str, Any]] = []
        error_rows: list[dict[str, Any]] = []
        for target, result in report["apiResults"].items():
            stats = result.get("stats") or {}
            row: dict[str, Any] = {
                "run_id": run_id,
                "target": target,
                "total_requests": result["totalRequests"],
                "successful_requests": result["successfulRequests"],
                "failed_requests": result["failedRequests"],
                "rate_limited": result["rateLimited"],
            }
            for column, key in _STAT_KEYS.items():
                row[column] = stats.get(key)
            target_rows.append(row)
            for err in result["errors"]:
                detail = err["error"] or {}
                error_rows.append(
                    {
                        "run_id": run_id,
                        "target": target,
                        "time": err["time"],
                        "status_code": err["statusCode"],
                        "message": detail.get("message"),
                        "code": detail.get("code"),
                    }
                )
        with self._connect() as con:
            con.execute(
                "INSERT INTO run_meta VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                [
                    run_id,
                    _naive_utc(summary["startTime"]),
                    _naive_utc(summary["endTime"]),
                    summary["totalRequests"],
                    summary["successfulRequests"],
                    summary["failedRequests"],
                    summary["rateLimited"],
                    config_json,
                ],
            )
            targets_df = pd.DataFrame(target_rows, columns=TARGET_COLUMNS)
            if not targets_df.empty:
                con.execute("INSERT INTO target_results SELECT * FROM targets_df")
            errors_df = pd.DataFrame(error_rows, columns=ERROR_COLUMNS)
            if not errors_df.empty:
                con.execute("INSERT INTO request_errors SELECT * FROM errors_df")

    def list_runs(self) -> pd.DataFrame:
        with self._connect() as con:
            return con.execute(
                "SELECT run_id, started_at, ended_at, total_requests, failed_requests, rate_limited "
                "FROM run_meta ORDER BY started_at DESC"
            ).fetchdf()

    def load_run_meta(self, run_id: str) -> dict[str, object] | None:
        with self._connect() as con:
            row = con.execute(
                "SELECT config_json FROM run_meta WHERE run_id = ?",
                [run_id],
            ).fetchone()
            if not row:
                return None
            return json.loads(row[0])

    def load_target_results(self, run_id: str) -> pd.DataFrame:
        with self._connect() as con:
            return con.execute(
                "SELECT * FROM target_results WHERE run_id = ? ORDER BY target",
                [run_id],
            ).fetchdf()

    def load_errors(self, run_id: str) -> pd.DataFrame:
        with self._connect() as con:
            return con.execute(
                "SELECT * FROM request_errors WHERE run_id = ? ORDER BY time",
                [run_id],
            ).fetchdf()


def _naive_utc(value: str | None) -> datetime | None:
    if value is None:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed
