from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable

from apiload.metrics import ErrorRecord, MetricsAggregator, Statistics

Report = dict[str, Any]


def build_report(aggregator: MetricsAggregator) -> Report:
    summary = aggregator.summary
    targets = aggregator.targets
    keys = _result_keys(m.target for m in targets)
    api_results: dict[str, Any] = {}
    for key, metrics, stats in zip(keys, targets, aggregator.statistics()):
        entry: dict[str, Any] = {
            "totalRequests": metrics.total,
            "successfulRequests": metrics.successful,
            "failedRequests": metrics.failed,
            "rateLimited": metrics.rate_limited,
            "responseTimesMs": sorted(metrics.latencies_ms),
            "errors": [_error_entry(e) for e in metrics.errors],
        }
        if stats is not None:
            entry["stats"] = _stats_entry(stats)
        api_results[key] = entry
    return {
        "summary": {
            "startTime": _iso(summary.start_time),
            "endTime": _iso(summary.end_time),
            "totalRequests": summary.total,
            "successfulRequests": summary.successful,
            "failedRequests": summary.failed,
            "rateLimited": summary.rate_limited,
        },
        "apiResults": api_results,
    }


def render_summary(report: Report) -> str:
    summary = report["summary"]
    lines = [
        "===== SUMMARY =====",
        f"Total Requests: {summary['totalRequests']}",
        f"Successful Requests: {summary['successfulRequests']}",
        f"Failed Requests: {summary['failedRequests']}",
        f"Rate Limited Requests: {summary['rateLimited']}",
        "==================",
        "",
        "===== API STATISTICS =====",
    ]
    for target, result in report["apiResults"].items():
        lines.extend(
            [
                "",
                f"{target}:",
                f"  Total: {result['totalRequests']}",
                f"  Success: {result['successfulRequests']}",
                f"  Failed: {result['failedRequests']}",
                f"  Rate Limited: {result['rateLimited']}",
            ]
        )
        stats = result.get("stats")
        if stats:
            lines.extend(
                [
                    "  Response Times:",
                    f"    Min: {stats['minResponseTime']}ms",
                    f"    Max: {stats['maxResponseTime']}ms",
                    f"    Avg: {stats['avgResponseTime']:.2f}ms",
                    f"    Median: {stats['medianResponseTime']}ms",
                    f"    P95: {stats['p95ResponseTime']}ms",
                    f"    P99: {stats['p99ResponseTime']}ms",
                ]
            )
    lines.append("=========================")
    return "\n".join(lines)


def write_report(report: Report, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(report, indent=2), encoding="utf-8")
    return path


def _result_keys(targets: Iterable[str]) -> list[str]:
    used: set[str] = set()
    keys: list[str] = []
    for target in targets:
        key = target
        n = 1
        while key in used:
            n += 1
            key = f"{target} #{n}"
        used.add(key)
        keys.append(key)
    return keys


def _stats_entry(stats: Statistics) -> dict[str, Any]:
    return {
        "minResponseTime": stats.min_ms,
        "maxResponseTime": stats.max_ms,
        "avgResponseTime": stats.avg_ms,
        "medianResponseTime": stats.median_ms,
        "p95ResponseTime": stats.p95_ms,
        "p99ResponseTime": stats.p99_ms,
    }


def _error_entry(record: ErrorRecord) -> dict[str, Any]:
    error = None
    if record.error is not None:
        error = {"message": record.error.message, "code": record.error.code}
    return {
        "time": record.timestamp.isoformat(),
        "statusCode": record.status_code,
        "error": error,
    }


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None
