from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Sequence

from apiload.config import Backend, RunConfig
from apiload.errors import BackendAcquisitionError, ConfigError
from apiload.loadgen.runner import run_load_test
from apiload.log import configure_logging
from apiload.storage import DEFAULT_DB_PATH, Storage

logger = logging.getLogger(__name__)


def read_targets_file(path: Path) -> list[str]:
    targets: list[str] = []
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        targets.append(line)
    return targets


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Batch API load tester")
    parser.add_argument("--target", action="append", default=[], help="Target URL (repeatable)")
    parser.add_argument("--targets-file", type=Path, help="File with one target URL per line")
    parser.add_argument("--concurrency", type=int, default=5)
    parser.add_argument("--requests-per-batch", type=int, default=100)
    parser.add_argument("--delay-ms", type=float, default=2000)
    parser.add_argument("--batches", type=int, default=10)
    parser.add_argument("--timeout-ms", type=float, default=10000)
    parser.add_argument("--backend", choices=[b.value for b in Backend], default=Backend.HTTP.value)
    parser.add_argument("--headed", action="store_true", help="Show the browser window")
    parser.add_argument("--no-console", action="store_true", help="Disable console logging")
    parser.add_argument("--no-file", action="store_true", help="Do not write the JSON report")
    parser.add_argument("--output", type=Path, default=Path("./api-test-results.json"))
    parser.add_argument(
        "--history-db",
        type=Path,
        nargs="?",
        const=DEFAULT_DB_PATH,
        default=None,
        help=f"Also store the run in a DuckDB file (default {DEFAULT_DB_PATH})",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default="INFO",
    )
    return parser


def config_from_args(args: argparse.Namespace) -> RunConfig:
    return RunConfig(
        concurrent_requests=args.concurrency,
        requests_per_batch=args.requests_per_batch,
        delay_between_batches_ms=args.delay_ms,
        total_batches=args.batches,
        log_to_console=not args.no_console,
        log_to_file=not args.no_file,
        log_file_path=args.output,
        backend=Backend(args.backend),
        timeout_ms=args.timeout_ms,
        headless=not args.headed,
        history_db=args.history_db,
    )


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    targets = list(args.target)
    try:
        if args.targets_file:
            targets.extend(read_targets_file(args.targets_file))
        config = config_from_args(args)
    except (ConfigError, OSError) as exc:
        parser.error(str(exc))

    configure_logging(console=config.log_to_console, level=args.log_level)
    storage = Storage(config.history_db) if config.history_db else None
    try:
        result = asyncio.run(run_load_test(config, targets, storage=storage))
    except ConfigError as exc:
        parser.error(str(exc))
    except BackendAcquisitionError as exc:
        logger.error("Error running test: %s", exc)
        if not config.log_to_console:
            print(f"Error running test: {exc}", file=sys.stderr)
        return 1
    print(f"Run complete: {result.run_id}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
