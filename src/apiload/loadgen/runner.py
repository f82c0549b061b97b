from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Sequence

from apiload.config import RunConfig, validate_targets
from apiload.loadgen.requester import Requester, requester_for
from apiload.loadgen.scheduler import BatchScheduler, ProgressCallback
from apiload.metrics import MetricsAggregator
from apiload.report import Report, build_report, render_summary, write_report
from apiload.storage import Storage

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RunResult:
    run_id: str
    aggregator: MetricsAggregator
    report: Report


def _new_run_id() -> str:
    return uuid.uuid4().hex


async def run_load_test(
    config: RunConfig,
    targets: Sequence[str],
    requester: Requester | None = None,
    storage: Storage | None = None,
    progress: ProgressCallback | None = None,
) -> RunResult:
    targets = validate_targets(targets)
    run_id = _new_run_id()
    if requester is None:
        requester = requester_for(config)
    aggregator = MetricsAggregator(targets)
    scheduler = BatchScheduler(
        targets,
        requester,
        aggregator,
        concurrent_requests=config.concurrent_requests,
        requests_per_batch=config.requests_per_batch,
        total_batches=config.total_batches,
        delay_sec=config.delay_sec,
        progress=progress,
    )
    _log_banner(config, targets)
    aggregator.start()
    await scheduler.run()
    aggregator.finish()

    report = build_report(aggregator)
    logger.info("\n%s", render_summary(report))
    if config.log_to_file:
        path = write_report(report, config.log_file_path)
        logger.info("Results saved to: %s", path)
    if storage is not None:
        storage.save_run(config, run_id, report)
        logger.info("Run %s stored in %s", run_id, storage.db_path)
    logger.info("Test completed!")
    return RunResult(run_id=run_id, aggregator=aggregator, report=report)


def _log_banner(config: RunConfig, targets: Sequence[str]) -> None:
    logger.info("Starting API load test (%s backend)", config.backend.value)
    logger.info(
        "Testing %d APIs with %d concurrent requests",
        len(targets),
        config.concurrent_requests,
    )
    logger.info(
        "Total of %d batches with %d requests per API per batch",
        config.total_batches,
        config.requests_per_batch,
    )
    logger.info("Delay between batches: %.0fms", config.delay_between_batches_ms)
