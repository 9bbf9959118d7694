"""Task functions executed by the scheduler."""

from __future__ import annotations

import logging
from typing import Protocol

from sweeper.domain.models import CycleReport, RunConfig
from sweeper.jobs.purge import purge
from sweeper.utils.clock import Clock, utc_now

logger = logging.getLogger(__name__)


class CycleSink(Protocol):
    def record(self, report: CycleReport) -> None: ...


def run_cycle(config: RunConfig, sink: CycleSink, *, clock: Clock = utc_now) -> CycleReport:
    """Run one purge cycle and hand its outcome to ``sink``.

    Purge failures are recorded, not raised, so the scheduler keeps its
    fixed period. The reported next run is the completion time plus the
    scan interval; the scheduler's own trigger decides the real next tick.
    """
    started_at = clock()
    logger.info("Running check of %s at %s", config.root_path, started_at.isoformat())

    result = purge(config.root_path, config.retention_days, clock=clock)

    finished_at = clock()
    report = CycleReport(
        root_path=config.root_path,
        result=result,
        started_at=started_at,
        finished_at=finished_at,
        next_run=finished_at + config.scan_interval,
    )
    sink.record(report)
    return report
