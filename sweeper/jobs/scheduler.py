"""Scheduler loop that purges the configured tree on a fixed interval."""

from __future__ import annotations

import logging

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED, EVENT_JOB_MAX_INSTANCES, JobEvent
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.interval import IntervalTrigger

from sweeper.domain.models import RunConfig
from sweeper.jobs.tasks import CycleSink, run_cycle
from sweeper.utils.clock import Clock, utc_now

JOB_ID = "purge_cycle"

logger = logging.getLogger(__name__)


def _log_job_state(scheduler: BlockingScheduler, event: JobEvent) -> None:
    """Log job outcome and the scheduler's next fire time."""
    job = scheduler.get_job(event.job_id)
    job_next_run = getattr(job, "next_run_time", None) if job else None
    next_run = job_next_run.isoformat() if job_next_run else "none"

    if event.code == EVENT_JOB_MAX_INSTANCES:
        logger.warning("Skipped %s tick: previous cycle still running; next run at %s", event.job_id, next_run)
        return

    exception = getattr(event, "exception", None)
    if exception:
        logger.error(
            "Job %s raised; next run at %s",
            event.job_id,
            next_run,
            exc_info=exception,
        )
        return

    logger.info("Job %s completed; next run at %s", event.job_id, next_run)


def build_scheduler(config: RunConfig, sink: CycleSink, *, clock: Clock = utc_now) -> BlockingScheduler:
    """Build a scheduler that runs one cycle now and then every scan interval.

    Overlapping ticks are skipped (``max_instances=1``) and missed ticks
    coalesce into a single run, so at most one cycle touches the tree.
    """
    scheduler = BlockingScheduler(timezone="UTC")

    trigger = IntervalTrigger(seconds=config.scan_interval.total_seconds(), timezone="UTC")
    scheduler.add_job(
        run_cycle,
        trigger=trigger,
        args=(config, sink),
        kwargs={"clock": clock},
        id=JOB_ID,
        replace_existing=True,
        next_run_time=clock(),
        max_instances=1,
        coalesce=True,
        misfire_grace_time=None,
    )

    scheduler.add_listener(
        lambda event: _log_job_state(scheduler, event),
        EVENT_JOB_EXECUTED | EVENT_JOB_ERROR | EVENT_JOB_MAX_INSTANCES,
    )

    logger.info(
        "Registered %s for %s every %s",
        JOB_ID,
        config.root_path,
        config.scan_interval,
    )
    return scheduler


def run_forever(config: RunConfig, sink: CycleSink) -> None:
    """Run the purge loop until the process is terminated."""
    scheduler = build_scheduler(config, sink)
    logger.info("Started. Monitoring: %s", config.root_path)
    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Stopping scheduler")
        if scheduler.running:
            scheduler.shutdown(wait=False)
