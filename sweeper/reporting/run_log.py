"""Append-only run log: one timestamped line per purge cycle."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

from sweeper.domain.models import CycleReport
from sweeper.utils.logging import (
    RUN_LOG_DATEFMT,
    get_event_logger,
    get_run_log_logger,
    log_cycle_event,
)


def format_timestamp(moment: datetime) -> str:
    """Render ``moment`` in local time the way the run log prints timestamps."""
    return moment.astimezone().strftime(RUN_LOG_DATEFMT)


def format_cycle_message(report: CycleReport) -> str:
    result = report.result
    if result.error is not None:
        return f"Error: {result.error}"
    return (
        f"Check complete. Files deleted: {result.files_deleted}, "
        f"total size: {result.bytes_deleted} bytes. "
        f"Next check: {format_timestamp(report.next_run)}"
    )


class RunLog:
    """Sink that writes cycle outcomes to the run log file and the console."""

    def __init__(
        self,
        log_file: str | Path,
        *,
        run_logger: logging.Logger | None = None,
        event_logger: logging.Logger | None = None,
    ) -> None:
        self.log_file = Path(log_file)
        self.run_logger = run_logger or get_run_log_logger(self.log_file)
        self.event_logger = event_logger or get_event_logger()

    def record(self, report: CycleReport) -> None:
        message = format_cycle_message(report)
        result = report.result
        if result.ok:
            self.run_logger.info(message)
        else:
            self.run_logger.error(message)

        log_cycle_event(
            self.event_logger,
            event="purge_cycle",
            status="completed" if result.ok else "failed",
            root_path=str(report.root_path),
            message=message,
            files_deleted=result.files_deleted,
            bytes_deleted=result.bytes_deleted,
            next_run=report.next_run.isoformat(),
            error_message=None if result.ok else str(result.error),
        )
