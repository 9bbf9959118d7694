"""Logging setup: process logging, structured cycle events and the run log."""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, TextIO

RUN_LOG_FORMAT = "%(asctime)s - %(message)s"
RUN_LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

_EVENT_FIELDS = ("root_path", "files_deleted", "bytes_deleted", "next_run", "error_message")


def configure_logging(level: int = logging.INFO) -> None:
    """Configure process-wide logging for the sweeper entrypoints."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


class JsonFormatter(logging.Formatter):
    """Format cycle events as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event": getattr(record, "event", "unknown"),
            "status": getattr(record, "status", record.levelname.lower()),
        }
        for name in _EVENT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                payload[name] = value

        message = record.getMessage()
        if message:
            payload["message"] = message

        return json.dumps(payload, ensure_ascii=False)


def get_event_logger(name: str = "sweeper.events", *, stream: TextIO | None = None) -> logging.Logger:
    """Return the cycle-event logger, writing JSON lines to ``stream`` (stderr by default).

    Passing a stream replaces any previously attached event handler.
    """
    logger = logging.getLogger(name)
    existing = [h for h in logger.handlers if isinstance(h.formatter, JsonFormatter)]
    if existing and stream is None:
        return logger
    for handler in existing:
        logger.removeHandler(handler)

    handler = logging.StreamHandler(stream)
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    logger.propagate = False
    return logger


def log_cycle_event(
    logger: logging.Logger,
    *,
    event: str,
    status: str,
    root_path: str,
    message: str = "",
    files_deleted: int | None = None,
    bytes_deleted: int | None = None,
    next_run: str | None = None,
    error_message: str | None = None,
) -> None:
    """Emit a structured purge-cycle event."""
    extra: dict[str, Any] = {
        "event": event,
        "status": status,
        "root_path": root_path,
        "files_deleted": files_deleted,
        "bytes_deleted": bytes_deleted,
        "next_run": next_run,
        "error_message": error_message,
    }
    level = logging.ERROR if status == "failed" else logging.INFO
    logger.log(level, message, extra=extra)


class RunLogFileHandler(logging.FileHandler):
    """FileHandler that reports a failed lazy open on stderr instead of raising."""

    def emit(self, record: logging.LogRecord) -> None:
        if self.stream is None:
            try:
                self.stream = self._open()
            except OSError:
                self.handleError(record)
                return
        super().emit(record)


def get_run_log_logger(log_file: str | Path, name: str = "sweeper.runlog") -> logging.Logger:
    """Return a logger that appends ``<timestamp> - <message>`` lines to ``log_file``.

    The file is opened lazily on first write, so an unwritable path is
    reported on stderr by the handler instead of failing at startup.
    Calling this again with a different path swaps the file handler.
    """
    logger = logging.getLogger(name)
    target = os.path.abspath(log_file)
    for handler in list(logger.handlers):
        if isinstance(handler, logging.FileHandler):
            if handler.baseFilename == target:
                return logger
            logger.removeHandler(handler)
            handler.close()

    logger.setLevel(logging.INFO)
    handler = RunLogFileHandler(target, mode="a", encoding="utf-8", delay=True)
    handler.setFormatter(logging.Formatter(RUN_LOG_FORMAT, datefmt=RUN_LOG_DATEFMT))
    logger.addHandler(handler)
    logger.propagate = False
    return logger
