from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path


@dataclass(frozen=True, slots=True)
class RunConfig:
    root_path: Path
    retention_days: int
    scan_interval: timedelta
    log_file: Path


@dataclass(slots=True)
class PurgeResult:
    files_deleted: int = 0
    bytes_deleted: int = 0
    error: OSError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(slots=True)
class CycleReport:
    root_path: Path
    result: PurgeResult
    started_at: datetime
    finished_at: datetime
    next_run: datetime
