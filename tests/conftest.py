from __future__ import annotations

import os
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Callable

import pytest

from sweeper.domain.models import CycleReport

NOW = datetime.now(tz=UTC).replace(microsecond=0)


class RecordingSink:
    def __init__(self):
        self.reports: list[CycleReport] = []

    def record(self, report: CycleReport) -> None:
        self.reports.append(report)


class StepClock:
    """Clock that advances by ``step`` every time it is read."""

    def __init__(self, start: datetime = NOW, step: timedelta = timedelta(0)):
        self.current = start
        self.step = step

    def __call__(self) -> datetime:
        value = self.current
        self.current = self.current + self.step
        return value


def age(path: Path, delta: timedelta, *, now: datetime = NOW) -> None:
    stamp = (now - delta).timestamp()
    os.utime(path, (stamp, stamp), follow_symlinks=False)


@pytest.fixture
def make_file() -> Callable[..., Path]:
    def _make(path: Path, *, age_by: timedelta, size: int = 16) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"x" * size)
        age(path, age_by)
        return path

    return _make


@pytest.fixture
def fixed_clock() -> StepClock:
    return StepClock()
