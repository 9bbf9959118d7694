from __future__ import annotations

from datetime import timedelta
from pathlib import Path

from conftest import NOW, RecordingSink, StepClock
from sweeper.domain.models import RunConfig
from sweeper.jobs.tasks import run_cycle


def _config(root: Path, *, days: int = 5, interval: timedelta = timedelta(minutes=30)) -> RunConfig:
    return RunConfig(
        root_path=root,
        retention_days=days,
        scan_interval=interval,
        log_file=root.parent / "sweeper.log",
    )


def test_run_cycle_records_result_and_next_run(tmp_path: Path, make_file) -> None:
    root = tmp_path / "data"
    make_file(root / "old.txt", age_by=timedelta(days=10), size=42)
    make_file(root / "new.txt", age_by=timedelta(hours=1))
    sink = RecordingSink()
    clock = StepClock(NOW, step=timedelta(seconds=2))

    report = run_cycle(_config(root), sink, clock=clock)

    assert sink.reports == [report]
    assert report.root_path == root
    assert report.result.ok
    assert report.result.files_deleted == 1
    assert report.result.bytes_deleted == 42
    assert report.started_at == NOW
    assert report.finished_at > report.started_at
    assert report.next_run == report.finished_at + timedelta(minutes=30)


def test_run_cycle_reports_purge_errors_instead_of_raising(tmp_path: Path) -> None:
    sink = RecordingSink()

    report = run_cycle(_config(tmp_path / "missing"), sink, clock=StepClock())

    assert isinstance(report.result.error, FileNotFoundError)
    assert sink.reports == [report]


def test_consecutive_cycles_clean_up_nested_directories(tmp_path: Path, make_file) -> None:
    root = tmp_path / "data"
    make_file(root / "a" / "b" / "old.txt", age_by=timedelta(days=10))
    sink = RecordingSink()
    clock = StepClock(NOW, step=timedelta(seconds=1))
    config = _config(root)

    for _ in range(3):
        run_cycle(config, sink, clock=clock)

    assert [report.result.files_deleted for report in sink.reports] == [1, 0, 0]
    assert list(root.iterdir()) == []
    assert all(report.result.ok for report in sink.reports)


def test_each_cycle_recomputes_the_cutoff(tmp_path: Path, make_file) -> None:
    root = tmp_path / "data"
    target = make_file(root / "ages.txt", age_by=timedelta(days=4))
    sink = RecordingSink()
    clock = StepClock(NOW, step=timedelta(hours=12))
    config = _config(root)

    run_cycle(config, sink, clock=clock)
    assert target.exists()

    run_cycle(config, sink, clock=clock)
    run_cycle(config, sink, clock=clock)

    assert not target.exists()
    assert sum(report.result.files_deleted for report in sink.reports) == 1
