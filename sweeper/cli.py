"""Top-level sweeper command line interface."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

from sweeper.domain.models import RunConfig
from sweeper.jobs.scheduler import run_forever
from sweeper.jobs.tasks import run_cycle
from sweeper.reporting.run_log import RunLog
from sweeper.utils.config import ConfigError, load_config
from sweeper.utils.logging import configure_logging

logger = logging.getLogger(__name__)

CONFIG_ERROR_EXIT = 2


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sweeper", description="Delete files older than a retention window")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Purge now and then on every configured interval")
    run_parser.add_argument(
        "--config",
        type=Path,
        help="YAML config path (default: $SWEEPER_CONFIG or ./config.yaml)",
    )
    run_parser.set_defaults(handler=_handle_run)

    purge_parser = subparsers.add_parser("purge", help="Run a single purge cycle and exit")
    purge_parser.add_argument(
        "--config",
        type=Path,
        help="YAML config path (default: $SWEEPER_CONFIG or ./config.yaml)",
    )
    purge_parser.set_defaults(handler=_handle_purge)

    return parser


def _load(args: argparse.Namespace) -> RunConfig | None:
    try:
        return load_config(args.config)
    except ConfigError as exc:
        print(f"Error reading config: {exc}", file=sys.stderr)
        return None


def _handle_run(args: argparse.Namespace) -> int:
    config = _load(args)
    if config is None:
        return CONFIG_ERROR_EXIT

    run_forever(config, RunLog(config.log_file))
    return 0


def _handle_purge(args: argparse.Namespace) -> int:
    config = _load(args)
    if config is None:
        return CONFIG_ERROR_EXIT

    logger.info("Running in manual mode: single purge of %s", config.root_path)
    report = run_cycle(config, RunLog(config.log_file))
    return 0 if report.result.ok else 1


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging()
    return args.handler(args)


if __name__ == "__main__":
    raise SystemExit(main())
