"""Load and validate the sweeper YAML configuration."""

from __future__ import annotations

import logging
import os
import re
from datetime import timedelta
from pathlib import Path
from typing import Any

import yaml

from sweeper.domain.models import RunConfig
from sweeper.utils.clock import utc_now

DEFAULT_CONFIG_PATH = "config.yaml"
DEFAULT_LOG_FILE = "sweeper.log"
# Largest duration representable in signed 64-bit nanoseconds.
MAX_DURATION_SECONDS = (2**63 - 1) / 1e9

_DURATION_UNITS: dict[str, float] = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")

logger = logging.getLogger(__name__)


class ConfigError(ValueError):
    """Raised when the configuration file cannot be used to start the sweeper."""


def parse_duration(value: str) -> timedelta:
    """Parse a duration string such as ``"1h"``, ``"30m"`` or ``"1h30m"``.

    Accepts an optional leading ``+`` and a sequence of decimal numbers each
    followed by one of the units ``ns``, ``us``, ``ms``, ``s``, ``m`` or ``h``.
    Durations above roughly 2562047h are rejected.
    """
    text = value.strip()
    if text.startswith("+"):
        text = text[1:]
    if not text:
        raise ConfigError("interval must not be empty")

    seconds = 0.0
    position = 0
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            break
        seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()

    if position != len(text):
        raise ConfigError(f"invalid interval {value!r}: expected a duration like '1h' or '30m'")
    if seconds > MAX_DURATION_SECONDS:
        raise ConfigError(f"interval {value!r} is too large")
    try:
        return timedelta(seconds=seconds)
    except (OverflowError, ValueError) as exc:
        raise ConfigError(f"interval {value!r} is out of range") from exc


def _require(raw: dict[str, Any], key: str) -> Any:
    if raw.get(key) is None:
        raise ConfigError(f"missing required field {key!r}")
    return raw[key]


def build_run_config(raw: Any) -> RunConfig:
    """Validate a decoded config mapping and resolve it into a RunConfig."""
    if not isinstance(raw, dict):
        raise ConfigError("config must be a mapping with path, days and interval")

    path = _require(raw, "path")
    if not isinstance(path, str) or not path:
        raise ConfigError("path must be a non-empty string")

    days = _require(raw, "days")
    if isinstance(days, bool) or not isinstance(days, int):
        raise ConfigError(f"days must be an integer, got {days!r}")
    if days < 0:
        raise ConfigError(f"days must be >= 0, got {days}")
    try:
        utc_now() - timedelta(days=days)
    except OverflowError as exc:
        raise ConfigError(f"days {days} is out of range") from exc

    interval_raw = _require(raw, "interval")
    if not isinstance(interval_raw, str):
        raise ConfigError(f"interval must be a duration string, got {interval_raw!r}")
    interval = parse_duration(interval_raw)
    if interval <= timedelta(0):
        raise ConfigError(f"interval must be positive, got {interval_raw!r}")

    log_file = raw.get("log_file") or DEFAULT_LOG_FILE
    if not isinstance(log_file, str):
        raise ConfigError(f"log_file must be a string, got {log_file!r}")

    return RunConfig(
        root_path=Path(path),
        retention_days=days,
        scan_interval=interval,
        log_file=Path(log_file),
    )


def resolve_config_path(explicit: str | Path | None = None) -> Path:
    if explicit:
        return Path(explicit)
    return Path(os.getenv("SWEEPER_CONFIG", DEFAULT_CONFIG_PATH))


def load_config(path: str | Path | None = None) -> RunConfig:
    """Read the YAML config file and return the resolved RunConfig."""
    config_path = resolve_config_path(path)
    try:
        text = config_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"cannot read {config_path}: {exc}") from exc

    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"cannot parse {config_path}: {exc}") from exc

    config = build_run_config(raw)
    logger.info(
        "Resolved config (path=%s, days=%s, interval=%s, log_file=%s)",
        config.root_path,
        config.retention_days,
        config.scan_interval,
        config.log_file,
    )
    return config
