"""Delete expired files under a root directory and prune emptied directories."""

from __future__ import annotations

import errno
import logging
import os
import stat
from datetime import timedelta
from pathlib import Path
from typing import Iterator

from sweeper.domain.models import PurgeResult
from sweeper.utils.clock import Clock, utc_now

logger = logging.getLogger(__name__)


def _walk(top: Path) -> Iterator[tuple[Path, os.stat_result]]:
    """Yield every entry under ``top`` (inclusive) in pre-order.

    Entries are read with ``lstat`` so links are reported as themselves and
    never followed. Children are listed only after their parent has been
    yielded, in lexical order. Any ``OSError`` propagates to the caller.
    The walk keeps its own stack, so tree depth is not bounded by the
    interpreter's recursion limit.
    """
    pending = [top]
    while pending:
        path = pending.pop()
        info = path.lstat()
        yield path, info
        if stat.S_ISDIR(info.st_mode):
            pending.extend(path / name for name in sorted(os.listdir(path), reverse=True))


def is_empty(directory: str | Path) -> bool:
    """Return True when ``directory`` has no entries.

    Read errors (permission denied, missing directory) are raised rather than
    reported as "not empty".
    """
    with os.scandir(directory) as entries:
        return next(entries, None) is None


def _prune_empty_dirs(candidates: list[Path]) -> int:
    # Single pass in discovery order. A parent emptied by removing its child
    # here is left for the next cycle.
    removed = 0
    for directory in candidates:
        try:
            if not is_empty(directory):
                continue
            directory.rmdir()
        except OSError as exc:
            logger.debug("Skipping directory cleanup for %s: %s", directory, exc)
            continue
        removed += 1
    return removed


def purge(root: str | Path, retention_days: int, *, clock: Clock = utc_now) -> PurgeResult:
    """Run one purge pass over ``root``.

    Files whose modification time is strictly before ``clock() - retention_days``
    are deleted. Traversal and deletion errors stop the walk and are returned
    in ``PurgeResult.error`` together with the counts reached so far. Empty
    directories below ``root`` are removed afterwards on a best-effort basis,
    even when the walk was aborted.
    """
    if retention_days < 0:
        raise ValueError(f"retention_days must be >= 0, got {retention_days}")

    root = Path(root)
    try:
        cutoff = (clock() - timedelta(days=retention_days)).timestamp()
    except OverflowError as exc:
        raise ValueError(f"retention_days {retention_days} is out of range") from exc
    result = PurgeResult()
    candidates: list[Path] = []

    try:
        for path, info in _walk(root):
            if path == root and not stat.S_ISDIR(info.st_mode):
                raise NotADirectoryError(errno.ENOTDIR, os.strerror(errno.ENOTDIR), str(root))
            if stat.S_ISDIR(info.st_mode):
                if path != root:
                    candidates.append(path)
                continue
            if info.st_mtime >= cutoff:
                continue
            try:
                path.unlink()
            except FileNotFoundError:
                logger.debug("File already removed before purge: %s", path)
                continue
            result.files_deleted += 1
            result.bytes_deleted += info.st_size
    except OSError as exc:
        logger.warning("Purge of %s aborted: %s", root, exc)
        result.error = exc

    removed_dirs = _prune_empty_dirs(candidates)
    logger.debug(
        "Purge of %s finished (files=%s bytes=%s dirs_removed=%s)",
        root,
        result.files_deleted,
        result.bytes_deleted,
        removed_dirs,
    )
    return result
