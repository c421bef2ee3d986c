"""Removal of directories left empty after a batch of moves."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable

from .paths import absolute

LOGGER = logging.getLogger(__name__)


def prune_empty_ancestors(start_dir: str | Path, stop_dir: str | Path) -> int:
    """Remove ``start_dir`` and its ancestors while they are empty.

    The walk never removes ``stop_dir`` itself and never leaves its subtree. It
    stops at the first non-empty directory, at the filesystem root, or when a
    removal fails.

    Args:
        start_dir: Directory to begin with.
        stop_dir: Boundary directory that is never removed.

    Returns:
        int: Number of directories removed.
    """
    current = absolute(start_dir)
    stop = absolute(stop_dir)
    removed = 0

    while current != stop and stop in current.parents:
        if not _is_empty_dir(current):
            break
        try:
            current.rmdir()
        except OSError as exc:
            LOGGER.debug("Stopped pruning at %s: %s", current, exc)
            break
        LOGGER.debug("Removed empty directory %s", current)
        removed += 1
        next_dir = current.parent
        if next_dir == current:
            break
        current = next_dir

    return removed


def prune_after_moves(
    sources: Iterable[str | Path],
    stop_dir: str | Path,
    base: Path | None = None,
) -> int:
    """Prune the distinct parent directories of moved-away sources.

    Args:
        sources: Original source paths of a successfully applied batch.
        stop_dir: Boundary directory passed to :func:`prune_empty_ancestors`.
        base: Directory that relative sources are resolved against.

    Returns:
        int: Total number of directories removed.
    """
    parents = dict.fromkeys(absolute(source, base).parent for source in sources)
    return sum(prune_empty_ancestors(directory, stop_dir) for directory in parents)


def _is_empty_dir(path: Path) -> bool:
    if not path.is_dir():
        return False
    try:
        with os.scandir(path) as entries:
            return next(entries, None) is None
    except OSError:
        return False
