"""Path helpers shared by the planner, executor, and pruner."""

from __future__ import annotations

import os
import random
import re
import time
from pathlib import Path

from mvedit.rename.errors import BlankLineError

TEMP_MARKER = ".mv."
TEMP_SUFFIX = ".tmp"
_TEMP_NAME = re.compile(r"^\..+\.mv\.\d+\.tmp$")


def normalize(raw: str, *, line_number: int | None = None) -> str:
    """Trim trailing whitespace from an edited line.

    Args:
        raw: Line as supplied by the editing surface.
        line_number: One-based position of the line, used in the error.

    Returns:
        str: The normalized path string.

    Raises:
        BlankLineError: If nothing remains after trimming.
    """
    value = (raw or "").rstrip()
    if not value:
        raise BlankLineError(line_number)
    return value


def parent(path: str | Path) -> str:
    """Return the parent component of ``path`` without touching the filesystem."""
    return os.path.dirname(os.fspath(path)) or "."


def absolute(path: str | Path, base: Path | None = None) -> Path:
    """Return ``path`` made absolute against ``base`` (the CWD by default).

    Symlinks are not resolved and ``..`` segments are collapsed lexically.
    """
    candidate = Path(path).expanduser()
    if not candidate.is_absolute():
        candidate = (base if base is not None else Path.cwd()) / candidate
    return Path(os.path.normpath(candidate))


def ensure_parent_exists(path: str | Path) -> None:
    """Create the parent directory of ``path`` recursively when it is missing."""
    Path(path).parent.mkdir(parents=True, exist_ok=True)


def unique_sibling_temp(path: str | Path) -> Path:
    """Return a hidden sibling path usable as a staging location.

    The name follows ``<dir>/.<basename>.mv.<nonce>.tmp``. Uniqueness is
    best-effort: it is not guarded against concurrent writers.

    Args:
        path: File the temporary path should sit next to.

    Returns:
        Path: Candidate path that did not exist when it was generated.
    """
    target = Path(path)
    candidate = _temp_name(target, str(time.monotonic_ns()))
    while candidate.exists():
        nonce = f"{time.time_ns()}{random.randint(1, 1_000_000)}"
        candidate = _temp_name(target, nonce)
    return candidate


def is_staging_artifact(path: str | Path) -> bool:
    """Return True when ``path`` is named like a staging temp file."""
    return bool(_TEMP_NAME.match(Path(path).name))


def _temp_name(target: Path, nonce: str) -> Path:
    return target.parent / f".{target.name}{TEMP_MARKER}{nonce}{TEMP_SUFFIX}"


__all__ = [
    "normalize",
    "parent",
    "absolute",
    "ensure_parent_exists",
    "unique_sibling_temp",
    "is_staging_artifact",
]
