"""Single-file move with fallbacks for cross-device and restricted filesystems."""

from __future__ import annotations

import errno
import logging
import os
import shutil
from pathlib import Path
from typing import Callable

from mvedit.rename.errors import MoveError

LOGGER = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024

# Errors meaning "this method cannot work here", as opposed to a real failure.
UNAVAILABLE_ERRNOS = frozenset(
    code
    for code in (
        errno.EXDEV,
        errno.ENOSYS,
        getattr(errno, "ENOTSUP", None),
        getattr(errno, "EOPNOTSUPP", None),
    )
    if code is not None
)


def _rename(src: Path, dst: Path) -> None:
    os.rename(src, dst)


def _replace(src: Path, dst: Path) -> None:
    os.replace(src, dst)


def _copy_then_unlink(src: Path, dst: Path) -> None:
    try:
        shutil.copy2(src, dst)
    except OSError:
        _discard_partial(dst)
        raise
    _unlink_source(src, dst)


def _stream_then_unlink(src: Path, dst: Path) -> None:
    try:
        with src.open("rb") as reader, dst.open("wb") as writer:
            while True:
                chunk = reader.read(CHUNK_SIZE)
                if not chunk:
                    break
                writer.write(chunk)
    except OSError:
        _discard_partial(dst)
        raise
    _unlink_source(src, dst)


MoveMethod = Callable[[Path, Path], None]

METHODS: tuple[tuple[str, MoveMethod], ...] = (
    ("rename", _rename),
    ("replace", _replace),
    ("copy", _copy_then_unlink),
    ("stream", _stream_then_unlink),
)


def move_path(src: str | Path, dst: str | Path) -> str:
    """Move ``src`` to ``dst``, falling back through the available move methods.

    Methods are tried in order: atomic rename, ``os.replace``, native copy plus
    unlink, then a chunked copy plus unlink. Only "method unavailable" errors
    (for example ``EXDEV`` on a cross-device move) fall through to the next
    method; any other error ends the attempt. Copies are not verified.

    Args:
        src: Existing file to move.
        dst: Destination path; its parent directory must exist.

    Returns:
        str: Name of the method that completed the move.

    Raises:
        MoveError: If a method fails for a reason other than being unavailable,
            or every method is unavailable.
    """
    source = Path(src)
    destination = Path(dst)
    last_error: OSError | None = None

    for name, method in METHODS:
        try:
            method(source, destination)
        except OSError as exc:
            if exc.errno not in UNAVAILABLE_ERRNOS:
                raise MoveError(
                    f"{name} failed: {_describe(exc)}",
                    source=str(source),
                    destination=str(destination),
                ) from exc
            LOGGER.debug("Move method %s unavailable for %s: %s", name, source, exc)
            last_error = exc
            continue
        LOGGER.debug("Moved %s -> %s using %s", source, destination, name)
        return name

    detail = _describe(last_error) if last_error is not None else "no move method available"
    raise MoveError(
        f"all move methods unavailable: {detail}",
        source=str(source),
        destination=str(destination),
    )


def _unlink_source(src: Path, dst: Path) -> None:
    try:
        src.unlink()
    except OSError as exc:
        raise MoveError(
            f"copied to {dst} but could not remove source: {_describe(exc)}",
            source=str(src),
            destination=str(dst),
        ) from exc


def _discard_partial(dst: Path) -> None:
    try:
        dst.unlink(missing_ok=True)
    except OSError as exc:  # pragma: no cover - filesystem issues
        LOGGER.warning("Could not remove partial copy %s: %s", dst, exc)


def _describe(exc: OSError) -> str:
    return exc.strerror or str(exc)


__all__ = ["move_path", "METHODS", "CHUNK_SIZE", "UNAVAILABLE_ERRNOS"]
