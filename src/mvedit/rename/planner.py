"""Planner turning an edited path list into a validated rename plan."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Sequence

from mvedit.fs.paths import absolute, normalize

from .errors import (
    DuplicateDestinationError,
    LineCountMismatchError,
    MissingSourceError,
    OverwriteConflictError,
)
from .models import NoOp, PlanResult, RenamePair, ValidatedPlan

LOGGER = logging.getLogger(__name__)


class RenamePlanner:
    """Compare original and edited path lists and validate the resulting moves."""

    def build_plan(
        self,
        original: Sequence[str],
        edited_raw: Sequence[str],
        *,
        root: Optional[Path] = None,
    ) -> PlanResult:
        """Produce a validated plan, or :class:`NoOp` when nothing changed.

        Args:
            original: Paths as listed before editing.
            edited_raw: Raw edited lines, index-aligned with ``original``.
            root: Directory relative paths are resolved against; the CWD by default.

        Returns:
            PlanResult: Validated plan, or ``NoOp`` if no line changed.

        Raises:
            BlankLineError: If an edited line is blank.
            LineCountMismatchError: If the lists differ in length.
            DuplicateDestinationError: If destinations repeat; lists all of them.
            OverwriteConflictError: If destinations exist and are not vacated.
            MissingSourceError: If a source is missing; reports the first one.
        """

        base = (root or Path.cwd()).expanduser()
        edited = [
            normalize(line, line_number=number) for number, line in enumerate(edited_raw, start=1)
        ]

        if len(edited) != len(original):
            raise LineCountMismatchError(len(original), len(edited))

        pairs = [
            RenamePair(source=source, destination=destination, index=index)
            for index, (source, destination) in enumerate(zip(original, edited))
            if source != destination
        ]
        if not pairs:
            return NoOp(count=len(original))

        unchanged = frozenset(
            source for source, destination in zip(original, edited) if source == destination
        )
        destinations = self._check_duplicates(pairs, unchanged)
        sources = frozenset(original)
        self._check_overwrites(pairs, sources, base)
        self._check_sources(pairs, base)

        LOGGER.debug("Planned %d rename(s) out of %d line(s)", len(pairs), len(original))
        return ValidatedPlan(
            pairs=tuple(pairs),
            sources=sources,
            destinations=destinations,
            root=absolute(base),
        )

    # ------------------------------------------------------------------ #
    # Checks                                                             #
    # ------------------------------------------------------------------ #

    def _check_duplicates(
        self,
        pairs: Sequence[RenamePair],
        unchanged: frozenset[str],
    ) -> frozenset[str]:
        # A line left as-is still claims its path.
        seen: set[str] = set()
        duplicates: dict[str, None] = {}
        for pair in pairs:
            if pair.destination in seen or pair.destination in unchanged:
                duplicates[pair.destination] = None
            seen.add(pair.destination)
        if duplicates:
            raise DuplicateDestinationError(list(duplicates))
        return frozenset(seen)

    def _check_overwrites(
        self,
        pairs: Sequence[RenamePair],
        sources: frozenset[str],
        base: Path,
    ) -> None:
        conflicts = [
            pair.destination
            for pair in pairs
            if pair.destination not in sources and absolute(pair.destination, base).exists()
        ]
        if conflicts:
            raise OverwriteConflictError(conflicts)

    def _check_sources(self, pairs: Sequence[RenamePair], base: Path) -> None:
        for pair in pairs:
            if not absolute(pair.source, base).is_file():
                raise MissingSourceError(pair.source)


def build_plan(
    original: Sequence[str],
    edited_raw: Sequence[str],
    *,
    root: Optional[Path] = None,
) -> PlanResult:
    """Module-level shortcut for :meth:`RenamePlanner.build_plan`."""
    return RenamePlanner().build_plan(original, edited_raw, root=root)


__all__ = ["RenamePlanner", "build_plan"]
