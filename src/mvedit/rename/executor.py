"""Two-phase executor applying validated rename plans."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from mvedit.fs.move import move_path
from mvedit.fs.paths import absolute, ensure_parent_exists, unique_sibling_temp
from mvedit.fs.prune import prune_after_moves

from .errors import MoveError, PlanAlreadyAppliedError
from .models import (
    ExecutionFailure,
    ExecutionResult,
    ExecutionSuccess,
    RenamePair,
    StagingRecord,
    ValidatedPlan,
)

LOGGER = logging.getLogger(__name__)


class RenameExecutor:
    """Apply rename plans, staging cyclic sources through temporary paths."""

    def __init__(self, *, prune_root: Path | None = None) -> None:
        """Initialize the executor.

        Args:
            prune_root: Boundary for pruning directories emptied by a successful
                apply. Pruning is skipped when omitted.
        """
        self._prune_root = prune_root

    def apply(self, plan: ValidatedPlan, dry_run: bool = False) -> ExecutionResult:
        """Apply ``plan`` in two phases.

        Phase A moves every source that is also another pair's destination to a
        hidden sibling temp path. Phase B moves each pair, in plan order, from
        its current location to its destination. A failure in either phase
        stops the run and restores still-staged files; destination moves that
        already completed in phase B are left in place.

        Args:
            plan: Plan produced by the planner.
            dry_run: When True, report the plan without touching the filesystem.

        Returns:
            ExecutionResult: Success (possibly a dry-run preview) or failure details.

        Raises:
            PlanAlreadyAppliedError: If ``plan`` was applied before.
        """

        if dry_run:
            return ExecutionSuccess(dry_run=True, preview=tuple(plan.preview()))

        if plan.applied:
            raise PlanAlreadyAppliedError(len(plan))
        plan.mark_applied()

        staged: dict[str, StagingRecord] = {}

        for pair in plan.pairs:
            if not plan.needs_staging(pair):
                continue
            source = absolute(pair.source, plan.root)
            tmp = unique_sibling_temp(source)
            try:
                ensure_parent_exists(tmp)
                move_path(source, tmp)
            except (MoveError, OSError) as exc:
                LOGGER.error("Staging %s failed: %s", pair.source, exc)
                return ExecutionFailure(
                    stage="phase_a",
                    failing_pair=pair,
                    reason=_reason(exc),
                    rolled_back=self._restore(staged.values()),
                    total=len(plan),
                )
            LOGGER.debug("Staged %s at %s", source, tmp)
            staged[pair.source] = StagingRecord(tmp=tmp, source=source)

        committed: list[RenamePair] = []
        for pair in plan.pairs:
            record = staged.get(pair.source)
            current = record.tmp if record is not None else absolute(pair.source, plan.root)
            destination = absolute(pair.destination, plan.root)
            try:
                ensure_parent_exists(destination)
                move_path(current, destination)
            except (MoveError, OSError) as exc:
                LOGGER.error("Moving %s failed: %s", pair, exc)
                return ExecutionFailure(
                    stage="phase_b",
                    failing_pair=pair,
                    reason=_reason(exc),
                    rolled_back=self._restore(staged.values()),
                    committed=tuple(committed),
                    total=len(plan),
                )
            committed.append(pair)

        pruned = 0
        if self._prune_root is not None:
            pruned = prune_after_moves(
                [pair.source for pair in plan.pairs], self._prune_root, base=plan.root
            )
        LOGGER.info("Applied %d rename(s); removed %d empty dir(s)", len(plan), pruned)
        return ExecutionSuccess(applied=plan.pairs, pruned=pruned)

    def _restore(self, records: Iterable[StagingRecord]) -> bool:
        """Move still-staged files back to their sources, best effort."""
        restored = True
        for record in records:
            if not record.tmp.exists():
                continue
            if record.source.exists():
                LOGGER.warning(
                    "Cannot restore %s: path is occupied; staged copy left at %s",
                    record.source,
                    record.tmp,
                )
                restored = False
                continue
            try:
                move_path(record.tmp, record.source)
            except MoveError as exc:
                LOGGER.warning("Rollback of %s failed: %s", record.source, exc)
                restored = False
        return restored


def _reason(exc: Exception) -> str:
    if isinstance(exc, MoveError):
        return exc.reason
    if isinstance(exc, OSError) and exc.strerror:
        return exc.strerror
    return str(exc)


__all__ = ["RenameExecutor"]
