"""Rename plan and execution result models."""

from __future__ import annotations

from pathlib import Path
from typing import Literal, NoReturn, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from .errors import ExecutionError, PhaseAFailure, PhaseBFailure


class RenameModel(BaseModel):
    """Shared configuration for immutable rename models."""

    model_config = ConfigDict(frozen=True, extra="forbid")


class RenamePair(RenameModel):
    """A single changed line of the edited list.

    Attributes:
        source: Path listed at ``index`` in the original list.
        destination: Path listed at ``index`` in the edited list.
        index: Zero-based position shared by both lists.
    """

    source: str
    destination: str
    index: int = 0

    def __str__(self) -> str:
        return f"{self.source} -> {self.destination}"


class ValidatedPlan(RenameModel):
    """Rename pairs that passed every validation check.

    A plan is applied at most once; dry runs do not count.

    Attributes:
        pairs: Changed pairs in their original index order.
        sources: Every path of the original list, changed or not.
        destinations: Destinations of the changed pairs; unique.
        root: Directory that relative paths are resolved against.
    """

    pairs: Tuple[RenamePair, ...]
    sources: frozenset[str]
    destinations: frozenset[str]
    root: Path

    _applied: bool = PrivateAttr(default=False)

    @property
    def applied(self) -> bool:
        """Whether the executor has already applied this plan."""
        return self._applied

    def mark_applied(self) -> None:
        self._applied = True

    def preview(self) -> list[str]:
        """Return the ``source -> destination`` lines describing the plan."""
        return [str(pair) for pair in self.pairs]

    def needs_staging(self, pair: RenamePair) -> bool:
        """Return True when another pair of the plan moves onto ``pair.source``."""
        return pair.source in self.destinations

    def __len__(self) -> int:
        return len(self.pairs)


class NoOp(RenameModel):
    """Result of planning when the edited list matches the original.

    Attributes:
        count: Number of lines compared.
    """

    count: int = 0


class StagingRecord(RenameModel):
    """Temporary location of a source staged to break a cycle."""

    tmp: Path
    source: Path


class ExecutionSuccess(RenameModel):
    """Outcome of a completed apply or dry run.

    Attributes:
        applied: Pairs moved on disk; empty for a dry run.
        dry_run: Whether the apply only previewed the plan.
        preview: ``source -> destination`` lines produced by a dry run.
        pruned: Number of empty directories removed after the moves.
    """

    status: Literal["success"] = "success"
    applied: Tuple[RenamePair, ...] = ()
    dry_run: bool = False
    preview: Tuple[str, ...] = ()
    pruned: int = 0

    @property
    def ok(self) -> bool:
        return True

    def raise_for_failure(self) -> None:
        """Do nothing; present for symmetry with :class:`ExecutionFailure`."""


class ExecutionFailure(RenameModel):
    """Outcome of an apply that stopped on a failed move.

    Attributes:
        stage: ``phase_a`` when staging failed, ``phase_b`` when committing failed.
        failing_pair: Pair whose move failed first.
        reason: Human-readable reason reported by the move primitive.
        rolled_back: Whether every staged file was restored to its source.
        committed: Pairs already moved to their destination before the failure.
        total: Number of pairs in the plan.
    """

    status: Literal["failed"] = "failed"
    stage: Literal["phase_a", "phase_b"]
    failing_pair: RenamePair
    reason: str
    rolled_back: bool = False
    committed: Tuple[RenamePair, ...] = Field(default_factory=tuple)
    total: int = 0

    @property
    def ok(self) -> bool:
        return False

    @property
    def message(self) -> str:
        """One-line description suitable for user display."""
        if self.stage == "phase_a":
            prefix = "failed during staging"
        else:
            prefix = (
                f"failed to complete renames after {len(self.committed)} of "
                f"{self.total} committed"
            )
        rollback = "" if self.rolled_back else "; some staged files could not be restored"
        return f"{prefix}. First: {self.failing_pair} ({self.reason}){rollback}"

    def raise_for_failure(self) -> NoReturn:
        """Raise the exception matching the failed stage.

        Raises:
            PhaseAFailure: When staging failed.
            PhaseBFailure: When committing failed.
        """
        error: type[ExecutionError] = PhaseAFailure if self.stage == "phase_a" else PhaseBFailure
        raise error(self)


ExecutionResult = Union[ExecutionSuccess, ExecutionFailure]
PlanResult = Union[ValidatedPlan, NoOp]

__all__ = [
    "RenamePair",
    "ValidatedPlan",
    "NoOp",
    "StagingRecord",
    "ExecutionSuccess",
    "ExecutionFailure",
    "ExecutionResult",
    "PlanResult",
]
