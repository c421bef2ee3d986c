"""Editable rename session tying the planner and executor together."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Sequence, Union

from mvedit.config import MveditConfig
from mvedit.fs.paths import absolute, normalize
from mvedit.rename.executor import RenameExecutor
from mvedit.rename.models import ExecutionFailure, ExecutionResult, ExecutionSuccess, NoOp
from mvedit.rename.planner import RenamePlanner

LOGGER = logging.getLogger(__name__)

CommitOutcome = Union[NoOp, ExecutionResult]


class RenameSession:
    """Track the last applied path list and commit edits against it.

    The session owns no files: it compares each edited list with ``original``,
    applies the difference, and adopts the edited list once it is on disk.
    """

    def __init__(
        self,
        original: Sequence[str],
        *,
        root: Optional[Path] = None,
        dry_run: Optional[bool] = None,
        default_dry_run: bool = False,
        prune_empty_dirs: bool = True,
    ) -> None:
        """Initialize the session.

        Args:
            original: Paths as initially listed.
            root: Directory paths are relative to and the pruning boundary.
            dry_run: Session override; ``None`` follows ``default_dry_run``.
            default_dry_run: Configured dry-run default.
            prune_empty_dirs: Whether emptied source directories are removed.
        """
        self._original = list(original)
        self._root = absolute(root or Path.cwd())
        self._dry_run = dry_run
        self._default_dry_run = default_dry_run
        self._planner = RenamePlanner()
        self._executor = RenameExecutor(prune_root=self._root if prune_empty_dirs else None)

    @classmethod
    def from_config(
        cls,
        original: Sequence[str],
        config: MveditConfig,
        *,
        root: Optional[Path] = None,
        dry_run: Optional[bool] = None,
    ) -> "RenameSession":
        """Build a session using the rename defaults from ``config``."""
        return cls(
            original,
            root=root,
            dry_run=dry_run,
            default_dry_run=config.rename.dry_run,
            prune_empty_dirs=config.rename.prune_empty_dirs,
        )

    @property
    def original(self) -> list[str]:
        """Return a copy of the last applied path list."""
        return list(self._original)

    @property
    def root(self) -> Path:
        return self._root

    @property
    def dry_run(self) -> bool:
        """Return the effective dry-run flag."""
        return self._default_dry_run if self._dry_run is None else self._dry_run

    def toggle_dry_run(self) -> bool:
        """Flip the session dry-run flag and return the new value."""
        self._dry_run = not self.dry_run
        LOGGER.info("dry_run = %s", self._dry_run)
        return self._dry_run

    def text(self) -> str:
        """Return the editable buffer text for the current list."""
        return "".join(f"{path}\n" for path in self._original)

    def commit(self, edited_lines: Sequence[str]) -> CommitOutcome:
        """Validate ``edited_lines`` and apply them.

        Args:
            edited_lines: Raw lines from the editing surface.

        Returns:
            CommitOutcome: ``NoOp``, a dry-run preview, or the apply result.

        Raises:
            PlanError: If validation fails; nothing is changed on disk.
        """
        plan = self._planner.build_plan(self._original, edited_lines, root=self._root)
        if isinstance(plan, NoOp):
            return plan

        result = self._executor.apply(plan, dry_run=self.dry_run)
        if isinstance(result, ExecutionSuccess) and not result.dry_run:
            self._original = [normalize(line) for line in edited_lines]
        return result


def summarize(outcome: CommitOutcome) -> str:
    """Return a one-line message describing a commit outcome."""
    if isinstance(outcome, NoOp):
        return "nothing to do"
    if isinstance(outcome, ExecutionFailure):
        return outcome.message
    if outcome.dry_run:
        count = len(outcome.preview)
        return f"dry run ({count} change{_plural(count)})"
    count = len(outcome.applied)
    message = f"applied {count} rename{_plural(count)}"
    if outcome.pruned:
        message += f"; removed {outcome.pruned} empty dir{_plural(outcome.pruned)}"
    return message


def _plural(count: int) -> str:
    return "" if count == 1 else "s"


__all__ = ["RenameSession", "CommitOutcome", "summarize"]
