"""Errors raised while planning and executing rename batches."""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

from mvedit.errors import MveditError

if TYPE_CHECKING:
    from .models import ExecutionFailure


class PlanError(MveditError):
    """Base exception for validation failures; no filesystem mutation has happened."""


class BlankLineError(PlanError):
    """Raised when an edited line is empty after trimming trailing whitespace."""

    def __init__(self, line_number: int | None = None) -> None:
        self.line_number = line_number
        if line_number is None:
            message = "empty line; one path per line required"
        else:
            message = f"empty line at {line_number}; one path per line required"
        super().__init__(message)


class LineCountMismatchError(PlanError):
    """Raised when the edited list does not have one line per original path."""

    def __init__(self, old_count: int, new_count: int) -> None:
        self.old_count = old_count
        self.new_count = new_count
        super().__init__(
            f"line count changed (old={old_count} new={new_count}); "
            "one line per original file, please"
        )


class DuplicateDestinationError(PlanError):
    """Raised when two or more edited lines share the same destination.

    A changed line whose destination equals an unchanged line also counts, since
    the unchanged path stays occupied and the move would overwrite it.
    """

    def __init__(self, paths: Sequence[str]) -> None:
        self.paths = list(paths)
        super().__init__("duplicate destinations: " + ", ".join(self.paths))


class OverwriteConflictError(PlanError):
    """Raised when destinations already exist and are not vacated by the batch."""

    def __init__(self, paths: Sequence[str]) -> None:
        self.paths = list(paths)
        super().__init__("destination already exists (would overwrite): " + ", ".join(self.paths))


class MissingSourceError(PlanError):
    """Raised when a path scheduled to move is no longer present on disk."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"source missing: {path}")


class PlanAlreadyAppliedError(MveditError):
    """Raised when a plan that was already applied is passed to the executor again."""

    def __init__(self, count: int) -> None:
        self.count = count
        super().__init__(f"plan of {count} rename(s) was already applied; build a new plan")


class MoveError(MveditError):
    """Raised when a single source -> destination move cannot be completed."""

    def __init__(self, reason: str, *, source: str = "", destination: str = "") -> None:
        self.reason = reason
        self.source = source
        self.destination = destination
        super().__init__(reason)


class ExecutionError(MveditError):
    """Raised on request for a failed apply; wraps the failure result."""

    def __init__(self, result: ExecutionFailure) -> None:
        self.result = result
        super().__init__(result.message)


class PhaseAFailure(ExecutionError):
    """Staging failed; nothing was moved to its destination."""


class PhaseBFailure(ExecutionError):
    """Committing failed; earlier pairs of the batch may already be applied."""


__all__ = [
    "PlanError",
    "BlankLineError",
    "LineCountMismatchError",
    "DuplicateDestinationError",
    "OverwriteConflictError",
    "MissingSourceError",
    "PlanAlreadyAppliedError",
    "MoveError",
    "ExecutionError",
    "PhaseAFailure",
    "PhaseBFailure",
]
