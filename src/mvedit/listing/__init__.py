"""Enumerate candidate files through an external listing command."""

from __future__ import annotations

import logging
import shlex
import subprocess
from pathlib import Path
from typing import Iterable, Optional, Sequence

from mvedit.errors import MveditError
from mvedit.fs.paths import is_staging_artifact

LOGGER = logging.getLogger(__name__)

DEFAULT_COMMAND = "rg --files --color=never"


class ListingError(MveditError):
    """Raised when the listing command cannot be run or exits with an error."""


def split_patterns(value: str | None) -> list[str]:
    """Split a comma-separated pattern string into trimmed, non-empty patterns."""
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


class FileLister:
    """Run the configured listing command and return its paths in order."""

    def __init__(self, command: str = DEFAULT_COMMAND) -> None:
        self.command = command

    def build_command(self, patterns: Optional[Iterable[str]] = None) -> list[str]:
        """Return the argument vector with one ``-g <pattern>`` per pattern.

        Args:
            patterns: Glob filters understood by the listing tool.

        Returns:
            list[str]: Command arguments suitable for ``subprocess.run``.
        """
        args = shlex.split(self.command)
        for pattern in patterns or ():
            if pattern:
                args.extend(["-g", pattern])
        return args

    def list_files(
        self,
        patterns: Optional[Sequence[str]] = None,
        *,
        cwd: Optional[Path] = None,
    ) -> list[str]:
        """Return the paths printed by the listing command.

        Staging leftovers named ``.<name>.mv.<nonce>.tmp`` are dropped.

        Args:
            patterns: Glob filters passed as ``-g`` arguments.
            cwd: Directory to run the command in.

        Returns:
            list[str]: Paths in the order the command printed them.

        Raises:
            ListingError: If the command is missing or exits non-zero.
        """
        args = self.build_command(patterns)
        if not args:
            raise ListingError("Listing command is empty; set listing.command.")
        LOGGER.debug("Running listing command: %s", shlex.join(args))
        try:
            completed = subprocess.run(
                args,
                cwd=cwd,
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as exc:
            raise ListingError(f"Unable to run listing command {args[0]!r}: {exc}") from exc

        # ripgrep exits 1 without output when nothing matched.
        if completed.returncode == 1 and not completed.stdout.strip() and not completed.stderr:
            return []
        if completed.returncode != 0:
            detail = completed.stderr.strip() or f"exit status {completed.returncode}"
            raise ListingError(f"Listing command failed ({detail}). Check listing.command/patterns.")

        paths = [line for line in completed.stdout.splitlines() if line.strip()]
        return [path for path in paths if not is_staging_artifact(path)]


__all__ = ["FileLister", "ListingError", "split_patterns", "DEFAULT_COMMAND"]
