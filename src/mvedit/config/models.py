"""Configuration models describing mvedit settings."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from mvedit.listing import DEFAULT_COMMAND


class MveditBaseModel(BaseModel):
    """Shared configuration for mvedit Pydantic models."""

    model_config = ConfigDict(extra="forbid")


class ListingSettings(MveditBaseModel):
    """Options for the command that enumerates candidate files.

    Attributes:
        command: Base listing command; ``-g <pattern>`` is appended per pattern.
    """

    command: str = DEFAULT_COMMAND


class RenameOptions(MveditBaseModel):
    """Defaults applied when a rename batch is committed.

    Attributes:
        dry_run: Whether new sessions preview changes instead of applying them.
        prune_empty_dirs: Whether directories emptied by moves are removed.
    """

    dry_run: bool = False
    prune_empty_dirs: bool = True


class LoggingSettings(MveditBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
    """

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"


class CLIOptions(MveditBaseModel):
    """CLI behavior defaults and presentation preferences.

    Attributes:
        quiet_default: Whether commands suppress non-error output by default.
        summary_default: Whether commands only print summary lines by default.
    """

    quiet_default: bool = False
    summary_default: bool = False


class MveditConfig(MveditBaseModel):
    """Top-level configuration struct for mvedit.

    Attributes:
        listing: File enumeration settings.
        rename: Rename batch defaults.
        logging: Logging configuration.
        cli: CLI presentation defaults.
    """

    listing: ListingSettings = Field(default_factory=ListingSettings)
    rename: RenameOptions = Field(default_factory=RenameOptions)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)


__all__ = [
    "MveditBaseModel",
    "ListingSettings",
    "RenameOptions",
    "LoggingSettings",
    "CLIOptions",
    "MveditConfig",
]
