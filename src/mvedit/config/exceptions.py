"""Custom exceptions for configuration management."""

from mvedit.errors import MveditError


class ConfigError(MveditError):
    """Raised when configuration data cannot be processed."""
