"""Base exception shared by mvedit subsystems."""


class MveditError(Exception):
    """Base exception for mvedit operations."""
