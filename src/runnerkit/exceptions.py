"""
Custom exceptions for runnerkit.
"""

from typing import Optional


class RunnerKitError(Exception):
    """Base class for errors raised by runnerkit."""


class ExtractionError(RunnerKitError, OSError):
    """Raised when the runner cache cannot be materialized on disk."""

    def __init__(self, message: str, path: Optional[str] = None):
        """
        Initialize ExtractionError.

        Args:
            message: Error message describing what failed
            path: Optional file or directory the failure is attributed to
        """
        self.path = path
        full_message = f"Runner extraction failed: {message}"
        if path:
            full_message += f" (path: {path})"
        super().__init__(full_message)
