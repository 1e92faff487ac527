"""Utility functions for runnerkit."""

from .imports import safe_import
from .format import human_bytes

__all__ = ["safe_import", "human_bytes"]
