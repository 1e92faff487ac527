"""Stop phrase handling for streamed generation output."""

from .stop import (
    find_stop,
    contains_stop_suffix,
    truncate_stop,
    StopResult,
    StopSequenceDetector,
)

__all__ = [
    "find_stop",
    "contains_stop_suffix",
    "truncate_stop",
    "StopResult",
    "StopSequenceDetector",
]
