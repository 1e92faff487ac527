"""
Stop sequence detection for streamed generation.

Fragments arrive one at a time from the runner, each usually a single token.
A stop phrase may be split across fragments, so output is held back while the
tail of the stream could still complete a stop phrase, and once a phrase is
found the held fragments are cut just before it.

Offsets are Python string indices. Empty stop phrases are ignored.
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Sequence, Tuple


def find_stop(sequence: str, stops: Iterable[str]) -> Tuple[bool, str]:
    """First stop phrase, in caller order, contained in ``sequence``."""
    for stop in stops:
        if stop and stop in sequence:
            return True, stop
    return False, ""


def contains_stop_suffix(sequence: str, stops: Iterable[str]) -> bool:
    """True if ``sequence`` ends with a non-empty prefix of any stop phrase."""
    for stop in stops:
        for i in range(1, len(stop) + 1):
            if sequence.endswith(stop[:i]):
                return True
    return False


def truncate_stop(pieces: Sequence[str], stop: str) -> Tuple[List[str], bool]:
    """
    Remove ``stop`` and everything after it from ``pieces``.

    The text kept before the stop is split back into pieces of the original
    lengths. If the cut falls inside a piece, that piece is shortened and the
    second value is True, meaning a token was truncated.

    Example:
        >>> truncate_stop(["Hello", " the", "re!"], "there!")
        (['Hello', ' '], True)
    """
    if not stop:
        return list(pieces), False

    joined = "".join(pieces)
    index = joined.find(stop)
    if index == -1:
        return list(pieces), False

    joined = joined[:index]

    result = []
    token_truncated = False
    start = 0
    for piece in pieces:
        if start >= len(joined):
            break
        if not piece:
            continue
        end = start + len(piece)
        if end > len(joined):
            end = len(joined)
            token_truncated = True
        result.append(joined[start:end])
        start = end

    return result, token_truncated


@dataclass
class StopResult:
    """Outcome of feeding one fragment to a StopSequenceDetector."""

    fragments: List[str] = field(default_factory=list)  # safe to forward now
    stopped: bool = False
    stop: str = ""
    token_truncated: bool = False
    dropped: int = 0  # non-empty held fragments removed entirely by the stop


class StopSequenceDetector:
    """
    Per-request gate between a fragment stream and the output consumer.

    Not thread-safe; use one detector per generation request.

    Example:
        >>> detector = StopSequenceDetector(["</s>"])
        >>> detector.push("Hi").fragments
        ['Hi']
        >>> detector.push("</").fragments
        []
        >>> result = detector.push("s>")
        >>> result.stopped, result.fragments
        (True, [])
    """

    def __init__(self, stops: Iterable[str]):
        self.stops: Tuple[str, ...] = tuple(s for s in stops if s)
        self._pending: List[str] = []
        self._stopped = False
        self._stop = ""

    @property
    def stopped(self) -> bool:
        return self._stopped

    @property
    def pending(self) -> List[str]:
        """Fragments held back because they may start a stop phrase."""
        return list(self._pending)

    def push(self, fragment: str) -> StopResult:
        """Add a fragment and return whatever can be forwarded."""
        if self._stopped:
            return StopResult(stopped=True, stop=self._stop)

        self._pending.append(fragment)
        sequence = "".join(self._pending)

        found, stop = find_stop(sequence, self.stops)
        if found:
            held = sum(1 for piece in self._pending if piece)
            kept, token_truncated = truncate_stop(self._pending, stop)
            self._pending = []
            self._stopped = True
            self._stop = stop
            return StopResult(
                fragments=kept,
                stopped=True,
                stop=stop,
                token_truncated=token_truncated,
                dropped=held - len(kept),
            )

        if contains_stop_suffix(sequence, self.stops):
            return StopResult()

        ready, self._pending = self._pending, []
        return StopResult(fragments=ready)

    def flush(self) -> List[str]:
        """Release held fragments at end of stream; nothing after a stop."""
        ready, self._pending = self._pending, []
        if self._stopped:
            return []
        return ready
