"""
Monotonic stopwatch used for every timeSince* attribute.

The clock source is pluggable (like a time provider) so tests can drive
time deterministically; by default it is time.monotonic, which is not
affected by system clock adjustments.
"""

import time
from typing import Callable


Clock = Callable[[], float]
"""Callable returning the current time in seconds."""


class Chrono:
    """
    Measures milliseconds elapsed since a mark.

    Examples:
        >>> chrono = Chrono()
        >>> chrono.mark()
        >>> chrono.elapsed() >= 0
        True
    """

    def __init__(self, clock: Clock | None = None):
        self._clock = clock or time.monotonic
        self._reference = self._clock()
        self._marked = False

    @property
    def marked(self) -> bool:
        """True once mark() has been called at least once."""
        return self._marked

    def mark(self) -> None:
        """Reset the reference instant to now."""
        self._reference = self._clock()
        self._marked = True

    def elapsed(self) -> int:
        """Milliseconds since the last mark (or since construction)."""
        return max(0, round((self._clock() - self._reference) * 1000))

    def __repr__(self) -> str:
        return f"Chrono(elapsed={self.elapsed()}ms, marked={self._marked})"


__all__ = ["Chrono", "Clock"]
