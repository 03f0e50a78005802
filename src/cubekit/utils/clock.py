"""
Clocks for the rotating-state timeout.
"""

import time

from cubekit.core.base import BaseClock


class MonotonicClock(BaseClock):
    """Wall time from time.monotonic()."""

    def now(self) -> float:
        return time.monotonic()


class ManualClock(BaseClock):
    """A clock that only moves when told to. Used by tests and scripted replays."""

    def __init__(self, start: float = 0.0):
        self._now = float(start)

    def now(self) -> float:
        return self._now

    def advance(self, seconds: float) -> float:
        """Move time forward and return the new reading."""
        if seconds < 0:
            raise ValueError("ManualClock cannot go backwards")
        self._now += seconds
        return self._now
