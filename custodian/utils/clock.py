"""
Logical clock sources used for timestamps and expiration checks
"""

import threading
import time


class LogicalClock:
    """
    Manually advanced monotonic counter, comparable to a block height

    The value only moves forward; trying to move it back raises ValueError.
    """

    def __init__(self, start: int = 0):
        if start < 0:
            raise ValueError("Clock start cannot be negative")
        self._now = start
        self._lock = threading.Lock()

    def now(self) -> int:
        return self._now

    def advance(self, ticks: int = 1) -> int:
        """Move the clock forward by the given number of ticks and return the new time"""
        if ticks < 0:
            raise ValueError("Clock cannot move backwards")
        with self._lock:
            self._now += ticks
            return self._now

    def set(self, value: int) -> int:
        """Jump the clock to an absolute time that is not in the past"""
        with self._lock:
            if value < self._now:
                raise ValueError(f"Clock cannot move backwards from {self._now} to {value}")
            self._now = value
            return self._now


class SystemClock:
    """Wall clock expressed as integer Unix seconds"""

    def now(self) -> int:
        return int(time.time())


def make_clock(kind: str, start: int = 0):
    """Build a clock from its configured name ("system" or "logical")"""
    if kind == "system":
        return SystemClock()
    if kind == "logical":
        return LogicalClock(start)
    raise ValueError(f"Unknown clock type: {kind}")
