"""Injectable millisecond clocks used for cooldowns and save timestamps."""
from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    """Anything that can report the current time in milliseconds."""

    def now_ms(self) -> int:
        ...


class SystemClock:
    """Wall-clock time in whole milliseconds since the epoch."""

    def now_ms(self) -> int:
        return time.time_ns() // 1_000_000


class ManualClock:
    """Deterministic clock that only moves when told to."""

    def __init__(self, start_ms: int = 0) -> None:
        self._now = int(start_ms)

    def now_ms(self) -> int:
        """Return the current simulated time."""
        return self._now

    def advance(self, delta_ms: int) -> int:
        """Move the clock forward and return the new time."""
        if delta_ms < 0:
            raise ValueError("Cannot move a clock backwards.")
        self._now += int(delta_ms)
        return self._now

    def set(self, value_ms: int) -> None:
        """Jump to an absolute time."""
        self._now = int(value_ms)
