from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    """Monotonic clock abstraction.

    The trial engine and scheduler read time only through this interface, so
    reaction times are never skewed by wall-clock adjustments.
    """

    def now(self) -> float:
        """Return monotonic seconds."""


class RealClock:
    """Production clock backed by time.perf_counter()."""

    def now(self) -> float:
        return time.perf_counter()


def seconds_to_ms(seconds: float) -> int:
    return int(round(float(seconds) * 1000.0))
