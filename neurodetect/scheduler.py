from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from .clock import Clock


@dataclass(slots=True)
class TimerHandle:
    """Owned, cancellable reference to one scheduled callback."""

    due_at_s: float
    callback: Callable[[], None]
    seq: int
    cancelled: bool = False
    fired: bool = False

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.fired)

    def cancel(self) -> None:
        self.cancelled = True


@dataclass(slots=True)
class FrameScheduler:
    """Cooperative timer queue polled from the frame loop.

    Nothing runs on its own: ``run_due()`` fires every pending callback whose
    due time has been reached on the injected clock. Callbacks run one at a
    time, in due order (ties in scheduling order), so each one is a single
    atomic state transition from the caller's point of view.
    """

    clock: Clock
    _timers: list[TimerHandle] = field(default_factory=list)
    _next_seq: int = 0

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> TimerHandle:
        delay_s = max(0.0, float(delay_s))
        handle = TimerHandle(
            due_at_s=self.clock.now() + delay_s,
            callback=callback,
            seq=self._next_seq,
        )
        self._next_seq += 1
        self._timers.append(handle)
        return handle

    def pending_count(self) -> int:
        return sum(1 for h in self._timers if h.pending)

    def run_due(self) -> int:
        """Fire due callbacks. Returns how many fired."""

        fired = 0
        while True:
            now = self.clock.now()
            self._timers = [h for h in self._timers if h.pending]
            due = [h for h in self._timers if h.due_at_s <= now]
            if not due:
                return fired
            handle = min(due, key=lambda h: (h.due_at_s, h.seq))
            # A callback may cancel or schedule other timers; re-scan after each one.
            handle.fired = True
            self._timers.remove(handle)
            handle.callback()
            fired += 1
