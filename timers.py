"""
timers.py — single-threaded timer queue

Debounce and delayed writes are plain deadlines on a monotonic clock. Nothing
runs in the background: the host calls `run_due()` from its own loop (a
periodic Streamlit fragment, a test, ...) and due callbacks fire in deadline
order on the caller's thread.

A callback that schedules a new timer is measured from the deadline of the
timer being fired, not from the wall clock, so chained delays add up exactly.
"""

from __future__ import annotations

import heapq
import itertools
import time
from typing import Callable, List, Optional, Tuple


class TimerHandle:
    __slots__ = ("deadline", "callback", "cancelled", "fired")

    def __init__(self, deadline: float, callback: Callable[[], None]) -> None:
        self.deadline = deadline
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def active(self) -> bool:
        return not (self.cancelled or self.fired)

    def __repr__(self) -> str:
        state = "cancelled" if self.cancelled else "fired" if self.fired else "pending"
        return f"<TimerHandle deadline={self.deadline:.3f} {state}>"


class TimerQueue:
    def __init__(self, clock: Optional[Callable[[], float]] = None) -> None:
        self._clock = clock or time.monotonic
        self._heap: List[Tuple[float, int, TimerHandle]] = []
        self._seq = itertools.count()
        self._firing_at: Optional[float] = None

    def now(self) -> float:
        return self._firing_at if self._firing_at is not None else self._clock()

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(self.now() + max(0.0, float(delay)), callback)
        heapq.heappush(self._heap, (handle.deadline, next(self._seq), handle))
        return handle

    def run_due(self) -> int:
        """Fire every timer whose deadline has passed. Returns how many fired."""
        now = self._clock()
        fired = 0
        while self._heap and self._heap[0][0] <= now:
            _, _, handle = heapq.heappop(self._heap)
            if handle.cancelled:
                continue
            handle.fired = True
            self._firing_at = handle.deadline
            try:
                handle.callback()
            finally:
                self._firing_at = None
            fired += 1
        return fired

    def pending(self) -> int:
        return sum(1 for _, _, h in self._heap if h.active)

    def next_deadline(self) -> Optional[float]:
        for deadline, _, h in sorted(self._heap):
            if h.active:
                return deadline
        return None
