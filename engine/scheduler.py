"""
scheduler.py — Tick Schedulers
===============================
The controller never touches timers directly; it is handed a scheduler
with a single method:

    handle = scheduler.call_later(delay_seconds, callback)
    handle.cancel()

Two implementations:
  • AsyncioScheduler — real timers on an asyncio event loop.
  • ManualScheduler  — virtual time.  Tests advance it explicitly; a
                       poll-driven host (the Flask app) passes a clock and
                       calls tick() on every request.

Both run callbacks on the caller's thread, one at a time.
"""

import asyncio
import heapq
import itertools
import logging
from typing import Callable, List, Optional, Protocol

logger = logging.getLogger(__name__)


class Cancellable(Protocol):
    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> Cancellable:
        ...


# ---------------------------------------------------------------------------
# asyncio
# ---------------------------------------------------------------------------
class AsyncioScheduler:
    """Schedules on `loop`, or on whichever loop is running at call time."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(max(0.0, delay), callback)


# ---------------------------------------------------------------------------
# Virtual time
# ---------------------------------------------------------------------------
class ScheduledCall:
    __slots__ = ("when", "seq", "callback", "cancelled")

    def __init__(self, when: float, seq: int, callback: Callable[[], None]):
        self.when      = when
        self.seq       = seq
        self.callback  = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def __lt__(self, other: "ScheduledCall") -> bool:
        return (self.when, self.seq) < (other.when, other.seq)

    def __repr__(self) -> str:
        state = "cancelled" if self.cancelled else "pending"
        return f"ScheduledCall(when={self.when:.3f}, {state})"


class ManualScheduler:
    """
    Deterministic scheduler over a virtual clock.

    Attributes:
        now    : Current virtual time in seconds.
        _clock : Optional real clock (e.g. time.monotonic) that tick() follows.
        _queue : Heap of ScheduledCalls ordered by (when, insertion order).
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None, start: float = 0.0):
        self._clock = clock
        self.now:   float               = clock() if clock is not None else start
        self._queue: List[ScheduledCall] = []
        self._seq = itertools.count()

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledCall:
        self._prune()
        call = ScheduledCall(self.now + max(0.0, delay), next(self._seq), callback)
        heapq.heappush(self._queue, call)
        return call

    def _prune(self) -> None:
        """Drop cancelled calls so pause / resume cycles don't pile them up."""
        while self._queue and self._queue[0].cancelled:
            heapq.heappop(self._queue)
        live = self.pending
        if len(self._queue) > 2 * live + 8:
            self._queue = [call for call in self._queue if not call.cancelled]
            heapq.heapify(self._queue)

    # ------------------------------------------------------------------
    # Driving time
    # ------------------------------------------------------------------
    def advance_to(self, when: float) -> int:
        """Run every call due at or before `when`, in order.  Returns how many ran."""
        ran = 0
        while self._queue and self._queue[0].when <= when:
            call = heapq.heappop(self._queue)
            if call.cancelled:
                continue
            self.now = max(self.now, call.when)
            call.callback()
            ran += 1
        self.now = max(self.now, when)
        return ran

    def advance(self, seconds: float) -> int:
        return self.advance_to(self.now + seconds)

    def run_next(self) -> bool:
        """Jump straight to the earliest live call and run it."""
        while self._queue:
            call = heapq.heappop(self._queue)
            if call.cancelled:
                continue
            self.now = max(self.now, call.when)
            call.callback()
            return True
        return False

    def run_pending(self, limit: int = 10_000) -> int:
        """Keep running calls (including newly scheduled ones) until none are left."""
        ran = 0
        while ran < limit and self.run_next():
            ran += 1
        if ran >= limit:
            logger.warning("ManualScheduler.run_pending stopped after %d calls", limit)
        return ran

    def tick(self) -> int:
        """Catch up with the real clock.  Requires a clock."""
        if self._clock is None:
            raise RuntimeError("ManualScheduler.tick() needs a clock; use advance() instead.")
        return self.advance_to(self._clock())

    @property
    def pending(self) -> int:
        return sum(1 for call in self._queue if not call.cancelled)

    @property
    def next_due(self) -> Optional[float]:
        live = [call.when for call in self._queue if not call.cancelled]
        return min(live) if live else None
