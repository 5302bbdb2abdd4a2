from __future__ import annotations

import heapq
import itertools
import time
from collections.abc import Callable
from typing import Protocol


class Clock(Protocol):
    """Monotonic clock abstraction.

    Core logic depends on this interface rather than calling real time directly.
    """

    def now(self) -> float:
        """Return monotonic seconds."""


class RealClock:
    """Production clock backed by time.monotonic()."""

    def now(self) -> float:
        return time.monotonic()


class FakeClock:
    """Deterministic test clock."""

    def __init__(self, *, start: float = 0.0) -> None:
        self._t = float(start)

    def now(self) -> float:
        return self._t

    def advance(self, dt: float) -> None:
        if dt < 0:
            raise ValueError("dt must be non-negative")
        self._t += float(dt)


# Lower value runs first when two calls fall due at the same instant.
PRIORITY_TICK = 0
PRIORITY_ADVANCE = 10


class ScheduledCall:
    """Handle for a deferred callback queued on a :class:`Scheduler`."""

    __slots__ = ("due_s", "priority", "seq", "_callback", "_cancelled")

    def __init__(self, due_s: float, priority: int, seq: int, callback: Callable[[], None]) -> None:
        self.due_s = float(due_s)
        self.priority = int(priority)
        self.seq = int(seq)
        self._callback = callback
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def __lt__(self, other: ScheduledCall) -> bool:
        return (self.due_s, self.priority, self.seq) < (other.due_s, other.priority, other.seq)

    def _run(self) -> None:
        self._cancelled = True
        self._callback()


class Scheduler:
    """Single cooperative queue of deferred callbacks.

    Nothing runs on its own: the owner calls :meth:`run_due` (typically once
    per frame) and every call whose due time has been reached executes to
    completion, one at a time, ordered by ``(due_s, priority, seq)``.  Calls
    scheduled from inside a running callback join the same queue, so a
    zero-delay follow-up still runs after anything already due before it.
    """

    def __init__(self, clock: Clock) -> None:
        self._clock = clock
        self._queue: list[ScheduledCall] = []
        self._seq = itertools.count()

    @property
    def clock(self) -> Clock:
        return self._clock

    def call_later(
        self,
        delay_s: float,
        callback: Callable[[], None],
        *,
        priority: int = PRIORITY_ADVANCE,
    ) -> ScheduledCall:
        if delay_s < 0:
            raise ValueError("delay_s must be >= 0")
        return self.call_at(self._clock.now() + float(delay_s), callback, priority=priority)

    def call_at(
        self,
        due_s: float,
        callback: Callable[[], None],
        *,
        priority: int = PRIORITY_ADVANCE,
    ) -> ScheduledCall:
        call = ScheduledCall(due_s, priority, next(self._seq), callback)
        heapq.heappush(self._queue, call)
        return call

    def pending(self) -> int:
        return sum(1 for c in self._queue if not c.cancelled)

    def run_due(self) -> int:
        """Run every call that is due now.  Returns how many ran."""

        ran = 0
        now = self._clock.now()
        while self._queue and self._queue[0].due_s <= now:
            call = heapq.heappop(self._queue)
            if call.cancelled:
                continue
            call._run()
            ran += 1
        return ran

    def cancel_all(self) -> None:
        for call in self._queue:
            call.cancel()
        self._queue.clear()
