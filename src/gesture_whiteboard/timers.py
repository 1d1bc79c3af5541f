"""Single-shot deferred callbacks for the stroke stop debounce.

The stroke state machine only needs ``call_later(delay, callback)`` returning
a handle with ``cancel()``. A running asyncio event loop already provides
exactly that, so live sessions pass the loop itself. ``ManualScheduler`` is a
virtual clock with the same surface, used for replaying recorded sessions
and in tests, where time only moves when the caller advances it.

Usage:
    scheduler = ManualScheduler()
    handle = scheduler.call_later(0.03, on_timeout)
    scheduler.advance(0.03)   # fires on_timeout
"""

from __future__ import annotations

import itertools
from typing import Any, Callable, Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle: ...


class ScheduledCall:
    """A pending callback on a ManualScheduler."""

    __slots__ = ("when", "seq", "_callback", "_args", "_cancelled")

    def __init__(self, when: float, seq: int, callback: Callable[..., Any], args: tuple):
        self.when = when
        self.seq = seq
        self._callback = callback
        self._args = args
        self._cancelled = False

    def cancel(self):
        self._cancelled = True

    def cancelled(self) -> bool:
        return self._cancelled

    def _run(self):
        self._callback(*self._args)


class ManualScheduler:
    """Deterministic scheduler driven by an explicit clock.

    Calls fire in (due time, scheduling order) when the clock is advanced
    past their due time. A callback may schedule further calls; those fire
    in the same ``advance`` if they also fall due.
    """

    # Absorbs float drift between recorded timestamps and summed delays
    EPSILON = 1e-9

    def __init__(self, start: float = 0.0):
        self._now = start
        self._pending: list[ScheduledCall] = []
        self._counter = itertools.count()

    def time(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> ScheduledCall:
        call = ScheduledCall(self._now + max(0.0, delay), next(self._counter), callback, args)
        self._pending.append(call)
        return call

    def advance(self, seconds: float) -> int:
        """Move the clock forward by ``seconds``. Returns the number of calls fired."""
        return self.advance_to(self._now + seconds)

    def advance_to(self, timestamp: float) -> int:
        """Move the clock to ``timestamp`` (never backwards), firing due calls."""
        fired = 0
        while True:
            self._pending = [c for c in self._pending if not c.cancelled()]
            due = [c for c in self._pending if c.when <= timestamp + self.EPSILON]
            if not due:
                break
            call = min(due, key=lambda c: (c.when, c.seq))
            self._pending.remove(call)
            self._now = max(self._now, call.when)
            call._run()
            fired += 1

        self._now = max(self._now, timestamp)
        return fired

    @property
    def pending_count(self) -> int:
        return sum(1 for c in self._pending if not c.cancelled())
