# pollgrid/util/timers.py
"""Delayed-callback helpers shared by the long-press timer and autosave.

Callers hold a `Scheduler`; production code uses `ThreadingScheduler`, tests
drive a `ManualScheduler` forward explicitly so nothing ever sleeps.

`ThreadingScheduler` runs callbacks on timer threads, and a cancel can lose
the race with a callback that already started. Callers lock their state and
ignore callbacks that no longer match the pending timer.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Callable, List, Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None:
        """Prevent the callback from running if it has not run yet."""


class Scheduler(Protocol):
    def call_later(self, delay_ms: int, fn: Callable[[], None]) -> TimerHandle:
        """Run `fn` once after `delay_ms` milliseconds."""


class _ThreadingHandle:
    def __init__(self, timer: threading.Timer) -> None:
        self._timer = timer

    def cancel(self) -> None:
        self._timer.cancel()


class ThreadingScheduler:
    def call_later(self, delay_ms: int, fn: Callable[[], None]) -> TimerHandle:
        t = threading.Timer(max(0, int(delay_ms)) / 1000.0, fn)
        t.daemon = True
        t.start()
        return _ThreadingHandle(t)


@dataclass
class _ManualTimer:
    due_ms: int
    seq: int
    fn: Callable[[], None]
    cancelled: bool = False
    fired: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass
class ManualScheduler:
    """Deterministic scheduler: time only moves on `advance()`."""

    now_ms: int = 0
    _timers: List[_ManualTimer] = field(default_factory=list)
    _seq: int = 0

    def call_later(self, delay_ms: int, fn: Callable[[], None]) -> TimerHandle:
        self._seq += 1
        t = _ManualTimer(due_ms=self.now_ms + max(0, int(delay_ms)), seq=self._seq, fn=fn)
        self._timers.append(t)
        return t

    def pending(self) -> int:
        return sum(1 for t in self._timers if not t.cancelled and not t.fired)

    def advance(self, ms: int) -> None:
        target = self.now_ms + int(ms)
        while True:
            due = [t for t in self._timers if not t.cancelled and not t.fired and t.due_ms <= target]
            if not due:
                break
            t = min(due, key=lambda x: (x.due_ms, x.seq))
            self.now_ms = t.due_ms
            t.fired = True
            t.fn()
        self.now_ms = target
        self._timers = [t for t in self._timers if not t.cancelled and not t.fired]
