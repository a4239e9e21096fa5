"""Scheduling capability injected into the quiz session.

The session never sleeps; it asks a :class:`Scheduler` to run a callback
once after a delay and keeps the returned handle so it can cancel it.
:class:`VirtualScheduler` advances a fake clock for tests and scripted
runs; :class:`TextualScheduler` delegates to ``set_timer`` on a running
Textual app or widget.
"""

from __future__ import annotations

import heapq
import itertools
from dataclasses import dataclass, field
from typing import Any, Callable, Protocol

__all__ = [
    "Callback",
    "Handle",
    "Scheduler",
    "VirtualScheduler",
    "TextualScheduler",
]

Callback = Callable[[], None]


class Handle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def schedule_once(self, delay: float, callback: Callback) -> Handle: ...


@dataclass(order=True)
class _VirtualEntry:
    due: float
    sequence: int
    callback: Callback = field(compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True


class VirtualScheduler:
    """Deterministic scheduler driven by :meth:`advance`.

    Callbacks due at the same instant run in scheduling order. Callbacks
    scheduled while advancing run in the same call when they fall due
    before the target time.
    """

    def __init__(self) -> None:
        self._now = 0.0
        self._queue: list[_VirtualEntry] = []
        self._counter = itertools.count()

    @property
    def now(self) -> float:
        return self._now

    def schedule_once(self, delay: float, callback: Callback) -> Handle:
        if delay < 0:
            raise ValueError("delay must be >= 0")
        entry = _VirtualEntry(self._now + delay, next(self._counter), callback)
        heapq.heappush(self._queue, entry)
        return entry

    def pending(self) -> int:
        return sum(1 for entry in self._queue if not entry.cancelled)

    def advance(self, seconds: float) -> int:
        """Move the clock forward, returning how many callbacks ran."""

        if seconds < 0:
            raise ValueError("seconds must be >= 0")
        target = self._now + seconds
        ran = 0
        while self._queue and self._queue[0].due <= target:
            entry = heapq.heappop(self._queue)
            if entry.cancelled:
                continue
            self._now = entry.due
            entry.callback()
            ran += 1
        self._now = target
        return ran

    def run_until_idle(self, *, limit: int = 10_000) -> int:
        """Run every pending callback, including ones scheduled on the way."""

        ran = 0
        while self.pending():
            if ran >= limit:
                raise RuntimeError("Scheduler did not become idle")
            entry = self._queue[0]
            ran += self.advance(max(0.0, entry.due - self._now))
        return ran


class _TextualHandle:
    def __init__(self, timer: Any) -> None:
        self._timer = timer

    def cancel(self) -> None:
        self._timer.stop()


class TextualScheduler:
    """Adapter over Textual's ``set_timer`` (apps, screens and widgets)."""

    def __init__(self, owner: Any) -> None:
        self._owner = owner

    def schedule_once(self, delay: float, callback: Callback) -> Handle:
        return _TextualHandle(self._owner.set_timer(delay, callback))
