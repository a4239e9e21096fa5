"""Per-question countdown."""

from __future__ import annotations

from typing import Callable, Optional

from .scheduler import Handle, Scheduler

__all__ = ["DEFAULT_QUESTION_SECONDS", "QuestionTimer"]

DEFAULT_QUESTION_SECONDS = 30
_TICK_SECONDS = 1.0


class QuestionTimer:
    """Countdown emitting one tick per elapsed second and expiring once.

    ``on_tick`` receives the remaining seconds after each tick, including
    the final ``0``; ``on_expire`` follows the final tick. Starting a running
    timer cancels the previous countdown, so only one is ever pending.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        *,
        on_tick: Optional[Callable[[int], None]] = None,
        on_expire: Optional[Callable[[], None]] = None,
    ) -> None:
        self._scheduler = scheduler
        self._on_tick = on_tick
        self._on_expire = on_expire
        self._handle: Optional[Handle] = None
        self._remaining = 0
        self._duration = 0

    @property
    def remaining(self) -> int:
        return self._remaining

    @property
    def duration(self) -> int:
        return self._duration

    @property
    def running(self) -> bool:
        return self._handle is not None

    def start(self, duration_seconds: int = DEFAULT_QUESTION_SECONDS) -> None:
        if duration_seconds <= 0:
            raise ValueError("duration_seconds must be positive")
        self.cancel()
        self._duration = duration_seconds
        self._remaining = duration_seconds
        self._handle = self._scheduler.schedule_once(_TICK_SECONDS, self._tick)

    def cancel(self) -> None:
        handle, self._handle = self._handle, None
        if handle is not None:
            handle.cancel()

    def _tick(self) -> None:
        if self._handle is None:
            return
        self._remaining = max(0, self._remaining - 1)
        if self._remaining > 0:
            self._handle = self._scheduler.schedule_once(
                _TICK_SECONDS, self._tick
            )
        else:
            self._handle = None
        if self._on_tick is not None:
            self._on_tick(self._remaining)
        if self._remaining == 0 and self._on_expire is not None:
            self._on_expire()
