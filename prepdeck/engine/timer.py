"""
Countdown timer for assessment sessions.

The timer only does duration bookkeeping. It never knows about sessions; the
controller wires ``on_tick`` and ``on_expired`` to the state machine.

Ticks come from an injected ``TickScheduler`` so the same timer runs on the
asyncio event loop in the CLI and on a manual clock in tests.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Protocol

from loguru import logger


class TickHandle(Protocol):
    """A pending callback registration."""

    def cancel(self) -> None:
        ...


class TickScheduler(Protocol):
    """Something that can run a callback after a delay."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TickHandle:
        ...


class AsyncioTickScheduler:
    """Schedules ticks on the running asyncio event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> TickHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay, callback)


@dataclass
class _ManualHandle:
    due: float
    callback: Callable[[], None]
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualTickScheduler:
    """
    Deterministic scheduler for tests.

    Nothing fires until ``advance()`` moves the fake clock forward; callbacks
    then run in due order, including ones scheduled by earlier callbacks.
    """

    def __init__(self) -> None:
        self.now = 0.0
        self._pending: list[_ManualHandle] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> TickHandle:
        handle = _ManualHandle(due=self.now + delay, callback=callback)
        self._pending.append(handle)
        return handle

    @property
    def pending_count(self) -> int:
        """Number of live (not cancelled, not yet fired) registrations."""
        return sum(1 for h in self._pending if not h.cancelled)

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            live = [h for h in self._pending if not h.cancelled and h.due <= target]
            if not live:
                break
            handle = min(live, key=lambda h: h.due)
            self._pending.remove(handle)
            self.now = handle.due
            handle.callback()
        self._pending = [h for h in self._pending if not h.cancelled]
        self.now = target


class TimerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


class Timer:
    """
    One-second countdown with pause/resume.

    Emits ``on_tick(remaining)`` once per second while running and
    ``on_expired()`` exactly once when remaining reaches zero. ``cancel()``
    may be called any number of times and always drops the pending
    registration.
    """

    TICK_SECONDS = 1.0

    def __init__(
        self,
        scheduler: TickScheduler,
        on_tick: Callable[[int], None] | None = None,
        on_expired: Callable[[], None] | None = None,
    ):
        self._scheduler = scheduler
        self._on_tick = on_tick
        self._on_expired = on_expired
        self._handle: TickHandle | None = None
        self.state = TimerState.IDLE
        self.remaining = 0

    @property
    def is_running(self) -> bool:
        return self.state == TimerState.RUNNING

    def start(self, duration_seconds: int) -> None:
        if self.state != TimerState.IDLE:
            logger.debug(f"Timer.start ignored in state {self.state.value}")
            return
        self.remaining = max(0, int(duration_seconds))
        self.state = TimerState.RUNNING
        if self.remaining == 0:
            self._expire()
            return
        self._schedule()

    def pause(self) -> None:
        if self.state != TimerState.RUNNING:
            return
        self._release()
        self.state = TimerState.PAUSED

    def resume(self) -> None:
        if self.state != TimerState.PAUSED:
            return
        self.state = TimerState.RUNNING
        self._schedule()

    def cancel(self) -> None:
        self._release()
        if self.state in (TimerState.IDLE, TimerState.RUNNING, TimerState.PAUSED):
            self.state = TimerState.CANCELLED

    # -------------------------------------------------------------------------

    def _schedule(self) -> None:
        self._handle = self._scheduler.call_later(self.TICK_SECONDS, self._fire)

    def _release(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        if self.state != TimerState.RUNNING:
            # Late tick after pause/cancel
            return

        remaining = self.remaining - 1
        if remaining < 0:
            logger.warning(f"Timer desync: remaining would be {remaining}, clamping to 0")
            remaining = 0
        self.remaining = remaining

        if self._on_tick is not None:
            self._on_tick(self.remaining)

        # on_tick may have cancelled us
        if self.state != TimerState.RUNNING:
            return
        if self.remaining == 0:
            self._expire()
        else:
            self._schedule()

    def _expire(self) -> None:
        self._release()
        self.state = TimerState.EXPIRED
        if self._on_expired is not None:
            self._on_expired()
