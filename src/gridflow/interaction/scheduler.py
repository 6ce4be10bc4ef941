"""Single-shot deferred callbacks for the grouping timer.

The grouping state machine never touches a clock directly; it asks a
``Scheduler`` for a cancellable callback. Hosts plug in whatever drives
their event loop. ``ManualScheduler`` runs on a virtual clock, which keeps
tests and replay tools deterministic.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
from collections.abc import Callable
from typing import Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> TimerHandle: ...


class ManualTimer:
    """Handle returned by ``ManualScheduler``."""

    def __init__(self, due_ms: int, callback: Callable[[], None]):
        self.due_ms = due_ms
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.fired)


class ManualScheduler:
    """Virtual clock; callbacks fire only when ``advance`` moves time past them."""

    def __init__(self) -> None:
        self.now_ms = 0
        self._queue: list[tuple[int, int, ManualTimer]] = []
        self._counter = itertools.count()

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(self.now_ms + max(0, delay_ms), callback)
        heapq.heappush(self._queue, (timer.due_ms, next(self._counter), timer))
        return timer

    def advance(self, ms: int) -> int:
        """Move the clock forward by ``ms`` and fire everything now due.

        Returns:
            Number of callbacks fired.
        """
        target = self.now_ms + ms
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, timer = heapq.heappop(self._queue)
            if timer.cancelled:
                continue
            self.now_ms = due
            timer.fired = True
            timer.callback()
            fired += 1
        self.now_ms = target
        return fired

    @property
    def pending(self) -> int:
        return sum(1 for _, _, timer in self._queue if timer.pending)


class AsyncioScheduler:
    """Adapts an asyncio event loop's ``call_later``."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self.loop.call_later(max(0, delay_ms) / 1000.0, callback)
