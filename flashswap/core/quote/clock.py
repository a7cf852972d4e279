"""
Scheduling clocks

Every debounce window and the periodic refresh timer are scheduled through a
single ``Clock``. ``LoopClock`` runs on the asyncio event loop;
``ManualClock`` is a virtual timeline that only moves when ``advance`` is
awaited, which makes the refresh flow deterministic under test.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional, Protocol, Tuple


# Float drift from summed debounce windows must not push a due timer past
# the end of an advance() call.
_EPSILON = 1e-9

# Event loop iterations granted to tasks after each virtual timer fires.
_SETTLE_ROUNDS = 10


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Clock(ABC):
    """Time source and timer factory shared by the refresh components."""

    @abstractmethod
    def time(self) -> float:
        """Current time in seconds."""

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle:
        """Run ``callback(*args)`` once ``delay`` seconds have elapsed."""

    @abstractmethod
    async def sleep(self, delay: float) -> None:
        """Suspend the calling task for ``delay`` seconds of this clock's time."""


class LoopClock(Clock):
    """Clock backed by the running asyncio event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def time(self) -> float:
        return self.loop.time()

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle:
        return self.loop.call_later(max(0.0, delay), callback, *args)

    async def sleep(self, delay: float) -> None:
        await asyncio.sleep(delay)


class _ManualTimer:
    __slots__ = ("due", "callback", "args", "cancelled")

    def __init__(self, due: float, callback: Callable[..., Any], args: Tuple[Any, ...]) -> None:
        self.due = due
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualClock(Clock):
    """Virtual clock. Time only moves inside :meth:`advance`.

    Timers fire in due-time order, FIFO among equal due times. After each
    timer the event loop is given a few iterations so that tasks woken by it
    (for example a fetch whose simulated latency just elapsed) run before the
    next timer fires.
    """

    def __init__(self, start: float = 0.0) -> None:
        self._now = start
        self._seq = itertools.count()
        self._queue: List[Tuple[float, int, _ManualTimer]] = []

    def time(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle:
        timer = _ManualTimer(self._now + max(0.0, delay), callback, args)
        heapq.heappush(self._queue, (timer.due, next(self._seq), timer))
        return timer

    async def sleep(self, delay: float) -> None:
        future = asyncio.get_running_loop().create_future()
        self.call_later(delay, _resolve, future)
        await future

    @property
    def pending(self) -> int:
        """Number of scheduled, not yet cancelled timers."""
        return sum(1 for _, _, timer in self._queue if not timer.cancelled)

    async def advance(self, seconds: float) -> None:
        """Move time forward by ``seconds``, firing every timer that falls due."""
        if seconds < 0:
            raise ValueError("cannot move a clock backwards")
        target = self._now + seconds
        await self.settle()
        while self._queue and self._queue[0][0] <= target + _EPSILON:
            due, _, timer = heapq.heappop(self._queue)
            if timer.cancelled:
                continue
            self._now = max(self._now, due)
            timer.callback(*timer.args)
            await self.settle()
        self._now = max(self._now, target)

    async def settle(self) -> None:
        """Let ready tasks and callbacks on the event loop run."""
        for _ in range(_SETTLE_ROUNDS):
            await asyncio.sleep(0)


def _resolve(future: "asyncio.Future[None]") -> None:
    if not future.done():
        future.set_result(None)
