"""
Timer Service

Scheduler abstraction for every delayed action in a session: queue
updates, typing auto-stop, reply delays, inactivity timeout and
emergency dispatch.

ARCHITECTURE: Sessions depend on the TimerService interface only.
AsyncioTimerService runs on the event loop; VirtualTimerService
fast-forwards time deterministically for tests and simulations.
"""

import asyncio
import heapq
import inspect
import itertools
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Optional, Union

from harbor.config.logging_config import get_logger
from harbor.infrastructure.scheduling.clock import Clock

logger = get_logger(__name__)

TimerCallback = Callable[[], Union[None, Awaitable[None]]]


class TimerHandle:
    """
    Handle to a scheduled callback.

    Cancelling a handle guarantees its callback will not start
    afterwards. Repeating timers stay armed until cancelled.
    """

    def __init__(self, name: str, repeat_interval: Optional[float] = None) -> None:
        self.name = name
        self.repeat_interval = repeat_interval
        self.fire_count = 0
        self._cancelled = False
        self._on_cancel: Optional[Callable[[], None]] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def active(self) -> bool:
        """Whether the callback may still fire."""
        if self._cancelled:
            return False
        return self.repeat_interval is not None or self.fire_count == 0

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        if self._on_cancel is not None:
            self._on_cancel()
            self._on_cancel = None

    def __repr__(self) -> str:
        return f"<TimerHandle {self.name} fired={self.fire_count} cancelled={self._cancelled}>"


class TimerService(ABC):
    """Abstract scheduler."""

    @abstractmethod
    def call_later(self, delay: float, callback: TimerCallback, name: str = "timer") -> TimerHandle:
        """Run callback once after delay seconds."""
        pass

    @abstractmethod
    def call_every(self, interval: float, callback: TimerCallback, name: str = "timer") -> TimerHandle:
        """Run callback every interval seconds until cancelled."""
        pass


async def _invoke(callback: TimerCallback) -> None:
    result = callback()
    if inspect.isawaitable(result):
        await result


class AsyncioTimerService(TimerService):
    """
    TimerService backed by the running asyncio event loop.

    Coroutine callbacks run as tasks; exceptions are logged with
    the timer name rather than lost in the loop's default handler.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task] = set()

    def _spawn(self, handle: TimerHandle, callback: TimerCallback) -> None:
        if handle.cancelled:
            return
        handle.fire_count += 1
        task = asyncio.get_running_loop().create_task(self._run(handle, callback))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, handle: TimerHandle, callback: TimerCallback) -> None:
        # Cancelled between spawn and first step
        if handle.cancelled:
            return
        try:
            await _invoke(callback)
        except Exception as e:
            logger.error("Timer callback failed", timer=handle.name, error=str(e))

    def call_later(self, delay: float, callback: TimerCallback, name: str = "timer") -> TimerHandle:
        handle = TimerHandle(name)
        loop = asyncio.get_running_loop()
        scheduled = loop.call_later(max(0.0, delay), self._spawn, handle, callback)
        handle._on_cancel = scheduled.cancel
        return handle

    def call_every(self, interval: float, callback: TimerCallback, name: str = "timer") -> TimerHandle:
        if interval <= 0:
            raise ValueError("interval must be positive")
        handle = TimerHandle(name, repeat_interval=interval)
        loop = asyncio.get_running_loop()
        current: dict[str, Any] = {}

        def tick() -> None:
            if handle.cancelled:
                return
            current["scheduled"] = loop.call_later(interval, tick)
            self._spawn(handle, callback)

        current["scheduled"] = loop.call_later(interval, tick)
        handle._on_cancel = lambda: current["scheduled"].cancel()
        return handle

    async def drain(self) -> None:
        """Wait for callbacks that are already running."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


class VirtualTimerService(TimerService, Clock):
    """
    Deterministic scheduler with its own virtual clock.

    Time only moves when advance() is called. Due callbacks run in
    (due time, scheduling order) order and coroutine callbacks are
    awaited inline, so every side effect is visible when advance()
    returns.

    Usage:
        timers = VirtualTimerService()
        timers.call_later(2.0, callback)
        await timers.advance(2.0)
    """

    def __init__(self, start: Optional[datetime] = None) -> None:
        self._start = start or datetime(2024, 1, 1, tzinfo=timezone.utc)
        self._elapsed = 0.0
        self._queue: list[tuple[float, int, TimerHandle, TimerCallback]] = []
        self._sequence = itertools.count()

    # Clock interface

    def now(self) -> datetime:
        return self._start + timedelta(seconds=self._elapsed)

    def monotonic(self) -> float:
        return self._elapsed

    # TimerService interface

    def _push(self, due: float, handle: TimerHandle, callback: TimerCallback) -> None:
        heapq.heappush(self._queue, (due, next(self._sequence), handle, callback))

    def call_later(self, delay: float, callback: TimerCallback, name: str = "timer") -> TimerHandle:
        handle = TimerHandle(name)
        self._push(self._elapsed + max(0.0, delay), handle, callback)
        return handle

    def call_every(self, interval: float, callback: TimerCallback, name: str = "timer") -> TimerHandle:
        if interval <= 0:
            raise ValueError("interval must be positive")
        handle = TimerHandle(name, repeat_interval=interval)
        self._push(self._elapsed + interval, handle, callback)
        return handle

    @property
    def pending(self) -> list[TimerHandle]:
        """Handles that may still fire."""
        return [h for _, _, h, _ in self._queue if not h.cancelled]

    async def advance(self, seconds: float) -> None:
        """Move time forward, firing every callback that comes due."""
        target = self._elapsed + seconds
        while self._queue and self._queue[0][0] <= target:
            due, _, handle, callback = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self._elapsed = max(self._elapsed, due)
            handle.fire_count += 1
            if handle.repeat_interval is not None:
                self._push(due + handle.repeat_interval, handle, callback)
            try:
                await _invoke(callback)
            except Exception as e:
                logger.error("Timer callback failed", timer=handle.name, error=str(e))
        self._elapsed = target

    async def run_until_idle(self, limit: float = 3600.0) -> None:
        """Advance until no one-shot timers remain, up to limit seconds."""
        deadline = self._elapsed + limit
        while self._elapsed < deadline:
            one_shots = [
                due for due, _, h, _ in self._queue
                if not h.cancelled and h.repeat_interval is None
            ]
            if not one_shots:
                return
            await self.advance(max(0.0, min(one_shots) - self._elapsed))
