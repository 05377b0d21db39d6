"""Scheduling infrastructure package."""

from harbor.infrastructure.scheduling.clock import Clock, SystemClock
from harbor.infrastructure.scheduling.timers import (
    TimerHandle,
    TimerService,
    AsyncioTimerService,
    VirtualTimerService,
)

__all__ = [
    "Clock",
    "SystemClock",
    "TimerHandle",
    "TimerService",
    "AsyncioTimerService",
    "VirtualTimerService",
]
