"""
Clock Interface

Source of wall-clock time for every component that timestamps
records or measures windows. Tests substitute a virtual clock.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
import time


class Clock(ABC):
    """Abstract time source."""

    @abstractmethod
    def now(self) -> datetime:
        """Current UTC time."""
        pass

    @abstractmethod
    def monotonic(self) -> float:
        """Monotonic seconds for measuring intervals."""
        pass


class SystemClock(Clock):
    """Clock backed by the operating system."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def monotonic(self) -> float:
        return time.monotonic()
