"""
Counselor Directory

Availability tracking and assignment for the counselor pool.

ARCHITECTURE: The pool's status is the only state shared between
sessions. Assignment and release run under a single asyncio.Lock, so
no two sessions can observe the same counselor as available and both
take it.

Assignment policy:
- CRITICAL: most experienced available counselor
- HIGH: trauma-informed or empathetic counselors first, fastest of those
- Otherwise: fastest available counselor
- None available: fallback to the least-loaded counselor, never blocks
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable

from harbor.config.logging_config import get_logger
from harbor.domain.enums.session import CounselorPersonality, CounselorStatus
from harbor.domain.enums.severity import SessionPriority
from harbor.domain.models.counselor import DEFAULT_COUNSELORS, Counselor
from harbor.errors import AssignmentExhausted
from harbor.infrastructure.metrics import track_assignment

logger = get_logger(__name__)

HIGH_PRIORITY_PERSONALITIES = frozenset({
    CounselorPersonality.TRAUMA_INFORMED,
    CounselorPersonality.EMPATHETIC,
})


@dataclass(frozen=True)
class Assignment:
    """Result of an assignment request."""

    counselor: Counselor
    fallback: bool = False


class CounselorDirectory(ABC):
    """Counselor pool interface."""

    @abstractmethod
    async def assign(self, priority: SessionPriority) -> Assignment:
        """
        Bind a counselor for a session.

        Never raises for capacity; falls back instead.
        """
        pass

    @abstractmethod
    async def release(self, counselor_id: str) -> None:
        """Return a counselor to the pool."""
        pass

    @abstractmethod
    def status(self, counselor_id: str) -> CounselorStatus:
        pass

    @abstractmethod
    def profiles(self) -> list[Counselor]:
        pass


class InMemoryCounselorDirectory(CounselorDirectory):
    """
    Counselor directory over a fixed roster.

    Each counselor takes one session at a time; fallback assignments
    stack additional sessions on the least-loaded counselor.

    Usage:
        directory = InMemoryCounselorDirectory()
        assignment = await directory.assign(SessionPriority.HIGH)
        ...
        await directory.release(assignment.counselor.id)
    """

    def __init__(self, counselors: Iterable[Counselor] = DEFAULT_COUNSELORS) -> None:
        self._roster: list[Counselor] = list(counselors)
        if not self._roster:
            raise ValueError("Counselor roster must not be empty")
        self._status: dict[str, CounselorStatus] = {
            c.id: CounselorStatus.AVAILABLE for c in self._roster
        }
        self._load: dict[str, int] = {c.id: 0 for c in self._roster}
        self._lock = asyncio.Lock()

    def profiles(self) -> list[Counselor]:
        return list(self._roster)

    def status(self, counselor_id: str) -> CounselorStatus:
        return self._status[counselor_id]

    def load(self, counselor_id: str) -> int:
        return self._load[counselor_id]

    def available(self) -> list[Counselor]:
        return [c for c in self._roster if self._status[c.id] == CounselorStatus.AVAILABLE]

    async def set_status(self, counselor_id: str, status: CounselorStatus) -> None:
        """Set a counselor's status directly (shift changes, tests)."""
        async with self._lock:
            if counselor_id not in self._status:
                raise KeyError(counselor_id)
            self._status[counselor_id] = status
        logger.info("Counselor status changed", counselor_id=counselor_id, status=status.value)

    async def assign(self, priority: SessionPriority) -> Assignment:
        async with self._lock:
            try:
                counselor = self._pick(priority)
                fallback = False
            except AssignmentExhausted as e:
                counselor = self._fallback()
                fallback = True
                logger.warning(
                    "Counselor capacity exhausted, using fallback assignment",
                    priority=e.priority,
                    counselor_id=counselor.id,
                    load=self._load[counselor.id],
                )

            self._load[counselor.id] += 1
            if self._status[counselor.id] == CounselorStatus.AVAILABLE:
                self._status[counselor.id] = CounselorStatus.BUSY

        track_assignment(fallback)
        logger.info(
            "Counselor assigned",
            counselor_id=counselor.id,
            priority=priority.label,
            fallback=fallback,
        )
        return Assignment(counselor=counselor, fallback=fallback)

    def _pick(self, priority: SessionPriority) -> Counselor:
        """Strict pick among available counselors. Caller holds the lock."""
        candidates = self.available()
        if not candidates:
            raise AssignmentExhausted(priority.label)

        if priority == SessionPriority.CRITICAL:
            return max(candidates, key=lambda c: c.experience_years)

        if priority == SessionPriority.HIGH:
            preferred = [c for c in candidates if c.personality in HIGH_PRIORITY_PERSONALITIES]
            if preferred:
                return _fastest(preferred)

        return _fastest(candidates)

    def _fallback(self) -> Counselor:
        """Least-loaded counselor, roster order on ties. Caller holds the lock."""
        return min(self._roster, key=lambda c: self._load[c.id])

    async def release(self, counselor_id: str) -> None:
        async with self._lock:
            if counselor_id not in self._load:
                logger.warning("Release for unknown counselor", counselor_id=counselor_id)
                return
            self._load[counselor_id] = max(0, self._load[counselor_id] - 1)
            if self._load[counselor_id] == 0 and self._status[counselor_id] == CounselorStatus.BUSY:
                self._status[counselor_id] = CounselorStatus.AVAILABLE
        logger.debug("Counselor released", counselor_id=counselor_id)

    def stats(self) -> dict[str, int]:
        return {
            "total_counselors": len(self._roster),
            "available_counselors": len(self.available()),
            "assigned_sessions": sum(self._load.values()),
        }


def _fastest(counselors: list[Counselor]) -> Counselor:
    # min() keeps the first of equal elements, so roster order breaks ties
    return min(counselors, key=lambda c: c.avg_response_time_seconds)

