"""
Persistence / Sync Adapter

Durably records assessments, interactions, session summaries and
safety plans without ever blocking a session.

ARCHITECTURE:
- record_* calls are synchronous and never raise; the record is
  buffered locally and a background flush is started
- Flushes write oldest-first per record type, retrying with tenacity
- A failed write stays at the head of its buffer and is replayed
  on the next flush or when the transport reports restoration
- Buffers are bounded; when full the oldest record is dropped
  with a warning

PRIVACY: Records are logged by id and type only.
"""

import asyncio
from collections import deque
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Awaitable, Callable, Optional

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from harbor.config.logging_config import get_logger
from harbor.config.settings import PersistenceSettings
from harbor.domain.models.emergency import CrisisInteraction
from harbor.domain.models.resource import SafetyPlan
from harbor.domain.models.risk import RiskAssessment
from harbor.errors import PersistenceFailure
from harbor.infrastructure.metrics.prometheus_metrics import (
    PERSISTENCE_BUFFERED,
    track_persistence,
)
from harbor.infrastructure.scheduling.clock import Clock, SystemClock
from harbor.infrastructure.transport.base import ConnectionObserver
from harbor.services.persistence.stores import RecordStore
from harbor.services.persistence.trends import TrendReport, analyze_trends

logger = get_logger(__name__)

# Flush order; assessments first so escalation history lands before summaries
RECORD_TYPES = ("assessment", "interaction", "session_summary", "safety_plan")


@dataclass
class PendingWrite:
    """A buffered record and the store call that persists it."""

    record_type: str
    record_id: str
    write: Callable[[], Awaitable[None]]
    payload: Any = None
    session_id: Optional[str] = None
    attempts: int = 0


class PersistenceAdapter(ConnectionObserver):
    """
    Fire-and-forget persistence with local buffering and replay.

    Usage:
        adapter = PersistenceAdapter(InMemoryRecordStore())
        transport.add_connection_observer(adapter)
        adapter.record_assessment(session_id, assessment)
        await adapter.drain()
    """

    def __init__(
        self,
        store: RecordStore,
        settings: Optional[PersistenceSettings] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._store = store
        self._settings = settings or PersistenceSettings()
        self._clock = clock or SystemClock()
        self._limits = {
            "assessment": self._settings.max_buffered_assessments,
            "interaction": self._settings.max_buffered_interactions,
            "session_summary": self._settings.max_buffered_interactions,
            "safety_plan": self._settings.max_buffered_assessments,
        }
        self._buffers: dict[str, deque[PendingWrite]] = {
            record_type: deque() for record_type in RECORD_TYPES
        }
        self._online = True
        self._lock = asyncio.Lock()
        self._flush_task: Optional[asyncio.Task] = None

    @property
    def store(self) -> RecordStore:
        return self._store

    @property
    def online(self) -> bool:
        return self._online

    @property
    def buffered_count(self) -> int:
        return sum(len(buffer) for buffer in self._buffers.values())

    def buffered(self, record_type: str) -> list[Any]:
        """Payloads waiting in one buffer, oldest first."""
        return [pending.payload for pending in self._buffers[record_type]]

    # =========================================================================
    # Recording (never blocks, never raises)
    # =========================================================================

    def record_assessment(self, session_id: Optional[str], assessment: RiskAssessment) -> None:
        """Append an assessment to the session's log."""
        self._enqueue(PendingWrite(
            record_type="assessment",
            record_id=str(assessment.id),
            write=lambda: self._store.append_assessment(session_id, assessment),
            payload=assessment,
            session_id=session_id,
        ))

    def record_interaction(self, interaction: CrisisInteraction) -> None:
        """Append a crisis interaction."""
        self._enqueue(PendingWrite(
            record_type="interaction",
            record_id=interaction.id,
            write=lambda: self._store.append_interaction(interaction),
            payload=interaction,
        ))

    def record_session_summary(self, summary: dict[str, Any]) -> None:
        """Store the final summary of an ended session."""
        self._enqueue(PendingWrite(
            record_type="session_summary",
            record_id=summary["session_id"],
            write=lambda: self._store.save_session_summary(summary),
            payload=summary,
        ))

    def record_safety_plan(self, plan: SafetyPlan) -> None:
        """Insert or replace a safety plan."""
        self._enqueue(PendingWrite(
            record_type="safety_plan",
            record_id=plan.id,
            write=lambda: self._store.save_safety_plan(plan),
            payload=plan,
        ))

    def _enqueue(self, pending: PendingWrite) -> None:
        buffer = self._buffers[pending.record_type]
        if len(buffer) >= self._limits[pending.record_type]:
            dropped = buffer.popleft()
            logger.warning(
                "Persistence buffer full, dropping oldest record",
                record_type=dropped.record_type,
                record_id=dropped.record_id,
                limit=self._limits[pending.record_type],
            )
            track_persistence(dropped.record_type, "dropped")
        buffer.append(pending)
        PERSISTENCE_BUFFERED.set(self.buffered_count)
        self._kick()

    def _kick(self) -> None:
        if not self._online:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop yet; records wait for drain() or replay()
            return
        if self._flush_task is None or self._flush_task.done():
            self._flush_task = loop.create_task(self._flush(replaying=False))

    # =========================================================================
    # Flushing
    # =========================================================================

    async def _write(self, pending: PendingWrite) -> None:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._settings.retry_attempts),
            wait=wait_exponential(
                multiplier=1,
                min=self._settings.retry_min_wait,
                max=self._settings.retry_max_wait,
            ),
            retry=retry_if_exception_type(PersistenceFailure),
            reraise=True,
        ):
            with attempt:
                pending.attempts += 1
                await pending.write()

    async def _flush(self, replaying: bool) -> int:
        """
        Write buffered records oldest-first.

        Stops at the first record that still fails after retries so
        per-type order is preserved.

        Returns:
            Number of records written
        """
        written = 0
        async with self._lock:
            for record_type in self._pass_order():
                buffer = self._buffers[record_type]
                while buffer:
                    pending = buffer[0]
                    try:
                        await self._write(pending)
                    except PersistenceFailure as e:
                        logger.error(
                            "Persistence write failed, record kept for replay",
                            record_type=record_type,
                            record_id=pending.record_id,
                            attempts=pending.attempts,
                            error=str(e),
                        )
                        track_persistence(record_type, "buffered")
                        PERSISTENCE_BUFFERED.set(self.buffered_count)
                        return written
                    # The head may have been dropped while the write was in flight
                    if buffer and buffer[0] is pending:
                        buffer.popleft()
                    written += 1
                    track_persistence(record_type, "replayed" if replaying else "stored")
        PERSISTENCE_BUFFERED.set(self.buffered_count)
        return written

    def _pass_order(self):
        # Repeat passes while records keep arriving behind the cursor
        while any(self._buffers.values()):
            yield from RECORD_TYPES

    async def replay(self) -> int:
        """Write every buffered record now."""
        written = await self._flush(replaying=True)
        if written:
            logger.info("Persistence replay completed", written=written, remaining=self.buffered_count)
        return written

    async def drain(self) -> int:
        """Wait for the background flush, then flush whatever is left."""
        if self._flush_task is not None and not self._flush_task.done():
            await self._flush_task
        if not self._online:
            return 0
        return await self._flush(replaying=False)

    # =========================================================================
    # ConnectionObserver
    # =========================================================================

    async def on_connection_lost(self) -> None:
        self._online = False
        logger.info("Persistence switched to local buffering", buffered=self.buffered_count)

    async def on_connection_restored(self) -> None:
        self._online = True
        await self.replay()

    # =========================================================================
    # Read side
    # =========================================================================

    async def recent_assessments(
        self,
        session_id: Optional[str] = None,
        days: Optional[int] = None,
    ) -> list[RiskAssessment]:
        """
        Stored assessments merged with those still buffered.

        Falls back to the buffer alone when the store is unreachable.
        """
        since = self._clock.now() - timedelta(days=days) if days is not None else None
        try:
            stored = await self._store.list_assessments(session_id=session_id, since=since)
        except PersistenceFailure as e:
            logger.warning("Assessment history unavailable, using local buffer", error=str(e))
            stored = []

        merged = {str(a.id): a for a in stored}
        for pending in self._buffers["assessment"]:
            assessment = pending.payload
            if session_id is not None and pending.session_id != session_id:
                continue
            if since is not None and assessment.timestamp < since:
                continue
            merged.setdefault(str(assessment.id), assessment)

        return sorted(merged.values(), key=lambda a: a.timestamp)

    async def trend_report(self, session_id: Optional[str] = None, days: int = 7) -> TrendReport:
        """Trend summary over the trailing window."""
        assessments = await self.recent_assessments(session_id=session_id, days=days)
        return analyze_trends(assessments, days=days, now=self._clock.now())

    async def get_active_safety_plan(self, user_id: str) -> Optional[SafetyPlan]:
        """Most recent active plan, preferring one not yet written."""
        buffered = [
            p.payload for p in reversed(self._buffers["safety_plan"])
            if p.payload.user_id == user_id and p.payload.is_active
        ]
        if buffered:
            return buffered[0]
        try:
            return await self._store.get_active_safety_plan(user_id)
        except PersistenceFailure as e:
            logger.warning("Safety plan lookup failed", error=str(e))
            return None
