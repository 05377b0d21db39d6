"""
Crisis Session Service

Process-wide owner of the session registry and the inbound API:
createSession, submitMessage, submitAssessmentAnswers, endSession.

ARCHITECTURE: Constructed once per process and passed to callers
(the FastAPI app keeps it on app.state). There is no ambient global
state; each session is mutated only through its own state machine.
"""

from collections import OrderedDict
from typing import Any, Mapping, Optional

from harbor.config.logging_config import get_logger
from harbor.config.settings import Settings
from harbor.domain.enums.severity import SessionPriority
from harbor.domain.models.session import Session
from harbor.errors import SessionNotFound
from harbor.infrastructure.database.connection import get_db_manager
from harbor.infrastructure.metrics import DROPPED_MESSAGES, track_session_started
from harbor.infrastructure.scheduling.clock import Clock, SystemClock
from harbor.infrastructure.scheduling.timers import AsyncioTimerService, TimerService
from harbor.infrastructure.transport.base import MessageTransport
from harbor.infrastructure.transport.memory import InMemoryTransport
from harbor.services.escalation.coordinator import EscalationCoordinator
from harbor.services.escalation.protocols import EmergencyDispatcher, SimulatedEmergencyDispatcher
from harbor.services.persistence.stores import DatabaseRecordStore, InMemoryRecordStore, RecordStore
from harbor.services.persistence.sync_adapter import PersistenceAdapter
from harbor.services.resources.catalog import ResourceCatalog
from harbor.services.scoring.risk_scorer import RiskScorer
from harbor.services.session.counselor_directory import CounselorDirectory, InMemoryCounselorDirectory
from harbor.services.session.responder import CounselorResponder, JitterSource
from harbor.services.session.state_machine import CrisisSession, SessionDependencies, SubmitOutcome

logger = get_logger(__name__)

# Ended sessions kept for read-only lookups
MAX_ENDED_SESSIONS = 500


def build_dependencies(
    settings: Settings,
    *,
    transport: Optional[MessageTransport] = None,
    timers: Optional[TimerService] = None,
    clock: Optional[Clock] = None,
    store: Optional[RecordStore] = None,
    directory: Optional[CounselorDirectory] = None,
    dispatcher: Optional[EmergencyDispatcher] = None,
    jitter: Optional[JitterSource] = None,
) -> SessionDependencies:
    """
    Wire session collaborators from settings.

    Any collaborator can be supplied to replace the default; tests pass
    a VirtualTimerService, which doubles as the clock.
    """
    timers = timers or AsyncioTimerService()
    if clock is None:
        clock = timers if isinstance(timers, Clock) else SystemClock()
    transport = transport or InMemoryTransport(clock=clock)

    if store is None:
        if settings.persistence.backend == "database":
            store = DatabaseRecordStore(get_db_manager())
        else:
            store = InMemoryRecordStore()
    persistence = PersistenceAdapter(store, settings.persistence, clock)
    transport.add_connection_observer(persistence)

    return SessionDependencies(
        scorer=RiskScorer(
            text_thresholds=settings.scoring.text_thresholds(),
            answer_thresholds=settings.scoring.answer_thresholds(),
            clock=clock,
        ),
        coordinator=EscalationCoordinator(
            dedup_window_seconds=settings.escalation.dedup_window_seconds,
            handoff_consecutive_high=settings.escalation.handoff_consecutive_high,
            clock=clock,
        ),
        directory=directory or InMemoryCounselorDirectory(),
        responder=CounselorResponder(
            per_char_delay=settings.session.reply_delay_per_char,
            delay_cap=settings.session.reply_delay_cap,
            jitter=jitter,
        ),
        transport=transport,
        timers=timers,
        clock=clock,
        persistence=persistence,
        catalog=ResourceCatalog(extension_path=settings.resources_file, clock=clock),
        dispatcher=dispatcher or SimulatedEmergencyDispatcher(transport),
        session_settings=settings.session,
        escalation_settings=settings.escalation,
    )


class CrisisSessionService:
    """
    Registry of live crisis sessions.

    Messages for unknown or ended sessions are dropped with a warning;
    the inbound methods return None in that case.

    Usage:
        service = CrisisSessionService(build_dependencies(get_settings()))
        session_id = await service.create_session("device-123")
        await service.submit_message(session_id, "I feel really sad today")
        await service.end_session(session_id)
    """

    def __init__(self, deps: SessionDependencies) -> None:
        self._deps = deps
        self._sessions: dict[str, CrisisSession] = {}
        self._ended: OrderedDict[str, CrisisSession] = OrderedDict()

    @property
    def deps(self) -> SessionDependencies:
        return self._deps

    @property
    def transport(self) -> MessageTransport:
        return self._deps.transport

    @property
    def catalog(self) -> ResourceCatalog:
        return self._deps.catalog

    @property
    def persistence(self) -> PersistenceAdapter:
        return self._deps.persistence

    @property
    def active_count(self) -> int:
        return len(self._sessions)

    # =========================================================================
    # Inbound API
    # =========================================================================

    async def create_session(
        self,
        user_id: str,
        priority: Optional[SessionPriority] = None,
    ) -> str:
        """
        Create and queue a new session.

        Args:
            user_id: User or anonymous device id
            priority: Initial priority, LOW when omitted

        Returns:
            New session id
        """
        now = self._deps.clock.now()
        session = Session(
            user_id=user_id,
            created_at=now,
            last_activity_at=now,
            priority=priority or SessionPriority.LOW,
        )
        crisis = CrisisSession(session, self._deps, on_ended=self._session_ended)
        self._sessions[session.session_id] = crisis
        self._deps.transport.open_session(session.session_id)

        track_session_started()
        logger.info("Crisis session created", session_id=session.session_id, priority=session.priority.label)

        await crisis.start()
        return session.session_id

    async def submit_message(self, session_id: str, text: str) -> Optional[SubmitOutcome]:
        """Route an inbound user message to its session."""
        crisis = self._route(session_id, "message")
        if crisis is None:
            return None
        return await crisis.submit_message(text)

    async def submit_assessment_answers(
        self,
        session_id: str,
        answers: Mapping[str, int],
    ) -> Optional[SubmitOutcome]:
        """Route structured assessment answers to their session."""
        crisis = self._route(session_id, "assessment")
        if crisis is None:
            return None
        return await crisis.submit_answers(answers)

    async def set_user_typing(self, session_id: str, is_typing: bool) -> bool:
        crisis = self._route(session_id, "typing")
        if crisis is None:
            return False
        await crisis.set_user_typing(is_typing)
        return True

    async def acknowledge_escalation(self, session_id: str) -> bool:
        crisis = self._route(session_id, "acknowledge")
        if crisis is None:
            return False
        return await crisis.acknowledge_escalation()

    async def end_session(self, session_id: str, reason: str = "user") -> bool:
        """
        End a session.

        Returns:
            True if the session was live and is now ended
        """
        crisis = self._route(session_id, "end")
        if crisis is None:
            return False
        return await crisis.end(reason)

    # =========================================================================
    # Lookup
    # =========================================================================

    def get_session(self, session_id: str) -> CrisisSession:
        """
        Get a live session.

        Raises:
            SessionNotFound: Unknown or ended session
        """
        crisis = self._sessions.get(session_id)
        if crisis is None:
            reason = "session ended" if session_id in self._ended else "unknown session"
            raise SessionNotFound(session_id, reason)
        return crisis

    def get_snapshot(self, session_id: str) -> dict[str, Any]:
        """
        Read-only view of a live or recently ended session.

        Raises:
            SessionNotFound: Session never existed or was evicted
        """
        crisis = self._sessions.get(session_id) or self._ended.get(session_id)
        if crisis is None:
            raise SessionNotFound(session_id)
        return crisis.snapshot()

    def _route(self, session_id: str, kind: str) -> Optional[CrisisSession]:
        try:
            return self.get_session(session_id)
        except SessionNotFound as e:
            DROPPED_MESSAGES.inc()
            logger.warning("Inbound dropped", session_id=session_id, kind=kind, reason=e.reason)
            return None

    def _session_ended(self, session_id: str) -> None:
        crisis = self._sessions.pop(session_id, None)
        if crisis is None:
            return
        self._ended[session_id] = crisis
        while len(self._ended) > MAX_ENDED_SESSIONS:
            self._ended.popitem(last=False)

    # =========================================================================
    # Shutdown
    # =========================================================================

    async def shutdown(self) -> None:
        """End every live session and flush persistence."""
        for session_id in list(self._sessions):
            await self.end_session(session_id, reason="shutdown")
        await self._deps.persistence.drain()
        logger.info("Crisis session service stopped", buffered_records=self._deps.persistence.buffered_count)
