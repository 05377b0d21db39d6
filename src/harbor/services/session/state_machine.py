"""
Crisis Session State Machine

Owns the lifecycle of one crisis conversation:

    Queued -> Assigned -> Active <-> Escalated -> Ended

SAFETY-CRITICAL:
- Every inbound message is scored and handed to the escalation
  coordinator before any counselor reply is scheduled
- Priority is the high-water mark of all assessments and never drops
- A failed emergency dispatch is always surfaced with manual-dial
  contacts

ARCHITECTURE: One asyncio.Lock per session serializes inbound calls
and timer callbacks, so session state is only touched by one step at
a time. Messages are appended and published inside the same step,
which keeps the outbound order equal to the message log order. Every
timer is registered with the session and cancelled on end; callbacks
that race with end() see the Ended state and do nothing.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Mapping, Optional

from harbor.config.logging_config import get_logger
from harbor.config.settings import EscalationSettings, SessionSettings
from harbor.domain.enums.resources import EmergencyAction, InteractionAction
from harbor.domain.enums.session import MessageType, SenderRole, SessionState
from harbor.domain.enums.severity import SessionPriority, SeverityLevel
from harbor.domain.models.counselor import CRISIS_SPECIALIST, Counselor
from harbor.domain.models.emergency import CrisisInteraction, EmergencyEvent, EmergencyProtocol
from harbor.domain.models.risk import RiskAssessment
from harbor.domain.models.session import Message, Session
from harbor.errors import EscalationDispatchFailure
from harbor.infrastructure.metrics import track_dispatch_failure, track_session_ended
from harbor.infrastructure.monitoring import capture_safety_event, set_session_context
from harbor.infrastructure.scheduling.clock import Clock
from harbor.infrastructure.scheduling.timers import TimerHandle, TimerService
from harbor.infrastructure.transport.base import MessageTransport
from harbor.infrastructure.transport.events import EventType, OutboundEvent
from harbor.services.escalation.coordinator import EscalationCoordinator
from harbor.services.escalation.protocols import EmergencyDispatcher, get_protocol
from harbor.services.persistence.sync_adapter import PersistenceAdapter
from harbor.services.resources.catalog import ResourceCatalog
from harbor.services.scoring.risk_scorer import RiskScorer
from harbor.services.session.counselor_directory import CounselorDirectory
from harbor.services.session.responder import CounselorResponder

logger = get_logger(__name__)

SYSTEM_SENDER = "system"

EndedCallback = Callable[[str], Optional[Awaitable[None]]]


@dataclass
class SessionDependencies:
    """
    Collaborators shared by every session in a process.

    Only the counselor directory holds state shared between sessions.
    """

    scorer: RiskScorer
    coordinator: EscalationCoordinator
    directory: CounselorDirectory
    responder: CounselorResponder
    transport: MessageTransport
    timers: TimerService
    clock: Clock
    persistence: PersistenceAdapter
    catalog: ResourceCatalog
    dispatcher: EmergencyDispatcher
    session_settings: SessionSettings = field(default_factory=SessionSettings)
    escalation_settings: EscalationSettings = field(default_factory=EscalationSettings)


@dataclass(frozen=True)
class SubmitOutcome:
    """
    Result of an inbound message or answer set.

    Attributes:
        assessment: Risk assessment of the input
        message: Appended user message (None for structured answers)
        event: Emergency event fired by this input, if any
    """

    assessment: RiskAssessment
    message: Optional[Message] = None
    event: Optional[EmergencyEvent] = None


class CrisisSession:
    """
    State machine for one crisis session.

    Usage:
        crisis = CrisisSession(session, deps)
        await crisis.start()
        outcome = await crisis.submit_message("I feel really sad today")
        await crisis.end("user")
    """

    def __init__(
        self,
        session: Session,
        deps: SessionDependencies,
        on_ended: Optional[EndedCallback] = None,
    ) -> None:
        self._session = session
        self._deps = deps
        self._settings = deps.session_settings
        self._on_ended = on_ended
        self._lock = asyncio.Lock()

        # Keyed timers replace any earlier timer with the same key
        self._timers: dict[str, TimerHandle] = {}
        self._scheduled: list[TimerHandle] = []
        # event_id -> (timer, event, protocol) for dispatches not yet run
        self._dispatches: dict[str, tuple[TimerHandle, EmergencyEvent, EmergencyProtocol]] = {}

        self._queue_position = self._settings.queue_start_position
        self._last_reply_due = 0.0
        self._counselor_typing = False
        self._user_typing = False
        self._specialist: Optional[Counselor] = None

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def session(self) -> Session:
        return self._session

    @property
    def session_id(self) -> str:
        return self._session.session_id

    @property
    def state(self) -> SessionState:
        return self._session.state

    @property
    def priority(self) -> SessionPriority:
        return self._session.priority

    @property
    def queue_position(self) -> int:
        return self._queue_position

    @property
    def pending_timers(self) -> list[TimerHandle]:
        """Timers that may still fire for this session."""
        handles = list(self._timers.values()) + self._scheduled
        return [h for h in handles if h.active]

    def snapshot(self) -> dict[str, Any]:
        """Session state for read APIs."""
        data = self._session.to_dict()
        data["queue_position"] = self._queue_position if self.state == SessionState.QUEUED else None
        data["specialist"] = self._specialist.to_dict() if self._specialist else None
        return data

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self) -> None:
        """Enter the queue and schedule counselor assignment."""
        async with self._lock:
            s = self._session
            logger.info(
                "Crisis session queued",
                session_id=s.session_id,
                priority=s.priority.label,
                position=self._queue_position,
            )
            await self._publish_queue_update()

            self._timers["queue"] = self._deps.timers.call_every(
                self._settings.queue_update_interval,
                self._guarded(self._tick_queue),
                name=f"queue:{s.session_id}",
            )
            self._later(self._settings.assignment_delay, self._assign, key="assign")
            self._reset_inactivity()

    async def _tick_queue(self) -> None:
        if self._session.state != SessionState.QUEUED:
            return
        self._queue_position = max(1, self._queue_position - 1)
        await self._publish_queue_update()

    async def _publish_queue_update(self) -> None:
        await self._emit(EventType.QUEUE_UPDATE, {
            "position": self._queue_position,
            "estimatedWaitSeconds": int(self._queue_position * self._settings.queue_wait_per_position),
        })

    async def _assign(self) -> None:
        s = self._session
        if s.counselor is not None:
            return

        assignment = await self._deps.directory.assign(s.priority)
        s.counselor = assignment.counselor
        if s.state == SessionState.QUEUED:
            s.state = SessionState.ASSIGNED
        self._cancel("queue")

        await self._emit(EventType.COUNSELOR_ASSIGNED, {
            "counselor": assignment.counselor.to_dict(),
            "fallback": assignment.fallback,
        })
        logger.info(
            "Crisis session assigned",
            session_id=s.session_id,
            counselor_id=assignment.counselor.id,
            fallback=assignment.fallback,
        )
        self._later(self._settings.welcome_delay, self._welcome, key="welcome")

    async def _welcome(self) -> None:
        counselor = self._session.counselor
        if counselor is None:
            return
        await self._append_and_publish(
            counselor.id,
            SenderRole.COUNSELOR,
            self._deps.responder.welcome(counselor),
        )
        self._activate()

    def _activate(self) -> None:
        if self._session.state == SessionState.ASSIGNED:
            self._session.state = SessionState.ACTIVE
            logger.debug("Crisis session active", session_id=self.session_id)

    # =========================================================================
    # Inbound
    # =========================================================================

    async def submit_message(self, text: str) -> Optional[SubmitOutcome]:
        """
        Handle an inbound user message.

        The message is appended, scored and evaluated for escalation
        before a reply is scheduled.

        Returns:
            Outcome, or None if the session has ended
        """
        async with self._lock:
            s = self._session
            if s.is_ended:
                logger.warning("Message for ended session dropped", session_id=s.session_id)
                return None

            self._reset_inactivity()
            await self._stop_user_typing()

            message = await self._append_and_publish(s.user_id, SenderRole.USER, text)
            assessment = self._deps.scorer.score_text(text)
            event = await self._assess(assessment)

            if s.counselor is not None:
                self._activate()
                await self._schedule_reply(assessment.level, len(text), s.user_message_count)

            return SubmitOutcome(assessment=assessment, message=message, event=event)

    async def submit_answers(self, answers: Mapping[str, int]) -> Optional[SubmitOutcome]:
        """
        Handle a structured assessment submission.

        Returns:
            Outcome, or None if the session has ended
        """
        async with self._lock:
            s = self._session
            if s.is_ended:
                logger.warning("Assessment for ended session dropped", session_id=s.session_id)
                return None

            self._reset_inactivity()
            assessment = self._deps.scorer.score_answers(answers)
            event = await self._assess(assessment)
            self._deps.persistence.record_interaction(CrisisInteraction(
                action=InteractionAction.ASSESSMENT,
                level=assessment.level,
                timestamp=self._deps.clock.now(),
                session_id=s.session_id,
                metadata={
                    "risk_factor_count": len(assessment.risk_factors),
                    "protective_factor_count": len(assessment.protective_factors),
                },
            ))

            if s.counselor is not None:
                self._activate()
                await self._schedule_reply(assessment.level, 0, len(s.assessments))

            return SubmitOutcome(assessment=assessment, event=event)

    async def set_user_typing(self, is_typing: bool) -> None:
        """Relay the user's typing indicator; it stops on its own after a while."""
        async with self._lock:
            if self._session.is_ended:
                return
            self._reset_inactivity()
            if is_typing:
                if not self._user_typing:
                    self._user_typing = True
                    await self._emit(EventType.TYPING_START, self._typist(self._session.user_id, SenderRole.USER))
                self._later(self._settings.typing_auto_stop, self._stop_user_typing, key="user_typing")
            else:
                await self._stop_user_typing()

    async def _stop_user_typing(self) -> None:
        self._cancel("user_typing")
        if self._user_typing:
            self._user_typing = False
            await self._emit(EventType.TYPING_STOP, self._typist(self._session.user_id, SenderRole.USER))

    async def _assess(self, assessment: RiskAssessment) -> Optional[EmergencyEvent]:
        """Record an assessment, raise priority and evaluate escalation."""
        s = self._session
        s.assessments.append(assessment)
        previous = s.priority
        if s.raise_priority(SessionPriority.from_severity(assessment.level)):
            logger.info(
                "Session priority raised",
                session_id=s.session_id,
                previous=previous.label,
                priority=s.priority.label,
            )
        self._deps.persistence.record_assessment(s.session_id, assessment)

        event = self._deps.coordinator.evaluate(s, assessment)
        if event is not None:
            await self._escalate(event)
        return event

    # =========================================================================
    # Counselor replies
    # =========================================================================

    def _responding_counselor(self) -> Optional[Counselor]:
        return self._specialist or self._session.counselor

    async def _schedule_reply(self, level: SeverityLevel, message_length: int, turn: int) -> None:
        counselor = self._responding_counselor()
        if counselor is None:
            return

        if not self._counselor_typing:
            self._counselor_typing = True
            await self._emit(EventType.TYPING_START, self._typist(counselor.id, SenderRole.COUNSELOR))
        self._later(self._settings.typing_auto_stop, self._stop_counselor_typing, key="typing")

        # Replies never overtake an earlier reply
        now = self._deps.clock.monotonic()
        delay = self._deps.responder.reply_delay(counselor, message_length)
        due = max(now + delay, self._last_reply_due)
        self._last_reply_due = due
        self._later(due - now, self._deliver_reply, counselor, level, turn)

    async def _deliver_reply(self, counselor: Counselor, level: SeverityLevel, turn: int) -> None:
        await self._stop_counselor_typing()
        await self._append_and_publish(
            counselor.id,
            SenderRole.COUNSELOR,
            self._deps.responder.reply(counselor, level, turn),
        )
        follow_up = self._deps.responder.follow_up(level, turn)
        if follow_up:
            self._later(self._settings.follow_up_delay, self._deliver_follow_up, counselor, follow_up)

    async def _deliver_follow_up(self, counselor: Counselor, text: str) -> None:
        await self._append_and_publish(counselor.id, SenderRole.COUNSELOR, text)

    async def _stop_counselor_typing(self) -> None:
        self._cancel("typing")
        if self._counselor_typing:
            self._counselor_typing = False
            counselor = self._responding_counselor()
            sender_id = counselor.id if counselor else SYSTEM_SENDER
            await self._emit(EventType.TYPING_STOP, self._typist(sender_id, SenderRole.COUNSELOR))

    # =========================================================================
    # Escalation
    # =========================================================================

    async def _escalate(self, event: EmergencyEvent) -> None:
        """
        Announce an emergency action and schedule its dispatch.

        The warning is published synchronously; the action itself is
        dispatched after a short delay so the warning renders first.
        """
        s = self._session
        protocol = get_protocol(event.action)

        await self._append_and_publish(
            SYSTEM_SENDER,
            SenderRole.SYSTEM,
            protocol.message,
            MessageType.CRISIS_ALERT,
        )
        contacts = self._deps.catalog.get_recommended_contacts(event.level)
        await self._emit(EventType.CRISIS_ESCALATED, {
            "action": event.action.value,
            "reason": event.trigger,
            "level": event.level.label,
            "event_id": event.event_id,
            "contacts": [c.to_dict() for c in contacts],
        })

        if protocol.severity >= SeverityLevel.CRITICAL and s.state != SessionState.ESCALATED:
            s.state = SessionState.ESCALATED
        set_session_context(s.session_id, s.priority.label, s.state.value)

        handle = self._later(
            self._deps.escalation_settings.dispatch_delay,
            self._dispatch,
            event,
            protocol,
        )
        self._dispatches[event.event_id] = (handle, event, protocol)

    async def _dispatch(self, event: EmergencyEvent, protocol: EmergencyProtocol) -> None:
        self._dispatches.pop(event.event_id, None)
        try:
            await self._deps.dispatcher.dispatch(event, protocol)
        except EscalationDispatchFailure as e:
            await self._dispatch_failed(event, protocol, e)
            return
        except Exception as e:
            # Any dispatcher crash is still a failed dispatch for the user
            logger.exception(
                "Emergency dispatcher raised unexpectedly",
                session_id=self._session.session_id,
                action=event.action.value,
                error_type=type(e).__name__,
            )
            failure = EscalationDispatchFailure(
                event.action.value, type(e).__name__, self._session.session_id,
            )
            await self._dispatch_failed(event, protocol, failure)
            return

        self._record_dispatch(event, protocol, successful=True)
        if event.action == EmergencyAction.SPECIALIST_HANDOFF:
            self._later(self._deps.escalation_settings.handoff_delay, self._specialist_joins)

    async def _dispatch_failed(
        self,
        event: EmergencyEvent,
        protocol: EmergencyProtocol,
        error: EscalationDispatchFailure,
    ) -> None:
        """Surface a failed dispatch with manual-dial instructions."""
        s = self._session
        logger.error(
            "Emergency dispatch failed",
            severity="critical",
            session_id=s.session_id,
            event_id=event.event_id,
            action=event.action.value,
            reason=error.reason,
        )
        track_dispatch_failure(event.action.value)
        capture_safety_event(
            "Emergency dispatch failed",
            level="error",
            extra={
                "session_id": s.session_id,
                "action": event.action.value,
                "reason": error.reason,
            },
        )

        contacts = self._deps.catalog.get_critical_contacts()
        instructions = "We could not connect you automatically. Please reach out now: " + "; ".join(
            f"{c.name}: {'text HOME to ' if c.text_only else 'call '}{c.phone}" for c in contacts
        )
        await self._emit(EventType.CRISIS_DISPATCH_FAILED, {
            "action": event.action.value,
            "event_id": event.event_id,
            "reason": error.reason,
            "contacts": [c.to_dict() for c in contacts],
            "instructions": instructions,
        })
        await self._append_and_publish(
            SYSTEM_SENDER,
            SenderRole.SYSTEM,
            instructions,
            MessageType.CRISIS_ALERT,
        )
        self._record_dispatch(event, protocol, successful=False)

    def _record_dispatch(self, event: EmergencyEvent, protocol: EmergencyProtocol, successful: bool) -> None:
        self._deps.persistence.record_interaction(CrisisInteraction(
            action=InteractionAction.EMERGENCY_DISPATCH,
            level=event.level,
            timestamp=self._deps.clock.now(),
            contact=protocol.service_number,
            successful=successful,
            session_id=self._session.session_id,
            metadata={"action": event.action.value, "event_id": event.event_id},
        ))

    async def _specialist_joins(self) -> None:
        specialist = CRISIS_SPECIALIST
        self._specialist = specialist
        await self._emit(EventType.COUNSELOR_ASSIGNED, {
            "counselor": specialist.to_dict(),
            "fallback": False,
            "specialist": True,
        })
        await self._append_and_publish(
            specialist.id,
            SenderRole.COUNSELOR,
            self._deps.responder.specialist_introduction(specialist),
        )
        logger.info("Crisis specialist joined", session_id=self.session_id, specialist_id=specialist.id)

    async def acknowledge_escalation(self) -> bool:
        """
        Return an escalated session to normal exchange.

        Priority keeps its high-water mark.

        Returns:
            True if the session left the Escalated state
        """
        async with self._lock:
            s = self._session
            if s.state != SessionState.ESCALATED:
                return False
            s.state = SessionState.ACTIVE if s.counselor is not None else SessionState.QUEUED
            logger.info(
                "Escalation acknowledged",
                session_id=s.session_id,
                state=s.state.value,
                priority=s.priority.label,
            )
            return True

    # =========================================================================
    # Ending
    # =========================================================================

    async def _inactivity_expired(self) -> None:
        logger.info("Crisis session inactive", session_id=self.session_id)
        await self.end("inactivity")

    async def end(self, reason: str = "user") -> bool:
        """
        End the session.

        Pending emergency dispatches run immediately, then every timer
        is cancelled, a closing message is sent and the summary is
        handed to persistence.

        Returns:
            False if the session had already ended
        """
        async with self._lock:
            s = self._session
            if s.is_ended:
                return False

            # Step 1: An announced emergency action is never dropped
            for handle, event, protocol in list(self._dispatches.values()):
                handle.cancel()
                await self._dispatch(event, protocol)

            # Step 2: Nothing scheduled may fire after Ended
            self._cancel_all()
            await self._stop_counselor_typing()
            await self._stop_user_typing()

            # Step 3: Closing message and summary
            counselor = self._responding_counselor()
            await self._append_and_publish(
                counselor.id if counselor else SYSTEM_SENDER,
                SenderRole.COUNSELOR if counselor else SenderRole.SYSTEM,
                self._deps.responder.closing(),
                MessageType.TEXT if counselor else MessageType.SYSTEM,
            )
            s.state = SessionState.ENDED
            s.ended_at = self._deps.clock.now()
            s.end_reason = reason
            summary = s.summary()
            await self._emit(EventType.SESSION_ENDED, {"reason": reason, "summary": summary})

            # Step 4: Release shared and per-session resources
            self._deps.persistence.record_session_summary(summary)
            if s.counselor is not None:
                await self._deps.directory.release(s.counselor.id)
            self._deps.coordinator.forget(s.session_id)
            self._deps.transport.close_session(s.session_id)
            track_session_ended(reason, s.duration_seconds)

            logger.info(
                "Crisis session ended",
                session_id=s.session_id,
                reason=reason,
                peak_severity=summary["peak_severity"],
                message_count=summary["message_count"],
                duration_seconds=round(s.duration_seconds, 1),
            )

        if self._on_ended is not None:
            result = self._on_ended(s.session_id)
            if asyncio.iscoroutine(result):
                await result
        return True

    # =========================================================================
    # Helpers
    # =========================================================================

    def _guarded(self, callback: Callable[..., Awaitable[None]], *args: Any) -> Callable[[], Awaitable[None]]:
        """Wrap a timer callback to run under the session lock, never after Ended."""
        async def run() -> None:
            async with self._lock:
                if self._session.is_ended:
                    return
                await callback(*args)
        return run

    def _later(
        self,
        delay: float,
        callback: Callable[..., Awaitable[None]],
        *args: Any,
        key: Optional[str] = None,
    ) -> TimerHandle:
        name = f"{key or callback.__name__.lstrip('_')}:{self.session_id}"
        handle = self._deps.timers.call_later(delay, self._guarded(callback, *args), name=name)
        if key is not None:
            self._cancel(key)
            self._timers[key] = handle
        else:
            self._scheduled = [h for h in self._scheduled if h.active]
            self._scheduled.append(handle)
        return handle

    def _cancel(self, key: str) -> None:
        handle = self._timers.pop(key, None)
        if handle is not None:
            handle.cancel()

    def _cancel_all(self) -> None:
        for handle in list(self._timers.values()) + self._scheduled:
            handle.cancel()
        self._timers.clear()
        self._scheduled.clear()
        self._dispatches.clear()

    def _reset_inactivity(self) -> None:
        self._cancel("inactivity")
        self._timers["inactivity"] = self._deps.timers.call_later(
            self._settings.inactivity_timeout,
            self._inactivity_expired,
            name=f"inactivity:{self.session_id}",
        )

    async def _append_and_publish(
        self,
        sender_id: str,
        role: SenderRole,
        content: str,
        message_type: MessageType = MessageType.TEXT,
    ) -> Message:
        message = self._session.append_message(
            sender_id,
            role,
            content,
            self._deps.clock.now(),
            message_type,
        )
        await self._emit(EventType.MESSAGE_NEW, {"message": message.to_dict()})
        return message

    async def _emit(self, event_type: EventType, payload: dict[str, Any]) -> OutboundEvent:
        return await self._deps.transport.publish(OutboundEvent(
            type=event_type,
            session_id=self._session.session_id,
            timestamp=self._deps.clock.now(),
            payload=payload,
        ))

    @staticmethod
    def _typist(sender_id: str, role: SenderRole) -> dict[str, str]:
        return {"sender_id": sender_id, "sender_role": role.value}
