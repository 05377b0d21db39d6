"""
Escalation Coordinator

Decides whether a new risk assessment fires an emergency protocol,
and which one.

SAFETY-CRITICAL: This module decides when a simulated emergency call
is placed. A missed firing is a missed emergency. A repeated firing
is an alert storm. All rules require clinical review.

Decision order (first match wins):
1. CRITICAL level with plan or immediate danger -> auto_dial_988
2. Medical emergency indicator -> auto_dial_911
3. Domestic violence or child abuse at HIGH or above -> safety_protocol
4. CRITICAL without a dial signal, or sustained HIGH -> specialist_handoff

ARCHITECTURE: Firing state is kept per session. Within a session the
same action is not re-fired inside the de-duplication window. A
specialist hand-off happens at most once per session.
"""

from collections import deque
from typing import Optional

from harbor.config.logging_config import get_logger
from harbor.domain.enums.indicators import (
    DIAL_911_SIGNALS,
    DIAL_988_SIGNALS,
    SAFETY_PROTOCOL_SIGNALS,
)
from harbor.domain.enums.resources import EmergencyAction
from harbor.domain.enums.severity import SeverityLevel
from harbor.domain.models.emergency import EmergencyEvent
from harbor.domain.models.risk import RiskAssessment, should_auto_escalate
from harbor.domain.models.session import Session
from harbor.infrastructure.metrics import track_emergency_event
from harbor.infrastructure.scheduling.clock import Clock, SystemClock
from harbor.services.escalation.protocols import get_protocol

logger = get_logger(__name__)

DEFAULT_DEDUP_WINDOW_SECONDS = 30.0
DEFAULT_HANDOFF_CONSECUTIVE_HIGH = 2
MAX_EVENT_LOG = 1000


class EscalationCoordinator:
    """
    Emergency escalation decisions with per-session de-duplication.

    Calling evaluate() with an assessment that crosses no new
    threshold is a no-op returning None.

    Usage:
        coordinator = EscalationCoordinator(dedup_window_seconds=30)
        event = coordinator.evaluate(session, assessment)
        if event:
            ...  # emit system message, schedule dispatch
    """

    def __init__(
        self,
        dedup_window_seconds: float = DEFAULT_DEDUP_WINDOW_SECONDS,
        handoff_consecutive_high: int = DEFAULT_HANDOFF_CONSECUTIVE_HIGH,
        clock: Optional[Clock] = None,
    ) -> None:
        """
        Initialize coordinator.

        Args:
            dedup_window_seconds: Suppression window per session and action
            handoff_consecutive_high: HIGH-or-above assessments in a row
                needed for a specialist hand-off
            clock: Time source for the window and event timestamps
        """
        if dedup_window_seconds < 0:
            raise ValueError("dedup_window_seconds must be non-negative")
        self._window = dedup_window_seconds
        self._handoff_run = max(1, handoff_consecutive_high)
        self._clock = clock or SystemClock()
        # session_id -> action -> monotonic time of last firing
        self._last_fired: dict[str, dict[EmergencyAction, float]] = {}
        self._handed_off: set[str] = set()
        self._event_log: deque[EmergencyEvent] = deque(maxlen=MAX_EVENT_LOG)

    @property
    def dedup_window_seconds(self) -> float:
        return self._window

    def evaluate(
        self,
        session: Session,
        assessment: RiskAssessment,
    ) -> Optional[EmergencyEvent]:
        """
        Evaluate a new assessment for a session.

        The assessment is expected to already be recorded on the
        session, so sustained-risk rules can see it.

        Args:
            session: Session the assessment belongs to
            assessment: The newest assessment

        Returns:
            EmergencyEvent to act on, or None
        """
        action = self._select_action(session, assessment)
        if action is None:
            return None

        protocol = get_protocol(action)
        now = self._clock.monotonic()
        fired = self._last_fired.setdefault(session.session_id, {})
        last = fired.get(action)

        if last is not None and now - last < self._window:
            suppressed = self._make_event(session, assessment, action, protocol.trigger, deduped=True)
            self._event_log.append(suppressed)
            track_emergency_event(action.value, deduped=True)
            logger.info(
                "Emergency action suppressed by dedup window",
                session_id=session.session_id,
                action=action.value,
                seconds_since_last=round(now - last, 3),
            )
            return None

        fired[action] = now
        if action == EmergencyAction.SPECIALIST_HANDOFF:
            self._handed_off.add(session.session_id)

        event = self._make_event(session, assessment, action, protocol.trigger, deduped=False)
        self._event_log.append(event)
        track_emergency_event(action.value, deduped=False)

        logger.warning(
            "Emergency protocol fired",
            severity=protocol.severity.label,
            session_id=session.session_id,
            event_id=event.event_id,
            action=action.value,
            trigger=protocol.trigger,
            level=assessment.level.label,
            indicators=sorted(event.indicators),
        )
        return event

    def _select_action(
        self,
        session: Session,
        assessment: RiskAssessment,
    ) -> Optional[EmergencyAction]:
        """Pick the protocol for an assessment, or None."""
        level = assessment.level

        # Step 1: Imminent suicide risk, even alongside a medical emergency
        if level == SeverityLevel.CRITICAL and assessment.has_any(DIAL_988_SIGNALS):
            return EmergencyAction.AUTO_DIAL_988

        # Step 2: Medical emergency without suicide-risk signals
        if assessment.has_any(DIAL_911_SIGNALS):
            return EmergencyAction.AUTO_DIAL_911

        # Step 3: Third-party violence
        if level >= SeverityLevel.HIGH and assessment.has_any(SAFETY_PROTOCOL_SIGNALS):
            return EmergencyAction.SAFETY_PROTOCOL

        # Step 4: Specialist hand-off, once per session
        if session.session_id in self._handed_off or not should_auto_escalate(level):
            return None
        if level == SeverityLevel.CRITICAL or self._sustained_high(session):
            return EmergencyAction.SPECIALIST_HANDOFF
        return None

    def _sustained_high(self, session: Session) -> bool:
        recent = session.assessments[-self._handoff_run:]
        return len(recent) >= self._handoff_run and all(
            a.level >= SeverityLevel.HIGH for a in recent
        )

    def _make_event(
        self,
        session: Session,
        assessment: RiskAssessment,
        action: EmergencyAction,
        trigger: str,
        deduped: bool,
    ) -> EmergencyEvent:
        return EmergencyEvent(
            trigger=trigger,
            action=action,
            session_id=session.session_id,
            timestamp=self._clock.now(),
            deduped=deduped,
            level=assessment.level,
            indicators=assessment.indicators,
            assessment_id=str(assessment.id),
        )

    def forget(self, session_id: str) -> None:
        """Drop firing state for an ended session. The event log is kept."""
        self._last_fired.pop(session_id, None)
        self._handed_off.discard(session_id)

    def get_events(
        self,
        session_id: Optional[str] = None,
        include_deduped: bool = False,
    ) -> list[EmergencyEvent]:
        """
        Get events from the audit log.

        Args:
            session_id: Filter by session
            include_deduped: Include suppressed firings

        Returns:
            Matching events, oldest first
        """
        events = list(self._event_log)
        if session_id:
            events = [e for e in events if e.session_id == session_id]
        if not include_deduped:
            events = [e for e in events if not e.deduped]
        return events
