"""
Unit Tests for Escalation Coordinator

Tests protocol selection order, the per-session de-duplication
window, the once-per-session specialist hand-off and dispatch.
"""

import pytest
from prometheus_client import REGISTRY

from harbor.domain.enums.resources import EmergencyAction
from harbor.domain.enums.severity import SeverityLevel
from harbor.domain.models.risk import RiskAssessment, get_level_config, should_auto_escalate
from harbor.domain.models.session import Session
from harbor.errors import EscalationDispatchFailure
from harbor.infrastructure.scheduling.timers import VirtualTimerService
from harbor.infrastructure.transport.memory import InMemoryTransport
from harbor.services.escalation import (
    EscalationCoordinator,
    SimulatedEmergencyDispatcher,
    get_protocol,
)
from harbor.services.scoring import RiskScorer


@pytest.fixture
def clock():
    return VirtualTimerService()


@pytest.fixture
def coordinator(clock):
    return EscalationCoordinator(dedup_window_seconds=30, handoff_consecutive_high=2, clock=clock)


@pytest.fixture
def session(clock):
    return Session(user_id="user-1", created_at=clock.now(), last_activity_at=clock.now())


def assess(session, level, *indicators):
    """Record an assessment on the session, as the state machine does."""
    assessment = RiskAssessment(level=level, confidence=0.8, indicators=frozenset(indicators))
    session.assessments.append(assessment)
    return assessment


def event_count(action, outcome):
    value = REGISTRY.get_sample_value(
        "harbor_emergency_events_total",
        {"action": action, "outcome": outcome},
    )
    return value or 0.0


class TestProtocolSelection:
    """Tests for which protocol an assessment fires."""

    def test_critical_with_plan_dials_988(self, coordinator, session):
        assessment = assess(session, SeverityLevel.CRITICAL, "suicide_ideation", "suicide_plan")

        event = coordinator.evaluate(session, assessment)

        assert event is not None
        assert event.action == EmergencyAction.AUTO_DIAL_988
        assert event.trigger == "imminent_suicide_risk"
        assert event.session_id == session.session_id
        assert event.assessment_id == str(assessment.id)
        assert event.is_dial

    def test_immediate_danger_dials_988(self, coordinator, session):
        assessment = assess(session, SeverityLevel.CRITICAL, "suicide_ideation", "immediate_danger")

        event = coordinator.evaluate(session, assessment)

        assert event.action == EmergencyAction.AUTO_DIAL_988

    def test_plan_with_medical_emergency_still_dials_988(self, coordinator, session):
        """Ideation plus a plan dials 988 even when an overdose is mentioned."""
        assessment = assess(
            session, SeverityLevel.CRITICAL,
            "medical_emergency", "suicide_ideation", "suicide_plan",
        )

        event = coordinator.evaluate(session, assessment)

        assert event.action == EmergencyAction.AUTO_DIAL_988
        assert event.trigger == "imminent_suicide_risk"

    def test_medical_emergency_alone_dials_911(self, coordinator, session):
        assessment = assess(session, SeverityLevel.CRITICAL, "medical_emergency")

        event = coordinator.evaluate(session, assessment)

        assert event.action == EmergencyAction.AUTO_DIAL_911
        assert event.trigger == "substance_overdose"

    def test_scored_overdose_with_ideation_dials_988(self, coordinator, session):
        assessment = RiskScorer().score("I want to kill myself, I took all my pills")
        session.assessments.append(assessment)

        event = coordinator.evaluate(session, assessment)

        assert "medical_emergency" in assessment.indicators
        assert event.action == EmergencyAction.AUTO_DIAL_988

    def test_scored_everyday_sentence_fires_nothing(self, coordinator, session):
        assessment = RiskScorer().score("I took too much time on my homework and feel tired")
        session.assessments.append(assessment)

        assert coordinator.evaluate(session, assessment) is None

    def test_domestic_violence_at_high_fires_safety_protocol(self, coordinator, session):
        assessment = assess(session, SeverityLevel.HIGH, "domestic_violence", "hopelessness")

        event = coordinator.evaluate(session, assessment)

        assert event.action == EmergencyAction.SAFETY_PROTOCOL
        assert not event.is_dial

    def test_domestic_violence_below_high_does_nothing(self, coordinator, session):
        assessment = assess(session, SeverityLevel.MODERATE, "domestic_violence")

        assert coordinator.evaluate(session, assessment) is None

    def test_critical_without_dial_signal_hands_off(self, coordinator, session):
        assessment = assess(session, SeverityLevel.CRITICAL, "suicide_ideation", "hopelessness")

        event = coordinator.evaluate(session, assessment)

        assert event.action == EmergencyAction.SPECIALIST_HANDOFF

    @pytest.mark.parametrize("level", [SeverityLevel.SAFE, SeverityLevel.LOW, SeverityLevel.MODERATE])
    def test_below_high_is_noop(self, coordinator, session, level):
        assessment = assess(session, level, "low_mood")

        assert coordinator.evaluate(session, assessment) is None
        assert coordinator.get_events(session.session_id) == []


class TestSpecialistHandoff:
    """Tests for sustained-risk hand-off."""

    def test_single_high_does_not_hand_off(self, coordinator, session):
        assessment = assess(session, SeverityLevel.HIGH, "hopelessness")

        assert coordinator.evaluate(session, assessment) is None

    def test_consecutive_high_hands_off(self, coordinator, session):
        coordinator.evaluate(session, assess(session, SeverityLevel.HIGH, "hopelessness"))

        event = coordinator.evaluate(session, assess(session, SeverityLevel.HIGH, "entrapment"))

        assert event.action == EmergencyAction.SPECIALIST_HANDOFF

    def test_broken_run_does_not_hand_off(self, coordinator, session):
        coordinator.evaluate(session, assess(session, SeverityLevel.HIGH, "hopelessness"))
        coordinator.evaluate(session, assess(session, SeverityLevel.LOW, "low_mood"))

        event = coordinator.evaluate(session, assess(session, SeverityLevel.HIGH, "entrapment"))

        assert event is None

    @pytest.mark.asyncio
    async def test_hand_off_once_per_session(self, coordinator, session, clock):
        first = coordinator.evaluate(session, assess(session, SeverityLevel.CRITICAL, "suicide_ideation"))
        await clock.advance(600)

        second = coordinator.evaluate(session, assess(session, SeverityLevel.CRITICAL, "suicide_ideation"))

        assert first.action == EmergencyAction.SPECIALIST_HANDOFF
        assert second is None

    def test_forget_resets_hand_off(self, coordinator, session):
        coordinator.evaluate(session, assess(session, SeverityLevel.CRITICAL, "suicide_ideation"))
        coordinator.forget(session.session_id)

        event = coordinator.evaluate(session, assess(session, SeverityLevel.CRITICAL, "suicide_ideation"))

        assert event.action == EmergencyAction.SPECIALIST_HANDOFF


class TestDeduplication:
    """Tests for the de-duplication window."""

    @pytest.mark.asyncio
    async def test_repeat_within_window_suppressed(self, coordinator, session, clock):
        """Two critical messages 2 seconds apart emit one event."""
        before = event_count("auto_dial_988", "deduped")

        first = coordinator.evaluate(
            session, assess(session, SeverityLevel.CRITICAL, "suicide_ideation", "suicide_plan"),
        )
        await clock.advance(2)
        second = coordinator.evaluate(
            session, assess(session, SeverityLevel.CRITICAL, "suicide_ideation", "suicide_plan"),
        )

        assert first is not None
        assert second is None
        assert len(coordinator.get_events(session.session_id)) == 1

        audit = coordinator.get_events(session.session_id, include_deduped=True)
        assert [e.deduped for e in audit] == [False, True]
        assert event_count("auto_dial_988", "deduped") == before + 1

    @pytest.mark.asyncio
    async def test_refires_after_window(self, coordinator, session, clock):
        coordinator.evaluate(
            session, assess(session, SeverityLevel.CRITICAL, "suicide_ideation", "suicide_plan"),
        )
        await clock.advance(30)

        event = coordinator.evaluate(
            session, assess(session, SeverityLevel.CRITICAL, "suicide_ideation", "suicide_plan"),
        )

        assert event is not None
        assert event.action == EmergencyAction.AUTO_DIAL_988

    def test_different_action_not_suppressed(self, coordinator, session):
        coordinator.evaluate(
            session, assess(session, SeverityLevel.CRITICAL, "suicide_ideation", "suicide_plan"),
        )

        event = coordinator.evaluate(session, assess(session, SeverityLevel.CRITICAL, "medical_emergency"))

        assert event.action == EmergencyAction.AUTO_DIAL_911

    def test_window_is_per_session(self, coordinator, session, clock):
        other = Session(user_id="user-2", created_at=clock.now(), last_activity_at=clock.now())

        coordinator.evaluate(
            session, assess(session, SeverityLevel.CRITICAL, "suicide_ideation", "suicide_plan"),
        )
        event = coordinator.evaluate(
            other, assess(other, SeverityLevel.CRITICAL, "suicide_ideation", "suicide_plan"),
        )

        assert event is not None

    def test_negative_window_rejected(self):
        with pytest.raises(ValueError):
            EscalationCoordinator(dedup_window_seconds=-1)


class TestSimulatedDispatcher:
    """Tests for simulated emergency dispatch."""

    @pytest.mark.asyncio
    async def test_dispatch_records_event(self, coordinator, session, clock):
        transport = InMemoryTransport(clock=clock)
        dispatcher = SimulatedEmergencyDispatcher(transport)
        event = coordinator.evaluate(
            session, assess(session, SeverityLevel.CRITICAL, "suicide_ideation", "suicide_plan"),
        )

        await dispatcher.dispatch(event, get_protocol(event.action))

        assert dispatcher.dispatched == [event]

    @pytest.mark.asyncio
    async def test_disconnected_transport_raises(self, coordinator, session, clock):
        transport = InMemoryTransport(clock=clock)
        await transport.set_connected(False)
        dispatcher = SimulatedEmergencyDispatcher(transport)
        event = coordinator.evaluate(
            session, assess(session, SeverityLevel.CRITICAL, "suicide_ideation", "suicide_plan"),
        )

        with pytest.raises(EscalationDispatchFailure) as exc_info:
            await dispatcher.dispatch(event, get_protocol(event.action))

        assert exc_info.value.action == "auto_dial_988"
        assert exc_info.value.session_id == session.session_id
        assert dispatcher.dispatched == []

    @pytest.mark.asyncio
    async def test_missing_transport_raises(self, coordinator, session):
        dispatcher = SimulatedEmergencyDispatcher()
        event = coordinator.evaluate(session, assess(session, SeverityLevel.CRITICAL, "medical_emergency"))

        with pytest.raises(EscalationDispatchFailure):
            await dispatcher.dispatch(event, get_protocol(event.action))

    @pytest.mark.parametrize("level", list(SeverityLevel))
    def test_only_high_and_critical_auto_escalate(self, level):
        config = get_level_config(level)

        assert config.level == level
        assert should_auto_escalate(level) is (level >= SeverityLevel.HIGH)

    def test_dial_protocols_are_critical(self):
        assert get_protocol(EmergencyAction.AUTO_DIAL_988).severity == SeverityLevel.CRITICAL
        assert get_protocol(EmergencyAction.AUTO_DIAL_911).service_number == "911"
        assert get_protocol(EmergencyAction.SPECIALIST_HANDOFF).severity == SeverityLevel.HIGH
