"""
Unit Tests for Crisis Session State Machine

Drives sessions through the service with virtual timers and asserts
on the outbound event stream.
"""

import pytest
from prometheus_client import REGISTRY

from harbor.config import Settings
from harbor.config.settings import PersistenceSettings, SessionSettings
from harbor.domain.enums.resources import InteractionAction
from harbor.domain.enums.session import CounselorStatus, SessionState
from harbor.domain.enums.severity import SessionPriority
from harbor.errors import EscalationDispatchFailure, SessionNotFound
from harbor.infrastructure.scheduling.timers import VirtualTimerService
from harbor.infrastructure.transport.events import EventType
from harbor.services.escalation import EmergencyDispatcher
from harbor.services.session import CrisisSessionService, build_dependencies

CRITICAL_TEXT = "I want to kill myself and I have pills"
LOW_TEXT = "I feel really sad and lonely today"
HIGH_TEXT = "I feel hopeless and trapped and like a burden"


class FailingDispatcher(EmergencyDispatcher):
    """Dispatcher whose line is always busy."""

    def __init__(self):
        self.attempts = 0

    async def dispatch(self, event, protocol):
        self.attempts += 1
        raise EscalationDispatchFailure(event.action.value, "line busy", event.session_id)


class CrashingDispatcher(EmergencyDispatcher):
    """Dispatcher whose gateway is unreachable."""

    async def dispatch(self, event, protocol):
        raise ConnectionError("telephony gateway unreachable")


def events_of(transport, session_id, event_type=None):
    history = transport.history(session_id)
    if event_type is None:
        return history
    return [e for e in history if e.type == event_type]


def messages(transport, session_id):
    return [e.payload["message"] for e in events_of(transport, session_id, EventType.MESSAGE_NEW)]


def sample(name, labels=None):
    return REGISTRY.get_sample_value(name, labels or {}) or 0.0


async def start_active(service, timers, user_id="user-1"):
    """Create a session and fast-forward past assignment and welcome."""
    session_id = await service.create_session(user_id)
    await timers.advance(3)
    return session_id


class TestQueueAndAssignment:
    """Tests for Queued -> Assigned -> Active."""

    @pytest.mark.asyncio
    async def test_assignment_then_welcome(self, service, timers, transport):
        session_id = await service.create_session("user-1")
        crisis = service.get_session(session_id)

        assert crisis.state == SessionState.QUEUED
        assert crisis.queue_position == 3

        await timers.advance(2)
        assert crisis.state == SessionState.ASSIGNED
        assert crisis.session.counselor.id == "counselor-3"

        await timers.advance(1)
        assert crisis.state == SessionState.ACTIVE
        assert [e.type for e in events_of(transport, session_id)] == [
            EventType.QUEUE_UPDATE,
            EventType.COUNSELOR_ASSIGNED,
            EventType.MESSAGE_NEW,
        ]
        assert "Dr. Emily Watson" in messages(transport, session_id)[0]["content"]

    @pytest.mark.asyncio
    async def test_queue_updates_while_waiting(self, test_settings):
        settings = test_settings.model_copy(
            update={"session": SessionSettings(assignment_delay=100)},
        )
        timers = VirtualTimerService()
        service = CrisisSessionService(build_dependencies(settings, timers=timers))
        session_id = await service.create_session("user-1")

        await timers.advance(95)

        updates = events_of(service.transport, session_id, EventType.QUEUE_UPDATE)
        assert [e.payload["position"] for e in updates] == [3, 2, 1, 1]
        assert updates[1].payload["estimatedWaitSeconds"] == 60
        assert service.get_snapshot(session_id)["queue_position"] == 1

        await timers.advance(5)

        assert service.get_session(session_id).state == SessionState.ASSIGNED
        assert service.get_snapshot(session_id)["queue_position"] is None
        assert len(events_of(service.transport, session_id, EventType.QUEUE_UPDATE)) == 4

    @pytest.mark.asyncio
    async def test_no_available_counselor_uses_fallback(self, service, timers, transport, directory):
        """Assignment completes within the assignment delay even with an empty pool."""
        for counselor in directory.profiles():
            await directory.set_status(counselor.id, CounselorStatus.OFFLINE)
        before = sample("harbor_counselor_assignments_total", {"mode": "fallback"})

        session_id = await service.create_session("user-1")
        await timers.advance(2)

        assert service.get_session(session_id).state == SessionState.ASSIGNED
        assigned = events_of(transport, session_id, EventType.COUNSELOR_ASSIGNED)
        assert assigned[0].payload["fallback"] is True
        assert assigned[0].payload["counselor"]["id"] == "counselor-1"
        assert sample("harbor_counselor_assignments_total", {"mode": "fallback"}) == before + 1

    @pytest.mark.asyncio
    async def test_initial_priority(self, service):
        session_id = await service.create_session("user-1", SessionPriority.HIGH)

        assert service.get_snapshot(session_id)["priority"] == "high"


class TestMessaging:
    """Tests for user messages and counselor replies."""

    @pytest.mark.asyncio
    async def test_low_message_gets_reply(self, service, timers, transport):
        session_id = await start_active(service, timers)

        outcome = await service.submit_message(session_id, LOW_TEXT)

        assert outcome.event is None
        assert outcome.assessment.level.label == "low"
        assert outcome.message.content == LOW_TEXT
        assert events_of(transport, session_id)[-1].type == EventType.TYPING_START

        await timers.advance(10)

        tail = [e.type for e in events_of(transport, session_id)[-2:]]
        assert tail == [EventType.TYPING_STOP, EventType.MESSAGE_NEW]
        reply = messages(transport, session_id)[-1]
        assert reply["sender_role"] == "counselor"
        assert reply["sender_id"] == "counselor-3"
        assert events_of(transport, session_id, EventType.CRISIS_ESCALATED) == []

    @pytest.mark.asyncio
    async def test_message_while_queued_gets_no_reply_yet(self, service, transport):
        session_id = await service.create_session("user-1")

        await service.submit_message(session_id, LOW_TEXT)

        assert events_of(transport, session_id, EventType.TYPING_START) == []

    @pytest.mark.asyncio
    async def test_sequences_are_contiguous(self, service, timers, transport):
        session_id = await start_active(service, timers)
        await service.submit_message(session_id, LOW_TEXT)
        await service.submit_message(session_id, CRITICAL_TEXT)
        await timers.advance(30)

        sequences = [e.sequence for e in events_of(transport, session_id)]
        assert sequences == list(range(len(sequences)))

        logged = [m.sequence for m in service.get_session(session_id).session.messages]
        published = [m["sequence"] for m in messages(transport, session_id)]
        assert published == logged

    @pytest.mark.asyncio
    async def test_user_typing_auto_stops(self, service, timers, transport):
        session_id = await start_active(service, timers)

        await service.set_user_typing(session_id, True)
        await service.set_user_typing(session_id, True)
        assert len(events_of(transport, session_id, EventType.TYPING_START)) == 1

        await timers.advance(30)

        stops = events_of(transport, session_id, EventType.TYPING_STOP)
        assert len(stops) == 1
        assert stops[0].payload["sender_role"] == "user"

    @pytest.mark.asyncio
    async def test_message_stops_user_typing(self, service, timers, transport):
        session_id = await start_active(service, timers)
        await service.set_user_typing(session_id, True)

        await service.submit_message(session_id, LOW_TEXT)

        types = [e.type for e in events_of(transport, session_id)]
        assert types[-3:-1] == [EventType.TYPING_STOP, EventType.MESSAGE_NEW]

    @pytest.mark.asyncio
    async def test_structured_answers(self, service, timers, store):
        session_id = await start_active(service, timers)

        outcome = await service.submit_assessment_answers(
            session_id, {"safety": 1, "self-harm-plan": 1, "self-harm-means": 1},
        )
        await service.persistence.drain()

        assert outcome.assessment.level.label == "critical"
        assert outcome.event.action.value == "auto_dial_988"
        interactions = await store.list_interactions(session_id)
        assert interactions[0].action == InteractionAction.ASSESSMENT


class TestEscalation:
    """Tests for escalation inside a session."""

    @pytest.mark.asyncio
    async def test_escalation_precedes_reply(self, service, timers, transport):
        session_id = await start_active(service, timers)
        before = len(events_of(transport, session_id))

        outcome = await service.submit_message(session_id, CRITICAL_TEXT)

        new = events_of(transport, session_id)[before:]
        assert [e.type for e in new] == [
            EventType.MESSAGE_NEW,
            EventType.MESSAGE_NEW,
            EventType.CRISIS_ESCALATED,
            EventType.TYPING_START,
        ]
        assert new[1].payload["message"]["type"] == "crisis-alert"
        assert new[2].payload["action"] == "auto_dial_988"
        assert new[2].payload["event_id"] == outcome.event.event_id
        assert {c["phone"] for c in new[2].payload["contacts"]} >= {"988", "911"}

        crisis = service.get_session(session_id)
        assert crisis.state == SessionState.ESCALATED
        assert crisis.priority == SessionPriority.CRITICAL

    @pytest.mark.asyncio
    async def test_dispatch_after_delay(self, service, timers):
        session_id = await start_active(service, timers)
        outcome = await service.submit_message(session_id, CRITICAL_TEXT)
        dispatcher = service.deps.dispatcher

        assert dispatcher.dispatched == []

        await timers.advance(1)

        assert [e.event_id for e in dispatcher.dispatched] == [outcome.event.event_id]

    @pytest.mark.asyncio
    async def test_repeat_critical_emits_one_event(self, service, timers, transport):
        session_id = await start_active(service, timers)

        first = await service.submit_message(session_id, CRITICAL_TEXT)
        await timers.advance(2)
        second = await service.submit_message(session_id, CRITICAL_TEXT)

        assert first.event is not None
        assert second.event is None
        assert len(events_of(transport, session_id, EventType.CRISIS_ESCALATED)) == 1
        assert len(service.deps.coordinator.get_events(session_id)) == 1

    @pytest.mark.asyncio
    async def test_priority_never_decreases(self, service, timers):
        session_id = await start_active(service, timers)

        await service.submit_message(session_id, CRITICAL_TEXT)
        await timers.advance(60)
        await service.submit_message(session_id, LOW_TEXT)

        assert service.get_session(session_id).priority == SessionPriority.CRITICAL

    @pytest.mark.asyncio
    async def test_acknowledge_returns_to_active(self, service, timers):
        session_id = await start_active(service, timers)
        await service.submit_message(session_id, CRITICAL_TEXT)

        assert await service.acknowledge_escalation(session_id)
        assert not await service.acknowledge_escalation(session_id)

        crisis = service.get_session(session_id)
        assert crisis.state == SessionState.ACTIVE
        assert crisis.priority == SessionPriority.CRITICAL

    @pytest.mark.asyncio
    async def test_escalation_while_queued(self, service, timers):
        session_id = await service.create_session("user-1")

        await service.submit_message(session_id, CRITICAL_TEXT)
        crisis = service.get_session(session_id)
        assert crisis.state == SessionState.ESCALATED

        await timers.advance(3)
        assert crisis.state == SessionState.ESCALATED
        assert crisis.session.counselor is not None

        await service.acknowledge_escalation(session_id)
        assert crisis.state == SessionState.ACTIVE

    @pytest.mark.asyncio
    async def test_sustained_high_brings_in_specialist(self, service, timers, transport, directory):
        session_id = await start_active(service, timers)

        first = await service.submit_message(session_id, HIGH_TEXT)
        await timers.advance(20)
        second = await service.submit_message(session_id, HIGH_TEXT)

        assert first.event is None
        assert second.event.action.value == "specialist_handoff"
        assert service.get_session(session_id).state == SessionState.ACTIVE

        await timers.advance(4)

        snapshot = service.get_snapshot(session_id)
        assert snapshot["specialist"]["id"] == "specialist-1"
        assigned = events_of(transport, session_id, EventType.COUNSELOR_ASSIGNED)
        assert assigned[-1].payload["specialist"] is True

        await service.submit_message(session_id, HIGH_TEXT)
        await timers.advance(15)
        assert messages(transport, session_id)[-1]["sender_id"] == "specialist-1"

        await service.end_session(session_id)
        assert directory.status("counselor-3") == CounselorStatus.AVAILABLE

    @pytest.mark.asyncio
    async def test_dispatch_failure_surfaces_manual_dial(
        self, test_settings, timers, transport, store, directory,
    ):
        dispatcher = FailingDispatcher()
        service = CrisisSessionService(build_dependencies(
            test_settings,
            transport=transport,
            timers=timers,
            store=store,
            directory=directory,
            dispatcher=dispatcher,
        ))
        before = sample("harbor_emergency_dispatch_failures_total", {"action": "auto_dial_988"})
        session_id = await start_active(service, timers)

        await service.submit_message(session_id, CRITICAL_TEXT)
        await timers.advance(1)
        await service.persistence.drain()

        failed = events_of(transport, session_id, EventType.CRISIS_DISPATCH_FAILED)
        assert len(failed) == 1
        payload = failed[0].payload
        assert payload["reason"] == "line busy"
        assert {c["id"] for c in payload["contacts"]} == {
            "988-lifeline", "crisis-text", "emergency-services",
        }
        assert "call 988" in payload["instructions"]
        assert "text HOME to 741741" in payload["instructions"]

        alert = messages(transport, session_id)[-1]
        assert alert["type"] == "crisis-alert"
        assert alert["content"] == payload["instructions"]

        assert sample("harbor_emergency_dispatch_failures_total", {"action": "auto_dial_988"}) == before + 1
        dispatches = [
            i for i in await store.list_interactions(session_id)
            if i.action == InteractionAction.EMERGENCY_DISPATCH
        ]
        assert [i.successful for i in dispatches] == [False]

    @pytest.mark.asyncio
    async def test_crashing_dispatcher_still_surfaces_manual_dial(
        self, test_settings, timers, transport, store, directory,
    ):
        service = CrisisSessionService(build_dependencies(
            test_settings,
            transport=transport,
            timers=timers,
            store=store,
            directory=directory,
            dispatcher=CrashingDispatcher(),
        ))
        before = sample("harbor_emergency_dispatch_failures_total", {"action": "auto_dial_988"})
        session_id = await start_active(service, timers)

        await service.submit_message(session_id, CRITICAL_TEXT)
        await timers.advance(1)

        failed = events_of(transport, session_id, EventType.CRISIS_DISPATCH_FAILED)
        assert len(failed) == 1
        assert failed[0].payload["reason"] == "ConnectionError"
        assert "call 988" in failed[0].payload["instructions"]
        assert messages(transport, session_id)[-1]["type"] == "crisis-alert"
        assert sample("harbor_emergency_dispatch_failures_total", {"action": "auto_dial_988"}) == before + 1

    @pytest.mark.asyncio
    async def test_dispatch_fails_while_disconnected(self, service, timers, transport):
        session_id = await start_active(service, timers)
        await service.submit_message(session_id, CRITICAL_TEXT)

        await transport.set_connected(False)
        await timers.advance(1)
        await transport.set_connected(True)

        types = [e.type for e in events_of(transport, session_id)]
        lost = types.index(EventType.CONNECTION_LOST)
        assert types[lost:lost + 4] == [
            EventType.CONNECTION_LOST,
            EventType.CRISIS_DISPATCH_FAILED,
            EventType.MESSAGE_NEW,
            EventType.CONNECTION_RESTORED,
        ]
        failed = events_of(transport, session_id, EventType.CRISIS_DISPATCH_FAILED)[0]
        assert failed.payload["reason"] == "transport disconnected"


class TestEnding:
    """Tests for ending sessions."""

    @pytest.mark.asyncio
    async def test_ended_session_drops_messages(self, service, timers, transport):
        session_id = await start_active(service, timers)
        crisis = service.get_session(session_id)
        dropped = sample("harbor_dropped_messages_total")

        assert await service.end_session(session_id)
        event_count = len(events_of(transport, session_id))

        assert await service.submit_message(session_id, CRITICAL_TEXT) is None
        assert crisis.pending_timers == []
        assert timers.pending == []

        await timers.advance(3600)

        assert len(events_of(transport, session_id)) == event_count
        assert crisis.state == SessionState.ENDED
        assert sample("harbor_dropped_messages_total") == dropped + 1

    @pytest.mark.asyncio
    async def test_end_sends_closing_and_summary(self, service, timers, transport, store, directory):
        session_id = await start_active(service, timers)
        await service.submit_message(session_id, LOW_TEXT)

        await service.end_session(session_id)
        await service.persistence.drain()

        history = events_of(transport, session_id)
        assert history[-1].type == EventType.SESSION_ENDED
        assert "988" in messages(transport, session_id)[-1]["content"]

        summary = store.summaries[session_id]
        assert summary["end_reason"] == "user"
        assert summary["peak_severity"] == "low"
        assert summary["user_message_count"] == 1
        assert directory.status("counselor-3") == CounselorStatus.AVAILABLE

    @pytest.mark.asyncio
    async def test_end_flushes_pending_dispatch(self, service, timers, store):
        session_id = await start_active(service, timers)
        await service.submit_message(session_id, CRITICAL_TEXT)

        await service.end_session(session_id)
        await service.persistence.drain()

        assert len(service.deps.dispatcher.dispatched) == 1
        assert store.summaries[session_id]["escalated"] is True

    @pytest.mark.asyncio
    async def test_end_twice(self, service, timers):
        session_id = await start_active(service, timers)

        assert await service.end_session(session_id)
        assert not await service.end_session(session_id)

    @pytest.mark.asyncio
    async def test_inactivity_ends_session(self, service, timers):
        session_id = await service.create_session("user-1")

        await timers.advance(900)

        assert service.get_snapshot(session_id)["state"] == "ended"
        with pytest.raises(SessionNotFound) as exc_info:
            service.get_session(session_id)
        assert exc_info.value.reason == "session ended"

    @pytest.mark.asyncio
    async def test_activity_resets_inactivity(self, service, timers):
        session_id = await service.create_session("user-1")

        await timers.advance(500)
        await service.submit_message(session_id, LOW_TEXT)
        await timers.advance(500)

        assert service.get_session(session_id).state == SessionState.ACTIVE

    @pytest.mark.asyncio
    async def test_shutdown_ends_everything(self, service, timers, store):
        first = await service.create_session("user-1")
        second = await service.create_session("user-2")

        await service.shutdown()

        assert service.active_count == 0
        assert store.summaries[first]["end_reason"] == "shutdown"
        assert store.summaries[second]["end_reason"] == "shutdown"

    @pytest.mark.asyncio
    async def test_unknown_session(self, service):
        assert await service.submit_message("missing", "hello") is None
        assert not await service.end_session("missing")
        with pytest.raises(SessionNotFound):
            service.get_snapshot("missing")
