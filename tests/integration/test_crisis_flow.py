"""
Integration Tests - Crisis Flow

Tests complete sessions from queue to end: scoring, escalation,
counselor exchange, outbound ordering and persistence together.
"""

import asyncio

import pytest

from harbor.domain.enums.session import SessionState
from harbor.infrastructure.transport.events import EventType

CRITICAL_TEXT = "I want to kill myself and I have pills"
LOW_TEXT = "I feel really sad and lonely today"


class TestCrisisFlowIntegration:
    """Integration tests for whole crisis sessions."""

    @pytest.mark.asyncio
    async def test_full_conversation(self, service, timers, transport, store):
        """Queue, exchange, escalation, acknowledgement and end in one session."""
        session_id = await service.create_session("device-123")
        subscription = transport.subscribe(session_id)

        await timers.advance(3)
        await service.submit_message(session_id, LOW_TEXT)
        await timers.advance(15)
        await service.submit_message(session_id, CRITICAL_TEXT)
        await timers.advance(20)
        assert await service.acknowledge_escalation(session_id)
        await service.end_session(session_id)

        received = [event async for event in subscription]
        history = transport.history(session_id)

        assert received == history[1:]
        assert [e.sequence for e in history] == list(range(len(history)))
        assert received[-1].type == EventType.SESSION_ENDED

        # Scoring and escalation happen before the reply is scheduled
        types = [e.type for e in history]
        escalated = types.index(EventType.CRISIS_ESCALATED)
        assert types[escalated + 1] == EventType.TYPING_START

        await service.persistence.drain()
        summary = store.summaries[session_id]
        assert summary["peak_severity"] == "critical"
        assert summary["final_priority"] == "critical"
        assert summary["escalated"] is True

        report = await service.persistence.trend_report(session_id=session_id)
        assert report.total == 2
        assert report.critical_incidents == 1

    @pytest.mark.asyncio
    async def test_counselor_replies_keep_order(self, service, timers, transport):
        session_id = await service.create_session("device-123")
        await timers.advance(3)

        await service.submit_message(session_id, "hi")
        await service.submit_message(session_id, LOW_TEXT)
        await timers.advance(30)

        session = service.get_session(session_id).session
        roles = [m.sender_role.value for m in session.messages]
        assert roles == ["counselor", "user", "user", "counselor", "counselor"]
        assert [m.sequence for m in session.messages] == list(range(5))

    @pytest.mark.asyncio
    async def test_store_outage_buffers_and_replays(self, service, timers, store):
        session_id = await service.create_session("device-123")
        await timers.advance(3)
        store.available = False

        await service.submit_message(session_id, LOW_TEXT)
        await service.submit_message(session_id, CRITICAL_TEXT)
        await timers.advance(1)
        await service.persistence.drain()

        assert service.persistence.buffered_count >= 2
        history = await service.persistence.recent_assessments(session_id=session_id)
        assert [a.level.label for a in history] == ["low", "critical"]

        store.available = True
        await service.persistence.replay()

        assert service.persistence.buffered_count == 0
        stored = await store.list_assessments(session_id=session_id)
        assert len(stored) == 2

    @pytest.mark.asyncio
    async def test_transport_outage_holds_events_and_records(self, service, timers, transport, store):
        session_id = await service.create_session("device-123")
        await timers.advance(3)

        await transport.set_connected(False)
        await service.submit_message(session_id, LOW_TEXT)
        held = len(transport.history(session_id))

        assert not service.persistence.online
        assert service.persistence.buffered("assessment")

        await transport.set_connected(True)

        assert len(transport.history(session_id)) > held
        assert transport.history(session_id)[-1].type == EventType.CONNECTION_RESTORED
        assert service.persistence.buffered_count == 0
        assert len(await store.list_assessments(session_id=session_id)) == 1

    @pytest.mark.asyncio
    async def test_concurrent_sessions_share_counselors(self, service, timers, transport, directory):
        session_ids = await asyncio.gather(*(
            service.create_session(f"device-{i}") for i in range(5)
        ))

        await timers.advance(2)

        counselors = [service.get_session(s).session.counselor.id for s in session_ids]
        assert all(service.get_session(s).state == SessionState.ASSIGNED for s in session_ids)
        assert len(set(counselors[:4])) == 4
        assert directory.stats()["assigned_sessions"] == 5
        fallbacks = [
            e for s in session_ids
            for e in transport.history(s)
            if e.type == EventType.COUNSELOR_ASSIGNED and e.payload["fallback"]
        ]
        assert len(fallbacks) == 1

        for session_id in session_ids:
            await service.end_session(session_id)
        assert len(directory.available()) == 4
