"""
Unit Tests for In-Memory Transport

Tests per-session ordering, outbox buffering while disconnected and
connection observers.
"""

import pytest

from harbor.infrastructure.scheduling.timers import VirtualTimerService
from harbor.infrastructure.transport.base import ConnectionObserver
from harbor.infrastructure.transport.events import EventType, OutboundEvent
from harbor.infrastructure.transport.memory import InMemoryTransport


@pytest.fixture
def clock():
    return VirtualTimerService()


@pytest.fixture
def transport(clock):
    return InMemoryTransport(clock=clock)


def message(clock, session_id, text):
    return OutboundEvent(
        type=EventType.MESSAGE_NEW,
        session_id=session_id,
        timestamp=clock.now(),
        payload={"content": text},
    )


class RecordingObserver(ConnectionObserver):
    def __init__(self):
        self.calls = []

    async def on_connection_lost(self):
        self.calls.append("lost")

    async def on_connection_restored(self):
        self.calls.append("restored")


class TestPublish:
    """Tests for event delivery."""

    @pytest.mark.asyncio
    async def test_sequences_are_per_session(self, transport, clock):
        a = await transport.publish(message(clock, "s1", "one"))
        b = await transport.publish(message(clock, "s2", "two"))
        c = await transport.publish(message(clock, "s1", "three"))

        assert (a.sequence, b.sequence, c.sequence) == (0, 0, 1)

    @pytest.mark.asyncio
    async def test_subscriber_receives_in_order(self, transport, clock):
        subscription = transport.subscribe("s1")

        for text in ["one", "two", "three"]:
            await transport.publish(message(clock, "s1", text))

        events = subscription.pending()
        assert [e.payload["content"] for e in events] == ["one", "two", "three"]
        assert [e.sequence for e in events] == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_other_sessions_not_delivered(self, transport, clock):
        subscription = transport.subscribe("s1")

        await transport.publish(message(clock, "s2", "elsewhere"))

        assert subscription.pending() == []
        assert len(transport.history("s2")) == 1

    @pytest.mark.asyncio
    async def test_cancelled_subscription(self, transport, clock):
        subscription = transport.subscribe("s1")
        subscription.cancel()

        await transport.publish(message(clock, "s1", "late"))

        assert subscription.closed
        assert transport.subscriber_count("s1") == 0
        assert await subscription.next_event(timeout=0.01) is None

    @pytest.mark.asyncio
    async def test_close_session_ends_iteration(self, transport, clock):
        subscription = transport.subscribe("s1")
        await transport.publish(message(clock, "s1", "bye"))

        transport.close_session("s1")
        received = [event async for event in subscription]

        assert [e.payload["content"] for e in received] == ["bye"]

    @pytest.mark.asyncio
    async def test_closed_session_history_is_bounded(self, clock):
        transport = InMemoryTransport(clock=clock, closed_session_limit=10)

        for i in range(100):
            session_id = f"s{i}"
            transport.open_session(session_id)
            await transport.publish(message(clock, session_id, "hello"))
            transport.close_session(session_id)

        kept = [f"s{i}" for i in range(100) if transport.history(f"s{i}")]
        assert kept == [f"s{i}" for i in range(90, 100)]

    @pytest.mark.asyncio
    async def test_open_session_history_survives_closures(self, clock):
        transport = InMemoryTransport(clock=clock, closed_session_limit=1)
        transport.open_session("live")
        await transport.publish(message(clock, "live", "still here"))

        for i in range(5):
            transport.open_session(f"s{i}")
            await transport.publish(message(clock, f"s{i}", "hello"))
            transport.close_session(f"s{i}")

        assert [e.payload["content"] for e in transport.history("live")] == ["still here"]


class TestConnectivity:
    """Tests for outbox behaviour across connection loss."""

    @pytest.mark.asyncio
    async def test_events_held_while_disconnected(self, transport, clock):
        transport.open_session("s1")
        subscription = transport.subscribe("s1")

        await transport.set_connected(False)
        await transport.publish(message(clock, "s1", "held"))

        events = subscription.pending()
        assert [e.type for e in events] == [EventType.CONNECTION_LOST]

    @pytest.mark.asyncio
    async def test_restore_flushes_then_announces(self, transport, clock):
        transport.open_session("s1")
        subscription = transport.subscribe("s1")

        await transport.set_connected(False)
        await transport.publish(message(clock, "s1", "first"))
        await transport.publish(message(clock, "s1", "second"))
        await transport.set_connected(True)

        events = subscription.pending()
        assert [e.type for e in events] == [
            EventType.CONNECTION_LOST,
            EventType.MESSAGE_NEW,
            EventType.MESSAGE_NEW,
            EventType.CONNECTION_RESTORED,
        ]
        assert [e.payload.get("content") for e in events[1:3]] == ["first", "second"]

    @pytest.mark.asyncio
    async def test_observers_notified(self, transport):
        observer = RecordingObserver()
        transport.add_connection_observer(observer)

        await transport.set_connected(False)
        await transport.set_connected(False)
        await transport.set_connected(True)

        assert observer.calls == ["lost", "restored"]

    @pytest.mark.asyncio
    async def test_removed_observer_not_notified(self, transport):
        observer = RecordingObserver()
        transport.add_connection_observer(observer)
        transport.remove_connection_observer(observer)

        await transport.set_connected(False)

        assert observer.calls == []

    @pytest.mark.asyncio
    async def test_held_events_flushed_after_session_closed(self, transport, clock):
        transport.open_session("s1")
        await transport.set_connected(False)
        await transport.publish(message(clock, "s1", "held"))

        transport.close_session("s1")
        await transport.set_connected(True)

        assert [e.payload.get("content") for e in transport.history("s1")][-1] == "held"
