"""
In-Memory Transport

In-process event channel used by the HTTP/WebSocket surface and by
tests. Events published while the collaborator is unreachable are
held in a per-session outbox and flushed in order on restoration.
"""

import asyncio
from collections import OrderedDict, defaultdict, deque
from typing import AsyncIterator, Optional

from harbor.config.logging_config import get_logger
from harbor.infrastructure.scheduling.clock import Clock, SystemClock
from harbor.infrastructure.transport.base import (
    ConnectionObserver,
    MessageTransport,
    Subscription,
)
from harbor.infrastructure.transport.events import EventType, OutboundEvent

logger = get_logger(__name__)

DEFAULT_HISTORY_LIMIT = 500
DEFAULT_CLOSED_SESSION_LIMIT = 500


class QueueSubscription(Subscription):
    """Subscription backed by an unbounded asyncio.Queue."""

    def __init__(self, session_id: str, transport: "InMemoryTransport") -> None:
        self.session_id = session_id
        self._transport = transport
        self._queue: asyncio.Queue[Optional[OutboundEvent]] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _deliver(self, event: OutboundEvent) -> None:
        if not self._closed:
            self._queue.put_nowait(event)

    def _close(self) -> None:
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(None)

    def pending(self) -> list[OutboundEvent]:
        """Drain events already delivered without waiting."""
        events = []
        while not self._queue.empty():
            event = self._queue.get_nowait()
            if event is not None:
                events.append(event)
        return events

    async def next_event(self, timeout: Optional[float] = None) -> Optional[OutboundEvent]:
        if self._closed and self._queue.empty():
            return None
        try:
            return await asyncio.wait_for(self._queue.get(), timeout)
        except asyncio.TimeoutError:
            return None

    async def __aiter__(self) -> AsyncIterator[OutboundEvent]:
        while True:
            event = await self._queue.get()
            if event is None:
                return
            yield event

    def cancel(self) -> None:
        self._transport._unsubscribe(self)
        self._close()


class InMemoryTransport(MessageTransport):
    """
    In-process message transport.

    Usage:
        transport = InMemoryTransport()
        subscription = transport.subscribe(session_id)
        async for event in subscription:
            ...
    """

    def __init__(
        self,
        clock: Optional[Clock] = None,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        closed_session_limit: int = DEFAULT_CLOSED_SESSION_LIMIT,
    ) -> None:
        self._clock = clock or SystemClock()
        self._connected = True
        self._sequences: dict[str, int] = defaultdict(int)
        self._subscriptions: dict[str, list[QueueSubscription]] = defaultdict(list)
        self._outbox: dict[str, deque[OutboundEvent]] = defaultdict(deque)
        self._history: dict[str, deque[OutboundEvent]] = {}
        self._history_limit = history_limit
        self._observers: list[ConnectionObserver] = []
        self._open_sessions: set[str] = set()
        # Closed sessions whose history is still kept, oldest first
        self._closed_sessions: OrderedDict[str, None] = OrderedDict()
        self._closed_session_limit = max(0, closed_session_limit)

    @property
    def connected(self) -> bool:
        return self._connected

    def open_session(self, session_id: str) -> None:
        """Register a session so connectivity events reach it."""
        self._open_sessions.add(session_id)
        self._closed_sessions.pop(session_id, None)

    async def publish(self, event: OutboundEvent) -> OutboundEvent:
        sequenced = self._sequence(event)
        if self._connected:
            self._deliver(sequenced)
        else:
            self._outbox[event.session_id].append(sequenced)
        return sequenced

    def _sequence(self, event: OutboundEvent) -> OutboundEvent:
        sequence = self._sequences[event.session_id]
        self._sequences[event.session_id] = sequence + 1
        return event.with_sequence(sequence)

    def _deliver(self, event: OutboundEvent) -> None:
        history = self._history.setdefault(
            event.session_id, deque(maxlen=self._history_limit),
        )
        history.append(event)
        for subscription in self._subscriptions.get(event.session_id, ()):
            subscription._deliver(event)

    def subscribe(self, session_id: str) -> QueueSubscription:
        subscription = QueueSubscription(session_id, self)
        self._subscriptions[session_id].append(subscription)
        return subscription

    def _unsubscribe(self, subscription: QueueSubscription) -> None:
        subscriptions = self._subscriptions.get(subscription.session_id)
        if subscriptions and subscription in subscriptions:
            subscriptions.remove(subscription)
            if not subscriptions:
                del self._subscriptions[subscription.session_id]

    def close_session(self, session_id: str) -> None:
        # Anything still held for a closing session is flushed first
        if self._connected:
            self._flush(session_id)
        for subscription in self._subscriptions.pop(session_id, []):
            subscription._close()
        self._open_sessions.discard(session_id)
        self._sequences.pop(session_id, None)
        self._retire_history(session_id)
        logger.debug("Transport session closed", session_id=session_id)

    def _retire_history(self, session_id: str) -> None:
        self._closed_sessions.pop(session_id, None)
        self._closed_sessions[session_id] = None
        while len(self._closed_sessions) > self._closed_session_limit:
            oldest, _ = self._closed_sessions.popitem(last=False)
            self._history.pop(oldest, None)

    def history(self, session_id: str) -> list[OutboundEvent]:
        """Delivered events for a session, oldest first."""
        return list(self._history.get(session_id, ()))

    def subscriber_count(self, session_id: str) -> int:
        return len(self._subscriptions.get(session_id, ()))

    # =========================================================================
    # Connectivity
    # =========================================================================

    def add_connection_observer(self, observer: ConnectionObserver) -> None:
        if observer not in self._observers:
            self._observers.append(observer)

    def remove_connection_observer(self, observer: ConnectionObserver) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    async def set_connected(self, connected: bool) -> None:
        """
        Report a connectivity change.

        Loss is announced immediately to every open session. On
        restoration the held events are flushed first, then the
        restored event is delivered, then observers are notified.
        """
        if connected == self._connected:
            return
        self._connected = connected

        if not connected:
            logger.warning("Transport connection lost", open_sessions=len(self._open_sessions))
            for session_id in sorted(self._open_sessions):
                self._deliver(self._status_event(session_id, EventType.CONNECTION_LOST))
            for observer in list(self._observers):
                await self._notify(observer.on_connection_lost)
            return

        flushed = 0
        for session_id in list(self._outbox):
            flushed += self._flush(session_id)
        for session_id in sorted(self._open_sessions):
            self._deliver(self._status_event(session_id, EventType.CONNECTION_RESTORED))
        logger.info("Transport connection restored", flushed_events=flushed)
        for observer in list(self._observers):
            await self._notify(observer.on_connection_restored)

    def _flush(self, session_id: str) -> int:
        held = self._outbox.pop(session_id, None)
        if not held:
            return 0
        for event in held:
            self._deliver(event)
        return len(held)

    def _status_event(self, session_id: str, event_type: EventType) -> OutboundEvent:
        return self._sequence(OutboundEvent(
            type=event_type,
            session_id=session_id,
            timestamp=self._clock.now(),
            payload={"connected": self._connected},
        ))

    async def _notify(self, callback) -> None:
        try:
            await callback()
        except Exception:
            logger.exception("Connection observer failed", observer=getattr(callback, "__qualname__", "?"))
