"""
Unit Tests for Persistence Adapter

Tests fire-and-forget recording, retry, local buffering during
outages, replay on restoration and the merged read side.
"""

from datetime import timedelta

import pytest

from harbor.config.settings import PersistenceSettings
from harbor.domain.enums.resources import InteractionAction
from harbor.domain.enums.severity import SeverityLevel
from harbor.domain.models.emergency import CrisisInteraction
from harbor.domain.models.resource import SafetyPlan
from harbor.domain.models.risk import RiskAssessment
from harbor.errors import PersistenceFailure
from harbor.infrastructure.scheduling.timers import VirtualTimerService
from harbor.infrastructure.transport.memory import InMemoryTransport
from harbor.services.persistence import (
    InMemoryRecordStore,
    PersistenceAdapter,
    TrendDirection,
    analyze_trends,
)


class FlakyStore(InMemoryRecordStore):
    """Fails the first N assessment writes."""

    def __init__(self, failures):
        super().__init__()
        self.failures = failures
        self.calls = 0

    async def append_assessment(self, session_id, assessment):
        self.calls += 1
        if self.calls <= self.failures:
            raise PersistenceFailure("transient")
        await super().append_assessment(session_id, assessment)


@pytest.fixture
def clock():
    return VirtualTimerService()


@pytest.fixture
def settings():
    return PersistenceSettings(
        retry_attempts=3,
        retry_min_wait=0,
        retry_max_wait=0,
        max_buffered_assessments=3,
    )


@pytest.fixture
def store():
    return InMemoryRecordStore()


@pytest.fixture
def adapter(store, settings, clock):
    return PersistenceAdapter(store, settings=settings, clock=clock)


def make_assessment(clock, level=SeverityLevel.LOW, age_days=0.0):
    return RiskAssessment(
        level=level,
        confidence=0.5,
        timestamp=clock.now() - timedelta(days=age_days),
    )


class TestRecording:
    """Tests for the write path."""

    @pytest.mark.asyncio
    async def test_record_and_drain(self, adapter, store, clock):
        assessment = make_assessment(clock)

        adapter.record_assessment("session-1", assessment)
        await adapter.drain()

        assert adapter.buffered_count == 0
        assert await store.list_assessments(session_id="session-1") == [assessment]

    @pytest.mark.asyncio
    async def test_transient_failure_retried(self, settings, clock):
        store = FlakyStore(failures=2)
        adapter = PersistenceAdapter(store, settings=settings, clock=clock)

        adapter.record_assessment("session-1", make_assessment(clock))
        await adapter.drain()

        assert store.calls == 3
        assert adapter.buffered_count == 0

    @pytest.mark.asyncio
    async def test_failure_keeps_record_buffered(self, adapter, store, clock):
        store.available = False
        assessment = make_assessment(clock)

        adapter.record_assessment("session-1", assessment)
        await adapter.drain()

        assert adapter.buffered("assessment") == [assessment]

        store.available = True
        written = await adapter.replay()

        assert written == 1
        assert adapter.buffered_count == 0

    @pytest.mark.asyncio
    async def test_buffer_drops_oldest_when_full(self, adapter, clock):
        await adapter.on_connection_lost()
        assessments = [make_assessment(clock) for _ in range(4)]

        for assessment in assessments:
            adapter.record_assessment("session-1", assessment)

        assert [a.id for a in adapter.buffered("assessment")] == [a.id for a in assessments[1:]]

    @pytest.mark.asyncio
    async def test_all_record_types_written(self, adapter, store, clock):
        interaction = CrisisInteraction(
            action=InteractionAction.CALL,
            level=SeverityLevel.CRITICAL,
            timestamp=clock.now(),
            contact="988",
            session_id="session-1",
        )
        plan = SafetyPlan(user_id="user-1", warning_signs=["Not sleeping"])

        adapter.record_interaction(interaction)
        adapter.record_session_summary({"session_id": "session-1", "peak_severity": "critical"})
        adapter.record_safety_plan(plan)
        await adapter.drain()

        assert await store.list_interactions("session-1") == [interaction]
        assert store.summaries["session-1"]["peak_severity"] == "critical"
        assert await store.get_active_safety_plan("user-1") is plan


class TestConnectivity:
    """Tests for buffering across transport outages."""

    @pytest.mark.asyncio
    async def test_offline_records_replayed_on_restore(self, adapter, store, clock):
        transport = InMemoryTransport(clock=clock)
        transport.add_connection_observer(adapter)

        await transport.set_connected(False)
        adapter.record_assessment("session-1", make_assessment(clock))
        adapter.record_assessment("session-1", make_assessment(clock))

        assert not adapter.online
        assert await adapter.drain() == 0
        assert adapter.buffered_count == 2

        await transport.set_connected(True)

        assert adapter.online
        assert adapter.buffered_count == 0
        assert len(await store.list_assessments()) == 2

    @pytest.mark.asyncio
    async def test_replay_stops_at_first_failure(self, adapter, store, clock):
        await adapter.on_connection_lost()
        first = make_assessment(clock)
        second = make_assessment(clock)
        adapter.record_assessment("session-1", first)
        adapter.record_assessment("session-1", second)

        store.available = False
        await adapter.on_connection_restored()

        assert [a.id for a in adapter.buffered("assessment")] == [first.id, second.id]


class TestReadSide:
    """Tests for history reads merging the store and the buffer."""

    @pytest.mark.asyncio
    async def test_recent_assessments_merges_buffer(self, adapter, clock):
        stored = make_assessment(clock, age_days=1)
        adapter.record_assessment("session-1", stored)
        await adapter.drain()

        await adapter.on_connection_lost()
        buffered = make_assessment(clock, level=SeverityLevel.MODERATE)
        adapter.record_assessment("session-1", buffered)
        adapter.record_assessment("session-2", make_assessment(clock, level=SeverityLevel.CRITICAL))

        assert await adapter.recent_assessments(session_id="session-1") == [stored, buffered]

    @pytest.mark.asyncio
    async def test_recent_assessments_uses_buffer_when_store_down(self, adapter, store, clock):
        await adapter.on_connection_lost()
        buffered = make_assessment(clock)
        adapter.record_assessment("session-1", buffered)
        store.available = False

        assert await adapter.recent_assessments() == [buffered]

    @pytest.mark.asyncio
    async def test_recent_assessments_window(self, adapter, clock):
        old = make_assessment(clock, level=SeverityLevel.CRITICAL, age_days=10)
        new = make_assessment(clock, age_days=1)
        adapter.record_assessment(None, old)
        adapter.record_assessment(None, new)
        await adapter.drain()

        assert await adapter.recent_assessments(days=7) == [new]

    @pytest.mark.asyncio
    async def test_buffered_safety_plan_preferred(self, adapter, store, clock):
        stored = SafetyPlan(user_id="user-1", updated_at=clock.now())
        await store.save_safety_plan(stored)
        await adapter.on_connection_lost()
        pending = SafetyPlan(user_id="user-1", warning_signs=["new"])

        adapter.record_safety_plan(pending)

        assert await adapter.get_active_safety_plan("user-1") is pending
        assert await adapter.get_active_safety_plan("user-2") is None

    @pytest.mark.asyncio
    async def test_safety_plan_lookup_failure_returns_none(self, adapter, store):
        store.available = False

        assert await adapter.get_active_safety_plan("user-1") is None

    @pytest.mark.asyncio
    async def test_trend_report(self, adapter, clock):
        adapter.record_assessment("session-1", make_assessment(clock, level=SeverityLevel.LOW, age_days=1))
        adapter.record_assessment("session-1", make_assessment(clock, level=SeverityLevel.HIGH))
        await adapter.drain()

        report = await adapter.trend_report(session_id="session-1", days=7)

        assert report.total == 2
        assert report.critical_incidents == 1
        assert report.direction == TrendDirection.WORSENING


class TestTrends:
    """Tests for trend analysis."""

    def test_no_assessments(self, clock):
        report = analyze_trends([], days=7, now=clock.now())

        assert report.total == 0
        assert report.average_level == 1.0
        assert report.direction == TrendDirection.STABLE

    def test_worsening(self, clock):
        levels = [SeverityLevel.SAFE, SeverityLevel.SAFE, SeverityLevel.HIGH, SeverityLevel.CRITICAL]
        assessments = [
            make_assessment(clock, level=level, age_days=4 - i)
            for i, level in enumerate(levels)
        ]

        report = analyze_trends(assessments, days=7, now=clock.now())

        assert report.direction == TrendDirection.WORSENING
        assert report.average_level == pytest.approx(2.75)
        assert report.critical_incidents == 2

    def test_improving(self, clock):
        levels = [SeverityLevel.HIGH, SeverityLevel.MODERATE, SeverityLevel.LOW, SeverityLevel.SAFE]
        assessments = [
            make_assessment(clock, level=level, age_days=4 - i)
            for i, level in enumerate(levels)
        ]

        report = analyze_trends(assessments, days=7, now=clock.now())

        assert report.direction == TrendDirection.IMPROVING

    def test_small_change_is_stable(self, clock):
        levels = [SeverityLevel.LOW, SeverityLevel.MODERATE, SeverityLevel.LOW] * 2
        assessments = [
            make_assessment(clock, level=level, age_days=6 - i)
            for i, level in enumerate(levels)
        ]

        report = analyze_trends(assessments, days=7, now=clock.now())

        assert report.direction == TrendDirection.STABLE

    def test_outside_window_ignored(self, clock):
        assessments = [
            make_assessment(clock, level=SeverityLevel.CRITICAL, age_days=30),
            make_assessment(clock, level=SeverityLevel.LOW, age_days=1),
        ]

        report = analyze_trends(assessments, days=7, now=clock.now())

        assert report.total == 1
        assert report.critical_incidents == 0
