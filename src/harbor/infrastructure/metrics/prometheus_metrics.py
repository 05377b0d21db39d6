"""
Prometheus Metrics

Crisis engine observability metrics, exposed at /metrics for scraping.

ARCHITECTURE: Metrics are decoupled from business logic.
Only increment/observe; never block on metrics operations.
"""

from prometheus_client import (
    Counter,
    Histogram,
    Gauge,
    Info,
    generate_latest,
    CONTENT_TYPE_LATEST,
    REGISTRY,
)
from fastapi import APIRouter, Response

from harbor import __version__

# =============================================================================
# SESSION METRICS
# =============================================================================

CRISIS_SESSIONS_STARTED = Counter(
    "harbor_crisis_sessions_started_total",
    "Crisis sessions created",
)

CRISIS_SESSIONS_ENDED = Counter(
    "harbor_crisis_sessions_ended_total",
    "Crisis sessions ended",
    ["reason"],  # user, operator, inactivity, shutdown
)

CRISIS_SESSION_DURATION = Histogram(
    "harbor_crisis_session_duration_seconds",
    "Duration of crisis sessions",
    ["reason"],
    buckets=[30, 60, 120, 300, 600, 1800, 3600],
)

ACTIVE_CRISIS_SESSIONS = Gauge(
    "harbor_active_crisis_sessions",
    "Crisis sessions not yet ended",
)

COUNSELOR_ASSIGNMENTS = Counter(
    "harbor_counselor_assignments_total",
    "Counselor assignments by selection mode",
    ["mode"],  # matched, fallback
)

DROPPED_MESSAGES = Counter(
    "harbor_dropped_messages_total",
    "Inbound messages dropped for unknown or ended sessions",
)

# =============================================================================
# RISK AND ESCALATION METRICS
# =============================================================================

RISK_ASSESSMENTS_TOTAL = Counter(
    "harbor_risk_assessments_total",
    "Risk assessments by level and source",
    ["level", "source"],  # source: text, answers
)

EMERGENCY_EVENTS_TOTAL = Counter(
    "harbor_emergency_events_total",
    "Emergency actions decided by the coordinator",
    ["action", "outcome"],  # outcome: fired, deduped
)

DISPATCH_FAILURES_TOTAL = Counter(
    "harbor_emergency_dispatch_failures_total",
    "Emergency actions that could not be dispatched",
    ["action"],
)

# =============================================================================
# PERSISTENCE METRICS
# =============================================================================

PERSISTENCE_WRITES_TOTAL = Counter(
    "harbor_persistence_writes_total",
    "Persistence writes by record type and outcome",
    ["record_type", "outcome"],  # outcome: stored, buffered, replayed, dropped
)

PERSISTENCE_BUFFERED = Gauge(
    "harbor_persistence_buffered_records",
    "Records waiting for replay",
)

# =============================================================================
# TRANSPORT METRICS
# =============================================================================

WEBSOCKET_CONNECTIONS = Gauge(
    "harbor_websocket_connections",
    "Active WebSocket event streams",
)

# =============================================================================
# SYSTEM INFO
# =============================================================================

SYSTEM_INFO = Info(
    "harbor_system",
    "HARBOR system information",
)


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def track_session_started() -> None:
    """Record a new crisis session."""
    CRISIS_SESSIONS_STARTED.inc()
    ACTIVE_CRISIS_SESSIONS.inc()


def track_session_ended(reason: str, duration_seconds: float) -> None:
    """Record crisis session completion."""
    CRISIS_SESSIONS_ENDED.labels(reason=reason).inc()
    CRISIS_SESSION_DURATION.labels(reason=reason).observe(duration_seconds)
    ACTIVE_CRISIS_SESSIONS.dec()


def track_assignment(fallback: bool) -> None:
    """Record counselor assignment mode."""
    COUNSELOR_ASSIGNMENTS.labels(mode="fallback" if fallback else "matched").inc()


def track_risk_assessment(level: str, source: str) -> None:
    """Record risk assessment level."""
    RISK_ASSESSMENTS_TOTAL.labels(level=level, source=source).inc()


def track_emergency_event(action: str, deduped: bool) -> None:
    """Record an emergency action decision."""
    EMERGENCY_EVENTS_TOTAL.labels(
        action=action,
        outcome="deduped" if deduped else "fired",
    ).inc()


def track_dispatch_failure(action: str) -> None:
    """Record an emergency dispatch failure."""
    DISPATCH_FAILURES_TOTAL.labels(action=action).inc()


def track_persistence(record_type: str, outcome: str) -> None:
    """Record a persistence write outcome."""
    PERSISTENCE_WRITES_TOTAL.labels(record_type=record_type, outcome=outcome).inc()


def update_system_info(environment: str, version: str = __version__) -> None:
    """Update system info metric with current environment."""
    SYSTEM_INFO.info({
        "version": version,
        "environment": environment,
    })


# =============================================================================
# METRICS ENDPOINT
# =============================================================================

metrics_router = APIRouter(tags=["metrics"])


@metrics_router.get("/metrics")
async def metrics() -> Response:
    """
    Prometheus metrics endpoint.

    Returns metrics in Prometheus text format for scraping.
    """
    return Response(
        content=generate_latest(REGISTRY),
        media_type=CONTENT_TYPE_LATEST,
    )
