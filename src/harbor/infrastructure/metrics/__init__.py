"""Metrics infrastructure package."""

from harbor.infrastructure.metrics.prometheus_metrics import (
    # Session metrics
    CRISIS_SESSIONS_STARTED,
    CRISIS_SESSIONS_ENDED,
    CRISIS_SESSION_DURATION,
    ACTIVE_CRISIS_SESSIONS,
    COUNSELOR_ASSIGNMENTS,
    DROPPED_MESSAGES,
    # Risk and escalation metrics
    RISK_ASSESSMENTS_TOTAL,
    EMERGENCY_EVENTS_TOTAL,
    DISPATCH_FAILURES_TOTAL,
    # Persistence metrics
    PERSISTENCE_WRITES_TOTAL,
    PERSISTENCE_BUFFERED,
    # Transport metrics
    WEBSOCKET_CONNECTIONS,
    # Helpers
    track_session_started,
    track_session_ended,
    track_assignment,
    track_risk_assessment,
    track_emergency_event,
    track_dispatch_failure,
    track_persistence,
    update_system_info,
    # Router
    metrics_router,
)

__all__ = [
    "CRISIS_SESSIONS_STARTED",
    "CRISIS_SESSIONS_ENDED",
    "CRISIS_SESSION_DURATION",
    "ACTIVE_CRISIS_SESSIONS",
    "COUNSELOR_ASSIGNMENTS",
    "DROPPED_MESSAGES",
    "RISK_ASSESSMENTS_TOTAL",
    "EMERGENCY_EVENTS_TOTAL",
    "DISPATCH_FAILURES_TOTAL",
    "PERSISTENCE_WRITES_TOTAL",
    "PERSISTENCE_BUFFERED",
    "WEBSOCKET_CONNECTIONS",
    "track_session_started",
    "track_session_ended",
    "track_assignment",
    "track_risk_assessment",
    "track_emergency_event",
    "track_dispatch_failure",
    "track_persistence",
    "update_system_info",
    "metrics_router",
]
