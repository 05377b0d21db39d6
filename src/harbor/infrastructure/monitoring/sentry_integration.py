"""
Sentry Integration

Error tracking for the crisis engine. Two kinds of events reach
Sentry: unhandled request errors, and safety events (failed emergency
dispatches) which are tagged so they can page someone.

PRIVACY: Nothing a user typed may leave the process. Message text,
assessment answers and safety plan entries are replaced with their
size before an event is sent, and request bodies are dropped.
"""

from typing import Any, Optional

import sentry_sdk
from sentry_sdk.integrations.asyncio import AsyncioIntegration
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

from harbor import __version__
from harbor.config.logging_config import SECRET_MARKERS, get_logger

logger = get_logger(__name__)

# Keys holding user-authored content anywhere in an event
USER_CONTENT_KEYS = frozenset({
    "content",
    "text",
    "answers",
    "message",
    "warning_signs",
    "coping_strategies",
    "social_contacts",
    "reasons_for_living",
})

# Request headers worth keeping
SAFE_HEADERS = frozenset({"user-agent", "x-correlation-id", "content-type"})


def scrub(data: Any, key: str = "") -> Any:
    """
    Recursively replace user content and secrets.

    User content becomes "<N chars>" / "<N items>" so an event still
    shows that something was there.
    """
    lowered = key.lower().replace("-", "_")
    if lowered in USER_CONTENT_KEYS:
        if isinstance(data, str):
            return f"<{len(data)} chars>"
        if isinstance(data, (list, dict)):
            return f"<{len(data)} items>"
        return "<redacted>"
    if any(marker in lowered for marker in SECRET_MARKERS):
        return "<redacted>"
    if isinstance(data, dict):
        return {k: scrub(v, str(k)) for k, v in data.items()}
    if isinstance(data, list):
        return [scrub(item, key) for item in data]
    return data


def before_send(event: dict, hint: dict) -> Optional[dict]:
    request = event.get("request")
    if request:
        request.pop("data", None)
        request.pop("cookies", None)
        headers = request.get("headers") or {}
        request["headers"] = {k: v for k, v in headers.items() if k.lower() in SAFE_HEADERS}

    if "extra" in event:
        event["extra"] = scrub(event["extra"])
    for breadcrumb in event.get("breadcrumbs", {}).get("values", []):
        if "data" in breadcrumb:
            breadcrumb["data"] = scrub(breadcrumb["data"])
    return event


def init_sentry(
    dsn: str,
    environment: str = "development",
    traces_sample_rate: float = 0.1,
) -> bool:
    """
    Initialize Sentry; a blank DSN leaves it disabled.

    Returns:
        True when Sentry was initialized
    """
    if not dsn:
        logger.info("Sentry disabled, no DSN configured")
        return False

    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        release=f"harbor@{__version__}",
        traces_sample_rate=traces_sample_rate,
        before_send=before_send,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
            AsyncioIntegration(),
            # structlog already renders logs; only exceptions become events
            LoggingIntegration(level=None, event_level=None),
        ],
        send_default_pii=False,
        max_breadcrumbs=30,
    )
    logger.info("Sentry initialized", environment=environment)
    return True


def set_session_context(session_id: str, priority: str, state: str) -> None:
    """Attach the current crisis session to subsequent events."""
    sentry_sdk.set_context("crisis_session", {
        "session_id": session_id,
        "priority": priority,
        "state": state,
    })


def capture_safety_event(
    message: str,
    level: str = "warning",
    extra: Optional[dict[str, Any]] = None,
) -> None:
    """Report a safety event. A no-op when Sentry is disabled."""
    with sentry_sdk.new_scope() as scope:
        scope.set_tag("category", "safety")
        for key, value in scrub(extra or {}).items():
            scope.set_extra(key, value)
        sentry_sdk.capture_message(message, level="error" if level == "error" else "warning")


def capture_exception_with_context(
    exception: BaseException,
    extra: Optional[dict[str, Any]] = None,
) -> Optional[str]:
    """Report an unhandled exception; returns the Sentry event id."""
    with sentry_sdk.new_scope() as scope:
        for key, value in scrub(extra or {}).items():
            scope.set_extra(key, value)
        return sentry_sdk.capture_exception(exception)
