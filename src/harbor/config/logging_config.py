"""
HARBOR Logging Configuration

structlog setup for crisis sessions:
- Session and correlation ids bound through contextvars
- User-authored text replaced by its length before rendering
- Safety events (dispatches, escalations) tagged for alerting
- JSON output outside development

PRIVACY: User messages are never logged. Log lengths, levels and
indicator names instead.
"""

import logging
import sys
from typing import Any, Optional

import structlog

from harbor import __version__
from harbor.config.settings import Settings

EventDict = dict[str, Any]

# Substrings marking configuration secrets
SECRET_MARKERS: tuple[str, ...] = ("password", "token", "secret", "api_key", "dsn")

# Exact keys that carry user-authored text
USER_TEXT_KEYS: frozenset[str] = frozenset({"content", "text", "answers", "message_text"})

NOISY_LOGGERS: dict[str, int] = {
    "uvicorn.access": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
    "asyncio": logging.WARNING,
}


def _scrub(key: str, value: Any) -> Any:
    lowered = key.lower()
    if lowered in USER_TEXT_KEYS:
        return f"<{len(value)} chars>" if isinstance(value, (str, dict, list)) else "<redacted>"
    if any(marker in lowered for marker in SECRET_MARKERS):
        return "<redacted>"
    if isinstance(value, dict):
        return {k: _scrub(k, v) for k, v in value.items()}
    return value


def scrub_user_text(_: Any, __: str, event_dict: EventDict) -> EventDict:
    """Replace user text with its size and hide secrets; the message itself is kept."""
    return {
        key: value if key == "event" else _scrub(key, value)
        for key, value in event_dict.items()
    }


def tag_safety_events(_: Any, __: str, event_dict: EventDict) -> EventDict:
    """Entries logged with severity="critical" are flagged for log-based alerting."""
    if event_dict.get("severity") == "critical":
        event_dict["safety_event"] = True
    event_dict.setdefault("service", "harbor-engine")
    event_dict.setdefault("version", __version__)
    return event_dict


def build_processors(settings: Settings) -> list[Any]:
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        scrub_user_text,
        tag_safety_events,
    ]
    if settings.env == "development":
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))
    else:
        processors += [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    return processors


def configure_logging(settings: Settings) -> None:
    """
    Configure structlog and the stdlib root logger.

    Called by the application factory; calling it again replaces the
    previous configuration.
    """
    level = logging.getLevelName(settings.log_level)

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level, force=True)
    for name, noisy_level in NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(max(noisy_level, level))

    structlog.configure(
        processors=build_processors(settings),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_correlation_id(correlation_id: str) -> None:
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)


def bind_session_context(session_id: str, user_id: Optional[str] = None) -> None:
    """Bind crisis session ids so every entry in this context carries them."""
    context = {"session_id": session_id}
    if user_id is not None:
        context["user_id"] = user_id
    structlog.contextvars.bind_contextvars(**context)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
