"""
Error Handler Middleware

Binds a correlation id to every request and turns unhandled errors
into a sanitized 500.

SAFETY: The 500 body always carries the crisis hotline numbers, so a
broken request never leaves the user without a way to reach help.
"""

from uuid import uuid4

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from harbor.config.logging_config import bind_correlation_id, clear_context, get_logger
from harbor.infrastructure.monitoring import capture_exception_with_context
from harbor.services.resources.builtin import BUILT_IN_CONTACTS

logger = get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"

CRISIS_FALLBACK = [
    {"name": c.name, "phone": c.phone, "text_only": c.text_only}
    for c in BUILT_IN_CONTACTS
    if c.critical
]


def crisis_error_body(correlation_id: str) -> dict:
    return {
        "error": "Internal server error",
        "correlation_id": correlation_id,
        "message": "Something went wrong on our side. If you are in crisis, please reach out now.",
        "crisis_contacts": CRISIS_FALLBACK,
    }


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Correlation ids plus a crisis-safe 500 response."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid4())
        bind_correlation_id(correlation_id)

        try:
            response = await call_next(request)
        except Exception as e:
            # Request bodies may hold user text; only the route is logged
            logger.exception(
                "Unhandled request error",
                path=request.url.path,
                method=request.method,
                error_type=type(e).__name__,
            )
            capture_exception_with_context(e, extra={
                "path": request.url.path,
                "correlation_id": correlation_id,
            })
            response = JSONResponse(status_code=500, content=crisis_error_body(correlation_id))
        finally:
            clear_context()

        response.headers[CORRELATION_HEADER] = correlation_id
        return response
