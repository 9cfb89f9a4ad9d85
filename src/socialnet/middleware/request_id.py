"""Request ID + access log middleware.

Learn: Every request gets an ID, either from the incoming X-Request-ID
header or auto-generated. The ID is bound to structlog's contextvars so
it appears in every log entry for that request, and is echoed back in
the response header. One "http.request" line per request records
method, path, status and duration (query strings are left out, they can
carry tokens).
"""

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger()


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Generate and propagate a unique request ID; log each request."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        started = time.perf_counter()
        response: Response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        logger.info(
            "http.request",
            method=request.method,
            path=_redact(request.url.path),
            status=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
            client=request.client.host if request.client else None,
        )
        return response


_TOKEN_SEGMENTS = ("/verify-email/", "/reset-password/")


def _redact(path: str) -> str:
    """Hide single-use tokens carried in the path."""
    for segment in _TOKEN_SEGMENTS:
        if segment in path:
            return path.split(segment, 1)[0] + segment + "***"
    return path
