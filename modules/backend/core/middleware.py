"""
Request Context Middleware.

Every request gets an ID and a client source, stored on request.state
and bound into the structlog context so that all log lines emitted while
handling it carry them.

    X-Request-ID     taken from the request if present, otherwise a new UUID4; echoed back
    X-Frontend-ID    client source (web, cli, api, internal); anything else logs as "unknown"
    X-Response-Time  handler duration in milliseconds
"""

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from modules.backend.core.logging import VALID_SOURCES, get_logger

REQUEST_ID_HEADER = "X-Request-ID"
SOURCE_HEADER = "X-Frontend-ID"
RESPONSE_TIME_HEADER = "X-Response-Time"

logger = get_logger(__name__)


def resolve_source(header_value: str | None) -> str:
    """Map the X-Frontend-ID header to a recognized log source."""
    source = (header_value or "").strip().lower()
    return source if source in VALID_SOURCES else "unknown"


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Sets request.state.request_id and request.state.source."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        source = resolve_source(request.headers.get(SOURCE_HEADER))
        request.state.request_id = request_id
        request.state.source = source

        started = time.perf_counter()
        structlog.contextvars.clear_contextvars()
        with structlog.contextvars.bound_contextvars(
            request_id=request_id,
            source=source,
            method=request.method,
            path=request.url.path,
        ):
            try:
                response = await call_next(request)
            except Exception as exc:
                logger.error(
                    "Request failed with exception",
                    extra={"duration_ms": _elapsed_ms(started), "error_type": type(exc).__name__},
                )
                raise

            duration_ms = _elapsed_ms(started)
            logger.debug(
                "Request completed",
                extra={"status_code": response.status_code, "duration_ms": duration_ms},
            )

        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers[RESPONSE_TIME_HEADER] = f"{duration_ms}ms"
        return response
