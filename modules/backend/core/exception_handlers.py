"""
Exception Handlers.

Turns exceptions raised while handling a request into the standard error
envelope:

    {"success": false, "data": null,
     "error": {"code", "message", "details"},
     "metadata": {"timestamp", "request_id"}}

ApplicationError subclasses get the status from EXCEPTION_STATUS_MAP and
keep their own code and message. Request shape errors become 422
VAL_REQUEST_INVALID. Anything else is a 500 whose message reveals nothing
about the failure.

Usage:
    register_exception_handlers(app)
"""

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from modules.backend.core.exceptions import (
    ApplicationError,
    AuthorizationError,
    CodeSpaceExhaustedError,
    ConflictError,
    CryptoError,
    DatabaseError,
    ExpiredError,
    NotFoundError,
    ValidationError,
)
from modules.backend.core.logging import get_logger
from modules.backend.schemas.base import ErrorResponse

logger = get_logger(__name__)

# Subclasses resolve through their nearest mapped ancestor
EXCEPTION_STATUS_MAP: dict[type[ApplicationError], int] = {
    NotFoundError: 404,
    ExpiredError: 410,
    ValidationError: 400,
    AuthorizationError: 403,
    ConflictError: 409,
    CodeSpaceExhaustedError: 503,
    DatabaseError: 503,
    CryptoError: 500,
}


def get_status_code(exc: ApplicationError) -> int:
    """Resolve the HTTP status for an application exception."""
    for cls in type(exc).__mro__:
        if cls in EXCEPTION_STATUS_MAP:
            return EXCEPTION_STATUS_MAP[cls]
    return 500


def _get_request_id(request: Request) -> str | None:
    """Request ID set by the middleware, else the raw header."""
    if hasattr(request.state, "request_id"):
        return request.state.request_id
    return request.headers.get("x-request-id")


def _error_response(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    body = ErrorResponse.build(
        code=code,
        message=message,
        details=details,
        request_id=_get_request_id(request),
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def _request_fields(request: Request) -> dict[str, Any]:
    return {
        "path": request.url.path,
        "method": request.method,
        "request_id": _get_request_id(request),
    }


async def application_error_handler(
    request: Request,
    exc: ApplicationError,
) -> JSONResponse:
    """Handle all ApplicationError subclasses."""
    status_code = get_status_code(exc)

    log_extra = {
        "code": exc.code,
        "message": exc.message,
        "status": status_code,
        **_request_fields(request),
    }
    if status_code >= 500:
        logger.error("Server error", extra=log_extra)
    else:
        logger.warning("Client error", extra=log_extra)

    details = exc.details if isinstance(exc, ValidationError) and exc.details else None
    return _error_response(request, status_code, exc.code, exc.message, details)


async def validation_error_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Handle request body, path and query validation errors."""
    errors = exc.errors()

    logger.warning(
        "Request validation failed",
        extra={"error_count": len(errors), **_request_fields(request)},
    )

    details = {
        "validation_errors": [
            {
                "field": ".".join(str(loc) for loc in err.get("loc", [])),
                "message": err.get("msg", "Validation error"),
                "type": err.get("type", "unknown"),
            }
            for err in errors
        ]
    }
    return _error_response(
        request, 422, "VAL_REQUEST_INVALID", "Request validation failed", details,
    )


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle anything else without exposing internals."""
    logger.exception(
        "Unhandled exception",
        extra={"exception_type": type(exc).__name__, **_request_fields(request)},
    )
    return _error_response(
        request, 500, "SYS_INTERNAL_ERROR", "An unexpected error occurred",
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(ApplicationError, application_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    logger.debug("Exception handlers registered")
