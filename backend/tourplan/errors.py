"""Error taxonomy and the single error-formatting boundary.

Every failure that reaches a route is rendered as ``{"success": false, "message": ...}``
with the status code carried by the exception. Internal details never cross the boundary.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors that map to an HTTP status."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class Unauthenticated(AppError):
    """Caller identity is missing or invalid."""

    status_code = status.HTTP_401_UNAUTHORIZED


class ValidationFailed(AppError):
    """Request passed schema validation but violates a business rule."""

    status_code = status.HTTP_400_BAD_REQUEST


class ThreadOwnershipError(AppError):
    """Conversation thread belongs to a different user."""

    status_code = status.HTTP_403_FORBIDDEN


class UpstreamUnavailable(AppError):
    """AI engine is unreachable or returned an error."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class AIEngineTimeoutError(UpstreamUnavailable):
    """AI engine did not answer within the configured timeout."""

    status_code = status.HTTP_504_GATEWAY_TIMEOUT


class AIEngineConnectionError(UpstreamUnavailable):
    """AI engine refused the connection or the network failed."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class AIEngineUpstreamError(UpstreamUnavailable):
    """AI engine answered with a non-2xx status."""

    def __init__(self, message: str, upstream_status: int, body: object = None) -> None:
        super().__init__(message, status_code=upstream_status)
        self.upstream_status = upstream_status
        self.body = body


class AIEngineDecodeError(UpstreamUnavailable):
    """AI engine answered with a body that is not the expected JSON shape."""

    status_code = status.HTTP_502_BAD_GATEWAY


class AIEngineCircuitOpenError(UpstreamUnavailable):
    """Circuit breaker is open; the call was not attempted."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class ExtractionFailed(AppError):
    """LLM extraction produced nothing usable."""

    status_code = status.HTTP_502_BAD_GATEWAY


class NoContentError(ExtractionFailed):
    """Completion returned no text."""


class MalformedResponseError(ExtractionFailed):
    """Completion text is not a JSON object."""


class ExtractionUnavailable(AppError):
    """No LLM credentials are configured."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class PersistenceError(AppError):
    """Trip store failed to record an accepted plan."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def error_body(message: str) -> dict[str, object]:
    """Build the uniform error envelope."""
    return {"success": False, "message": message}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render an AppError with its own status code."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {type(exc).__name__}: {exc}")
    else:
        logger.warning(f"{request.method} {request.url.path} rejected: {exc}")
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message))


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Render HTTP exceptions (including 404/405 routing errors) in the uniform envelope."""
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(message),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render schema validation errors as 400 with the first problem spelled out."""
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg', 'invalid value')}" if location else first.get(
            "msg", "invalid value"
        )
    else:
        message = "Invalid request"
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=error_body(message))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler: log the fault, return a generic message."""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("Internal server error"),
    )


def register_error_handlers(app: FastAPI) -> None:
    """Install the error-formatting boundary on an application."""
    app.add_exception_handler(AppError, app_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(
        RequestValidationError, validation_exception_handler  # type: ignore[arg-type]
    )
    app.add_exception_handler(Exception, unhandled_exception_handler)
