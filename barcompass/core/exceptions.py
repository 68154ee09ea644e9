"""Application exceptions and their FastAPI handlers.

Each exception class carries its error code and HTTP status; the handlers
render every error as RFC 7807 problem details.
"""

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError

from barcompass.core.logging import get_logger
from barcompass.core.problem_details import ProblemDetailResponse, problem_response

logger = get_logger(__name__)


# =============================================================================
# Exception Classes
# =============================================================================


class BarCompassError(Exception):
    """Base exception for BarCompass application errors.

    Subclasses set ``code``, ``status_code`` and ``default_message``.

    Args:
        message: Human-readable message; ``default_message`` when omitted.
        details: Extra context for logs (never sent to clients).
    """

    code: str = "INTERNAL_ERROR"
    status_code: int = 500
    default_message: str = "Internal error"

    def __init__(self, message: str | None = None, details: dict[str, Any] | None = None) -> None:
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    @property
    def title(self) -> str:
        """Problem title derived from the code (``NOT_FOUND`` -> ``Not Found``)."""
        return self.code.replace("_", " ").title()


class NotFoundError(BarCompassError):
    """Unknown venue external_id."""

    code = "NOT_FOUND"
    status_code = 404
    default_message = "Resource not found"


class ValidationError(BarCompassError):
    code = "VALIDATION_ERROR"
    status_code = 422
    default_message = "Validation failed"


class BadRequestError(BarCompassError):
    code = "BAD_REQUEST"
    status_code = 400
    default_message = "Bad request"


class DatabaseError(BarCompassError):
    """A venue read or write failed.

    The upsert engine turns it into an ``error`` outcome for the affected
    record; the batch carries on.
    """

    code = "DATABASE_ERROR"
    status_code = 500
    default_message = "Database operation failed"


class ConflictError(DatabaseError):
    """A write collided with an existing row (duplicate external_id)."""

    code = "CONFLICT"
    status_code = 409
    default_message = "Resource conflict"


class ExternalServiceError(BarCompassError):
    """The places directory failed after retries."""

    code = "EXTERNAL_SERVICE_ERROR"
    status_code = 502
    default_message = "External service request failed"


# =============================================================================
# Exception Handlers (RFC 7807)
# =============================================================================


async def barcompass_exception_handler(
    request: Request,
    exc: BarCompassError,
) -> ProblemDetailResponse:
    """Render a BarCompassError; server-side errors are logged with traceback."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "app.error_handled",
        error=exc.message,
        error_code=exc.code,
        status_code=exc.status_code,
        path=request.url.path,
        details=exc.details,
        exc_info=exc.status_code >= 500,
    )

    return problem_response(
        status=exc.status_code,
        title=exc.title,
        code=exc.code,
        detail=exc.message,
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> ProblemDetailResponse:
    """Render request validation failures with one entry per field.

    Args:
        request: FastAPI request object.
        exc: Pydantic validation error.

    Returns:
        422 problem whose ``errors`` list has ``field``, ``message`` and ``type``.
    """
    field_errors = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": str(error.get("msg", "Validation failed")),
            "type": str(error.get("type", "unknown")),
        }
        for error in exc.errors()
    ]

    logger.warning(
        "app.validation_error",
        error_count=len(field_errors),
        path=request.url.path,
        fields=[e["field"] for e in field_errors],
    )

    return problem_response(
        status=422,
        title="Validation Error",
        code="VALIDATION_ERROR",
        detail=f"Request validation failed with {len(field_errors)} error(s).",
        errors=field_errors,
    )


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> ProblemDetailResponse:
    logger.error(
        "app.unhandled_error",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        exc_info=True,
    )

    return problem_response(
        status=500,
        title="Internal Server Error",
        code="INTERNAL_ERROR",
        detail="An unexpected error occurred. Quote the request_id when reporting it.",
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the problem+json handlers to ``app``."""
    app.add_exception_handler(BarCompassError, barcompass_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_exception_handler)
