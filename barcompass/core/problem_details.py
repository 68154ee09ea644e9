"""RFC 7807 problem+json bodies for operator API errors.

Automation calling the ingestion endpoints branches on ``type`` (a stable
URI derived from the error code) and quotes ``request_id`` when reporting
failures.

Reference: https://datatracker.ietf.org/doc/html/rfc7807
"""

from typing import Any

from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from barcompass.core.logging import request_id_ctx

PROBLEM_TYPE_BASE = "/errors"


def problem_type(code: str) -> str:
    """Map an error code to its type URI (``NOT_FOUND`` -> ``/errors/not-found``)."""
    return f"{PROBLEM_TYPE_BASE}/{code.lower().replace('_', '-')}"


class ProblemDetail(BaseModel):
    """RFC 7807 body plus the ``code``, ``request_id`` and ``errors`` extensions."""

    model_config = ConfigDict(extra="allow")

    type: str = Field(default="about:blank", description="URI identifying the problem type")
    title: str = Field(..., description="Short summary of the problem type")
    status: int = Field(..., ge=400, le=599)
    detail: str | None = Field(None, description="Explanation specific to this occurrence")
    instance: str | None = Field(None, description="URI reference for this occurrence")
    code: str | None = Field(None, description="Machine-readable error code")
    request_id: str | None = None
    errors: list[dict[str, Any]] | None = Field(None, description="Field-level errors (422)")


class ProblemDetailResponse(JSONResponse):
    """JSON response with the problem+json media type."""

    media_type = "application/problem+json"


def problem_response(
    status: int,
    title: str,
    code: str,
    detail: str | None = None,
    errors: list[dict[str, Any]] | None = None,
) -> ProblemDetailResponse:
    """Render a problem for the current request.

    Args:
        status: HTTP status code.
        title: Short problem summary.
        code: Error code; also selects the type URI.
        detail: Occurrence-specific explanation.
        errors: Field-level validation errors.

    Returns:
        Response whose ``instance`` and ``request_id`` point at the current request.
    """
    request_id = request_id_ctx.get()
    problem = ProblemDetail(
        type=problem_type(code),
        title=title,
        status=status,
        detail=detail,
        instance=f"/requests/{request_id}" if request_id else None,
        code=code,
        request_id=request_id,
        errors=errors,
    )
    return ProblemDetailResponse(status_code=status, content=problem.model_dump(exclude_none=True))
