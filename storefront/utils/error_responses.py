"""Structured error payloads for the favorites API.

Handlers describe what went wrong; the helpers here stamp the timestamp and
the request id, and :func:`error_json_response` renders the payload with the
``X-Request-ID`` header so error responses can be matched to log lines even
when no middleware touched them.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime

from fastapi.responses import JSONResponse

from storefront.schemas.error import (
    ErrorResponse,
    ErrorType,
    ValidationErrorDetail,
    ValidationErrorResponse,
)
from storefront.utils.request_context import REQUEST_ID_HEADER, get_request_id

__all__ = [
    "build_error_response",
    "build_validation_error_response",
    "error_json_response",
]


def build_validation_error_response(
    *,
    errors: Sequence[ValidationErrorDetail],
    message: str,
    detail: str,
    status_code: int,
    path: str,
    request_id: str | None = None,
) -> ValidationErrorResponse:
    return ValidationErrorResponse(
        message=message,
        detail=detail,
        status_code=status_code,
        timestamp=datetime.now(UTC),
        request_id=request_id or get_request_id() or None,
        path=path,
        errors=list(errors),
    )


def build_error_response(
    *,
    error_type: ErrorType,
    message: str,
    detail: str,
    status_code: int,
    path: str,
    request_id: str | None = None,
) -> ErrorResponse:
    return ErrorResponse(
        error_type=error_type,
        message=message,
        detail=detail,
        status_code=status_code,
        timestamp=datetime.now(UTC),
        request_id=request_id or get_request_id() or None,
        path=path,
    )


def error_json_response(payload: ErrorResponse) -> JSONResponse:
    """Serialize ``payload`` using its own status code."""

    headers = {REQUEST_ID_HEADER: payload.request_id} if payload.request_id else None
    return JSONResponse(
        status_code=payload.status_code,
        content=payload.model_dump(mode="json"),
        headers=headers,
    )
