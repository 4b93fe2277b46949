# =============================================================================
# app/exceptions.py - Custom Exception Handlers
# =============================================================================
# Centralized exception handling for the API.
#
# Cover pipeline failures keep the payload the admin UI already understands:
#   500 {"error": "Failed to process image", "details": "<diagnostic>"}
# The error kind is logged but not exposed.
# =============================================================================

import logging
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse

from core.exceptions import CoverPipelineError
from core.models.cover import CoverErrorResponse
from lib.supabase_client import SupabaseClientError

logger = logging.getLogger(__name__)


class CoverApiException(Exception):
    """
    Base exception for API-level failures outside the cover pipeline.

    Provides structured error responses with actionable suggestions.
    """

    def __init__(
        self,
        message: str,
        code: str = "COVER_API_ERROR",
        status_code: int = 500,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.suggestion = suggestion
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response dict."""
        result = {
            "detail": self.message,
            "code": self.code,
        }
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Task Queue Exceptions
# =============================================================================

class TaskQueueUnavailableError(CoverApiException):
    """Raised when a background job cannot be submitted."""

    def __init__(self, error: str):
        super().__init__(
            message=f"Failed to submit task: {error}",
            code="TASK_QUEUE_UNAVAILABLE",
            status_code=503,
            suggestion="Check that Redis is running and a worker is started",
            details={"error": error}
        )


# =============================================================================
# Exception Handlers
# =============================================================================

def cover_failure_response(exc: Exception) -> JSONResponse:
    """Build the generic cover failure response for any exception."""
    if isinstance(exc, (CoverPipelineError, SupabaseClientError)):
        details = exc.message
    else:
        details = str(exc)
    return JSONResponse(
        status_code=500,
        content=CoverErrorResponse(details=details).model_dump(),
    )


async def cover_pipeline_exception_handler(
    request: Request,
    exc: CoverPipelineError
) -> JSONResponse:
    """
    Convert CoverPipelineError to the generic failure response.

    Every kind maps to status 500 with the diagnostic as a string.
    """
    logger.warning(
        f"Cover pipeline failed on {request.url.path}: "
        f"kind={exc.kind.value} stage={exc.stage.value}"
    )
    return cover_failure_response(exc)


async def supabase_client_exception_handler(
    request: Request,
    exc: SupabaseClientError
) -> JSONResponse:
    """
    Convert a failed Supabase client setup to the generic failure response.

    The client is built by a dependency, before the cover route runs, so
    this error never reaches the route's own error handling.
    """
    logger.error(f"Supabase client unavailable on {request.url.path}: {exc}")
    return cover_failure_response(exc)


async def cover_api_exception_handler(
    request: Request,
    exc: CoverApiException
) -> JSONResponse:
    """
    Convert CoverApiException to JSON response.

    Returns structured error with:
    - detail: Human-readable message
    - code: Machine-readable error code
    - suggestion: How to fix (if available)
    - details: Additional context
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


async def validation_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """
    Handle request validation errors (missing imageData / identifier).
    """
    errors = exc.errors() if hasattr(exc, "errors") else str(exc)
    return JSONResponse(
        status_code=422,
        content={
            "detail": "Validation error",
            "code": "VALIDATION_ERROR",
            "errors": jsonable_errors(errors),
        }
    )


def jsonable_errors(errors: Any) -> Any:
    """Keep only the JSON-safe parts of pydantic error dicts."""
    if not isinstance(errors, list):
        return errors
    return [
        {"loc": list(err.get("loc", [])), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in errors
    ]
