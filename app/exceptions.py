# =============================================================================
# app/exceptions.py - Custom Exceptions and Handlers
# =============================================================================
# Centralized error handling for the server.
# Errors should tell HOW to fix, not just WHAT failed.
#
# Route-level errors go through the FastAPI exception handlers registered in
# main.py. Middleware that rejects a request renders the same JSON body with
# exception_response(), since it runs outside FastAPI's exception handling.
# =============================================================================

import logging
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class PorticoException(Exception):
    """
    Base exception for the Portico server.

    All request-level exceptions inherit from this class.
    Provides structured error responses with actionable suggestions.
    """

    def __init__(
        self,
        message: str,
        code: str = "PORTICO_ERROR",
        status_code: int = 500,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.suggestion = suggestion
        self.details = details or {}
        self.headers = headers or {}

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
# Body Parsing Exceptions
# =============================================================================

class PayloadTooLargeError(PorticoException):
    """Raised when a request body exceeds the configured limit."""

    def __init__(self, content_type: str, limit_bytes: int, received_bytes: int | None = None):
        details: dict[str, Any] = {"content_type": content_type, "limit_bytes": limit_bytes}
        if received_bytes is not None:
            details["received_bytes"] = received_bytes
        super().__init__(
            message="request entity too large",
            code="PAYLOAD_TOO_LARGE",
            status_code=413,
            suggestion=f"Send a {content_type} body smaller than {limit_bytes // 1024}kb",
            details=details,
        )


class MalformedBodyError(PorticoException):
    """Raised when a request body cannot be decoded."""

    def __init__(self, content_type: str, error: str):
        super().__init__(
            message=f"Malformed request body: {error}",
            code="MALFORMED_BODY",
            status_code=400,
            suggestion=f"Check that the body is valid {content_type}",
            details={"content_type": content_type, "error": error},
        )


# =============================================================================
# Rate Limiting Exceptions
# =============================================================================

class RateLimitExceededError(PorticoException):
    """Raised when a client exceeds the request limit for a path prefix."""

    def __init__(self, message: str, limit: str, retry_after: int, headers: dict[str, str] | None = None):
        super().__init__(
            message=message,
            code="RATE_LIMITED",
            status_code=429,
            suggestion=f"Wait {retry_after} seconds before retrying",
            details={"limit": limit, "retry_after": retry_after},
            headers={**(headers or {}), "Retry-After": str(retry_after)},
        )


# =============================================================================
# Authentication Exceptions
# =============================================================================

class NotAuthenticatedError(PorticoException):
    """Raised when a route requires a user and the request has none."""

    def __init__(self, reason: str = "Not authenticated"):
        super().__init__(
            message=reason,
            code="NOT_AUTHENTICATED",
            status_code=401,
            suggestion="Log in or send a valid bearer token",
            headers={"WWW-Authenticate": "Bearer"},
        )


# =============================================================================
# Exception Handlers
# =============================================================================

def exception_response(exc: PorticoException) -> JSONResponse:
    """Render a PorticoException as a JSON response."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
        headers=exc.headers or None,
    )


async def portico_exception_handler(
    request: Request,
    exc: PorticoException
) -> JSONResponse:
    """
    Convert PorticoException to JSON response.

    Returns structured error with:
    - detail: Human-readable message
    - code: Machine-readable error code
    - suggestion: How to fix (if available)
    - details: Additional context
    """
    return exception_response(exc)


async def unhandled_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception(f"Unexpected error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": "An unexpected error occurred",
            "code": "INTERNAL_ERROR",
        }
    )
