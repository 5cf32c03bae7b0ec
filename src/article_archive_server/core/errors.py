"""
Error Kinds and Global Error Handling

This module defines the archive's exception hierarchy and the FastAPI
handlers that turn those exceptions into HTTP responses.

Design Goals
------------
- One exception type per caller-visible failure kind
- Never leak internal exception details to clients
- Always return deterministic, machine-readable error responses
- Log full stack traces internally for debugging
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger("archive.errors")


# ---------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------

class ArchiveError(Exception):
    """Base class for every failure the archive reports to callers."""

    status_code: int = 500
    code: str = "archive_error"
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(ArchiveError):
    """Payload failed validation. Carries every violated rule, not just the first."""

    status_code = 400
    code = "invalid_input"
    default_message = "Invalid input provided"

    def __init__(self, errors: Sequence[str], message: Optional[str] = None) -> None:
        super().__init__(message)
        self.errors: List[str] = list(errors)


class Unauthorized(ArchiveError):
    status_code = 401
    code = "unauthorized"
    default_message = "Invalid or expired authentication token"


class NotFound(ArchiveError):
    status_code = 404
    code = "not_found"
    default_message = "Article not found"


class QuotaExceeded(ArchiveError):
    status_code = 409
    code = "quota_exceeded"
    default_message = "Maximum number of articles reached"


class DuplicateURL(ArchiveError):
    status_code = 409
    code = "duplicate_url"
    default_message = "Article already saved"


class RateLimited(ArchiveError):
    status_code = 429
    code = "rate_limited"
    default_message = "Too many requests, please try again later"


class UpstreamUnavailable(ArchiveError):
    """The record store or an external collaborator failed."""

    status_code = 503
    code = "upstream_unavailable"
    default_message = "Service temporarily unavailable"


# ---------------------------------------------------------------------
# Public Exception Handlers
# ---------------------------------------------------------------------

async def archive_error_handler(
    request: Request,
    exc: ArchiveError,
) -> JSONResponse:
    """
    Render an ArchiveError as a JSON response with its own status code.

    Upstream failures are logged with their cause; client-side failures
    (validation, quota, auth) are logged at debug level only.
    """
    if isinstance(exc, UpstreamUnavailable):
        logger.error(
            "Upstream failure during %s %s: %s",
            request.method,
            request.url.path,
            exc.message,
            exc_info=exc.__cause__,
        )
    else:
        logger.debug(
            "%s during %s %s: %s",
            exc.code,
            request.method,
            request.url.path,
            exc.message,
        )

    payload: Dict[str, Any] = {
        "error": exc.code,
        "detail": exc.message,
    }
    if isinstance(exc, InvalidInput):
        payload["details"] = exc.errors

    return JSONResponse(
        status_code=exc.status_code,
        content=payload,
    )


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """
    Catch-all handler for uncaught exceptions.

    Behavior
    --------
    - Logs the full exception stack trace for internal diagnostics.
    - Returns a generic 500 error to the client with no internal details.
    - Ensures consistent error response format across the entire API.

    Parameters
    ----------
    request : Request
        The incoming HTTP request that triggered the exception.

    exc : Exception
        The uncaught exception instance.

    Returns
    -------
    JSONResponse
        A JSON 500 response with a minimal error payload.
    """

    # Log full traceback internally (never returned to client)
    logger.exception(
        "Unhandled exception during request: %s %s",
        request.method,
        request.url.path,
        exc_info=exc,
    )

    payload: Dict[str, Any] = {
        "error": "internal_server_error",
        "detail": "Internal server error",
    }

    return JSONResponse(
        status_code=500,
        content=payload,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the archive handlers and the catch-all safety net to an app."""
    app.add_exception_handler(ArchiveError, archive_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
