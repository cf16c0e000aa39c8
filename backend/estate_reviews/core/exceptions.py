"""
core/exceptions.py

Description:
Defines the standard error response format for the API and the domain
error taxonomy raised by the review engine.
"""

import logging
from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class APIError(HTTPException):
    """Custom exception with standardized error response."""
    def __init__(self, status_code: int, message: str, headers: dict[str, Any] | None = None):
        super().__init__(status_code=status_code, detail={"error": message}, headers=headers)


# ---------------------------------------------------
# Domain Errors
# ---------------------------------------------------
class ReviewEngineError(Exception):
    """Base class for every error raised by the review engine."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ReviewEngineError):
    """Malformed input, rejected before any side effect."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFound(ReviewEngineError):
    """A referenced record does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class EntityNotFound(NotFound):
    """A user, listing or agent lookup in the entity stores missed."""


class TargetNotFound(NotFound):
    """The listing or agent being reviewed does not exist."""


class AuthorNotFound(NotFound):
    """The reviewing user does not exist."""


class AlreadyReviewed(ReviewEngineError):
    """The author already has a review for this target."""

    status_code = status.HTTP_409_CONFLICT


class StorageError(ReviewEngineError):
    """The backing store is unavailable or a write failed."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class PermissionDenied(ReviewEngineError):
    status_code = status.HTTP_403_FORBIDDEN


# ---------------------------------------------------
# Exception Handlers
# ---------------------------------------------------
async def review_engine_error_handler(request: Request, exc: ReviewEngineError) -> JSONResponse:
    """Renders domain errors with the same body shape as APIError."""
    log_fn = logger.error if exc.status_code >= 500 else logger.info
    log_fn(
        f"[ERROR] {type(exc).__name__} on {request.method} {request.url.path}: {exc.message}"
    )
    return JSONResponse(status_code=exc.status_code, content={"detail": {"error": exc.message}})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ReviewEngineError, review_engine_error_handler)  # type: ignore[arg-type]
