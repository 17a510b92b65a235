"""Service-layer exceptions mapped to HTTP responses.

Every error is rendered as ``{"message": ...}`` with the status code carried by
the exception class.
"""

from typing import Dict, Optional

from fastapi import status


class ServiceError(Exception):
    """Base class for errors that produce a structured response."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    headers: Optional[Dict[str, str]] = None

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(ServiceError):
    """Malformed input (400)."""
    status_code = status.HTTP_400_BAD_REQUEST


class Unauthorized(ServiceError):
    """Missing credential or failed lookup (401)."""
    status_code = status.HTTP_401_UNAUTHORIZED
    headers = {"WWW-Authenticate": "Bearer"}


class Forbidden(ServiceError):
    """Credential present but invalid or not permitted (403)."""
    status_code = status.HTTP_403_FORBIDDEN


class NotFound(ServiceError):
    """Referenced entity absent (404)."""
    status_code = status.HTTP_404_NOT_FOUND


class Conflict(ServiceError):
    """Concurrent modification could not be reconciled (409)."""
    status_code = status.HTTP_409_CONFLICT


class InternalError(ServiceError):
    """Unexpected failure (500)."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


__all__ = [
    "ServiceError",
    "ValidationError",
    "Unauthorized",
    "Forbidden",
    "NotFound",
    "Conflict",
    "InternalError",
]
