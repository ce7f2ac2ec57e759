"""Application error taxonomy.

Every error a request can end with is an ``AppError``. The API layer renders
them as ``{"error": message}`` (plus ``details`` for validation failures)
with the status code carried by the error class.
"""

from typing import Any, Dict, List, Optional

from fastapi import status


class AppError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, details: Optional[List[str]] = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message}
        if self.details:
            body["details"] = list(self.details)
        return body


class ValidationError(AppError):
    """Bad, missing or out-of-enum input."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Validation error"


class MalformedIdentifier(AppError):
    """An identifier the store cannot parse."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid identifier"


class Unauthenticated(AppError):
    """Missing, invalid or expired credentials, or a deactivated account."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication required."


class Forbidden(AppError):
    """Authenticated but not allowed: role or ownership failure."""

    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Access denied"


class NotFound(AppError):
    """No resource with the requested identifier."""

    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class InternalError(AppError):
    """Unexpected store or runtime failure. Detail stays in the logs."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"
