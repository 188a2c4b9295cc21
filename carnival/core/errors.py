"""Error types raised by the data, validation and service layers.

Every failure a handler can report is one of these variants; the exception
handlers installed in ``carnival.main`` turn them into JSON responses.
"""
from typing import Any, Optional

from fastapi import status


class CarnivalError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Internal Server Error"

    def __init__(self, message: Optional[str] = None, details: Any = None):
        self.message = message or self.message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationFailed(CarnivalError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Validation failed"


class ConflictError(CarnivalError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "A record with these values already exists"


class DataIntegrityError(CarnivalError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Database Validation Error"


class AuthenticationError(CarnivalError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Not authenticated"


class TokenExpiredError(AuthenticationError):
    message = "Token expired"


class InvalidTokenError(AuthenticationError):
    message = "Invalid token"


class PermissionDeniedError(CarnivalError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "Not allowed"


class NotFoundError(CarnivalError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Not found"


class DatabaseUnavailableError(CarnivalError):
    message = "Database unavailable"
