"""Typed error taxonomy shared by every layer.

Domain code raises these directly; ``photohub.api.errors`` turns them (and
infrastructure exceptions) into the JSON error envelope.
"""

from datetime import datetime, timezone
from typing import Any


class ErrorContext(dict):
    """Structured remediation hints: ``field``, ``constraint``, ``suggestion``, ..."""

    def __init__(
        self,
        field: str | None = None,
        constraint: str | None = None,
        suggestion: str | None = None,
        **extra: Any,
    ) -> None:
        super().__init__(
            {
                k: v
                for k, v in {
                    "field": field,
                    "constraint": constraint,
                    "suggestion": suggestion,
                    **extra,
                }.items()
                if v is not None
            }
        )


class AppError(Exception):
    status: int = 500
    default_message: str = "Internal server error"

    def __init__(
        self,
        message: str | None = None,
        context: ErrorContext | dict | None = None,
        status: int | None = None,
    ) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)
        if status is not None:
            self.status = status
        self.context = dict(context) if context else None
        self.timestamp = datetime.now(timezone.utc)


class ValidationError(AppError):
    status = 400
    default_message = "Validation failed"


class BadRequestError(AppError):
    status = 400
    default_message = "Bad request"


class UnauthorizedError(AppError):
    status = 401
    default_message = "Unauthorized"


class InvalidTokenError(UnauthorizedError):
    default_message = "Invalid token"


class TokenExpiredError(UnauthorizedError):
    default_message = "Token expired"


class ForbiddenError(AppError):
    status = 403
    default_message = "Forbidden"


class NotFoundError(AppError):
    status = 404
    default_message = "Not found"


class ConflictError(AppError):
    status = 409
    default_message = "Conflict"


class RateLimitError(AppError):
    status = 429
    default_message = "Rate limit exceeded"


class DatabaseError(AppError):
    status = 500
    default_message = "Database error"


class InternalServerError(AppError):
    status = 500
    default_message = "Internal server error"


class DatabaseConnectionError(AppError):
    status = 503
    default_message = "Database connection failed"


class ServiceUnavailableError(AppError):
    status = 503
    default_message = "Service unavailable"
