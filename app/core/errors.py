"""Application-level exception types.

Every failure the request pipeline can produce is classified into one of
these types and surfaced to the HTTP boundary unchanged; nothing here is
retried in-process.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    hint: str
    errors: list[str]
    article_id: int


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when request input fails validation."""


class RateLimitedError(AppError):
    """Raised when the caller's token bucket is empty. Retryable after backoff."""


class AuthenticationAppError(AppError):
    """Raised when a bearer credential cannot be turned into a principal."""


class MalformedHeaderError(AuthenticationAppError):
    """Authorization header is missing or not of the form ``Bearer <token>``."""


class InvalidOrExpiredTokenError(AuthenticationAppError):
    """Token failed signature, algorithm, or time-claim verification."""


class MissingPrincipalError(AuthenticationAppError):
    """Verified token carries no usable ``user_id`` claim."""


class ForbiddenAppError(AppError):
    """Raised when the principal does not own the resource it tries to mutate."""


class NotFoundAppError(AppError):
    """Raised when the requested resource does not exist."""
