"""Error kinds raised by the authentication core.

Every failure the core can report is an :class:`AuthServiceError` carrying an
:class:`ErrorKind` and the HTTP status the boundary layer should answer with.
Messages are safe to show to clients; internal details belong in logs only.
"""

from __future__ import annotations

from enum import Enum

from fastapi import status


class ErrorKind(str, Enum):
    """Categories of failure exposed by the core."""

    INVALID_INPUT = "invalid_input"
    CONFLICT = "conflict"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    MISMATCH = "mismatch"
    RATE_LIMITED = "rate_limited"
    INTERNAL = "internal"


class AuthServiceError(Exception):
    """Base exception for all authentication core failures."""

    kind: ErrorKind = ErrorKind.INTERNAL
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInputError(AuthServiceError):
    """Malformed or missing request fields."""

    kind = ErrorKind.INVALID_INPUT
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid input."


class ConflictError(AuthServiceError):
    """A uniqueness rule would be violated."""

    kind = ErrorKind.CONFLICT
    status_code = status.HTTP_409_CONFLICT
    default_message = "User already exists."


class UniqueViolationError(ConflictError):
    """Raised by the user directory when the store rejects a duplicate."""


class UnauthorizedError(AuthServiceError):
    """Bad credentials, signature, or token."""

    kind = ErrorKind.UNAUTHORIZED
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized."


class NotFoundError(AuthServiceError):
    """A requested record does not exist."""

    kind = ErrorKind.NOT_FOUND
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found."


class ChallengeNotFoundError(NotFoundError):
    """No live nonce or one-time code exists for the identity."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "No challenge found. Please request a new one."


class ChallengeExpiredError(AuthServiceError):
    """The nonce or one-time code outlived its TTL."""

    kind = ErrorKind.EXPIRED
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Challenge has expired. Please request a new one."


class OtpMismatchError(AuthServiceError):
    """The submitted one-time code does not match the issued one."""

    kind = ErrorKind.MISMATCH
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid OTP."


class RateLimitedError(AuthServiceError):
    """The caller must wait before repeating the request."""

    kind = ErrorKind.RATE_LIMITED
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_message = "Too many requests. Please try again later."


class InternalError(AuthServiceError):
    """Unexpected failure in a collaborator or the core itself."""


class EphemeralStoreError(InternalError):
    """The short-lived key-value store could not be reached."""
