"""
Domain exceptions for the Schedula API.

Services raise these; the global error handler maps each class to its
HTTP status and a JSON body of the form ``{"detail": ..., "code": ...}``.
"""

from __future__ import annotations

from typing import Any


class SchedulaError(Exception):
    """Base exception for all Schedula errors."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dictionary for API responses."""
        return {"detail": self.message, "code": self.code, **self.details}


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class ValidationError(SchedulaError):
    """Malformed or missing input."""

    status_code = 400


class InvalidDateError(ValidationError):
    """A scheduled date is not in the future or a recorded date is not in the past."""


class WeakPasswordError(ValidationError):
    """Password does not satisfy the strength policy."""


class EmailTakenError(ValidationError):
    """Signup with an email that is already registered."""


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------


class AuthError(SchedulaError):
    """Authentication failed."""

    status_code = 401


class InvalidCredentialsError(AuthError):
    """Unknown email or wrong password."""

    def __init__(self, remaining_attempts: int | None = None) -> None:
        details = {"remainingAttempts": remaining_attempts} if remaining_attempts is not None else None
        super().__init__("Invalid credentials", details=details)
        self.remaining_attempts = remaining_attempts


class AccountBlockedError(AuthError):
    """Account blocked after too many failed logins."""

    status_code = 403

    def __init__(self) -> None:
        super().__init__("Account is blocked due to too many failed login attempts", code="Blocked")


class EmailUnconfirmedError(AuthError):
    status_code = 403

    def __init__(self) -> None:
        super().__init__("Please confirm your email before logging in", code="EmailUnconfirmed")


class AccountSuspendedError(AuthError):
    status_code = 403

    def __init__(self) -> None:
        super().__init__("Account is suspended", code="Suspended")


class TokenError(AuthError):
    """Email confirmation / password reset token rejected.

    ``code`` is one of ``InvalidToken``, ``AlreadyUsed``, ``Expired`` or ``WrongType``.
    """

    status_code = 400


class PasswordReusedError(AuthError):
    status_code = 400

    def __init__(self, depth: int) -> None:
        super().__init__(f"Cannot reuse any of your last {depth} passwords", code="PasswordReused")


class InvalidRefreshTokenError(AuthError):
    def __init__(self, message: str = "Invalid or expired refresh token") -> None:
        super().__init__(message, code="InvalidToken")


# ---------------------------------------------------------------------------
# Resources
# ---------------------------------------------------------------------------


class NotFoundError(SchedulaError):
    """Resource absent or not owned by the caller."""

    status_code = 404


class StateConflictError(SchedulaError):
    """Operation is not valid for the entity's current state."""

    status_code = 400


class InternalError(SchedulaError):
    """Persistence or transport failure."""

    status_code = 500
