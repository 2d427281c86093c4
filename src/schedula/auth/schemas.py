"""Request/response schemas for authentication endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from schedula.db.enums import UserStatus
from schedula.schemas import ApiModel, EmailAddress

# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class SignupRequest(ApiModel):
    """Email registration request."""

    email: EmailAddress
    password: str = Field(..., min_length=1, max_length=128)
    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)


class ConfirmEmailRequest(ApiModel):
    token: str = Field(..., min_length=1)


class LoginRequest(ApiModel):
    """Login with email + password."""

    email: EmailAddress
    password: str = Field(..., min_length=1, max_length=128)


class RefreshRequest(ApiModel):
    """Mint a new access token from a refresh token."""

    refresh_token: str = Field(..., min_length=1)


class LogoutRequest(ApiModel):
    """Logout (revoke refresh token)."""

    refresh_token: str = Field(..., min_length=1)


class ForgotPasswordRequest(ApiModel):
    email: EmailAddress


class ResetPasswordRequest(ApiModel):
    """Reset password with a valid token."""

    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=1, max_length=128)


class UnblockRequest(ApiModel):
    email: EmailAddress


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class UserResponse(ApiModel):
    """Own user profile."""

    id: str
    email: str
    first_name: str | None = None
    last_name: str | None = None
    status: UserStatus
    last_login_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class TokenResponse(ApiModel):
    """Token pair returned after a successful login."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse


class AccessTokenResponse(ApiModel):
    """New access token minted from a refresh token."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int
