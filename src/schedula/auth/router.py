"""Authentication router: all /auth/* endpoints."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from schedula.auth import service
from schedula.auth.schemas import (
    AccessTokenResponse,
    ConfirmEmailRequest,
    ForgotPasswordRequest,
    LoginRequest,
    LogoutRequest,
    RefreshRequest,
    ResetPasswordRequest,
    SignupRequest,
    TokenResponse,
    UnblockRequest,
    UserResponse,
)
from schedula.config import get_settings
from schedula.database import get_session
from schedula.email.service import get_email_service
from schedula.middleware.rate_limit import auth_rate_limit
from schedula.schemas import MessageResponse

logger = structlog.get_logger()

router = APIRouter(prefix="/auth", tags=["Authentication"])

# Development-only endpoints, mounted by create_app when environment == "development"
dev_router = APIRouter(prefix="/auth/dev", tags=["Development"])

FORGOT_PASSWORD_MESSAGE = "If the email exists, a reset link has been sent."


@router.post(
    "/signup",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(auth_rate_limit)],
)
async def signup(
    body: SignupRequest,
    db: AsyncSession = Depends(get_session),
) -> MessageResponse:
    """Register with email + password. The account stays inactive until the email is confirmed."""
    user, raw_token = await service.signup(
        db,
        email=body.email,
        password=body.password,
        first_name=body.first_name,
        last_name=body.last_name,
    )

    # Delivery is best-effort; the account exists either way
    await get_email_service().send_email_confirmation(user.email, raw_token)

    return MessageResponse(
        message="User created successfully. Please check your email to confirm your account."
    )


@router.post("/confirm-email", response_model=MessageResponse)
async def confirm_email(
    body: ConfirmEmailRequest,
    db: AsyncSession = Depends(get_session),
) -> MessageResponse:
    """Confirm an email address with the token from the signup email."""
    await service.confirm_email(db, body.token)
    return MessageResponse(message="Email confirmed successfully. You can now login.")


@router.post("/login", response_model=TokenResponse, dependencies=[Depends(auth_rate_limit)])
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_session),
) -> TokenResponse:
    """Login with email + password."""
    user, access_token, refresh_token = await service.login(db, body.email, body.password)
    settings = get_settings()
    return TokenResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=settings.jwt_access_token_expire_minutes * 60,
        user=UserResponse.model_validate(user),
    )


@router.post("/refresh", response_model=AccessTokenResponse)
async def refresh(
    body: RefreshRequest,
    db: AsyncSession = Depends(get_session),
) -> AccessTokenResponse:
    """Mint a new access token. The refresh token stays valid until it expires or is revoked."""
    access_token = await service.refresh_access_token(db, body.refresh_token)
    settings = get_settings()
    return AccessTokenResponse(
        access_token=access_token,
        expires_in=settings.jwt_access_token_expire_minutes * 60,
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    body: LogoutRequest,
    db: AsyncSession = Depends(get_session),
) -> MessageResponse:
    """Revoke a refresh token. Idempotent."""
    await service.revoke_refresh_token(db, body.refresh_token)
    return MessageResponse(message="Logged out successfully")


@router.post(
    "/forgot-password",
    response_model=MessageResponse,
    dependencies=[Depends(auth_rate_limit)],
)
async def forgot_password(
    body: ForgotPasswordRequest,
    db: AsyncSession = Depends(get_session),
) -> MessageResponse:
    """Request password reset email. Same answer whether or not the email exists."""
    issued = await service.request_password_reset(db, body.email)
    if issued is not None:
        user, raw_token = issued
        await get_email_service().send_password_reset(user.email, raw_token)

    return MessageResponse(message=FORGOT_PASSWORD_MESSAGE)


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    body: ResetPasswordRequest,
    db: AsyncSession = Depends(get_session),
) -> MessageResponse:
    """Reset password with a valid token."""
    await service.reset_password(db, body.token, body.new_password)
    return MessageResponse(message="Password reset successfully")


@dev_router.post("/unblock", response_model=MessageResponse)
async def unblock(
    body: UnblockRequest,
    db: AsyncSession = Depends(get_session),
) -> MessageResponse:
    """Reactivate a blocked account (development only)."""
    await service.unblock_user(db, body.email)
    return MessageResponse(message="User unblocked successfully")
