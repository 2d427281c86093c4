"""
Authentication business logic.

Handles signup, email confirmation, login with failed-attempt blocking,
refresh/logout and the password reset flow with reuse prevention.
"""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING

import jwt as pyjwt
import structlog
from sqlalchemy import case, literal, select, update
from sqlalchemy.exc import SQLAlchemyError

from schedula.auth.jwt import (
    TokenIdentity,
    create_access_token,
    create_refresh_token,
    verify_token,
)
from schedula.auth.password import (
    check_needs_rehash,
    hash_password,
    validate_password_strength,
    verify_password,
)
from schedula.auth.tokens import generate_token, hash_token
from schedula.config import get_settings
from schedula.db.enums import EmailTokenType, UserStatus
from schedula.db.models import EmailToken, PasswordHistory, RefreshToken, User
from schedula.db.types import utcnow
from schedula.exceptions import (
    AccountBlockedError,
    AccountSuspendedError,
    EmailTakenError,
    EmailUnconfirmedError,
    InternalError,
    InvalidCredentialsError,
    InvalidRefreshTokenError,
    NotFoundError,
    PasswordReusedError,
    TokenError,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


async def _commit(db: AsyncSession, operation: str) -> None:
    """Commit the unit of work; on failure roll everything back and raise InternalError."""
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("transaction_failed", operation=operation)
        raise InternalError("Internal server error") from e


# ---------------------------------------------------------------------------
# User queries
# ---------------------------------------------------------------------------


async def get_user_by_id(db: AsyncSession, user_id: str) -> User | None:
    """Fetch a user by ID."""
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    """Fetch a user by email, exactly as stored."""
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


# ---------------------------------------------------------------------------
# Email tokens
# ---------------------------------------------------------------------------


async def _create_email_token(
    db: AsyncSession,
    user_id: str,
    token_type: EmailTokenType,
    ttl: timedelta,
) -> str:
    """Store the hash of a fresh token and return the raw value for the email link."""
    raw_token = generate_token()
    db.add(
        EmailToken(
            user_id=user_id,
            type=token_type,
            token_hash=hash_token(raw_token),
            expires_at=utcnow() + ttl,
        )
    )
    await db.flush()
    return raw_token


async def _load_email_token(db: AsyncSession, raw_token: str, expected_type: EmailTokenType) -> EmailToken:
    """
    Look up an email token and check it can be consumed.

    Raises:
        TokenError: code InvalidToken, AlreadyUsed, Expired or WrongType.
    """
    result = await db.execute(select(EmailToken).where(EmailToken.token_hash == hash_token(raw_token)))
    token = result.scalar_one_or_none()

    if token is None:
        raise TokenError("Invalid or expired token", code="InvalidToken")
    if token.used_at is not None:
        raise TokenError("Token already used", code="AlreadyUsed")
    if token.expires_at < utcnow():
        raise TokenError("Token expired", code="Expired")
    if token.type != expected_type:
        raise TokenError("Invalid token type", code="WrongType")
    return token


async def _mark_token_used(db: AsyncSession, token: EmailToken) -> None:
    """Set used_at only if still unused, so two concurrent requests cannot both consume it."""
    result = await db.execute(
        update(EmailToken)
        .where(EmailToken.id == token.id)
        .where(EmailToken.used_at.is_(None))
        .values(used_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise TokenError("Token already used", code="AlreadyUsed")


# ---------------------------------------------------------------------------
# Signup / confirmation
# ---------------------------------------------------------------------------


async def signup(
    db: AsyncSession,
    email: str,
    password: str,
    first_name: str | None = None,
    last_name: str | None = None,
) -> tuple[User, str]:
    """
    Register a new user awaiting email confirmation.

    Returns:
        Tuple of (user, raw confirmation token).

    Raises:
        EmailTakenError: If the email is already registered.
        WeakPasswordError: If the password fails the strength policy.
    """
    if await get_user_by_email(db, email) is not None:
        raise EmailTakenError("Email already registered")

    validate_password_strength(password)

    password_hash = hash_password(password)
    user = User(
        email=email,
        password_hash=password_hash,
        first_name=first_name,
        last_name=last_name,
        status=UserStatus.WAITING_EMAIL_CONFIRMATION,
        failed_login_attempts=0,
    )
    db.add(user)
    await db.flush()

    db.add(PasswordHistory(user_id=user.id, password_hash=password_hash))

    settings = get_settings()
    raw_token = await _create_email_token(
        db,
        user.id,
        EmailTokenType.CONFIRM_EMAIL,
        timedelta(hours=settings.email_confirmation_token_ttl_hours),
    )
    await _commit(db, "signup")
    logger.info("user_created", user_id=user.id)
    return user, raw_token


async def confirm_email(db: AsyncSession, raw_token: str) -> User:
    """Activate the account a CONFIRM_EMAIL token belongs to and consume the token, atomically."""
    token = await _load_email_token(db, raw_token, EmailTokenType.CONFIRM_EMAIL)

    user = await get_user_by_id(db, token.user_id)
    if user is None:
        raise TokenError("Invalid or expired token", code="InvalidToken")

    await _mark_token_used(db, token)
    user.status = UserStatus.ACTIVE
    await _commit(db, "confirm_email")
    logger.info("email_confirmed", user_id=user.id)
    return user


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------


async def _register_failed_login(db: AsyncSession, user: User) -> tuple[int, UserStatus]:
    """
    Increment the failed-login counter in a single UPDATE, blocking the user
    when it reaches the lockout threshold. Returns (new count, new status).
    """
    threshold = get_settings().account_lockout_threshold
    next_count = User.failed_login_attempts + 1
    result = await db.execute(
        update(User)
        .where(User.id == user.id)
        .values(
            failed_login_attempts=next_count,
            status=case(
                (next_count >= threshold, literal(UserStatus.BLOCKED, User.__table__.c.status.type)),
                else_=User.status,
            ),
        )
        .returning(User.failed_login_attempts, User.status)
        .execution_options(synchronize_session=False)
    )
    count, status = result.one()
    await _commit(db, "failed_login")
    return int(count), UserStatus(status)


async def login(db: AsyncSession, email: str, password: str) -> tuple[User, str, str]:
    """
    Authenticate with email + password and open a session.

    Returns:
        Tuple of (user, access token, refresh token).

    Raises:
        InvalidCredentialsError: Unknown email or wrong password (with remaining attempts).
        AccountBlockedError: Account is, or just became, blocked.
        EmailUnconfirmedError: Email not confirmed yet.
        AccountSuspendedError: Account suspended by an administrator.
    """
    user = await get_user_by_email(db, email)
    if user is None:
        raise InvalidCredentialsError()

    if user.status == UserStatus.BLOCKED:
        raise AccountBlockedError()
    if user.status == UserStatus.WAITING_EMAIL_CONFIRMATION:
        raise EmailUnconfirmedError()
    if user.status == UserStatus.SUSPENDED:
        raise AccountSuspendedError()

    if not verify_password(password, user.password_hash):
        count, status = await _register_failed_login(db, user)
        if status == UserStatus.BLOCKED:
            logger.warning("account_blocked", user_id=user.id, failed_attempts=count)
            raise AccountBlockedError()
        logger.info("login_failed", user_id=user.id, failed_attempts=count)
        threshold = get_settings().account_lockout_threshold
        raise InvalidCredentialsError(remaining_attempts=max(threshold - count, 0))

    user.failed_login_attempts = 0
    user.last_login_at = utcnow()
    if check_needs_rehash(user.password_hash):
        user.password_hash = hash_password(password)
        logger.info("password_rehashed", user_id=user.id)

    identity = TokenIdentity(user_id=user.id, email=user.email)
    access_token = create_access_token(identity)
    refresh_token = create_refresh_token(identity)
    await store_refresh_token(db, user.id, refresh_token)
    await _commit(db, "login")
    logger.info("user_logged_in", user_id=user.id)
    return user, access_token, refresh_token


# ---------------------------------------------------------------------------
# Refresh tokens
# ---------------------------------------------------------------------------


async def store_refresh_token(db: AsyncSession, user_id: str, refresh_token: str) -> RefreshToken:
    """Persist the hash of a refresh token with its own expiry."""
    settings = get_settings()
    token = RefreshToken(
        user_id=user_id,
        token_hash=hash_token(refresh_token),
        expires_at=utcnow() + timedelta(days=settings.jwt_refresh_token_expire_days),
    )
    db.add(token)
    await db.flush()
    return token


async def refresh_access_token(db: AsyncSession, refresh_token: str) -> str:
    """
    Mint a new access token. The refresh token itself is not rotated.

    Raises:
        InvalidRefreshTokenError: Bad signature/expiry, or no live server-side record.
    """
    try:
        identity = verify_token(refresh_token, expected_type="refresh")
    except pyjwt.InvalidTokenError as e:
        raise InvalidRefreshTokenError("Invalid refresh token") from e

    result = await db.execute(
        select(RefreshToken)
        .where(RefreshToken.token_hash == hash_token(refresh_token))
        .where(RefreshToken.revoked_at.is_(None))
        .where(RefreshToken.expires_at > utcnow())
    )
    if result.scalar_one_or_none() is None:
        raise InvalidRefreshTokenError()

    return create_access_token(identity)


async def revoke_refresh_token(db: AsyncSession, refresh_token: str) -> bool:
    """Revoke a refresh token by hash. Unknown or already revoked tokens are a no-op. Returns True if revoked."""
    result = await db.execute(
        update(RefreshToken)
        .where(RefreshToken.token_hash == hash_token(refresh_token))
        .where(RefreshToken.revoked_at.is_(None))
        .values(revoked_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    await _commit(db, "logout")
    return bool(result.rowcount)


# ---------------------------------------------------------------------------
# Password reset
# ---------------------------------------------------------------------------


async def request_password_reset(db: AsyncSession, email: str) -> tuple[User, str] | None:
    """
    Create a RESET_PASSWORD token if the email belongs to a user.

    Returns (user, raw token), or None when the email is unknown. Callers
    must answer identically in both cases.
    """
    user = await get_user_by_email(db, email)
    if user is None:
        return None

    settings = get_settings()
    raw_token = await _create_email_token(
        db,
        user.id,
        EmailTokenType.RESET_PASSWORD,
        timedelta(minutes=settings.password_reset_token_ttl_minutes),
    )
    await _commit(db, "forgot_password")
    logger.info("password_reset_requested", user_id=user.id)
    return user, raw_token


async def _recent_password_hashes(db: AsyncSession, user_id: str, depth: int) -> list[str]:
    result = await db.execute(
        select(PasswordHistory.password_hash)
        .where(PasswordHistory.user_id == user_id)
        .order_by(PasswordHistory.created_at.desc())
        .limit(depth)
    )
    return list(result.scalars().all())


async def reset_password(db: AsyncSession, raw_token: str, new_password: str) -> User:
    """
    Set a new password using a RESET_PASSWORD token.

    The password update, history append and token consumption commit together.

    Raises:
        TokenError: Token invalid, used, expired or of the wrong type.
        WeakPasswordError: New password fails the strength policy.
        PasswordReusedError: New password matches one of the recent ones.
    """
    token = await _load_email_token(db, raw_token, EmailTokenType.RESET_PASSWORD)
    validate_password_strength(new_password)

    depth = get_settings().password_history_depth
    for old_hash in await _recent_password_hashes(db, token.user_id, depth):
        if verify_password(new_password, old_hash):
            raise PasswordReusedError(depth)

    user = await get_user_by_id(db, token.user_id)
    if user is None:
        raise TokenError("Invalid or expired token", code="InvalidToken")

    new_hash = hash_password(new_password)
    await _mark_token_used(db, token)
    user.password_hash = new_hash
    db.add(PasswordHistory(user_id=user.id, password_hash=new_hash, created_at=utcnow()))
    await _commit(db, "reset_password")
    logger.info("password_reset_complete", user_id=user.id)
    return user


# ---------------------------------------------------------------------------
# Development helpers
# ---------------------------------------------------------------------------


async def unblock_user(db: AsyncSession, email: str) -> User:
    """Reactivate a user and clear the failed-login counter."""
    user = await get_user_by_email(db, email)
    if user is None:
        raise NotFoundError("User not found")
    user.status = UserStatus.ACTIVE
    user.failed_login_attempts = 0
    await _commit(db, "unblock_user")
    logger.info("user_unblocked", user_id=user.id)
    return user
