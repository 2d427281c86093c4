"""
RS256 JWT token management.

Access tokens are stateless and short-lived. Refresh tokens carry a random
``jti`` so each issued token (and therefore its stored hash) is unique; they
are revocable through the ``refresh_tokens`` table.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import jwt

from schedula.config import get_settings

_private_key: str | None = None
_public_key: str | None = None


@dataclass(frozen=True)
class TokenIdentity:
    """Identity encoded in both access and refresh tokens."""

    user_id: str
    email: str


def _load_keys() -> tuple[str, str]:
    """Load RSA keys from disk (cached after first call)."""
    global _private_key, _public_key  # noqa: PLW0603
    if _private_key is None or _public_key is None:
        settings = get_settings()
        _private_key = Path(settings.jwt_private_key_path).read_text()
        _public_key = Path(settings.jwt_public_key_path).read_text()
    return _private_key, _public_key


def reset_keys() -> None:
    """Reset cached keys (useful for testing)."""
    global _private_key, _public_key  # noqa: PLW0603
    _private_key = None
    _public_key = None


def _encode(identity: TokenIdentity, token_type: str, lifetime: timedelta, **extra: Any) -> str:
    private_key, _ = _load_keys()
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "sub": identity.user_id,
        "email": identity.email,
        "iat": now,
        "exp": now + lifetime,
        "iss": settings.jwt_issuer,
        "type": token_type,
        **extra,
    }
    return jwt.encode(payload, private_key, algorithm=settings.jwt_algorithm)


def create_access_token(identity: TokenIdentity) -> str:
    """Create a short-lived access token (15 minutes by default)."""
    settings = get_settings()
    return _encode(identity, "access", timedelta(minutes=settings.jwt_access_token_expire_minutes))


def create_refresh_token(identity: TokenIdentity) -> str:
    """Create a long-lived refresh token (7 days by default)."""
    settings = get_settings()
    return _encode(
        identity,
        "refresh",
        timedelta(days=settings.jwt_refresh_token_expire_days),
        jti=str(uuid.uuid4()),
    )


def verify_token(token: str, expected_type: str = "access") -> TokenIdentity:
    """
    Verify and decode a JWT token.

    Args:
        token: The encoded JWT string.
        expected_type: Expected token type ("access" or "refresh").

    Returns:
        The identity the token was issued for.

    Raises:
        jwt.ExpiredSignatureError: If the token is past its expiry.
        jwt.InvalidTokenError: If the token is malformed, badly signed or of the wrong type.
    """
    _, public_key = _load_keys()
    settings = get_settings()
    payload: dict[str, Any] = jwt.decode(
        token,
        public_key,
        algorithms=[settings.jwt_algorithm],
        issuer=settings.jwt_issuer,
        options={"require": ["sub", "exp", "type"]},
    )

    if payload.get("type") != expected_type:
        msg = f"Expected token type '{expected_type}', got '{payload.get('type')}'"
        raise jwt.InvalidTokenError(msg)

    return TokenIdentity(user_id=str(payload["sub"]), email=str(payload.get("email", "")))
