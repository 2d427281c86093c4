"""Tests for RS256 access/refresh tokens."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from schedula.auth.jwt import (
    TokenIdentity,
    _load_keys,
    create_access_token,
    create_refresh_token,
    verify_token,
)
from schedula.config import get_settings

IDENTITY = TokenIdentity(user_id="3f1c2a9e-0000-4000-8000-000000000001", email="user@example.com")


def _forge(**overrides) -> str:
    private_key, _ = _load_keys()
    now = datetime.now(timezone.utc)
    payload = {
        "sub": IDENTITY.user_id,
        "email": IDENTITY.email,
        "iat": now,
        "exp": now + timedelta(minutes=5),
        "iss": get_settings().jwt_issuer,
        "type": "access",
        **overrides,
    }
    return jwt.encode(payload, private_key, algorithm="RS256")


class TestTokens:
    def test_access_token_roundtrip(self):
        assert verify_token(create_access_token(IDENTITY)) == IDENTITY

    def test_refresh_token_roundtrip(self):
        assert verify_token(create_refresh_token(IDENTITY), expected_type="refresh") == IDENTITY

    def test_refresh_tokens_are_unique(self):
        assert create_refresh_token(IDENTITY) != create_refresh_token(IDENTITY)

    def test_access_token_lifetime(self):
        claims = jwt.decode(create_access_token(IDENTITY), options={"verify_signature": False})
        assert claims["exp"] - claims["iat"] == 15 * 60
        assert claims["type"] == "access"
        assert claims["iss"] == "schedula"

    def test_refresh_token_lifetime(self):
        claims = jwt.decode(create_refresh_token(IDENTITY), options={"verify_signature": False})
        assert claims["exp"] - claims["iat"] == 7 * 24 * 3600
        assert "jti" in claims

    def test_header_is_rs256(self):
        assert jwt.get_unverified_header(create_access_token(IDENTITY))["alg"] == "RS256"


class TestVerification:
    def test_refresh_token_rejected_as_access(self):
        with pytest.raises(jwt.InvalidTokenError):
            verify_token(create_refresh_token(IDENTITY), expected_type="access")

    def test_access_token_rejected_as_refresh(self):
        with pytest.raises(jwt.InvalidTokenError):
            verify_token(create_access_token(IDENTITY), expected_type="refresh")

    def test_expired_token_raises_expired(self):
        past = datetime.now(timezone.utc) - timedelta(hours=1)
        token = _forge(iat=past - timedelta(minutes=15), exp=past)
        with pytest.raises(jwt.ExpiredSignatureError):
            verify_token(token)

    def test_wrong_issuer_rejected(self):
        with pytest.raises(jwt.InvalidTokenError):
            verify_token(_forge(iss="someone-else"))

    def test_missing_type_rejected(self):
        private_key, _ = _load_keys()
        token = jwt.encode(
            {"sub": "x", "exp": datetime.now(timezone.utc) + timedelta(minutes=5), "iss": "schedula"},
            private_key,
            algorithm="RS256",
        )
        with pytest.raises(jwt.InvalidTokenError):
            verify_token(token)

    def test_tampered_token_rejected(self):
        token = create_access_token(IDENTITY)
        header, payload, signature = token.split(".")
        tampered = f"{header}.{payload}.{signature[:-4]}AAAA"
        with pytest.raises(jwt.InvalidTokenError):
            verify_token(tampered)

    def test_garbage_rejected(self):
        with pytest.raises(jwt.InvalidTokenError):
            verify_token("not.a.jwt")
