"""Opaque token generation and one-way hashing for at-rest storage."""

from __future__ import annotations

import hashlib
import secrets

TOKEN_BYTES = 32


def generate_token() -> str:
    """Cryptographically random token, 32 bytes hex-encoded (64 chars). Sent to the user, never stored."""
    return secrets.token_hex(TOKEN_BYTES)


def hash_token(token: str) -> str:
    """SHA-256 hex digest used as the storage and lookup key for a token."""
    return hashlib.sha256(token.encode()).hexdigest()
