"""
Password hashing and validation using argon2id.

Argon2id is the winner of the Password Hashing Competition and is resistant
to both GPU-based and side-channel attacks.
"""

from __future__ import annotations

import argon2

from schedula.exceptions import WeakPasswordError

_hasher = argon2.PasswordHasher(
    time_cost=2,
    memory_cost=65536,  # 64 MB
    parallelism=1,
    hash_len=32,
    salt_len=16,
    type=argon2.Type.ID,  # argon2id
)

MIN_LENGTH = 8
SYMBOLS = frozenset("!@#$%^&*()_+-=[]{};':\"\\|,.<>/?")


def hash_password(password: str) -> str:
    """Hash a password using argon2id. Returns the full hash string."""
    return _hasher.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify a password against its argon2id hash.

    Returns True if the password matches. Never raises on mismatch.
    """
    try:
        return _hasher.verify(password_hash, password)
    except argon2.exceptions.VerifyMismatchError:
        return False
    except argon2.exceptions.InvalidHashError:
        return False


def check_needs_rehash(password_hash: str) -> bool:
    """Check if the hash needs to be updated (parameters changed)."""
    return _hasher.check_needs_rehash(password_hash)


def password_strength_error(password: str) -> str | None:
    """
    Return the first failed strength rule's message, or None if the password is acceptable.

    Requirements:
    - Minimum 8 characters
    - At least one ASCII letter
    - At least one digit
    - At least one symbol from SYMBOLS
    """
    if len(password) < MIN_LENGTH:
        return f"Password must be at least {MIN_LENGTH} characters long"
    if not any(c.isascii() and c.isalpha() for c in password):
        return "Password must include at least one letter"
    if not any(c in "0123456789" for c in password):
        return "Password must include at least one number"
    if not any(c in SYMBOLS for c in password):
        return "Password must include at least one symbol"
    return None


def validate_password_strength(password: str) -> None:
    """Raise WeakPasswordError if the password is too weak."""
    error = password_strength_error(password)
    if error is not None:
        raise WeakPasswordError(error)
