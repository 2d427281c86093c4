"""Tests for password hashing and the strength policy."""

import pytest

from schedula.auth.password import (
    check_needs_rehash,
    hash_password,
    password_strength_error,
    validate_password_strength,
    verify_password,
)
from schedula.exceptions import ValidationError, WeakPasswordError


class TestPasswordHashing:
    def test_hash_and_verify(self):
        hashed = hash_password("Secure#Pass1")
        assert verify_password("Secure#Pass1", hashed) is True

    def test_wrong_password_rejected(self):
        hashed = hash_password("Correct#Pass1")
        assert verify_password("Wrong#Pass1", hashed) is False

    def test_garbage_hash_is_a_mismatch(self):
        assert verify_password("Secure#Pass1", "not-a-hash") is False

    def test_hash_is_argon2id(self):
        assert hash_password("Secure#Pass1").startswith("$argon2id$")

    def test_same_password_hashes_differently(self):
        assert hash_password("Secure#Pass1") != hash_password("Secure#Pass1")

    def test_check_needs_rehash(self):
        assert check_needs_rehash(hash_password("Secure#Pass1")) is False


class TestPasswordStrength:
    def test_strong_password_accepted(self):
        validate_password_strength("abcdef1!")
        assert password_strength_error("abcdef1!") is None

    @pytest.mark.parametrize(
        ("password", "fragment"),
        [
            ("", "at least 8 characters"),
            ("ab1!", "at least 8 characters"),
            ("12345678!", "letter"),
            ("abcdefgh!", "number"),
            ("abcdefgh1", "symbol"),
        ],
    )
    def test_first_failed_rule_reported(self, password, fragment):
        assert fragment in password_strength_error(password)

    def test_non_ascii_letters_do_not_count(self):
        assert "letter" in password_strength_error("ééééé1!!")

    def test_every_listed_symbol_counts(self):
        for symbol in "!@#$%^&*()_+-=[]{};':\"\\|,.<>/?":
            assert password_strength_error(f"abcdefg1{symbol}") is None

    def test_space_is_not_a_symbol(self):
        assert "symbol" in password_strength_error("abcdefg1 ")

    def test_weak_password_is_a_validation_error(self):
        with pytest.raises(WeakPasswordError) as exc_info:
            validate_password_strength("short")
        assert isinstance(exc_info.value, ValidationError)
        assert exc_info.value.status_code == 400
