"""argon2id password hashing."""

from __future__ import annotations

import argon2

from nabung.config import get_settings

_hasher = argon2.PasswordHasher(
    time_cost=2,
    memory_cost=19456,  # 19 MiB
    parallelism=1,
    hash_len=32,
    salt_len=16,
    type=argon2.Type.ID,
)


class PasswordPolicyError(ValueError):
    """Raised when a password is rejected by the length policy."""


def hash_password(password: str) -> str:
    """Hash a password. Returns the encoded argon2id string."""
    return _hasher.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against its hash. False on mismatch or a malformed hash."""
    try:
        return _hasher.verify(password_hash, password)
    except (argon2.exceptions.VerifyMismatchError, argon2.exceptions.InvalidHashError):
        return False


def needs_rehash(password_hash: str) -> bool:
    return _hasher.check_needs_rehash(password_hash)


def validate_password(password: str) -> None:
    """Enforce the configured minimum and maximum length.

    Raises:
        PasswordPolicyError: If the password is blank or out of range.
    """
    settings = get_settings()
    if not password or not password.strip():
        msg = "Password cannot be empty"
        raise PasswordPolicyError(msg)
    if len(password) < settings.password_min_length:
        msg = f"Password must be at least {settings.password_min_length} characters"
        raise PasswordPolicyError(msg)
    if len(password) > settings.password_max_length:
        msg = f"Password must not exceed {settings.password_max_length} characters"
        raise PasswordPolicyError(msg)
