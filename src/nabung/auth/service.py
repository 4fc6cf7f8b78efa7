"""Account registration and credential checks."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import func, select

from nabung.auth.password import hash_password, needs_rehash, validate_password, verify_password
from nabung.db.models import User

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


async def get_user_by_id(db: AsyncSession, user_id: uuid.UUID) -> User | None:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    """Fetch a user by email, ignoring case."""
    result = await db.execute(select(User).where(func.lower(User.email) == email.lower().strip()))
    return result.scalar_one_or_none()


async def register_user(db: AsyncSession, full_name: str, email: str, password: str) -> User:
    """Create a regular (non-admin) account.

    Raises:
        PasswordPolicyError: If the password is too short or too long.
        ValueError: If the email is already registered.
    """
    validate_password(password)

    if await get_user_by_email(db, email) is not None:
        msg = "User with this email already exists"
        raise ValueError(msg)

    now = datetime.now(timezone.utc)
    user = User(
        full_name=full_name.strip(),
        email=email.lower().strip(),
        password_hash=hash_password(password),
        is_admin=False,
        created_at=now,
        updated_at=now,
    )
    db.add(user)
    await db.flush()
    logger.info("user_registered", user_id=str(user.id))
    return user


async def authenticate_user(
    db: AsyncSession,
    email: str,
    password: str,
    require_admin: bool = False,
) -> User:
    """Check credentials and return the user.

    Raises:
        ValueError: If the email is unknown or the password is wrong.
        PermissionError: If require_admin is set and the user is not an admin.
    """
    user = await get_user_by_email(db, email)
    if user is None or not verify_password(password, user.password_hash):
        msg = "Invalid email or password"
        raise ValueError(msg)

    if require_admin and not user.is_admin:
        msg = "Access denied: Admin privileges required"
        raise PermissionError(msg)

    if needs_rehash(user.password_hash):
        user.password_hash = hash_password(password)
        user.updated_at = datetime.now(timezone.utc)
        await db.flush()
        logger.info("password_rehashed", user_id=str(user.id))

    return user
