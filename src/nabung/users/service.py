"""User profile business logic."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import select

from nabung.db.models import User

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


async def update_profile(
    db: AsyncSession,
    user: User,
    full_name: str | None = None,
    avatar: str | None = None,
) -> User:
    """
    Update profile fields. None leaves a field unchanged.

    Raises:
        ValueError: If full_name is blank after trimming.
    """
    changed = []
    if full_name is not None:
        full_name = full_name.strip()
        if not full_name:
            msg = "Full name must not be blank"
            raise ValueError(msg)
        user.full_name = full_name
        changed.append("full_name")
    if avatar is not None:
        user.avatar = avatar.strip() or None
        changed.append("avatar")

    user.updated_at = datetime.now(timezone.utc)
    await db.flush()
    logger.info("profile_updated", user_id=str(user.id), fields=changed)
    return user


async def list_users(db: AsyncSession) -> list[User]:
    """All accounts, newest first."""
    result = await db.execute(select(User).order_by(User.created_at.desc(), User.email))
    return list(result.scalars().all())
