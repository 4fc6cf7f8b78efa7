"""Append-only activity log for the personal and admin feeds.

Rows are only ever inserted. Each recorder flushes and returns the new row;
committing is left to the caller.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from nabung.db.models import Activity
from nabung.savings.money import format_compact_amount

DEPOSIT = "deposit"
WITHDRAWAL = "withdrawal"
TARGET_CREATED = "target_created"
TARGET_COMPLETED = "target_completed"


async def _append(
    db: AsyncSession,
    user_id: uuid.UUID,
    savings_target_id: uuid.UUID | None,
    activity_type: str,
    title: str,
    description: str,
    amount: Decimal,
    icon: str,
    icon_color: str,
) -> Activity:
    activity = Activity(
        user_id=user_id,
        savings_target_id=savings_target_id,
        activity_type=activity_type,
        title=title,
        description=description,
        amount=amount,
        icon=icon,
        icon_color=icon_color,
        created_at=datetime.now(timezone.utc),
    )
    db.add(activity)
    await db.flush()
    return activity


async def record_deposit(
    db: AsyncSession,
    user_id: uuid.UUID,
    savings_target_id: uuid.UUID | None,
    amount: Decimal,
    target_name: str | None = None,
) -> Activity:
    """Record a deposit toward a target."""
    title = f"Menabung untuk {target_name}" if target_name else "Menabung"
    return await _append(
        db,
        user_id,
        savings_target_id,
        DEPOSIT,
        title,
        f"Setoran sebesar Rp {format_compact_amount(amount)}",
        amount,
        "\U0001f4b0",
        "bg-green-500",
    )


async def record_withdrawal(
    db: AsyncSession,
    user_id: uuid.UUID,
    savings_target_id: uuid.UUID,
    amount: Decimal,
) -> Activity:
    """Record a withdrawal. The stored amount is negative."""
    return await _append(
        db,
        user_id,
        savings_target_id,
        WITHDRAWAL,
        "Penarikan",
        f"Penarikan sebesar Rp {format_compact_amount(amount)}",
        -amount,
        "\U0001f4b8",
        "bg-red-500",
    )


async def record_target_created(
    db: AsyncSession,
    user_id: uuid.UUID,
    savings_target_id: uuid.UUID,
    target_name: str,
) -> Activity:
    """Record creation of a new target."""
    return await _append(
        db,
        user_id,
        savings_target_id,
        TARGET_CREATED,
        "Target baru dibuat",
        f'Target "{target_name}" berhasil dibuat',
        Decimal("0.00"),
        "\U0001f3af",
        "bg-blue-500",
    )


async def record_target_completed(
    db: AsyncSession,
    user_id: uuid.UUID,
    savings_target_id: uuid.UUID,
    target_name: str,
) -> Activity:
    """Record a target reaching its goal."""
    return await _append(
        db,
        user_id,
        savings_target_id,
        TARGET_COMPLETED,
        "Target tercapai!",
        f'Selamat! Target "{target_name}" telah tercapai',
        Decimal("0.00"),
        "\U0001f389",
        "bg-green-500",
    )


async def list_activities(db: AsyncSession, user_id: uuid.UUID, limit: int = 50) -> list[Activity]:
    """The user's feed, newest first."""
    result = await db.execute(
        select(Activity)
        .where(Activity.user_id == user_id)
        .order_by(Activity.created_at.desc(), Activity.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def list_all_recent_activities(db: AsyncSession, limit: int = 20) -> list[Activity]:
    """Cross-user feed for the admin dashboard, newest first."""
    result = await db.execute(
        select(Activity)
        .order_by(Activity.created_at.desc(), Activity.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())
