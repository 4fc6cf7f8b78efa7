"""Deadline reminders derived from savings target dates.

A target with a target_date is its own reminder: nothing is stored, so the
reminder always reflects the target's current balance and completion flag.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal

from sqlalchemy import Select, false, select
from sqlalchemy.ext.asyncio import AsyncSession

from nabung.config import get_settings
from nabung.db.models import SavingsTarget
from nabung.savings.money import format_compact_amount
from nabung.statistics.calendar import local_today

TARGET_DEADLINE = "target_deadline"


@dataclass(frozen=True)
class Reminder:
    target_id: uuid.UUID
    reminder_date: date
    reminder_type: str
    title: str
    description: str
    is_completed: bool
    target_name: str
    target_icon: str
    target_icon_color: str
    remaining_amount: Decimal
    days_remaining: int
    created_at: datetime


def to_reminder(target: SavingsTarget, today: date) -> Reminder:
    """Build the reminder for a dated target. days_remaining is negative once overdue."""
    remaining = max(target.target_amount - target.current_amount, Decimal("0"))
    if target.is_completed:
        description = "Target sudah tercapai"
    else:
        description = f"Kurang Rp {format_compact_amount(remaining)} lagi"
    return Reminder(
        target_id=target.id,
        reminder_date=target.target_date,
        reminder_type=TARGET_DEADLINE,
        title=f"Tenggat {target.name}",
        description=description,
        is_completed=target.is_completed,
        target_name=target.name,
        target_icon=target.icon,
        target_icon_color=target.icon_color,
        remaining_amount=remaining,
        days_remaining=(target.target_date - today).days,
        created_at=target.created_at,
    )


def _dated_targets(user_id: uuid.UUID) -> Select:
    return select(SavingsTarget).where(
        SavingsTarget.user_id == user_id,
        SavingsTarget.target_date.is_not(None),
    )


async def _fetch(db: AsyncSession, stmt: Select, today: date) -> list[Reminder]:
    result = await db.execute(stmt)
    return [to_reminder(t, today) for t in result.scalars().all()]


async def list_reminders(
    db: AsyncSession,
    user_id: uuid.UUID,
    limit: int | None = None,
    today: date | None = None,
) -> list[Reminder]:
    """Every dated target, nearest deadline first."""
    limit = limit or get_settings().reminder_default_limit
    today = today or local_today()
    stmt = (
        _dated_targets(user_id)
        .order_by(SavingsTarget.target_date.asc(), SavingsTarget.created_at.desc())
        .limit(limit)
    )
    return await _fetch(db, stmt, today)


async def upcoming_reminders(
    db: AsyncSession,
    user_id: uuid.UUID,
    days: int | None = None,
    today: date | None = None,
) -> list[Reminder]:
    """
    Incomplete targets due between today and today + days, inclusive.

    Raises:
        ValueError: If days is outside [0, reminder_upcoming_max_days].
    """
    settings = get_settings()
    if days is None:
        days = settings.reminder_upcoming_default_days
    if not 0 <= days <= settings.reminder_upcoming_max_days:
        msg = f"days must be between 0 and {settings.reminder_upcoming_max_days}"
        raise ValueError(msg)
    today = today or local_today()
    stmt = (
        _dated_targets(user_id)
        .where(
            SavingsTarget.target_date >= today,
            SavingsTarget.target_date <= today + timedelta(days=days),
            SavingsTarget.is_completed == false(),
        )
        .order_by(SavingsTarget.target_date.asc(), SavingsTarget.created_at.desc())
    )
    return await _fetch(db, stmt, today)


async def todays_reminders(db: AsyncSession, user_id: uuid.UUID, today: date | None = None) -> list[Reminder]:
    """Incomplete targets due today."""
    today = today or local_today()
    stmt = (
        _dated_targets(user_id)
        .where(SavingsTarget.target_date == today, SavingsTarget.is_completed == false())
        .order_by(SavingsTarget.created_at.desc())
    )
    return await _fetch(db, stmt, today)


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """[first day, first day of next month). Raises ValueError for an invalid month."""
    start = date(year, month, 1)
    end = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    return start, end


async def calendar_events(
    db: AsyncSession,
    user_id: uuid.UUID,
    year: int,
    month: int,
    today: date | None = None,
) -> list[Reminder]:
    """All dated targets (completed included) falling in one calendar month."""
    start, end = month_bounds(year, month)
    today = today or local_today()
    stmt = (
        _dated_targets(user_id)
        .where(SavingsTarget.target_date >= start, SavingsTarget.target_date < end)
        .order_by(SavingsTarget.target_date.asc())
    )
    return await _fetch(db, stmt, today)
