"""Streak window recomputed from the raw activity log.

This is deliberately separate from UserStatistics.streak_days: that counter is
maintained incrementally on each deposit, while the window below is rebuilt
from deposit activities every time it is requested. The two can disagree
(e.g. after backfilled activities) and neither corrects the other.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from nabung.activity.recorder import DEPOSIT
from nabung.config import get_settings
from nabung.db.models import Activity
from nabung.statistics.calendar import local_date, local_day_bounds, local_today

# Days fetched per query when the streak runs past the window edge.
SCAN_CHUNK_DAYS = 30


@dataclass(frozen=True)
class StreakDay:
    date: date
    has_deposit: bool
    deposit_amount: Decimal | None
    is_today: bool
    is_part_of_streak: bool


@dataclass(frozen=True)
class StreakWindow:
    current_streak: int
    days: list[StreakDay]


def bucket_by_local_day(rows: Iterable[tuple[datetime, Decimal]]) -> dict[date, Decimal]:
    """Sum (created_at, amount) pairs per local calendar day."""
    totals: dict[date, Decimal] = {}
    for created_at, amount in rows:
        day = local_date(created_at)
        totals[day] = totals.get(day, Decimal("0")) + Decimal(amount)
    return totals


def count_consecutive_days(deposit_days: Iterable[date], end: date) -> int:
    """Count consecutive days with a deposit, walking backward from end."""
    days = set(deposit_days)
    streak = 0
    check = end
    while check in days:
        streak += 1
        check -= timedelta(days=1)
    return streak


def build_window_days(
    totals: dict[date, Decimal],
    today: date,
    window_days: int,
    current_streak: int,
) -> list[StreakDay]:
    """Chronological day entries for [today - window_days + 1, today]."""
    start = today - timedelta(days=window_days - 1)
    days: list[StreakDay] = []
    for offset in range(window_days):
        day = start + timedelta(days=offset)
        amount = totals.get(day)
        has_deposit = amount is not None
        days.append(StreakDay(
            date=day,
            has_deposit=has_deposit,
            deposit_amount=amount,
            is_today=day == today,
            is_part_of_streak=has_deposit and (today - day).days < current_streak,
        ))
    return days


async def daily_deposit_totals(
    db: AsyncSession,
    user_id: uuid.UUID,
    first_day: date,
    last_day: date,
) -> dict[date, Decimal]:
    """Deposit totals per local day for first_day..last_day inclusive."""
    start, _ = local_day_bounds(first_day)
    _, end = local_day_bounds(last_day)
    result = await db.execute(
        select(Activity.created_at, Activity.amount).where(
            Activity.user_id == user_id,
            Activity.activity_type == DEPOSIT,
            Activity.created_at >= start,
            Activity.created_at < end,
        )
    )
    return bucket_by_local_day(result.all())


async def compute_streak_window(
    db: AsyncSession,
    user_id: uuid.UUID,
    window_days: int,
    now: datetime | None = None,
) -> StreakWindow:
    """Rebuild the current streak and a per-day window from deposit activities.

    The streak counts back from today and stops at the first day without a
    deposit, so it is 0 when nothing was deposited today. It is not capped by
    the window: if every day in the window has a deposit, older days are
    scanned in chunks until a gap is found.

    Raises:
        ValueError: If window_days is outside [1, streak_window_max_days].
    """
    max_days = get_settings().streak_window_max_days
    if not 1 <= window_days <= max_days:
        msg = f"window_days must be between 1 and {max_days}"
        raise ValueError(msg)

    today = local_today(now)
    window_start = today - timedelta(days=window_days - 1)
    totals = await daily_deposit_totals(db, user_id, window_start, today)
    current_streak = count_consecutive_days(totals, today)

    if current_streak == window_days:
        chunk_end = window_start - timedelta(days=1)
        while True:
            chunk_start = chunk_end - timedelta(days=SCAN_CHUNK_DAYS - 1)
            older = await daily_deposit_totals(db, user_id, chunk_start, chunk_end)
            run = count_consecutive_days(older, chunk_end)
            current_streak += run
            if run < SCAN_CHUNK_DAYS:
                break
            chunk_end = chunk_start - timedelta(days=1)

    return StreakWindow(
        current_streak=current_streak,
        days=build_window_days(totals, today, window_days, current_streak),
    )
