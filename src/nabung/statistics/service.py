"""Per-user savings statistics maintained incrementally on each deposit."""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from nabung.db.base import dialect_insert
from nabung.db.models import Achievement, User, UserStatistics
from nabung.savings.money import MONEY_PLACES
from nabung.statistics.achievements import evaluate_achievements, list_achievements
from nabung.statistics.calendar import local_date, local_today

logger = logging.getLogger(__name__)


def next_streak_days(current: int, last_deposit_date: date | None, today: date) -> int:
    """Streak counter after a deposit made on `today`."""
    if last_deposit_date == today:
        return current
    if last_deposit_date == today - timedelta(days=1):
        return current + 1
    return 1


def compute_daily_average(total_saved: Decimal, account_age_days: int) -> Decimal:
    """Total divided by account age in days (at least 1), two decimal places."""
    return (total_saved / max(account_age_days, 1)).quantize(MONEY_PLACES, rounding=ROUND_HALF_UP)


async def _ensure_statistics_row(db: AsyncSession, user_id: uuid.UUID, now: datetime) -> bool:
    """Insert an all-zero row unless one exists. True if this call inserted it."""
    stmt = dialect_insert(db, UserStatistics).values(
        user_id=user_id,
        total_saved=Decimal("0.00"),
        streak_days=0,
        daily_average=Decimal("0.00"),
        achievements_count=0,
        last_deposit_date=None,
        created_at=now,
        updated_at=now,
    )
    result = await db.execute(stmt.on_conflict_do_nothing(index_elements=["user_id"]))
    return result.rowcount == 1


async def _lock_statistics(db: AsyncSession, user_id: uuid.UUID) -> UserStatistics | None:
    result = await db.execute(
        select(UserStatistics)
        .where(UserStatistics.user_id == user_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_statistics(db: AsyncSession, user_id: uuid.UUID) -> UserStatistics:
    """Get the user's statistics row, creating the zero row on first read."""
    result = await db.execute(select(UserStatistics).where(UserStatistics.user_id == user_id))
    stats = result.scalar_one_or_none()
    if stats is None:
        await _ensure_statistics_row(db, user_id, datetime.now(timezone.utc))
        result = await db.execute(select(UserStatistics).where(UserStatistics.user_id == user_id))
        stats = result.scalar_one()
    return stats


async def cached_streak_days(db: AsyncSession, user_id: uuid.UUID) -> int:
    """The incrementally maintained streak counter, 0 if the user has no row."""
    result = await db.execute(
        select(UserStatistics.streak_days).where(UserStatistics.user_id == user_id)
    )
    return result.scalar_one_or_none() or 0


async def _account_age_days(db: AsyncSession, user_id: uuid.UUID, today: date) -> int:
    result = await db.execute(select(User.created_at).where(User.id == user_id))
    created_at = result.scalar_one_or_none()
    if created_at is None:
        return 1
    return (today - local_date(created_at)).days


async def record_deposit(
    db: AsyncSession,
    user_id: uuid.UUID,
    amount: Decimal,
    now: datetime | None = None,
) -> UserStatistics:
    """Fold one deposit into the user's statistics, then evaluate achievements.

    The statistics row is created if missing (ON CONFLICT DO NOTHING, so a
    concurrent first deposit simply finds the other's row) and then locked
    FOR UPDATE while the counters are advanced. Flushes; the caller commits.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    today = local_today(now)

    stats = await _lock_statistics(db, user_id)
    first_deposit = False
    if stats is None:
        first_deposit = await _ensure_statistics_row(db, user_id, now)
        result = await db.execute(
            select(UserStatistics)
            .where(UserStatistics.user_id == user_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        stats = result.scalar_one()

    stats.total_saved = stats.total_saved + amount
    stats.streak_days = next_streak_days(stats.streak_days, stats.last_deposit_date, today)
    stats.last_deposit_date = today
    if first_deposit:
        # The row this deposit created starts its average at the deposit itself.
        stats.daily_average = amount.quantize(MONEY_PLACES, rounding=ROUND_HALF_UP)
    else:
        stats.daily_average = compute_daily_average(
            stats.total_saved, await _account_age_days(db, user_id, today)
        )
    stats.updated_at = now
    await db.flush()

    logger.debug(
        "Statistics for user %s: total=%s streak=%d", user_id, stats.total_saved, stats.streak_days
    )

    await evaluate_achievements(db, user_id)
    return stats


async def get_achievements(db: AsyncSession, user_id: uuid.UUID) -> list[Achievement]:
    """The user's achievements, newest first."""
    return await list_achievements(db, user_id)
