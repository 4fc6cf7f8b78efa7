"""Achievement rules and idempotent awards."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from nabung.config import Settings, get_settings
from nabung.db.base import dialect_insert
from nabung.db.models import Achievement, UserStatistics
from nabung.savings.ledger import count_completed_targets

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AchievementRule:
    title: str
    description: str
    icon: str
    icon_color: str
    metric: str
    threshold_setting: str

    def threshold(self, settings: Settings) -> int:
        return getattr(settings, self.threshold_setting)


ACHIEVEMENT_RULES: tuple[AchievementRule, ...] = (
    AchievementRule(
        title="Streak 10 Hari!",
        description="Konsisten menabung 10 hari berturut-turut",
        icon="\U0001f3c6",
        icon_color="bg-yellow-500",
        metric="streak_days",
        threshold_setting="achievement_streak_days",
    ),
    AchievementRule(
        title="RP 10M+",
        description="Total tabungan yang terkumpul mencapai 10M+",
        icon="\U0001f4b0",
        icon_color="bg-green-500",
        metric="total_saved",
        threshold_setting="achievement_total_saved",
    ),
    AchievementRule(
        title="Target Master",
        description="Berhasil mencapai 3 target tabungan",
        icon="\U0001f3af",
        icon_color="bg-red-500",
        metric="completed_targets",
        threshold_setting="achievement_completed_targets",
    ),
)


def satisfied_rules(metrics: dict[str, Decimal | int], settings: Settings | None = None) -> list[AchievementRule]:
    """Rules whose metric meets its threshold."""
    settings = settings or get_settings()
    return [rule for rule in ACHIEVEMENT_RULES if metrics[rule.metric] >= rule.threshold(settings)]


async def has_achievement(db: AsyncSession, user_id: uuid.UUID, title: str) -> bool:
    """Check if the user already holds an achievement with this title."""
    result = await db.execute(
        select(Achievement.id).where(
            Achievement.user_id == user_id,
            Achievement.title == title,
        )
    )
    return result.scalar_one_or_none() is not None


async def award_achievement(
    db: AsyncSession,
    stats: UserStatistics,
    rule: AchievementRule,
    now: datetime | None = None,
) -> bool:
    """Insert the achievement unless already held.

    Returns True if awarded, False if the user already had it. A concurrent
    award of the same title hits UNIQUE(user_id, title) and inserts nothing.
    """
    if await has_achievement(db, stats.user_id, rule.title):
        return False

    now = now or datetime.now(timezone.utc)
    stmt = dialect_insert(db, Achievement).values(
        user_id=stats.user_id,
        title=rule.title,
        description=rule.description,
        icon=rule.icon,
        icon_color=rule.icon_color,
        earned_at=now,
    )
    stmt = stmt.on_conflict_do_nothing(index_elements=["user_id", "title"])
    result = await db.execute(stmt)
    if result.rowcount == 0:
        return False

    stats.achievements_count += 1
    stats.updated_at = now
    await db.flush()
    logger.info("Achievement %r awarded to user %s", rule.title, stats.user_id)
    return True


async def evaluate_achievements(db: AsyncSession, user_id: uuid.UUID) -> list[str]:
    """Award every newly satisfied achievement. Returns the awarded titles.

    Users without a statistics row have never deposited and are skipped.
    """
    result = await db.execute(select(UserStatistics).where(UserStatistics.user_id == user_id))
    stats = result.scalar_one_or_none()
    if stats is None:
        return []

    metrics: dict[str, Decimal | int] = {
        "streak_days": stats.streak_days,
        "total_saved": stats.total_saved,
        "completed_targets": await count_completed_targets(db, user_id),
    }

    awarded: list[str] = []
    for rule in satisfied_rules(metrics):
        if await award_achievement(db, stats, rule):
            awarded.append(rule.title)
    return awarded


async def list_achievements(db: AsyncSession, user_id: uuid.UUID) -> list[Achievement]:
    """The user's achievements, most recently earned first."""
    result = await db.execute(
        select(Achievement)
        .where(Achievement.user_id == user_id)
        .order_by(Achievement.earned_at.desc(), Achievement.id.desc())
    )
    return list(result.scalars().all())
