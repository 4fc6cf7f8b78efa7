"""/api/v1/statistics endpoints."""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from nabung.auth.dependencies import get_current_user
from nabung.config import get_settings
from nabung.database import get_session
from nabung.db.models import User
from nabung.savings.ledger import count_completed_targets, list_targets
from nabung.statistics.schemas import (
    AchievementResponse,
    AchievementsResponse,
    StatisticsResponse,
    StreakDayResponse,
    StreakWindowResponse,
)
from nabung.statistics.service import get_achievements, get_statistics
from nabung.statistics.streak import compute_streak_window

router = APIRouter(prefix="/api/v1/statistics", tags=["Statistics"])


@router.get("", response_model=StatisticsResponse)
async def my_statistics(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> StatisticsResponse:
    """Stored counters plus live target counts. Creates the zero row on first read."""
    stats = await get_statistics(db, user.id)
    await db.commit()
    completed = await count_completed_targets(db, user.id)
    total_targets = len(await list_targets(db, user.id))
    return StatisticsResponse(
        total_saved=stats.total_saved,
        streak_days=stats.streak_days,
        daily_average=stats.daily_average,
        achievements_count=stats.achievements_count,
        last_deposit_date=stats.last_deposit_date,
        completed_targets=completed,
        active_targets=total_targets - completed,
    )


@router.get("/streak", response_model=StreakWindowResponse)
async def my_streak(
    days: int | None = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> StreakWindowResponse:
    """Streak recomputed from deposits, with a per-day window for the calendar view."""
    window_days = days if days is not None else get_settings().streak_window_default_days
    try:
        window = await compute_streak_window(db, user.id, window_days)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return StreakWindowResponse(
        current_streak=window.current_streak,
        window_days=window_days,
        days=[StreakDayResponse(**asdict(day)) for day in window.days],
    )


@router.get("/achievements", response_model=AchievementsResponse)
async def my_achievements(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> AchievementsResponse:
    achievements = await get_achievements(db, user.id)
    return AchievementsResponse(
        achievements=[AchievementResponse.model_validate(a) for a in achievements],
        total=len(achievements),
    )
