"""Pydantic models for statistics endpoints."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict

from nabung.savings.schemas import MoneyValue


class StatisticsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_saved: MoneyValue
    streak_days: int
    daily_average: MoneyValue
    achievements_count: int
    last_deposit_date: date | None = None
    completed_targets: int = 0
    active_targets: int = 0


class StreakDayResponse(BaseModel):
    date: date
    has_deposit: bool
    deposit_amount: MoneyValue | None = None
    is_today: bool
    is_part_of_streak: bool


class StreakWindowResponse(BaseModel):
    current_streak: int
    window_days: int
    days: list[StreakDayResponse]


class AchievementResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str
    icon: str
    icon_color: str
    earned_at: datetime


class AchievementsResponse(BaseModel):
    achievements: list[AchievementResponse]
    total: int
