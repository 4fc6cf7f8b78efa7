"""/api/v1/reminders endpoints."""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from nabung.auth.dependencies import get_current_user
from nabung.database import get_session
from nabung.db.models import User
from nabung.reminders.schemas import ReminderListResponse, ReminderResponse
from nabung.reminders.service import (
    Reminder,
    calendar_events,
    list_reminders,
    todays_reminders,
    upcoming_reminders,
)
from nabung.statistics.calendar import local_today

router = APIRouter(prefix="/api/v1/reminders", tags=["Reminders"])


def _listing(reminders: list[Reminder]) -> ReminderListResponse:
    items = [ReminderResponse(**asdict(r)) for r in reminders]
    return ReminderListResponse(reminders=items, count=len(items))


@router.get("", response_model=ReminderListResponse)
async def my_reminders(
    limit: int | None = Query(None, ge=1, le=200),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ReminderListResponse:
    """Every target deadline, nearest first."""
    return _listing(await list_reminders(db, user.id, limit=limit))


@router.get("/upcoming", response_model=ReminderListResponse)
async def my_upcoming_reminders(
    days: int | None = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ReminderListResponse:
    """Open targets due within the next `days` days."""
    try:
        reminders = await upcoming_reminders(db, user.id, days=days)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return _listing(reminders)


@router.get("/today", response_model=ReminderListResponse)
async def my_todays_reminders(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ReminderListResponse:
    return _listing(await todays_reminders(db, user.id))


@router.get("/calendar", response_model=ReminderListResponse)
async def my_calendar(
    month: int | None = Query(None),
    year: int | None = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ReminderListResponse:
    """Target deadlines in one month. Defaults to the current month."""
    today = local_today()
    try:
        events = await calendar_events(
            db,
            user.id,
            year if year is not None else today.year,
            month if month is not None else today.month,
            today=today,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return _listing(events)
