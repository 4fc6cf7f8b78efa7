"""/api/v1/activities endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from nabung.activity.recorder import list_activities, list_all_recent_activities
from nabung.activity.schemas import ActivityFeedResponse, ActivityResponse
from nabung.auth.dependencies import get_current_admin, get_current_user
from nabung.config import get_settings
from nabung.database import get_session
from nabung.db.models import User

router = APIRouter(prefix="/api/v1/activities", tags=["Activities"])


def _clamp_limit(limit: int | None, default: int) -> int:
    return min(limit or default, get_settings().activity_feed_max_limit)


def _feed(rows: list) -> ActivityFeedResponse:
    items = [ActivityResponse.model_validate(a) for a in rows]
    return ActivityFeedResponse(activities=items, count=len(items))


@router.get("", response_model=ActivityFeedResponse)
async def my_activities(
    limit: int | None = Query(None, ge=1),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ActivityFeedResponse:
    """The caller's activity feed, newest first."""
    limit = _clamp_limit(limit, get_settings().activity_feed_default_limit)
    return _feed(await list_activities(db, user.id, limit=limit))


@router.get("/recent", response_model=ActivityFeedResponse)
async def recent_activities(
    limit: int | None = Query(None, ge=1),
    _admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> ActivityFeedResponse:
    """Latest activity across all users (admin dashboard)."""
    limit = _clamp_limit(limit, get_settings().recent_activity_default_limit)
    return _feed(await list_all_recent_activities(db, limit=limit))
