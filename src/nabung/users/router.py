"""User profile router: /api/v1/users endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from nabung.auth.dependencies import get_current_admin, get_current_user
from nabung.auth.schemas import UserResponse
from nabung.database import get_session
from nabung.db.models import User
from nabung.users.schemas import ProfileUpdateRequest, UserListResponse
from nabung.users.service import list_users, update_profile

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


@router.get("/profile", response_model=UserResponse)
async def get_my_profile(user: User = Depends(get_current_user)) -> UserResponse:
    """Get own profile."""
    return UserResponse.model_validate(user)


@router.put("/profile", response_model=UserResponse)
async def update_my_profile(
    body: ProfileUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> UserResponse:
    """Update full_name and avatar."""
    try:
        user = await update_profile(db, user, full_name=body.full_name, avatar=body.avatar)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    await db.commit()
    return UserResponse.model_validate(user)


@router.get("", response_model=UserListResponse)
async def all_users(
    _admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> UserListResponse:
    """Every registered account (admin only)."""
    users = await list_users(db)
    return UserListResponse(users=[UserResponse.model_validate(u) for u in users], total=len(users))
