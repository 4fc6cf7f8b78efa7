"""Request/response schemas for user endpoints."""

from __future__ import annotations

from pydantic import BaseModel, Field

from nabung.auth.schemas import UserResponse


class ProfileUpdateRequest(BaseModel):
    """Omitted or null fields keep their stored value."""

    full_name: str | None = Field(default=None, min_length=2, max_length=100)
    avatar: str | None = Field(default=None, max_length=2048)


class UserListResponse(BaseModel):
    users: list[UserResponse]
    total: int
