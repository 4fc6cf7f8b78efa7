"""Pydantic models for the activity feeds."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict

from nabung.savings.schemas import MoneyValue


class ActivityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: uuid.UUID
    savings_target_id: uuid.UUID | None = None
    activity_type: str
    title: str
    description: str | None = None
    amount: MoneyValue
    icon: str
    icon_color: str
    created_at: datetime


class ActivityFeedResponse(BaseModel):
    activities: list[ActivityResponse]
    count: int
