"""Pydantic models for the reminder endpoints."""

from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel

from nabung.savings.schemas import MoneyValue


class ReminderResponse(BaseModel):
    target_id: uuid.UUID
    reminder_date: date
    reminder_type: str
    title: str
    description: str
    is_completed: bool
    target_name: str
    target_icon: str
    target_icon_color: str
    remaining_amount: MoneyValue
    days_remaining: int
    created_at: datetime


class ReminderListResponse(BaseModel):
    reminders: list[ReminderResponse]
    count: int
