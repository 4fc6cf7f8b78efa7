"""Pydantic models for savings target endpoints."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer

# Exact in memory, plain JSON number on the wire.
MoneyValue = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class SavingsTargetRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    name: str
    target_amount: MoneyValue
    current_amount: MoneyValue
    icon: str
    icon_color: str
    target_date: date | None = None
    is_completed: bool
    created_at: datetime
    updated_at: datetime


class SavingsTargetCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    target_amount: Decimal
    icon: str | None = Field(default=None, max_length=16)
    icon_color: str | None = Field(default=None, max_length=32)
    target_date: date | None = None


class SavingsTargetUpdate(BaseModel):
    """Partial update. Omitted or null fields keep their stored value."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    target_amount: Decimal | None = None
    current_amount: Decimal | None = None
    icon: str | None = Field(default=None, max_length=16)
    icon_color: str | None = Field(default=None, max_length=32)
    target_date: date | None = None
    is_completed: bool | None = None


class AmountRequest(BaseModel):
    amount: Decimal


class SavingsTargetListResponse(BaseModel):
    targets: list[SavingsTargetRead]
    total: int
