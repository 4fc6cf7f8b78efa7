"""ORM models for users, savings targets, activities, statistics and achievements."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    false,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from nabung.db.base import Base, BigIntPK, Money


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class User(Base):
    """Registered account. created_at anchors the daily-average divisor."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    full_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(256), nullable=False)
    avatar: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    savings_targets: Mapped[list[SavingsTarget]] = relationship(
        "SavingsTarget", back_populates="user", passive_deletes=True
    )
    statistics: Mapped[UserStatistics | None] = relationship(
        "UserStatistics", back_populates="user", uselist=False, passive_deletes=True
    )


# ---------------------------------------------------------------------------
# Ledger
# ---------------------------------------------------------------------------


class SavingsTarget(Base):
    """A named savings goal and its running balance."""

    __tablename__ = "savings_targets"
    __table_args__ = (Index("idx_savings_targets_user", "user_id"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    target_amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    current_amount: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal("0"), server_default="0")
    icon: Mapped[str] = mapped_column(String(16), nullable=False)
    icon_color: Mapped[str] = mapped_column(String(32), nullable=False)
    target_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    is_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    user: Mapped[User] = relationship("User", back_populates="savings_targets")


# ---------------------------------------------------------------------------
# Activity log
# ---------------------------------------------------------------------------


class Activity(Base):
    """Append-only event log. savings_target_id outlives the target it names."""

    __tablename__ = "activities"
    __table_args__ = (
        Index("idx_activities_user_created", "user_id", "created_at"),
        Index("idx_activities_created", "created_at"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    savings_target_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    activity_type: Mapped[str] = mapped_column(String(32), nullable=False)
    title: Mapped[str] = mapped_column(String(256), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal("0"), server_default="0")
    icon: Mapped[str] = mapped_column(String(16), nullable=False)
    icon_color: Mapped[str] = mapped_column(String(32), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------


class UserStatistics(Base):
    """Denormalized per-user savings statistics, one row per user."""

    __tablename__ = "user_statistics"
    __table_args__ = (UniqueConstraint("user_id", name="user_statistics_user_id_key"),)

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    total_saved: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal("0"), server_default="0")
    streak_days: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    daily_average: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal("0"), server_default="0")
    achievements_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    last_deposit_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    user: Mapped[User] = relationship("User", back_populates="statistics")


class Achievement(Base):
    """Milestone badge. UNIQUE(user_id, title) prevents duplicates."""

    __tablename__ = "achievements"
    __table_args__ = (UniqueConstraint("user_id", "title", name="achievements_user_id_title_key"),)

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    icon: Mapped[str] = mapped_column(String(16), nullable=False)
    icon_color: Mapped[str] = mapped_column(String(32), nullable=False)
    earned_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
