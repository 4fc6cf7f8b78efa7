"""Concurrent deposits on separate sessions against a file-backed database."""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from nabung.database import close_db, get_engine, get_session, init_db
from nabung.db.base import Base
from nabung.db.models import Activity, SavingsTarget, User, UserStatistics
from nabung.savings import orchestrator
from nabung.savings.schemas import SavingsTargetRead

DEPOSITORS = 8
AMOUNT = Decimal("1000")


@pytest_asyncio.fixture
async def file_database(tmp_path) -> AsyncGenerator[None, None]:
    """One connection per session, so the writes really interleave."""
    await init_db(f"sqlite+aiosqlite:///{tmp_path / 'nabung.db'}")
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await close_db()


@asynccontextmanager
async def _session() -> AsyncGenerator[AsyncSession, None]:
    sessions = get_session()
    session = await anext(sessions)
    try:
        yield session
    finally:
        await sessions.aclose()


@pytest_asyncio.fixture
async def seeded(file_database: None) -> tuple[uuid.UUID, uuid.UUID]:
    async with _session() as db:
        now = datetime.now(timezone.utc)
        user = User(
            full_name="Budi Santoso",
            email="budi@example.com",
            password_hash="unused",
            is_admin=False,
            created_at=now,
            updated_at=now,
        )
        db.add(user)
        await db.flush()
        user_id = user.id
        target = await orchestrator.create_target(db, user_id, "Laptop", 1_000_000)
        return user_id, target.id


async def _deposit(user_id: uuid.UUID, target_id: uuid.UUID) -> SavingsTargetRead:
    async with _session() as db:
        return await orchestrator.deposit(db, user_id, target_id, AMOUNT)


@pytest.mark.asyncio
async def test_concurrent_deposits_lose_no_update(seeded):
    user_id, target_id = seeded

    snapshots = await asyncio.gather(*(_deposit(user_id, target_id) for _ in range(DEPOSITORS)))

    # every deposit saw the balance left by the one before it
    assert sorted(s.current_amount for s in snapshots) == [AMOUNT * k for k in range(1, DEPOSITORS + 1)]

    async with _session() as db:
        balance = await db.scalar(select(SavingsTarget.current_amount).where(SavingsTarget.id == target_id))
        assert balance == AMOUNT * DEPOSITORS

        deposits = await db.scalar(
            select(func.count())
            .select_from(Activity)
            .where(Activity.user_id == user_id, Activity.activity_type == "deposit")
        )
        assert deposits == DEPOSITORS

        stats = await db.scalar(select(UserStatistics).where(UserStatistics.user_id == user_id))
        assert stats.total_saved == AMOUNT * DEPOSITORS
        assert stats.streak_days == 1
