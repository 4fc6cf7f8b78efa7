"""Deposit/withdrawal orchestration: critical ledger commit, best-effort follow-ups.

Rollbacks expire every ORM instance in the session, so user ids are read once
up front and the assertions below only ever use plain ids.
"""

from __future__ import annotations

import uuid
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from nabung.activity import recorder
from nabung.db.models import Activity, SavingsTarget, UserStatistics
from nabung.savings import ledger, orchestrator
from nabung.savings.errors import AccessDeniedError, InvalidAmountError, StorageFailureError, TargetNotFoundError
from nabung.savings.schemas import SavingsTargetRead
from nabung.statistics import service as statistics


async def _activity_types(db, user_id: uuid.UUID) -> list[str]:
    result = await db.execute(
        select(Activity.activity_type).where(Activity.user_id == user_id).order_by(Activity.id)
    )
    return list(result.scalars().all())


async def _stats(db, user_id: uuid.UUID) -> UserStatistics | None:
    result = await db.execute(
        select(UserStatistics)
        .where(UserStatistics.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def _balance(db, target_id: uuid.UUID) -> Decimal:
    result = await db.execute(select(SavingsTarget.current_amount).where(SavingsTarget.id == target_id))
    return result.scalar_one()


@pytest_asyncio.fixture
async def uid(user) -> uuid.UUID:
    return user.id


@pytest_asyncio.fixture
async def other_uid(other_user) -> uuid.UUID:
    return other_user.id


@pytest_asyncio.fixture
async def target(db_session, uid) -> SavingsTargetRead:
    return await orchestrator.create_target(db_session, uid, "Laptop", 100000)


class TestCreateTarget:
    @pytest.mark.asyncio
    async def test_logs_target_created(self, db_session, uid, target):
        assert target.current_amount == Decimal("0")
        assert await _activity_types(db_session, uid) == ["target_created"]

    @pytest.mark.asyncio
    async def test_invalid_amount(self, db_session, uid):
        with pytest.raises(InvalidAmountError):
            await orchestrator.create_target(db_session, uid, "Nope", 0)
        assert await _activity_types(db_session, uid) == []


class TestDeposit:
    @pytest.mark.asyncio
    async def test_full_scenario(self, db_session, uid, target):
        snap = await orchestrator.deposit(db_session, uid, target.id, 40000)
        assert snap.current_amount == Decimal("40000")
        assert snap.is_completed is False

        snap = await orchestrator.deposit(db_session, uid, target.id, 60000)
        assert snap.current_amount == Decimal("100000")
        assert snap.is_completed is True

        snap = await orchestrator.withdraw(db_session, uid, target.id, 1)
        assert snap.current_amount == Decimal("99999")
        assert snap.is_completed is False

        assert await _activity_types(db_session, uid) == [
            "target_created",
            "deposit",
            "deposit",
            "target_completed",
            "withdrawal",
        ]
        stats = await _stats(db_session, uid)
        assert stats.total_saved == Decimal("100000")
        assert stats.streak_days == 1

    @pytest.mark.asyncio
    async def test_completed_logged_only_on_transition(self, db_session, uid, target):
        await orchestrator.deposit(db_session, uid, target.id, 100000)
        await orchestrator.deposit(db_session, uid, target.id, 5000)
        types = await _activity_types(db_session, uid)
        assert types.count("target_completed") == 1

    @pytest.mark.asyncio
    async def test_cross_user_deposit_changes_nothing(self, db_session, uid, other_uid, target):
        with pytest.raises(AccessDeniedError):
            await orchestrator.deposit(db_session, other_uid, target.id, 500)

        assert await _balance(db_session, target.id) == Decimal("0")
        assert await _activity_types(db_session, other_uid) == []
        assert await _activity_types(db_session, uid) == ["target_created"]
        assert await _stats(db_session, other_uid) is None
        assert await _stats(db_session, uid) is None

    @pytest.mark.asyncio
    async def test_unknown_target(self, db_session, uid):
        with pytest.raises(TargetNotFoundError):
            await orchestrator.deposit(db_session, uid, uuid.uuid4(), 500)

    @pytest.mark.asyncio
    async def test_invalid_amount_rejected_before_lookup(self, db_session, uid):
        with pytest.raises(InvalidAmountError):
            await orchestrator.deposit(db_session, uid, uuid.uuid4(), "-1")

    @pytest.mark.asyncio
    async def test_recorder_failure_does_not_fail_deposit(self, db_session, uid, target, monkeypatch):
        monkeypatch.setattr(recorder, "record_deposit", AsyncMock(side_effect=RuntimeError("log down")))

        snap = await orchestrator.deposit(db_session, uid, target.id, 2500)

        assert snap.current_amount == Decimal("2500")
        assert await _balance(db_session, target.id) == Decimal("2500")
        assert await _activity_types(db_session, uid) == ["target_created"]
        stats = await _stats(db_session, uid)
        assert stats.total_saved == Decimal("2500")

    @pytest.mark.asyncio
    async def test_statistics_failure_does_not_fail_deposit(self, db_session, uid, target, monkeypatch):
        monkeypatch.setattr(
            statistics,
            "record_deposit",
            AsyncMock(side_effect=OperationalError("UPDATE user_statistics", {}, Exception("locked"))),
        )

        snap = await orchestrator.deposit(db_session, uid, target.id, 2500)

        assert snap.current_amount == Decimal("2500")
        assert await _balance(db_session, target.id) == Decimal("2500")
        assert await _activity_types(db_session, uid) == ["target_created", "deposit"]
        assert await _stats(db_session, uid) is None

    @pytest.mark.asyncio
    async def test_failed_rollback_after_follow_up_is_swallowed(self, db_session, uid, target, monkeypatch):
        monkeypatch.setattr(recorder, "record_deposit", AsyncMock(side_effect=RuntimeError("log down")))
        monkeypatch.setattr(
            db_session,
            "rollback",
            AsyncMock(side_effect=OperationalError("ROLLBACK", {}, Exception("connection dropped"))),
        )

        snap = await orchestrator.deposit(db_session, uid, target.id, 2500)

        assert snap.current_amount == Decimal("2500")
        assert await _balance(db_session, target.id) == Decimal("2500")

    @pytest.mark.asyncio
    async def test_ledger_storage_failure(self, db_session, uid, target, monkeypatch):
        monkeypatch.setattr(
            ledger,
            "apply_deposit",
            AsyncMock(side_effect=OperationalError("UPDATE savings_targets", {}, Exception("db down"))),
        )

        with pytest.raises(StorageFailureError):
            await orchestrator.deposit(db_session, uid, target.id, 2500)
        assert await _balance(db_session, target.id) == Decimal("0")
        assert await _activity_types(db_session, uid) == ["target_created"]
        assert await _stats(db_session, uid) is None


class TestWithdraw:
    @pytest.mark.asyncio
    async def test_withdraw_skips_statistics(self, db_session, uid, target):
        await orchestrator.deposit(db_session, uid, target.id, 5000)
        before = await _stats(db_session, uid)
        total_before = before.total_saved

        snap = await orchestrator.withdraw(db_session, uid, target.id, 9000)

        assert snap.current_amount == Decimal("0")
        after = await _stats(db_session, uid)
        assert after.total_saved == total_before

        result = await db_session.execute(
            select(Activity.amount).where(Activity.activity_type == "withdrawal")
        )
        assert result.scalar_one() == Decimal("-9000")

    @pytest.mark.asyncio
    async def test_cross_user_withdraw(self, db_session, other_uid, target):
        with pytest.raises(AccessDeniedError):
            await orchestrator.withdraw(db_session, other_uid, target.id, 1)
        assert await _balance(db_session, target.id) == Decimal("0")


class TestUpdateAndDelete:
    @pytest.mark.asyncio
    async def test_update_returns_snapshot(self, db_session, uid, target):
        snap = await orchestrator.update_target(db_session, uid, target.id, {"name": "Laptop Gaming"})
        assert snap.name == "Laptop Gaming"
        assert await _activity_types(db_session, uid) == ["target_created"]

    @pytest.mark.asyncio
    async def test_update_other_users_target(self, db_session, other_uid, target):
        assert await orchestrator.update_target(db_session, other_uid, target.id, {"name": "x"}) is None

    @pytest.mark.asyncio
    async def test_delete_keeps_activities(self, db_session, uid, target):
        await orchestrator.deposit(db_session, uid, target.id, 1000)
        assert await orchestrator.delete_target(db_session, uid, target.id) is True

        result = await db_session.execute(select(Activity).where(Activity.savings_target_id == target.id))
        assert len(result.scalars().all()) == 2

    @pytest.mark.asyncio
    async def test_delete_other_users_target(self, db_session, other_uid, target):
        assert await orchestrator.delete_target(db_session, other_uid, target.id) is False
        assert await _balance(db_session, target.id) == Decimal("0")
