"""Coordinates ledger, activity log and statistics for each user action.

Only the balance change is critical: it commits on its own, and once it has
committed the caller gets a snapshot of the target no matter what happens
next. Activity recording and statistics are best-effort follow-ups, each in
its own transaction; a failure there is logged and rolled back, never raised.
"""

from __future__ import annotations

import enum
import uuid
from collections.abc import Awaitable, Callable
from datetime import date
from decimal import Decimal
from typing import Any

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from nabung.activity import recorder
from nabung.savings import ledger
from nabung.savings.errors import LedgerError, StorageFailureError
from nabung.savings.money import parse_amount
from nabung.savings.schemas import SavingsTargetRead
from nabung.statistics import service as statistics

logger = structlog.get_logger(__name__)


class Stage(str, enum.Enum):
    VALIDATING = "validating"
    TARGET_LOOKUP = "target_lookup"
    BALANCE_UPDATE = "balance_update"
    ACTIVITY_RECORD = "activity_record"
    STATISTICS_UPDATE = "statistics_update"
    DONE = "done"


async def _best_effort(
    db: AsyncSession,
    step: str,
    func: Callable[..., Awaitable[Any]],
    *args: Any,
    log: Any,
) -> Any:
    """Run one follow-up step in its own transaction. Failures are logged and dropped."""
    try:
        result = await func(db, *args)
        await db.commit()
    except Exception:
        log.exception("best_effort_step_failed", step=step)
        try:
            await db.rollback()
        except Exception:
            log.exception("best_effort_rollback_failed", step=step)
        return None
    return result


async def _storage_failure(db: AsyncSession, log: Any, stage: Stage, exc: SQLAlchemyError) -> StorageFailureError:
    await db.rollback()
    log.error("ledger_storage_failure", stage=stage.value, error=str(exc))
    return StorageFailureError(f"Savings ledger unavailable during {stage.value}")


async def deposit(
    db: AsyncSession,
    user_id: uuid.UUID,
    target_id: uuid.UUID,
    amount: Decimal | int | float | str,
) -> SavingsTargetRead:
    """Deposit into a target, then log the activity and update statistics.

    Raises:
        InvalidAmountError: Amount is not a positive two-decimal number.
        TargetNotFoundError: No target with this id.
        AccessDeniedError: The target belongs to another user.
        StorageFailureError: The balance update could not be committed.
    """
    log = logger.bind(user_id=str(user_id), target_id=str(target_id), operation="deposit")

    stage = Stage.VALIDATING
    log.debug("stage", stage=stage.value)
    value = parse_amount(amount)

    try:
        stage = Stage.TARGET_LOOKUP
        log.debug("stage", stage=stage.value)
        current = await ledger.lookup_target(db, user_id, target_id, lock=True)
        was_completed = current.is_completed

        stage = Stage.BALANCE_UPDATE
        log.debug("stage", stage=stage.value)
        target = await ledger.apply_deposit(db, user_id, target_id, value)
        await db.commit()
    except LedgerError:
        await db.rollback()
        raise
    except SQLAlchemyError as e:
        raise await _storage_failure(db, log, stage, e) from e

    snapshot = SavingsTargetRead.model_validate(target)
    log.info(
        "deposit_applied",
        amount=str(value),
        current_amount=str(snapshot.current_amount),
        is_completed=snapshot.is_completed,
    )

    log.debug("stage", stage=Stage.ACTIVITY_RECORD.value)
    await _best_effort(
        db, "deposit_activity", recorder.record_deposit, user_id, target_id, value, snapshot.name, log=log
    )
    # Logged once, on the deposit that reaches the goal; later deposits into a
    # completed target add no further target_completed rows.
    if snapshot.is_completed and not was_completed:
        await _best_effort(
            db, "target_completed_activity", recorder.record_target_completed,
            user_id, target_id, snapshot.name, log=log,
        )

    log.debug("stage", stage=Stage.STATISTICS_UPDATE.value)
    await _best_effort(db, "statistics_update", statistics.record_deposit, user_id, value, log=log)

    log.debug("stage", stage=Stage.DONE.value)
    return snapshot


async def withdraw(
    db: AsyncSession,
    user_id: uuid.UUID,
    target_id: uuid.UUID,
    amount: Decimal | int | float | str,
) -> SavingsTargetRead:
    """Withdraw from a target and log the activity.

    Statistics are deposit-driven and are not touched by withdrawals.
    Raises the same errors as deposit().
    """
    log = logger.bind(user_id=str(user_id), target_id=str(target_id), operation="withdraw")

    stage = Stage.VALIDATING
    log.debug("stage", stage=stage.value)
    value = parse_amount(amount)

    try:
        stage = Stage.TARGET_LOOKUP
        log.debug("stage", stage=stage.value)
        await ledger.lookup_target(db, user_id, target_id, lock=True)

        stage = Stage.BALANCE_UPDATE
        log.debug("stage", stage=stage.value)
        target = await ledger.apply_withdrawal(db, user_id, target_id, value)
        await db.commit()
    except LedgerError:
        await db.rollback()
        raise
    except SQLAlchemyError as e:
        raise await _storage_failure(db, log, stage, e) from e

    snapshot = SavingsTargetRead.model_validate(target)
    log.info("withdrawal_applied", amount=str(value), current_amount=str(snapshot.current_amount))

    await _best_effort(db, "withdrawal_activity", recorder.record_withdrawal, user_id, target_id, value, log=log)
    return snapshot


async def create_target(
    db: AsyncSession,
    user_id: uuid.UUID,
    name: str,
    target_amount: Decimal | int | float | str,
    icon: str | None = None,
    icon_color: str | None = None,
    target_date: date | None = None,
) -> SavingsTargetRead:
    """Create a target and log a target_created activity."""
    log = logger.bind(user_id=str(user_id), operation="create_target")
    try:
        target = await ledger.create_target(db, user_id, name, target_amount, icon, icon_color, target_date)
        await db.commit()
    except LedgerError:
        await db.rollback()
        raise
    except SQLAlchemyError as e:
        raise await _storage_failure(db, log, Stage.BALANCE_UPDATE, e) from e

    snapshot = SavingsTargetRead.model_validate(target)
    log.info("target_created", target_id=str(snapshot.id), target_amount=str(snapshot.target_amount))

    await _best_effort(
        db, "target_created_activity", recorder.record_target_created, user_id, snapshot.id, snapshot.name, log=log
    )
    return snapshot


async def update_target(
    db: AsyncSession,
    user_id: uuid.UUID,
    target_id: uuid.UUID,
    patch: dict[str, Any],
) -> SavingsTargetRead | None:
    """Apply a partial update. Returns None if the user owns no such target."""
    log = logger.bind(user_id=str(user_id), target_id=str(target_id), operation="update_target")
    try:
        target = await ledger.update_target(db, user_id, target_id, patch)
        await db.commit()
    except LedgerError:
        await db.rollback()
        raise
    except SQLAlchemyError as e:
        raise await _storage_failure(db, log, Stage.BALANCE_UPDATE, e) from e

    if target is None:
        return None
    log.info("target_updated", fields=sorted(k for k, v in patch.items() if v is not None))
    return SavingsTargetRead.model_validate(target)


async def delete_target(db: AsyncSession, user_id: uuid.UUID, target_id: uuid.UUID) -> bool:
    """Delete the user's target. Activities referencing it are kept."""
    log = logger.bind(user_id=str(user_id), target_id=str(target_id), operation="delete_target")
    try:
        deleted = await ledger.delete_target(db, user_id, target_id)
        await db.commit()
    except SQLAlchemyError as e:
        raise await _storage_failure(db, log, Stage.BALANCE_UPDATE, e) from e

    if deleted:
        log.info("target_deleted")
    return deleted
