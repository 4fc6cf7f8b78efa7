"""Savings target balance bookkeeping.

Functions here flush but never commit: the caller owns the transaction.
Balance changes are expressed as SQL increments (current_amount + :amount)
against a row locked with SELECT ... FOR UPDATE, so concurrent deposits to the
same target serialize on that row and never lose an update.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy import case, delete, false, func, literal, select, true, update
from sqlalchemy.ext.asyncio import AsyncSession

from nabung.config import get_settings
from nabung.db.base import Money
from nabung.db.models import SavingsTarget
from nabung.savings.errors import AccessDeniedError, TargetNotFoundError
from nabung.savings.money import parse_amount, parse_balance

PATCHABLE_FIELDS = frozenset({
    "name",
    "target_amount",
    "current_amount",
    "icon",
    "icon_color",
    "target_date",
    "is_completed",
})


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


async def list_targets(db: AsyncSession, user_id: uuid.UUID) -> list[SavingsTarget]:
    """All targets owned by the user, newest first."""
    result = await db.execute(
        select(SavingsTarget)
        .where(SavingsTarget.user_id == user_id)
        .order_by(SavingsTarget.created_at.desc())
    )
    return list(result.scalars().all())


async def get_target(db: AsyncSession, user_id: uuid.UUID, target_id: uuid.UUID) -> SavingsTarget | None:
    """Fetch a target only if it belongs to the user."""
    result = await db.execute(
        select(SavingsTarget).where(
            SavingsTarget.id == target_id,
            SavingsTarget.user_id == user_id,
        )
    )
    return result.scalar_one_or_none()


async def count_completed_targets(db: AsyncSession, user_id: uuid.UUID) -> int:
    """Number of the user's targets currently flagged completed."""
    result = await db.execute(
        select(func.count())
        .select_from(SavingsTarget)
        .where(SavingsTarget.user_id == user_id, SavingsTarget.is_completed.is_(True))
    )
    return result.scalar_one()


async def lookup_target(
    db: AsyncSession,
    user_id: uuid.UUID,
    target_id: uuid.UUID,
    *,
    lock: bool = False,
) -> SavingsTarget:
    """Load a target by id and verify ownership.

    Raises:
        TargetNotFoundError: If no target has this id.
        AccessDeniedError: If the target belongs to another user.
    """
    stmt = select(SavingsTarget).where(SavingsTarget.id == target_id)
    if lock:
        stmt = stmt.with_for_update()
    result = await db.execute(stmt)
    target = result.scalar_one_or_none()
    if target is None:
        msg = f"Savings target {target_id} not found"
        raise TargetNotFoundError(msg)
    if target.user_id != user_id:
        msg = f"Savings target {target_id} belongs to another user"
        raise AccessDeniedError(msg)
    return target


async def _reload(db: AsyncSession, target_id: uuid.UUID) -> SavingsTarget:
    """Re-read a target after a bulk UPDATE so the identity map is current."""
    target = await db.get(SavingsTarget, target_id, populate_existing=True)
    if target is None:
        msg = f"Savings target {target_id} not found"
        raise TargetNotFoundError(msg)
    return target


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


async def create_target(
    db: AsyncSession,
    user_id: uuid.UUID,
    name: str,
    target_amount: Decimal | int | float | str,
    icon: str | None = None,
    icon_color: str | None = None,
    target_date: date | None = None,
) -> SavingsTarget:
    """Create an empty, incomplete target.

    Raises:
        InvalidAmountError: If target_amount is not strictly positive.
    """
    amount = parse_amount(target_amount)
    settings = get_settings()
    now = datetime.now(timezone.utc)

    target = SavingsTarget(
        user_id=user_id,
        name=name,
        target_amount=amount,
        current_amount=Decimal("0.00"),
        icon=icon or settings.default_target_icon,
        icon_color=icon_color or settings.default_target_icon_color,
        target_date=target_date,
        is_completed=False,
        created_at=now,
        updated_at=now,
    )
    db.add(target)
    await db.flush()
    return target


async def apply_deposit(
    db: AsyncSession,
    user_id: uuid.UUID,
    target_id: uuid.UUID,
    amount: Decimal | int | float | str,
) -> SavingsTarget:
    """Add amount to the target balance.

    Completion is one-way here: a target that reaches its goal is flagged
    completed, and a target already completed stays completed.
    """
    value = parse_amount(amount)
    await lookup_target(db, user_id, target_id, lock=True)

    new_total = SavingsTarget.current_amount + value
    await db.execute(
        update(SavingsTarget)
        .where(SavingsTarget.id == target_id, SavingsTarget.user_id == user_id)
        .values(
            current_amount=new_total,
            is_completed=case(
                (new_total >= SavingsTarget.target_amount, true()),
                else_=SavingsTarget.is_completed,
            ),
            updated_at=datetime.now(timezone.utc),
        )
        .execution_options(synchronize_session=False)
    )
    return await _reload(db, target_id)


async def apply_withdrawal(
    db: AsyncSession,
    user_id: uuid.UUID,
    target_id: uuid.UUID,
    amount: Decimal | int | float | str,
) -> SavingsTarget:
    """Take amount out of the target balance, flooring at zero.

    Drops the completed flag when the new balance falls below the goal.
    """
    value = parse_amount(amount)
    await lookup_target(db, user_id, target_id, lock=True)

    remaining = SavingsTarget.current_amount - value
    await db.execute(
        update(SavingsTarget)
        .where(SavingsTarget.id == target_id, SavingsTarget.user_id == user_id)
        .values(
            current_amount=case(
                (remaining < 0, literal(Decimal("0.00"), Money)),
                else_=remaining,
            ),
            is_completed=case(
                (remaining < SavingsTarget.target_amount, false()),
                else_=SavingsTarget.is_completed,
            ),
            updated_at=datetime.now(timezone.utc),
        )
        .execution_options(synchronize_session=False)
    )
    return await _reload(db, target_id)


def _clean_patch(patch: dict[str, Any]) -> dict[str, Any]:
    """Keep known, non-null fields and validate monetary ones."""
    values = {k: v for k, v in patch.items() if k in PATCHABLE_FIELDS and v is not None}
    if "target_amount" in values:
        values["target_amount"] = parse_amount(values["target_amount"])
    if "current_amount" in values:
        values["current_amount"] = parse_balance(values["current_amount"])
    return values


async def update_target(
    db: AsyncSession,
    user_id: uuid.UUID,
    target_id: uuid.UUID,
    patch: dict[str, Any],
) -> SavingsTarget | None:
    """Patch a target. Unset or null fields keep their stored value.

    When an amount changes without an explicit is_completed, completion is
    recomputed from the resulting balance. Returns None if the user owns no
    target with this id.
    """
    values = _clean_patch(patch)
    if not values:
        return await get_target(db, user_id, target_id)

    if "is_completed" not in values and ("target_amount" in values or "current_amount" in values):
        new_current = (
            literal(values["current_amount"], Money) if "current_amount" in values else SavingsTarget.current_amount
        )
        new_target = (
            literal(values["target_amount"], Money) if "target_amount" in values else SavingsTarget.target_amount
        )
        values["is_completed"] = case((new_current >= new_target, true()), else_=false())
    values["updated_at"] = datetime.now(timezone.utc)

    result = await db.execute(
        update(SavingsTarget)
        .where(SavingsTarget.id == target_id, SavingsTarget.user_id == user_id)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        return None
    return await _reload(db, target_id)


async def delete_target(db: AsyncSession, user_id: uuid.UUID, target_id: uuid.UUID) -> bool:
    """Delete a target owned by the user.

    Ownership lives in the predicate: another user's target is simply not
    matched, so the result is False rather than an access error.
    """
    result = await db.execute(
        delete(SavingsTarget)
        .where(SavingsTarget.id == target_id, SavingsTarget.user_id == user_id)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount > 0
