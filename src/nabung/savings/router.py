"""/api/v1/savings endpoints."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.ext.asyncio import AsyncSession

from nabung.auth.dependencies import get_current_user
from nabung.database import get_session
from nabung.db.models import User
from nabung.savings import ledger, orchestrator
from nabung.savings.schemas import (
    AmountRequest,
    SavingsTargetCreate,
    SavingsTargetListResponse,
    SavingsTargetRead,
    SavingsTargetUpdate,
)

router = APIRouter(prefix="/api/v1/savings", tags=["Savings"])


@router.post("/targets", response_model=SavingsTargetRead, status_code=201)
async def create_target(
    body: SavingsTargetCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> SavingsTargetRead:
    return await orchestrator.create_target(
        db,
        user.id,
        body.name,
        body.target_amount,
        icon=body.icon,
        icon_color=body.icon_color,
        target_date=body.target_date,
    )


@router.get("/targets", response_model=SavingsTargetListResponse)
async def list_targets(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> SavingsTargetListResponse:
    """The caller's targets, newest first."""
    targets = await ledger.list_targets(db, user.id)
    return SavingsTargetListResponse(
        targets=[SavingsTargetRead.model_validate(t) for t in targets],
        total=len(targets),
    )


@router.get("/targets/{target_id}", response_model=SavingsTargetRead)
async def get_target(
    target_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> SavingsTargetRead:
    target = await ledger.get_target(db, user.id, target_id)
    if target is None:
        raise HTTPException(status_code=404, detail="Savings target not found")
    return SavingsTargetRead.model_validate(target)


@router.api_route("/targets/{target_id}", methods=["PATCH", "PUT"], response_model=SavingsTargetRead)
async def update_target(
    target_id: uuid.UUID,
    body: SavingsTargetUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> SavingsTargetRead:
    """Partial update; PUT is accepted with the same semantics."""
    target = await orchestrator.update_target(db, user.id, target_id, body.model_dump(exclude_unset=True))
    if target is None:
        raise HTTPException(status_code=404, detail="Savings target not found")
    return target


@router.delete("/targets/{target_id}", status_code=204)
async def delete_target(
    target_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> Response:
    if not await orchestrator.delete_target(db, user.id, target_id):
        raise HTTPException(status_code=404, detail="Savings target not found")
    return Response(status_code=204)


@router.post("/targets/{target_id}/deposit", response_model=SavingsTargetRead)
async def deposit(
    target_id: uuid.UUID,
    body: AmountRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> SavingsTargetRead:
    return await orchestrator.deposit(db, user.id, target_id, body.amount)


@router.post("/targets/{target_id}/withdraw", response_model=SavingsTargetRead)
async def withdraw(
    target_id: uuid.UUID,
    body: AmountRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> SavingsTargetRead:
    """Withdraw; the balance floors at zero."""
    return await orchestrator.withdraw(db, user.id, target_id, body.amount)
