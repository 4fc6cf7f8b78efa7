"""Liveness, readiness and version endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy import literal, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from nabung.config import get_settings
from nabung.database import get_session
from nabung.db.base import Base
from nabung.redis_client import redis_status

router = APIRouter()


@router.get("/health")
async def health() -> dict[str, str]:
    """The process is up."""
    return {"status": "healthy"}


async def _ledger_schema_status(db: AsyncSession) -> str:
    """Return "ok" when every mapped table answers a trivial query, else the first failure."""
    for table in Base.metadata.sorted_tables:
        try:
            await db.execute(select(literal(1)).select_from(table).limit(1))
        except SQLAlchemyError as exc:
            await db.rollback()
            return f"error: {table.name}: {exc.__class__.__name__}"
    return "ok"


@router.get("/ready")
async def readiness(
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> dict[str, object]:
    """Ready when the ledger tables are reachable. Without Redis the service runs degraded."""
    checks: dict[str, object] = {
        "database": await _ledger_schema_status(db),
        "redis": await redis_status(),
    }

    if checks["database"] != "ok":
        status = "unavailable"
    elif checks["redis"] != "ok":
        status = "degraded"
    else:
        status = "ready"
    return {"status": status, "checks": checks}


@router.get("/version")
async def version() -> dict[str, str]:
    settings = get_settings()
    return {
        "name": "nabung-api",
        "version": settings.app_version,
        "environment": settings.environment,
    }
