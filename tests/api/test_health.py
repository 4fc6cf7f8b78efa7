"""Health, readiness and version endpoints."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from sqlalchemy import text

from nabung.database import get_engine
from nabung.health import router as health_router


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "healthy"}


@pytest.mark.asyncio
async def test_ready_without_redis_is_degraded(client):
    resp = await client.get("/ready")
    assert resp.status_code == 200
    data = resp.json()
    assert data["checks"] == {"database": "ok", "redis": "disabled"}
    assert data["status"] == "degraded"


@pytest.mark.asyncio
async def test_ready_with_redis(client, monkeypatch):
    monkeypatch.setattr(health_router, "redis_status", AsyncMock(return_value="ok"))
    resp = await client.get("/ready")
    assert resp.json()["status"] == "ready"


@pytest.mark.asyncio
async def test_missing_ledger_table_is_unavailable(client):
    async with get_engine().begin() as conn:
        await conn.execute(text("DROP TABLE achievements"))

    resp = await client.get("/ready")
    data = resp.json()
    assert data["status"] == "unavailable"
    assert data["checks"]["database"].startswith("error: achievements")


@pytest.mark.asyncio
async def test_version(client):
    resp = await client.get("/version")
    assert resp.status_code == 200
    assert resp.json()["name"] == "nabung-api"
