"""Request id, CORS, error format and rate limiting."""

from __future__ import annotations

import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy.exc import OperationalError

from nabung.middleware import rate_limit
from nabung.savings import ledger


@pytest.mark.asyncio
async def test_request_id_generated(client):
    resp = await client.get("/health")
    assert resp.headers["X-Request-Id"]


@pytest.mark.asyncio
async def test_request_id_echoed(client):
    resp = await client.get("/health", headers={"X-Request-Id": "abc-123"})
    assert resp.headers["X-Request-Id"] == "abc-123"


@pytest.mark.asyncio
async def test_cors_preflight(client):
    resp = await client.options(
        "/api/v1/savings/targets",
        headers={"Origin": "http://localhost:5173", "Access-Control-Request-Method": "POST"},
    )
    assert resp.headers["access-control-allow-origin"] == "http://localhost:5173"


@pytest.mark.asyncio
async def test_404_is_json(client):
    resp = await client.get("/api/v1/nope")
    assert resp.status_code == 404
    assert "detail" in resp.json()


@pytest.mark.asyncio
async def test_validation_error_format(authed_client):
    resp = await authed_client.post("/api/v1/savings/targets", json={"name": ""})
    assert resp.status_code == 422
    assert resp.json()["detail"] == "Validation error"


def _fake_redis(count: int) -> MagicMock:
    pipe = MagicMock()
    pipe.execute = AsyncMock(return_value=[count, True])
    redis = MagicMock()
    redis.pipeline.return_value = pipe
    return redis


@pytest.mark.asyncio
async def test_rate_limit_exceeded(client, monkeypatch):
    monkeypatch.setattr(rate_limit, "get_redis", lambda: _fake_redis(101))
    resp = await client.get("/version")
    assert resp.status_code == 429
    assert resp.headers["Retry-After"] == "60"


@pytest.mark.asyncio
async def test_rate_limit_headers(client, monkeypatch):
    monkeypatch.setattr(rate_limit, "get_redis", lambda: _fake_redis(1))
    resp = await client.get("/version")
    assert resp.status_code == 200
    assert resp.headers["X-RateLimit-Remaining"] == "99"


@pytest.mark.asyncio
async def test_health_is_exempt(client, monkeypatch):
    monkeypatch.setattr(rate_limit, "get_redis", lambda: _fake_redis(10_000))
    resp = await client.get("/health")
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_fails_open_when_redis_errors(client, monkeypatch):
    redis = _fake_redis(0)
    redis.pipeline.return_value.execute = AsyncMock(side_effect=RedisConnectionError("refused"))
    monkeypatch.setattr(rate_limit, "get_redis", lambda: redis)
    resp = await client.get("/version")
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_ledger_storage_failure_is_503(authed_client, monkeypatch):
    resp = await authed_client.post("/api/v1/savings/targets", json={"name": "Laptop", "target_amount": 1000})
    target_id = resp.json()["id"]
    monkeypatch.setattr(
        ledger,
        "apply_deposit",
        AsyncMock(side_effect=OperationalError("UPDATE savings_targets", {}, Exception("db down"))),
    )

    resp = await authed_client.post(f"/api/v1/savings/targets/{target_id}/deposit", json={"amount": 10})

    assert resp.status_code == 503
    assert resp.headers["Retry-After"] == "5"
    assert resp.json() == {"detail": "Service temporarily unavailable"}


@pytest.mark.asyncio
async def test_ledger_errors_carry_their_message(authed_client):
    resp = await authed_client.post(f"/api/v1/savings/targets/{uuid.uuid4()}/deposit", json={"amount": 10})
    assert resp.status_code == 404
    assert "not found" in resp.json()["detail"]
