"""/api/v1/reminders endpoints."""

from __future__ import annotations

from datetime import timedelta

import pytest

from nabung.statistics.calendar import local_today

BASE = "/api/v1/reminders"


async def _create(client, name: str, offset_days: int) -> None:
    due = local_today() + timedelta(days=offset_days)
    resp = await client.post(
        "/api/v1/savings/targets",
        json={"name": name, "target_amount": 500000, "target_date": due.isoformat()},
    )
    assert resp.status_code == 201


@pytest.mark.asyncio
async def test_upcoming_and_today(authed_client):
    await _create(authed_client, "Laptop", 0)
    await _create(authed_client, "Motor", 10)

    resp = await authed_client.get(f"{BASE}/upcoming", params={"days": 7})
    assert resp.status_code == 200
    assert [r["target_name"] for r in resp.json()["reminders"]] == ["Laptop"]
    assert resp.json()["reminders"][0]["remaining_amount"] == 500000

    resp = await authed_client.get(f"{BASE}/today")
    assert resp.json()["count"] == 1

    resp = await authed_client.get(BASE)
    assert resp.json()["count"] == 2


@pytest.mark.asyncio
async def test_upcoming_rejects_bad_window(authed_client):
    resp = await authed_client.get(f"{BASE}/upcoming", params={"days": 1000})
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_calendar(authed_client):
    await _create(authed_client, "Laptop", 0)
    today = local_today()

    resp = await authed_client.get(f"{BASE}/calendar")
    assert resp.status_code == 200
    assert resp.json()["count"] == 1

    resp = await authed_client.get(f"{BASE}/calendar", params={"month": 13, "year": today.year})
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_requires_auth(client):
    resp = await client.get(BASE)
    assert resp.status_code == 401
