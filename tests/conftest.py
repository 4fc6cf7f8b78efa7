"""Shared test fixtures.

Tests run against a fresh in-memory SQLite database per test. The app is
driven through httpx without its lifespan, so Redis is never initialised and
the rate limiter lets every request through.
"""

from __future__ import annotations

import os

os.environ.setdefault("NABUNG_JWT_SECRET", "test-secret-not-for-production")
os.environ.setdefault("NABUNG_LOG_FORMAT", "console")

import uuid  # noqa: E402
from collections.abc import AsyncGenerator, Awaitable, Callable  # noqa: E402
from datetime import datetime, timezone  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: E402

from nabung.activity.recorder import DEPOSIT  # noqa: E402
from nabung.auth.jwt import create_access_token  # noqa: E402
from nabung.auth.password import hash_password  # noqa: E402
from nabung.config import get_settings  # noqa: E402
from nabung.database import close_db, get_engine, get_session, init_db  # noqa: E402
from nabung.db import models  # noqa: E402, F401
from nabung.db.base import Base  # noqa: E402
from nabung.db.models import Activity, User  # noqa: E402
from nabung.main import create_app  # noqa: E402

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_PASSWORD = "rahasia123"

get_settings.cache_clear()


@pytest_asyncio.fixture
async def database() -> AsyncGenerator[None, None]:
    """Fresh schema in a private in-memory database."""
    await init_db(TEST_DATABASE_URL)
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await close_db()


@pytest_asyncio.fixture
async def db_session(database: None) -> AsyncGenerator[AsyncSession, None]:
    """A direct database session for service calls and assertions."""
    async for session in get_session():
        yield session
        break


@pytest_asyncio.fixture
async def make_user(db_session: AsyncSession) -> Callable[..., Awaitable[User]]:
    """Factory creating committed users. created_at may be backdated."""
    _password_hash = hash_password(TEST_PASSWORD)

    async def _make(
        email: str | None = None,
        full_name: str = "Budi Santoso",
        is_admin: bool = False,
        created_at: datetime | None = None,
    ) -> User:
        now = created_at or datetime.now(timezone.utc)
        user = User(
            full_name=full_name,
            email=email or f"user-{uuid.uuid4().hex[:8]}@example.com",
            password_hash=_password_hash,
            is_admin=is_admin,
            created_at=now,
            updated_at=now,
        )
        db_session.add(user)
        await db_session.commit()
        return user

    return _make


@pytest_asyncio.fixture
async def user(make_user: Callable[..., Awaitable[User]]) -> User:
    return await make_user(email="budi@example.com")


@pytest_asyncio.fixture
async def other_user(make_user: Callable[..., Awaitable[User]]) -> User:
    return await make_user(email="siti@example.com", full_name="Siti Rahma")


@pytest_asyncio.fixture
async def add_deposit_activity(db_session: AsyncSession) -> Callable[..., Awaitable[Activity]]:
    """Insert a deposit activity with an explicit timestamp."""

    async def _add(user: User, when: datetime, amount: Decimal | str = "10000") -> Activity:
        activity = Activity(
            user_id=user.id,
            savings_target_id=None,
            activity_type=DEPOSIT,
            title="Menabung",
            description="backfilled",
            amount=Decimal(amount),
            icon="\U0001f4b0",
            icon_color="bg-green-500",
            created_at=when,
        )
        db_session.add(activity)
        await db_session.commit()
        return activity

    return _add


@pytest_asyncio.fixture
async def client(database: None) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app, sharing the test database."""
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


def _auth_header(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.email, user.is_admin)}"}


@pytest.fixture
def auth_headers() -> Callable[[User], dict[str, str]]:
    """Bearer header for any user."""
    return _auth_header


@pytest_asyncio.fixture
async def authed_client(client: AsyncClient, user: User) -> AsyncClient:
    """Client authenticated as `user`."""
    client.headers.update(_auth_header(user))
    return client