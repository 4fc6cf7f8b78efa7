"""Declarative base and shared column types."""

from __future__ import annotations

from typing import Any

from sqlalchemy import BigInteger, Integer, Numeric
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import DeclarativeBase

# SQLite only auto-increments INTEGER PRIMARY KEY columns.
BigIntPK = BigInteger().with_variant(Integer(), "sqlite")

# Fixed-point money, two fractional digits.
Money = Numeric(15, 2)


class Base(DeclarativeBase):
    """Base class for all ORM models."""


def dialect_insert(db: AsyncSession, table: type[Base]) -> Any:
    """INSERT supporting ON CONFLICT for the session's backend (postgres or sqlite)."""
    if db.get_bind().dialect.name == "sqlite":
        return sqlite_insert(table)
    return pg_insert(table)
