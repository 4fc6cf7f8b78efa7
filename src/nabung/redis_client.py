"""Shared Redis client. Only the rate limiter depends on it, so it is optional."""

import redis.asyncio as redis
from redis.exceptions import RedisError

_client: redis.Redis | None = None


async def init_redis(url: str) -> None:
    """Create the client. Connections are opened lazily on first use."""
    global _client  # noqa: PLW0603
    _client = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=20,
        socket_connect_timeout=2,
    )


async def close_redis() -> None:
    global _client  # noqa: PLW0603
    if _client:
        await _client.aclose()
        _client = None


def get_redis() -> redis.Redis:
    """Get the client. Raises RuntimeError before init_redis()."""
    if _client is None:
        msg = "Redis not initialized. Call init_redis() first."
        raise RuntimeError(msg)
    return _client


async def redis_status() -> str:
    """Return "ok", "disabled" before init_redis(), or the ping error."""
    if _client is None:
        return "disabled"
    try:
        await _client.ping()
    except RedisError as exc:
        return f"error: {exc}"
    return "ok"
