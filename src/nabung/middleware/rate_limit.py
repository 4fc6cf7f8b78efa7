"""Fixed-window per-IP rate limiting backed by Redis."""

import time
from typing import Any

import structlog
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from nabung.redis_client import get_redis

logger = structlog.get_logger()

_EXEMPT_PATHS = frozenset({"/health", "/ready"})


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Count requests per client IP per window; 429 once over the limit.

    Fails open: without a reachable Redis every request is let through.
    """

    def __init__(self, app: Any, requests_per_window: int = 100, window_seconds: int = 60) -> None:  # noqa: ANN401
        super().__init__(app)
        self.requests_per_window = requests_per_window
        self.window_seconds = window_seconds

    async def _hit(self, client_ip: str) -> int | None:
        """Increment this window's counter. None when Redis is unavailable."""
        window = int(time.time()) // self.window_seconds
        key = f"nabung:ratelimit:{client_ip}:{window}"
        try:
            redis = get_redis()
            pipe = redis.pipeline()
            pipe.incr(key)
            pipe.expire(key, self.window_seconds + 1)
            results: list[Any] = await pipe.execute()
        except RuntimeError:
            return None
        except RedisError as e:
            logger.warning("rate_limit_unavailable", error=str(e))
            return None
        return int(results[0])

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path in _EXEMPT_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        count = await self._hit(client_ip)
        if count is None:
            return await call_next(request)

        if count > self.requests_per_window:
            return JSONResponse(
                status_code=429,
                content={"detail": "Rate limit exceeded. Try again later."},
                headers={
                    "Retry-After": str(self.window_seconds),
                    "X-RateLimit-Remaining": "0",
                    "X-RateLimit-Limit": str(self.requests_per_window),
                },
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Remaining"] = str(max(0, self.requests_per_window - count))
        response.headers["X-RateLimit-Limit"] = str(self.requests_per_window)
        return response
