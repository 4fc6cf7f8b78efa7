"""Middleware and exception handler registration."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from nabung.config import Settings
from nabung.middleware.error_handler import setup_error_handlers
from nabung.middleware.logging import setup_logging
from nabung.middleware.rate_limit import RateLimitMiddleware
from nabung.middleware.request_id import REQUEST_ID_HEADER, RequestContextMiddleware

_EXPOSED_HEADERS = [REQUEST_ID_HEADER, "X-RateLimit-Remaining", "X-RateLimit-Limit", "Retry-After"]


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Wire logging, error handlers and the middleware stack.

    The last middleware added runs outermost: CORS wraps the rate limiter's 429s
    and the request context wraps everything the rate limiter lets through.
    """
    setup_logging(settings)
    setup_error_handlers(app)
    app.add_middleware(
        RateLimitMiddleware,
        requests_per_window=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", REQUEST_ID_HEADER],
        expose_headers=_EXPOSED_HEADERS,
    )
