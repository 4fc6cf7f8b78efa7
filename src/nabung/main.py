"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from nabung.activity.router import router as activity_router
from nabung.auth.router import router as auth_router
from nabung.config import get_settings
from nabung.database import close_db, init_db
from nabung.health.router import router as health_router
from nabung.middleware import setup_middleware
from nabung.redis_client import close_redis, init_redis
from nabung.reminders.router import router as reminders_router
from nabung.savings.router import router as savings_router
from nabung.statistics.router import router as statistics_router
from nabung.users.router import router as users_router

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Open the database engine and Redis client for the app's lifetime."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(settings.redis_url)
    logger.info("startup", environment=settings.environment, version=settings.app_version)

    yield

    await close_db()
    await close_redis()
    logger.info("shutdown")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Nabung API",
        description="Savings targets, deposits, activity feed and saving streaks",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(auth_router)
    app.include_router(savings_router)
    app.include_router(activity_router)
    app.include_router(statistics_router)
    app.include_router(reminders_router)
    app.include_router(users_router)

    return app


app = create_app()
