"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from schedula.activities.router import router as activities_router
from schedula.auth.router import dev_router as auth_dev_router
from schedula.auth.router import router as auth_router
from schedula.config import get_settings
from schedula.database import close_db, init_db
from schedula.email.service import get_email_service, reset_email_service
from schedula.health.router import router as health_router
from schedula.middleware import setup_middleware
from schedula.redis_client import close_redis, get_redis, init_redis
from schedula.users.router import router as users_router

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    if settings.redis_url:
        await init_redis(settings.redis_url)
        get_email_service(get_redis())
    else:
        logger.warning("redis_disabled", detail="rate limiting is off")

    logger.info("startup", version=settings.app_version, environment=settings.environment)

    yield

    reset_email_service()
    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Schedula API",
        description="Personal activity scheduler: accounts, scheduled and recorded activities",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router)
    app.include_router(auth_router)
    if settings.environment == "development":
        app.include_router(auth_dev_router)
    app.include_router(users_router)
    app.include_router(activities_router)

    return app


app = create_app()
