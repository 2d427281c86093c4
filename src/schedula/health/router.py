"""Health, readiness, and version endpoints."""

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from schedula.config import get_settings
from schedula.database import get_session
from schedula.redis_client import get_redis_or_none

logger = structlog.get_logger()

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe: 200 while the process is up."""
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(db: AsyncSession = Depends(get_session)) -> JSONResponse:
    """
    Readiness probe.

    The database is required; Redis only backs rate limiting, so a missing
    Redis reports ``disabled`` and an unreachable one reports ``degraded``.
    """
    checks: dict[str, str] = {}

    try:
        await db.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except SQLAlchemyError:
        logger.warning("readiness_database_failed", exc_info=True)
        checks["database"] = "error"

    redis = get_redis_or_none()
    if redis is None:
        checks["redis"] = "disabled"
    else:
        try:
            await redis.ping()
            checks["redis"] = "ok"
        except RedisError:
            logger.warning("readiness_redis_failed", exc_info=True)
            checks["redis"] = "error"

    if checks["database"] != "ok":
        return JSONResponse(status_code=503, content={"status": "unavailable", "checks": checks})
    status = "ready" if checks["redis"] in ("ok", "disabled") else "degraded"
    return JSONResponse(status_code=200, content={"status": status, "checks": checks})


@router.get("/version")
async def version() -> dict[str, str]:
    settings = get_settings()
    return {
        "name": "schedula-api",
        "version": settings.app_version,
        "environment": settings.environment,
    }
