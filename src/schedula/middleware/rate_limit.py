"""Redis-backed fixed-window rate limiting: global middleware and the auth endpoint limiter."""

import time
from typing import Any

import structlog
from fastapi import HTTPException
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from schedula.config import get_settings
from schedula.redis_client import get_redis_or_none

logger = structlog.get_logger()

# Paths exempt from rate limiting
_EXEMPT_PATHS = frozenset({"/health", "/ready", "/version"})


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


async def _hit(key: str, window_seconds: int) -> int | None:
    """Increment a window counter. None when Redis is absent or unreachable."""
    redis = get_redis_or_none()
    if redis is None:
        return None
    try:
        pipe = redis.pipeline()
        pipe.incr(key)
        pipe.expire(key, window_seconds + 1)
        results: list[Any] = await pipe.execute()
    except RedisError:
        logger.warning("rate_limit_unavailable", key=key)
        return None
    return int(results[0])


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Rate limit requests per IP using Redis counters."""

    def __init__(self, app: Any, requests_per_window: int = 100, window_seconds: int = 60) -> None:  # noqa: ANN401
        super().__init__(app)
        self.requests_per_window = requests_per_window
        self.window_seconds = window_seconds

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """Count the request against its IP's window; 429 once the window is spent."""
        if request.url.path in _EXEMPT_PATHS or request.method == "OPTIONS":
            return await call_next(request)

        window = int(time.time()) // self.window_seconds
        current_count = await _hit(f"ratelimit:{_client_ip(request)}:{window}", self.window_seconds)
        if current_count is None:
            return await call_next(request)

        if current_count > self.requests_per_window:
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
        response.headers["X-RateLimit-Remaining"] = str(max(0, self.requests_per_window - current_count))
        response.headers["X-RateLimit-Limit"] = str(self.requests_per_window)
        return response


async def auth_rate_limit(request: Request) -> None:
    """
    Dependency for signup, login and forgot-password.

    One budget per client IP shared by all three endpoints
    (10 requests per 15 minutes by default).
    """
    settings = get_settings()
    window_seconds = settings.rate_limit_auth_window_seconds
    window = int(time.time()) // window_seconds
    ip = _client_ip(request)

    count = await _hit(f"ratelimit:auth:{ip}:{window}", window_seconds)
    if count is not None and count > settings.rate_limit_auth_requests:
        logger.warning("auth_rate_limited", ip=ip, path=request.url.path)
        raise HTTPException(
            status_code=429,
            detail="Too many requests from this IP, please try again later",
            headers={"Retry-After": str(window_seconds)},
        )
