"""Global error handlers: every failure leaves the API as a JSON body with a ``detail`` key."""

from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from schedula.exceptions import SchedulaError

logger = structlog.get_logger()

_VALUE_ERROR_PREFIX = "Value error, "


def _first_violation(errors: list[dict[str, Any]]) -> tuple[str, str | None]:
    """Message and dotted field path of the first validation error."""
    if not errors:
        return "Invalid request", None
    first = errors[0]
    message = str(first.get("msg", "Invalid request")).removeprefix(_VALUE_ERROR_PREFIX)
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    return message, ".".join(loc) or None


def setup_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers."""

    @app.exception_handler(SchedulaError)
    async def schedula_exception_handler(request: Request, exc: SchedulaError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("request_failed", path=request.url.path, code=exc.code, error=exc.message)
        else:
            logger.info("request_rejected", path=request.url.path, code=exc.code, status=exc.status_code)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
        """Malformed input is a 400 carrying the first violation's message."""
        message, field = _first_violation(list(exc.errors()))
        content: dict[str, Any] = {"detail": message, "code": "ValidationError"}
        if field:
            content["field"] = field
        return JSONResponse(status_code=400, content=content)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unhandled exceptions. Internals are logged, never returned."""
        logger.error(
            "unhandled_exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=exc,
        )
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )
