"""structlog configuration: JSON lines in production, coloured console output in development."""

import logging
import sys

import structlog

from schedula.config import Settings

# Chatty libraries kept at WARNING unless debug is on
_NOISY_LOGGERS = ("sqlalchemy.engine", "aiosqlite", "asyncio", "httpx", "uvicorn.access")


def setup_logging(settings: Settings) -> None:
    """Configure structlog on top of stdlib logging. Safe to call more than once."""
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    renderer: structlog.types.Processor
    if settings.log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if settings.debug else logging.WARNING)
