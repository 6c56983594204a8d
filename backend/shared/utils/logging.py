"""
Structured logging for the Courtside services.
Console output in dev, one JSON object per line everywhere else.
"""
from __future__ import annotations

import logging
import sys

import structlog

from shared.config import Settings, get_settings
from shared.models.enums import Environment


def _renderers(environment: Environment) -> list[structlog.types.Processor]:
    if environment is Environment.DEV:
        return [structlog.dev.ConsoleRenderer(colors=True)]
    # exc_info=True on a cycle failure becomes an "exception" string field
    return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]


def setup_logging(service_name: str, settings: Settings | None = None) -> None:
    """
    Route structlog and stdlib records (uvicorn, httpx) through one stdout handler.

    Args:
        service_name: Bound as ``service`` on every entry (api, scheduler).
        settings: Source of the log level and environment.
    """
    settings = settings or get_settings()

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    structlog.configure(
        processors=[*shared_processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *_renderers(settings.environment),
            ],
            foreign_pre_chain=shared_processors,
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))

    # one line per upstream request is already logged by the client
    for noisy in ("uvicorn.access", "httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(service=service_name)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
