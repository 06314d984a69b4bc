import logging
import sys
from typing import Any

import structlog

from .settings import Settings, settings as default_settings

# Libraries that log every request or statement at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "sqlalchemy.engine", "aiosqlite")


def setup_logging(settings: Settings | None = None) -> None:
    """
    Configure structlog and route stdlib logging through the same renderer.

    The poller logs through structlog with bound job context; services and
    routes use stdlib loggers with ``extra=``. Both end up on one stdout
    handler, as JSON in production and pretty-printed in development.
    """
    settings = settings or default_settings
    level = getattr(logging, settings.log_level)

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.ExtraAdder(),
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if settings.debug:
        shared_processors.append(
            structlog.processors.CallsiteParameterAdder(
                parameters=[structlog.processors.CallsiteParameter.FUNC_NAME]
            )
        )

    # ConsoleRenderer prints tracebacks itself; JSON needs them pre-rendered
    renderer: list[Any] = (
        [structlog.dev.ConsoleRenderer()]
        if settings.debug
        else [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *renderer,
            ],
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = __name__) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


def add_request_context(request_id: str, **context: Any) -> None:
    """Add request-specific context to all log messages."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id, **context)
