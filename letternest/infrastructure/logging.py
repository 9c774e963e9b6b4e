"""Logging configuration for the LetterNest newsletter service."""

import logging
import sys
from contextlib import contextmanager
from typing import Iterator, List, Optional

import structlog
from rich.logging import RichHandler

from letternest.infrastructure.config import get_logs_dir

LOG_FILE_NAME = "letternest.log"

# Third-party loggers that are only interesting at WARNING and above
QUIET_LOGGERS = ("httpx", "httpcore", "openai", "asyncio", "aiosqlite", "sqlalchemy.engine")

# Loggers uvicorn installs its own handlers on; they are rerouted to ours
SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def _build_handlers(log_level: int, format_type: str, log_file: bool) -> List[logging.Handler]:
    handlers: List[logging.Handler] = []

    if format_type == "text":
        console: logging.Handler = RichHandler(
            rich_tracebacks=True,
            show_path=False,
            show_time=False,
        )
    else:
        console = logging.StreamHandler(sys.stdout)
    console.setLevel(log_level)
    handlers.append(console)

    if log_file:
        file_handler = logging.FileHandler(get_logs_dir() / LOG_FILE_NAME)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter("%(message)s"))
        handlers.append(file_handler)

    return handlers


def setup_logging(
    level: str = "INFO",
    format_type: str = "structured",
    log_file: bool = False,
) -> structlog.stdlib.BoundLogger:
    """Set up structured logging for the API server, CLI and pipeline runs.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: "structured" for JSON lines, "text" for rich console output
        log_file: Whether to also append to logs/letternest.log

    Returns:
        Configured structlog logger
    """
    log_level = getattr(logging, level.upper())

    renderer = (
        structlog.processors.JSONRenderer()
        if format_type == "structured"
        else structlog.dev.ConsoleRenderer(colors=True)
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="ISO"),
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

    logging.basicConfig(
        level=log_level,
        handlers=_build_handlers(log_level, format_type, log_file),
        format="%(message)s",
        force=True,
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    for name in SERVER_LOGGERS:
        server_logger = logging.getLogger(name)
        server_logger.handlers.clear()
        server_logger.propagate = True

    logger = structlog.get_logger("letternest")
    logger.info("Logging configured", level=level, format=format_type, log_file=log_file)
    return logger


@contextmanager
def run_context(
    user_id: str,
    generation_id: str,
    template: str,
    job_id: Optional[str] = None,
) -> Iterator[None]:
    """Attach the identifiers of one pipeline run to every log line inside it.

    Background runs share the event loop with request handlers, so the
    values live in context variables and are removed on exit.
    """
    tokens = structlog.contextvars.bind_contextvars(
        user_id=user_id,
        generation_id=generation_id,
        template=template,
        job_id=job_id,
    )
    try:
        yield
    finally:
        structlog.contextvars.reset_contextvars(**tokens)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger instance.

    Args:
        name: Logger name (usually __name__)
    """
    return structlog.get_logger(name)


class LoggerMixin:
    """Gives a class a ``logger`` named after it."""

    @property
    def logger(self) -> structlog.stdlib.BoundLogger:
        if not hasattr(self, "_logger"):
            self._logger = get_logger(self.__class__.__name__)
        return self._logger
