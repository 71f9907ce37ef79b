"""Logging configuration module for environment-aware setup.

Configuration by environment:
- Development/local: colored console output, detailed format
- Staging: structured key=value console output, optional rotating file
- Production: JSON console output with noisy client libraries quieted
- Testing: a null handler at ERROR level
"""

import contextvars
import logging
import uuid
from contextlib import contextmanager
from typing import Iterator

from ..config.settings import EnvironmentOption, get_settings
from .handlers import (
    create_console_handler,
    create_file_handler,
    create_null_handler,
)

correlation_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("correlation_id")


def setup_logging_configuration() -> None:
    """Set up logging configuration based on application settings.

    Clears the root logger's handlers and installs the handlers that match
    the current environment. Called once, lazily, by the logger factory.
    """
    settings = get_settings()

    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    if settings.ENVIRONMENT == EnvironmentOption.STAGING:
        handlers = _staging_handlers(settings)
    elif settings.ENVIRONMENT == EnvironmentOption.PRODUCTION:
        handlers = _production_handlers(settings)
    else:
        handlers = _development_handlers(settings)

    for handler in handlers:
        if settings.LOG_CORRELATION_ID:
            handler.addFilter(CorrelationIdFilter())
        root_logger.addHandler(handler)

    root_logger.setLevel(settings.LOG_LEVEL_INT)

    if settings.ENVIRONMENT == EnvironmentOption.PRODUCTION:
        _configure_noisy_loggers()


def _file_handler(settings) -> logging.Handler:
    return create_file_handler(
        filepath=settings.LOG_FILE_PATH,
        format_type="structured",
        level=logging.DEBUG,
        max_bytes=settings.LOG_FILE_MAX_SIZE,
        backup_count=settings.LOG_FILE_BACKUP_COUNT,
    )


def _development_handlers(settings) -> list[logging.Handler]:
    handlers = []

    if settings.LOG_CONSOLE_ENABLED:
        console_level = logging.DEBUG if settings.LOG_DEVELOPMENT_VERBOSE else settings.LOG_LEVEL_INT
        handlers.append(create_console_handler(format_type="detailed", level=console_level, use_colors=True))

    if settings.LOG_FILE_ENABLED:
        handlers.append(_file_handler(settings))

    return handlers


def _staging_handlers(settings) -> list[logging.Handler]:
    handlers = []

    if settings.LOG_CONSOLE_ENABLED:
        handlers.append(
            create_console_handler(format_type=settings.LOG_FORMAT, level=settings.LOG_LEVEL_INT, use_colors=False)
        )

    if settings.LOG_FILE_ENABLED:
        handlers.append(_file_handler(settings))

    return handlers


def _production_handlers(settings) -> list[logging.Handler]:
    handlers = []

    if settings.LOG_CONSOLE_ENABLED:
        console_level = logging.WARNING if settings.LOG_PRODUCTION_OPTIMIZE else settings.LOG_LEVEL_INT
        handlers.append(create_console_handler(format_type="json", level=console_level, use_colors=False))

    return handlers


def _configure_noisy_loggers() -> None:
    """Quiet third-party loggers that are chatty at INFO."""
    noisy_loggers = {
        "httpx": logging.WARNING,
        "httpcore": logging.WARNING,
        "anthropic": logging.WARNING,
        "asyncpg": logging.WARNING,
        "sqlalchemy.engine": logging.WARNING,
        "sqlalchemy.pool": logging.WARNING,
        "pdfminer": logging.ERROR,
    }

    for logger_name, level in noisy_loggers.items():
        logging.getLogger(logger_name).setLevel(level)


def configure_testing_logging() -> None:
    """Configure minimal logging for test runs.

    Can be called from test fixtures to override the normal configuration.
    """
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(create_null_handler())
    root_logger.setLevel(logging.ERROR)

    for logger_name in ("sqlalchemy.engine", "aiosqlite", "pdfminer", "httpx"):
        logging.getLogger(logger_name).setLevel(logging.ERROR)


class CorrelationIdFilter(logging.Filter):
    """Logging filter that stamps the current correlation id on each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "correlation_id"):
            record.correlation_id = get_correlation_id() or "no-correlation"
        return True


def set_correlation_id(correlation_id: str) -> contextvars.Token:
    """Set the correlation id for the current context.

    Args:
        correlation_id: Request id or document id to tag log records with

    Returns:
        Token that can be passed to ``correlation_id_var.reset``
    """
    return correlation_id_var.set(correlation_id)


def get_correlation_id() -> str | None:
    """Get the current correlation id, or None if not set."""
    try:
        return correlation_id_var.get()
    except LookupError:
        return None


def generate_correlation_id() -> str:
    """Generate a new UUID-based correlation id."""
    return str(uuid.uuid4())


@contextmanager
def correlation_scope(correlation_id: str) -> Iterator[None]:
    """Tag every record logged inside the block with ``correlation_id``."""
    token = set_correlation_id(correlation_id)
    try:
        yield
    finally:
        correlation_id_var.reset(token)
