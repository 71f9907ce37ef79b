"""Logger factory that configures logging on first use."""

import logging
from threading import Lock
from typing import Optional, Union

from ..config.settings import get_settings
from .config import setup_logging_configuration

_logging_configured = False
_configuration_lock = Lock()


def get_logger(name: Optional[str] = None, **extra_context) -> Union[logging.Logger, logging.LoggerAdapter]:
    """Get a logger, configuring the logging system on first call.

    Args:
        name: Logger name, typically ``__name__``. Defaults to the root
            application logger ``"portal"``.
        **extra_context: Fixed context merged into every record.

    Returns:
        A logger, or a LoggerAdapter when extra context was given.

    Example:
        ```python
        logger = get_logger(__name__)
        logger.info("Upload stored", extra={"file_path": path})

        logger = get_logger(__name__, component="lifecycle")
        ```
    """
    _ensure_logging_configured()

    base_logger = logging.getLogger(name or "portal")
    if extra_context:
        return logging.LoggerAdapter(base_logger, extra_context)
    return base_logger


def configure_logging() -> None:
    """Manually trigger logging configuration.

    Normally called implicitly by the first ``get_logger`` call; the app
    factory calls it explicitly so startup messages are formatted.
    """
    global _logging_configured

    with _configuration_lock:
        if _logging_configured:
            return

        setup_logging_configuration()
        _logging_configured = True

        settings = get_settings()
        logging.getLogger(__name__).info(
            f"Logging configured for {settings.ENVIRONMENT.value} environment",
            extra={
                "log_level": settings.LOG_LEVEL,
                "log_format": settings.LOG_FORMAT,
                "file_enabled": settings.LOG_FILE_ENABLED,
            },
        )


def _ensure_logging_configured() -> None:
    if not _logging_configured:
        configure_logging()
