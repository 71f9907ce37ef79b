"""Centralized logging for the analysis portal.

Environment-aware configuration driven by the application settings, plus a
correlation id carried in a context variable so every log line of a request
or of a document lifecycle run can be tied together.

Usage:
    ```python
    from ..infrastructure.logging import get_logger

    logger = get_logger(__name__)
    logger.info("Document claimed", extra={"document_id": str(document_id)})
    ```
"""

from .config import (
    configure_testing_logging,
    correlation_scope,
    generate_correlation_id,
    get_correlation_id,
    set_correlation_id,
    setup_logging_configuration,
)
from .factory import configure_logging, get_logger

__all__ = [
    "get_logger",
    "configure_logging",
    "configure_testing_logging",
    "setup_logging_configuration",
    "correlation_scope",
    "generate_correlation_id",
    "get_correlation_id",
    "set_correlation_id",
]
