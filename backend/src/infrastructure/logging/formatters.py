"""Logging formatters for the supported output formats.

- DetailedFormatter: human-readable console output for development
- StructuredFormatter: key=value pairs, readable and grep-friendly
- JSONFormatter: one JSON object per line for log aggregation
"""

import json
import logging
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Type

_RESERVED_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "message",
        "exc_info",
        "exc_text",
        "stack_info",
    }
)


def _extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
    """Return the attributes added through ``extra=`` or by filters."""
    return {key: value for key, value in record.__dict__.items() if key not in _RESERVED_ATTRS}


class DetailedFormatter(logging.Formatter):
    """Timestamped console format with the correlation id.

    Format: YYYY-MM-DD HH:MM:SS [LEVEL] module_name [correlation]: message
    """

    def __init__(self):
        super().__init__(fmt="%(asctime)s [%(levelname)8s] %(name)s: %(message)s", datefmt="%Y-%m-%d %H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        formatted = super().format(record)
        correlation_id = getattr(record, "correlation_id", None)
        if correlation_id and correlation_id != "no-correlation":
            formatted = formatted.replace(f"{record.name}:", f"{record.name} [{correlation_id}]:", 1)
        return formatted


class StructuredFormatter(logging.Formatter):
    """Structured formatter with key-value pairs.

    Format: timestamp=... level=LEVEL module=name message="text" key1=value1
    """

    def format(self, record: logging.LogRecord) -> str:
        parts = [
            f"timestamp={datetime.now(timezone.utc).isoformat()}",
            f"level={record.levelname}",
            f"module={record.name}",
            f'message="{record.getMessage()}"',
        ]

        for key, value in _extra_fields(record).items():
            if isinstance(value, (int, float, bool)):
                parts.append(f"{key}={value}")
            else:
                parts.append(f'{key}="{value}"')

        if record.exc_info:
            exc_text = self.formatException(record.exc_info).replace("\n", "\\n")
            parts.append(f'exception="{exc_text}"')

        return " ".join(parts)


class JSONFormatter(logging.Formatter):
    """JSON formatter for machine-readable structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "module": record.name,
            "message": record.getMessage(),
            "function": record.funcName,
            "line_number": record.lineno,
        }

        for key, value in _extra_fields(record).items():
            try:
                json.dumps(value)
                log_data[key] = value
            except (TypeError, ValueError):
                log_data[key] = str(value)

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": traceback.format_exception(*record.exc_info),
            }

        return json.dumps(log_data, ensure_ascii=False)


def get_formatter(format_type: str) -> logging.Formatter:
    """Get the formatter for ``format_type``.

    Raises:
        ValueError: If format_type is not recognized
    """
    formatters: dict[str, Type[logging.Formatter]] = {
        "detailed": DetailedFormatter,
        "structured": StructuredFormatter,
        "json": JSONFormatter,
    }

    formatter_class = formatters.get(format_type.lower())
    if formatter_class is None:
        raise ValueError(f"Unknown format type: {format_type}. Available: {', '.join(formatters.keys())}")

    return formatter_class()
