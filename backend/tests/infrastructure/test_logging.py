"""Tests for log formatting and correlation ids."""

import json
import logging

import pytest

from src.infrastructure.logging import correlation_scope, get_correlation_id
from src.infrastructure.logging.config import CorrelationIdFilter
from src.infrastructure.logging.formatters import DetailedFormatter, JSONFormatter, get_formatter


def _record(message: str = "Document claimed", **extra) -> logging.LogRecord:
    record = logging.LogRecord("portal.lifecycle", logging.INFO, __file__, 10, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_correlation_scope_is_restored():
    """Test that nested correlation scopes restore the outer id."""
    assert get_correlation_id() is None

    with correlation_scope("doc-1"):
        assert get_correlation_id() == "doc-1"
        with correlation_scope("doc-2"):
            assert get_correlation_id() == "doc-2"
        assert get_correlation_id() == "doc-1"

    assert get_correlation_id() is None


def test_filter_stamps_current_correlation_id():
    """Test that the filter stamps records with the current correlation id."""
    record = _record()

    with correlation_scope("req-7"):
        CorrelationIdFilter().filter(record)

    assert record.correlation_id == "req-7"


def test_json_formatter_includes_extra_fields():
    """Test that the JSON formatter emits extra fields."""
    record = _record(document_id="abc", version=2, correlation_id="req-7")

    data = json.loads(JSONFormatter().format(record))

    assert data["message"] == "Document claimed"
    assert data["level"] == "INFO"
    assert data["document_id"] == "abc"
    assert data["version"] == 2
    assert data["correlation_id"] == "req-7"


def test_detailed_formatter_shows_correlation_id():
    """Test that the detailed formatter shows the correlation id."""
    formatted = DetailedFormatter().format(_record(correlation_id="req-7"))

    assert "portal.lifecycle [req-7]: Document claimed" in formatted


def test_unknown_formatter():
    """Test requesting an unknown formatter."""
    with pytest.raises(ValueError):
        get_formatter("xml")
