"""Tests for logging configuration and formatters."""

import json
import logging

import pytest

from pushdesk.logging import ComponentLoggerAdapter, get_logger
from pushdesk.logging.config import (
    ContextualFilter,
    JSONFormatter,
    KeyValueFormatter,
    configure_logging,
)
from pushdesk.logging.context import log_context


@pytest.fixture
def logger():
    """Create a test logger with handler for capturing output."""
    test_logger = logging.getLogger("test_logger")
    test_logger.setLevel(logging.DEBUG)
    test_logger.handlers.clear()

    yield test_logger

    test_logger.handlers.clear()


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def _record(logger, message="Test message", extra=None):
    return logger.makeRecord("test", logging.INFO, "test.py", 1, message, (), None, extra=extra)


def test_json_formatter_basic(logger):
    """JSONFormatter produces valid JSON with mandatory fields."""
    output = JSONFormatter().format(_record(logger))
    log_obj = json.loads(output)

    assert log_obj["level"] == "INFO"
    assert log_obj["message"] == "Test message"
    assert log_obj["logger"] == "test"
    assert log_obj["timestamp"].endswith("Z")


def test_json_formatter_extra_fields(logger):
    """Extra fields are emitted, sets sorted and tuples listed."""
    record = _record(
        logger,
        extra={"event": "delivery.batch.sent", "endpoints": {"b", "a"}, "pair": (1, 2)},
    )
    log_obj = json.loads(JSONFormatter().format(record))

    assert log_obj["event"] == "delivery.batch.sent"
    assert log_obj["endpoints"] == ["a", "b"]
    assert log_obj["pair"] == [1, 2]


def test_json_formatter_exception(logger):
    """Exception info is rendered into the payload."""
    try:
        raise ValueError("bad")
    except ValueError:
        import sys

        record = logger.makeRecord("test", logging.ERROR, "test.py", 1, "failed", (), sys.exc_info())

    log_obj = json.loads(JSONFormatter().format(record))
    assert "ValueError: bad" in log_obj["exc_info"]


def test_key_value_formatter(logger):
    """KeyValueFormatter appends sorted key=value pairs and quotes spaces."""
    formatter = KeyValueFormatter("%(levelname)s %(message)s")
    record = _record(logger, extra={"event": "delivery.request.completed", "note": "two words", "ok": True})

    output = formatter.format(record)

    assert output.startswith("INFO Test message ")
    assert "event=delivery.request.completed" in output
    assert 'note="two words"' in output
    assert "ok=true" in output


def test_contextual_filter_adds_context(logger):
    """Filter stamps service, environment and context fields."""
    record = _record(logger, extra={"batch_index": 9})
    with log_context(request_id="abc123", batch_index=1):
        ContextualFilter(environment="test").filter(record)

    assert record.service == "pushdesk"
    assert record.environment == "test"
    assert record.request_id == "abc123"
    assert record.batch_index == 9


def test_component_adapter_merges_extra(caplog):
    """Component is added without dropping call-site extras."""
    adapter = get_logger("pushdesk.test", component="dispatcher")
    assert isinstance(adapter, ComponentLoggerAdapter)

    with caplog.at_level(logging.INFO, logger="pushdesk.test"):
        adapter.info("hello", extra={"event": "test.event"})

    record = caplog.records[-1]
    assert record.component == "dispatcher"
    assert record.event == "test.event"


def test_get_logger_without_component():
    assert isinstance(get_logger("pushdesk.plain"), logging.Logger)


def test_configure_logging_installs_one_handler(restore_root_logger):
    configure_logging(level="debug", format_type="json", environment="test")
    configure_logging(level="WARNING", format_type="key-value")

    assert len(restore_root_logger.handlers) == 1
    assert restore_root_logger.level == logging.WARNING
    assert isinstance(restore_root_logger.handlers[0].formatter, KeyValueFormatter)


def test_configure_logging_rejects_bad_input(restore_root_logger):
    with pytest.raises(ValueError, match="Invalid log level"):
        configure_logging(level="LOUD")
    with pytest.raises(ValueError, match="Invalid log format"):
        configure_logging(level="INFO", format_type="xml")
