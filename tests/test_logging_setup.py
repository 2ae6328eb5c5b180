"""
Tests for logging_setup module.

Verifies:
- JSON structured logging format
- Component tagging and session ID correlation
- Log level configuration
"""
import json
import logging
from io import StringIO
from datetime import datetime

import pytest

from logging_setup import (
    setup_logging,
    get_logger,
    Component,
    JSONFormatter,
)


@pytest.fixture
def capture_logs():
    """Capture log output to a string buffer."""
    buffer = StringIO()
    handler = logging.StreamHandler(buffer)
    handler.setFormatter(JSONFormatter())

    logger = logging.getLogger()
    old_handlers, old_level = logger.handlers, logger.level
    logger.handlers = [handler]
    logger.setLevel(logging.DEBUG)

    yield buffer

    logger.handlers = old_handlers
    logger.setLevel(old_level)


def _entries(buffer):
    return [json.loads(line) for line in buffer.getvalue().splitlines() if line]


def test_json_formatter_basic(capture_logs):
    logger = get_logger(Component.AUTHORIZE_PROXY)
    logger.info("Session authorized", agent_id="ag_1", latency_ms=12)

    entry = _entries(capture_logs)[0]

    assert entry["severity"] == "info"
    assert entry["component"] == "authorize_proxy"
    assert entry["message"] == "Session authorized"
    assert entry["agent_id"] == "ag_1"
    assert entry["latency_ms"] == 12
    datetime.fromisoformat(entry["timestamp"].replace("Z", "+00:00"))


def test_session_id_correlation(capture_logs):
    get_logger(Component.VOICE_CLIENT, session_id="sess_123").info("Connected")
    get_logger(Component.VOICE_CLIENT).info("No session")

    with_session, without_session = _entries(capture_logs)
    assert with_session["session_id"] == "sess_123"
    assert "session_id" not in without_session


def test_severity_levels(capture_logs):
    logger = get_logger(Component.SESSION_GATEWAY)

    logger.debug("Debug message")
    logger.info("Info message")
    logger.warning("Warning message")
    logger.error("Error message")
    logger.critical("Critical message")

    severities = [e["severity"] for e in _entries(capture_logs)]
    assert severities == ["debug", "info", "warning", "error", "critical"]


def test_component_string_fallback(capture_logs):
    get_logger("custom_component").info("Test")
    assert _entries(capture_logs)[0]["component"] == "custom_component"


def test_non_serializable_fields_are_stringified(capture_logs):
    get_logger(Component.KNOWLEDGE).info("Loaded", path=StringIO)
    assert "StringIO" in _entries(capture_logs)[0]["path"]


def test_exception_logging(capture_logs):
    logger = get_logger(Component.ERROR_HANDLER)

    try:
        raise ValueError("Test exception")
    except ValueError:
        logger.exception("Exception occurred")

    entry = _entries(capture_logs)[0]
    assert entry["severity"] == "error"
    assert "ValueError: Test exception" in entry["exception"]


def test_setup_logging_json():
    setup_logging(level="DEBUG", use_json=True)

    root_logger = logging.getLogger()
    assert root_logger.level == logging.DEBUG
    assert len(root_logger.handlers) == 1
    assert isinstance(root_logger.handlers[0].formatter, JSONFormatter)


def test_setup_logging_text():
    setup_logging(level="INFO", use_json=False)

    root_logger = logging.getLogger()
    assert root_logger.level == logging.INFO
    assert len(root_logger.handlers) == 1
    assert not isinstance(root_logger.handlers[0].formatter, JSONFormatter)
