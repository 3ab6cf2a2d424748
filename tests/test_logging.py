"""Tests for structured logging helpers."""

import json
import logging
import sys

import pytest

from notifyflow.core.logging import (
    DISPATCH_LOGGER_NAME,
    MASKED_VALUE,
    JSONFormatter,
    configure_dispatch_logger,
    get_logger,
    mask_token,
    truncate_for_log,
)


def _record(msg: str = "hello", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="notifyflow.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    def test_base_fields(self):
        data = json.loads(JSONFormatter().format(_record("Dispatching email")))
        assert data["message"] == "Dispatching email"
        assert data["level"] == "INFO"
        assert data["logger"] == "notifyflow.test"
        assert "timestamp" in data

    def test_dispatch_fields_and_extras(self):
        record = _record(kind="sms", recipient="+15551234567", attempt=2, delay=0.5)
        data = json.loads(JSONFormatter().format(record))
        assert data["kind"] == "sms"
        assert data["recipient"] == "+15551234567"
        assert data["attempt"] == 2
        assert data["delay"] == 0.5

    def test_unserializable_values_stringified(self):
        data = json.loads(JSONFormatter().format(_record(cause=RuntimeError("boom"))))
        assert data["cause"] == "boom"

    def test_exception_included(self):
        try:
            raise ValueError("bad")
        except ValueError:
            record = _record()
            record.exc_info = sys.exc_info()
        data = json.loads(JSONFormatter().format(record))
        assert "ValueError: bad" in data["exception"]


class TestLoggerSetup:
    def test_dispatch_logger_configured_once(self):
        logger = configure_dispatch_logger()
        handlers = list(logger.handlers)
        assert configure_dispatch_logger() is logger
        assert logger.handlers == handlers
        assert logger.name == DISPATCH_LOGGER_NAME
        assert not logger.propagate

    def test_explicit_level_applied_and_kept(self):
        logger = get_logger("notifyflow.test.levels", level=logging.WARNING)
        assert get_logger("notifyflow.test.levels").level == logging.WARNING
        assert isinstance(logger.handlers[0].formatter, JSONFormatter)

    def test_fresh_logger_defaults_to_info(self):
        assert get_logger("notifyflow.test.fresh").level == logging.INFO


class TestMasking:
    @pytest.mark.parametrize("token", [None, "", "short", "12345678"])
    def test_short_tokens_fully_masked(self, token):
        assert mask_token(token) == MASKED_VALUE

    def test_long_token_keeps_edges(self):
        assert mask_token("abcdefghijkl") == "abcd...ijkl"

    def test_truncate(self):
        assert truncate_for_log(None) == ""
        assert truncate_for_log("short") == "short"
        assert truncate_for_log("x" * 120) == "x" * 100 + "..."
        assert truncate_for_log("abcdef", max_length=3) == "abc..."
