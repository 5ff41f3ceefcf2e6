"""
Unit tests for logging utilities.
"""

import logging

import pytest

from invoicing.utils.logging_utils import (
    ContextFilter,
    LogContext,
    generate_correlation_id,
    get_correlation_id,
    get_log_context,
    log_function_call,
    sanitize_sensitive_data,
)


class TestLogContext:
    def test_fields_are_scoped(self):
        with LogContext(correlation_id="abc", invoice_id="inv-1"):
            assert get_correlation_id() == "abc"
            with LogContext(operation="upload"):
                assert get_log_context() == {
                    "correlation_id": "abc",
                    "invoice_id": "inv-1",
                    "operation": "upload",
                }
            assert "operation" not in get_log_context()

        assert get_correlation_id() is None

    def test_filter_copies_fields_to_record(self):
        record = logging.LogRecord("test", logging.INFO, __file__, 1, "message", None, None)

        with LogContext(correlation_id="abc"):
            assert ContextFilter().filter(record)

        assert record.correlation_id == "abc"


def test_generate_correlation_id_is_unique():
    assert generate_correlation_id() != generate_correlation_id()


def test_sanitize_sensitive_data():
    data = {
        "api_token": "secret-value",
        "user": "alice",
        "nested": {"private_key": "-----BEGIN", "count": 2},
        "refresh_token": None,
    }

    sanitized = sanitize_sensitive_data(data)

    assert sanitized == {
        "api_token": "***REDACTED***",
        "user": "alice",
        "nested": {"private_key": "***REDACTED***", "count": 2},
        "refresh_token": None,
    }
    assert data["api_token"] == "secret-value"


class TestLogFunctionCall:
    def test_logs_entry_and_exit(self, caplog):
        @log_function_call(level="INFO")
        def add(a, b):
            return a + b

        with caplog.at_level(logging.INFO):
            assert add(1, 2) == 3

        messages = [r.getMessage() for r in caplog.records]
        assert "Entering add" in messages
        assert "Exiting add" in messages

    def test_include_args_redacts_keywords(self, caplog):
        @log_function_call(include_args=True)
        def connect(host, token=None):
            return host

        with caplog.at_level(logging.DEBUG):
            connect("sheets", token="abc123")

        entry = caplog.records[0].getMessage()
        assert "'sheets'" in entry
        assert "abc123" not in entry
        assert "***REDACTED***" in entry

    def test_exceptions_are_logged_and_reraised(self, caplog):
        @log_function_call
        def fail():
            raise ValueError("bad input")

        with pytest.raises(ValueError):
            fail()

        assert any("ValueError: bad input" in r.getMessage() for r in caplog.records)
