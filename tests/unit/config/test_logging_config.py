"""
Unit tests for logging configuration.
"""

import json
import logging

import pytest

from invoicing.config.logging_config import (
    JSONFormatter,
    LoggingConfig,
    configure_logging,
    reset_logging,
)
from invoicing.utils.logging_utils import LogContext


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    reset_logging()


class TestLoggingConfig:
    def test_defaults(self):
        config = LoggingConfig()

        assert config.log_level == "INFO"
        assert config.log_format == "standard"
        assert not config.enable_file

    def test_level_is_normalized(self):
        assert LoggingConfig(log_level="debug").log_level == "DEBUG"

    @pytest.mark.parametrize(
        "kwargs",
        [{"log_level": "LOUD"}, {"log_format": "xml"}, {"enable_file": True}],
    )
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            LoggingConfig(**kwargs)

    def test_from_env(self, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        monkeypatch.setenv("LOG_FORMAT", "json")
        monkeypatch.setenv("LOG_CONSOLE", "false")

        config = LoggingConfig.from_env(default_level="WARNING")

        assert config.log_level == "WARNING"
        assert config.log_format == "json"
        assert not config.enable_console


def test_configure_logging_replaces_handlers(tmp_path):
    log_file = tmp_path / "logs" / "invoicing.log"
    config = LoggingConfig(log_level="DEBUG", log_file=str(log_file), enable_file=True)

    configure_logging(config)
    configure_logging(config)

    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert len(root.handlers) == 2
    assert log_file.parent.exists()


def test_json_formatter_includes_context():
    formatter = JSONFormatter()
    record = logging.LogRecord("invoicing.test", logging.INFO, __file__, 10, "Uploaded %s", ("INV-0001",), None)
    record.invoice_id = "inv-1"

    payload = json.loads(formatter.format(record))

    assert payload["message"] == "Uploaded INV-0001"
    assert payload["level"] == "INFO"
    assert payload["invoice_id"] == "inv-1"


def test_file_output_carries_context(tmp_path):
    log_file = tmp_path / "app.log"
    configure_logging(
        LoggingConfig(log_format="json", log_file=str(log_file), enable_file=True, enable_console=False)
    )

    with LogContext(correlation_id="req-1"):
        logging.getLogger("invoicing.test").info("hello")
    for handler in logging.getLogger().handlers:
        handler.flush()

    payload = json.loads(log_file.read_text().splitlines()[-1])
    assert payload["correlation_id"] == "req-1"
    assert payload["message"] == "hello"
