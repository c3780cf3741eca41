"""Tests for the stderr JSON logging setup."""

import json
import logging
import sys

import pytest

from elastic_mcp.util.logging import JsonLogFormatter, configure_logging


@pytest.fixture()
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


class TestConfigureLogging:
    @pytest.mark.parametrize("raw,expected", [
        ("warn", logging.WARNING),
        ("WARNING", logging.WARNING),
        ("debug", logging.DEBUG),
        ("trace", logging.DEBUG),
        ("error", logging.ERROR),
        (" Info ", logging.INFO),
        ("loud", logging.INFO),
        ("", logging.INFO),
    ])
    def test_level_names(self, restore_root_logger, raw, expected):
        configure_logging(raw)
        assert restore_root_logger.level == expected

    def test_single_stderr_handler(self, restore_root_logger):
        configure_logging("info")
        configure_logging("info")
        handlers = restore_root_logger.handlers
        assert len(handlers) == 1
        assert handlers[0].stream is sys.stderr

    def test_httpx_quiet_unless_debugging(self, restore_root_logger):
        configure_logging("info")
        assert logging.getLogger("httpx").level == logging.WARNING
        configure_logging("debug")
        assert logging.getLogger("httpx").level == logging.DEBUG


class TestJsonLogFormatter:
    def test_extras_are_included(self):
        record = logging.LogRecord("elastic_mcp.client", logging.WARNING, __file__, 1, "request failed: %s", ("boom",), None)
        record.status = 503
        record.kind = "request_error"
        line = json.loads(JsonLogFormatter().format(record))
        assert line["level"] == "warning"
        assert line["msg"] == "request failed: boom"
        assert line["status"] == 503
        assert line["kind"] == "request_error"
        assert "tool" not in line
