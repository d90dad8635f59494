"""Tests for logging setup."""

import json
import logging
import sys

from quizsync.utils.logging import StructuredFormatter, setup_logging


class TestStructuredFormatter:
    def test_extras_are_included(self):
        record = logging.LogRecord(
            "quizsync.sync", logging.INFO, __file__, 10, "Published %d categories", (3,), None
        )
        record.source = "remote"
        record.url = "http://quiz.example.com/q.json"
        payload = json.loads(StructuredFormatter().format(record))
        assert payload["message"] == "Published 3 categories"
        assert payload["level"] == "INFO"
        assert payload["logger"] == "quizsync.sync"
        assert payload["source"] == "remote"
        assert payload["url"] == "http://quiz.example.com/q.json"
        assert "duration_ms" not in payload

    def test_exception_info(self):
        try:
            raise ValueError("boom")
        except ValueError:
            exc_info = sys.exc_info()
        record = logging.LogRecord("quizsync", logging.ERROR, __file__, 1, "failed", (), exc_info)
        payload = json.loads(StructuredFormatter().format(record))
        assert payload["exception"]["type"] == "ValueError"
        assert payload["exception"]["message"] == "boom"


def test_setup_logging_is_idempotent():
    logger = setup_logging(level="INFO")
    handlers = list(logger.handlers)
    again = setup_logging(level="DEBUG")
    assert again is logger
    assert again.handlers == handlers
    assert logger.name == "quizsync"
