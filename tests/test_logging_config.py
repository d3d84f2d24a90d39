"""
Tests for logging configuration.
"""

import json
import logging
import os
from unittest.mock import MagicMock, patch

from notekeeper.logging_config import JsonFormatter, setup_global_logging


def make_record(**extra):
    record = logging.LogRecord(
        "notekeeper.test", logging.WARNING, __file__, 1, "login %s", ("failed",), None
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJsonFormatter:
    """Tests for JsonFormatter."""

    def test_formats_basic_fields(self):
        """Test the standard fields of a log line."""
        line = json.loads(JsonFormatter().format(make_record()))

        assert line["severity"] == "WARNING"
        assert line["name"] == "notekeeper.test"
        assert line["message"] == "login failed"
        assert "timestamp" in line
        assert "pathname" not in line

    def test_merges_extra_fields(self):
        """Test extra= fields become top-level keys."""
        record = make_record(error_code="invalid-state", login_state="FAILED")

        line = json.loads(JsonFormatter().format(record))

        assert line["error_code"] == "invalid-state"
        assert line["login_state"] == "FAILED"

    def test_includes_exception(self):
        """Test exc_info is rendered."""
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            import sys

            record = make_record()
            record.exc_info = sys.exc_info()

        line = json.loads(JsonFormatter().format(record))

        assert "RuntimeError: boom" in line["exception"]


class TestSetupGlobalLogging:
    """Tests for setup_global_logging."""

    def test_local_adds_single_json_handler(self):
        """Test repeated setup does not duplicate the handler."""
        with patch.dict(os.environ, {"LOG_LEVEL": "debug"}):
            os.environ.pop("K_SERVICE", None)
            setup_global_logging()
            setup_global_logging()

        root = logging.getLogger()
        json_handlers = [
            h for h in root.handlers if isinstance(h.formatter, JsonFormatter)
        ]
        assert len(json_handlers) == 1
        assert root.level == logging.DEBUG
        root.setLevel(logging.INFO)

    def test_cloud_run_uses_cloud_logging(self):
        """Test Cloud Run attaches google-cloud-logging."""
        client = MagicMock()
        with patch.dict(os.environ, {"K_SERVICE": "notekeeper", "LOG_LEVEL": "INFO"}):
            with patch("google.cloud.logging.Client", return_value=client):
                setup_global_logging()

        client.setup_logging.assert_called_once_with(log_level=logging.INFO)
