"""Test suite for logger configuration and the request context middleware."""

import json
import sys
from unittest.mock import MagicMock

from labsoft_api.monitoring.logger import get_formatted_stacktrace
from labsoft_api.monitoring.logger import process_log_record
from tests.consts import ADMIN_IDENTITY


class TestProcessLogRecord:
    """Tests for the loguru record filter."""

    def test_extra_serialized_to_json(self):
        record = {"extra": {"request_id": "abc", "count": 2}, "exception": None}

        assert process_log_record(record) is True
        assert json.loads(record["extra"]) == {"request_id": "abc", "count": 2}
        assert record["stacktrace"] == ""

    def test_empty_extra_left_alone(self):
        record = {"extra": {}, "exception": None}

        process_log_record(record)

        assert record["extra"] == {}

    def test_stacktrace_on_single_line(self):
        try:
            raise ValueError("bad value")
        except ValueError:
            exc_info = sys.exc_info()

        record = {"extra": {}, "exception": exc_info}
        process_log_record(record)

        assert "ValueError: bad value" in record["stacktrace"]
        assert "\n" not in record["stacktrace"]

    def test_get_formatted_stacktrace_keeps_newlines(self):
        try:
            raise KeyError("missing")
        except KeyError:
            exc_info = sys.exc_info()

        assert "\n" in get_formatted_stacktrace(exc_info, single_line=False)


class TestRequestContextMiddleware:
    """Tests for the per-request log line."""

    def test_request_line_names_caller(self, client, admin_headers, captured_logs):
        response = client.get("/api/requests", headers={**admin_headers, "X-Forwarded-For": "10.1.2.3, 10.0.0.1"})

        assert response.status_code == 200
        request_lines = [r for r in captured_logs if r["extra"].get("event_type") == "http_request"]
        assert len(request_lines) == 1
        extra = request_lines[0]["extra"]
        assert extra["user_identity"] == ADMIN_IDENTITY
        assert extra["status_code"] == 200
        assert extra["client_ip"] == "10.1.2.3"
        assert request_lines[0]["message"] == "GET /api/requests - 200"

    def test_anonymous_when_unauthenticated(self, client, captured_logs):
        client.get("/api/requests")

        request_lines = [r for r in captured_logs if r["extra"].get("event_type") == "http_request"]
        assert request_lines[0]["extra"]["user_identity"] == "anonymous"
        assert request_lines[0]["extra"]["status_code"] == 401

    def test_bearer_token_redacted(self, client, admin_headers, captured_logs):
        client.get("/api/requests", headers=admin_headers)

        received = [r for r in captured_logs if r["message"] == "Request received"]
        assert received[0]["extra"]["http_request"]["headers"]["authorization"] == "<redacted>"
        assert admin_headers["Authorization"] not in json.dumps([r["extra"] for r in captured_logs], default=str)

    def test_request_id_generated(self, client):
        response = client.get("/health")

        assert len(response.headers["X-Request-ID"]) == 36


def test_configure_logger_replaces_sinks(monkeypatch):
    """configure_logger removes existing sinks and adds a single stdout sink."""
    from labsoft_api.monitoring import logger as logger_module

    mock_logger = MagicMock()
    monkeypatch.setattr(logger_module, "logger", mock_logger)

    logger_module.configure_logger(log_level="debug")

    mock_logger.remove.assert_called_once_with()
    kwargs = mock_logger.add.call_args.kwargs
    assert kwargs["level"] == "DEBUG"
    assert kwargs["sink"] is sys.stdout
    assert kwargs["filter"] is logger_module.process_log_record
