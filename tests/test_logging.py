"""Structured logging pipeline.

- Request logs carry the correlation id and the request duration.
- stdlib records go through the same JSON formatter as structlog events,
  with secrets masked.
"""

import json
import logging

from django.conf import settings


def _json_formatter():
    options = dict(settings.LOGGING["formatters"]["json"])
    factory = options.pop("()")
    return factory(**options)


def _record(message, level=logging.INFO, name="modules.orders.services"):
    return logging.LogRecord(name, level, __file__, 1, message, None, None)


class TestRequestLogging:
    def test_correlation_id_in_logs(self, client, caplog):
        custom_id = "log-test-correlation-456"
        with caplog.at_level(logging.INFO):
            client.get("/health", HTTP_X_REQUEST_ID=custom_id)
        found = any(custom_id in record.getMessage() for record in caplog.records)
        assert found, (
            f"correlation_id '{custom_id}' not found in log records: "
            f"{[r.getMessage() for r in caplog.records]}"
        )

    def test_request_finished_logged_with_duration(self, client, caplog):
        with caplog.at_level(logging.INFO):
            client.get("/health")
        messages = [record.getMessage() for record in caplog.records]
        finished = [m for m in messages if "request.finished" in m]
        assert finished
        assert "duration_ms" in finished[0]


class TestJsonFormatter:
    def test_stdlib_record_rendered_as_json(self):
        line = _json_formatter().format(
            _record("order.transition_rejected", level=logging.WARNING)
        )

        payload = json.loads(line)
        assert payload["event"] == "order.transition_rejected"
        assert payload["level"] == "warning"
        assert payload["logger"] == "modules.orders.services"
        assert "timestamp" in payload

    def test_secrets_masked_in_rendered_line(self):
        line = _json_formatter().format(_record("storage login password=hunter2"))

        assert "hunter2" not in line
        assert "***MASKED***" in json.loads(line)["event"]
