from __future__ import annotations

import json
import logging
import sys
from decimal import Decimal

import pytest
from flask import Flask, g

from storefront.logging import JSONLogFormatter, init_request_logging, setup_logging, sync_log_extra


class RecordingHandler(logging.Handler):
    def __init__(self):
        super().__init__(level=logging.INFO)
        self.records: list[logging.LogRecord] = []

    def emit(self, record):
        self.records.append(record)

    def messages(self, message: str) -> list[logging.LogRecord]:
        return [record for record in self.records if record.getMessage() == message]


@pytest.fixture()
def root_logger():
    """Restore root handlers and level after a test reconfigures logging."""

    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    yield root
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    for handler in saved_handlers:
        root.addHandler(handler)
    root.setLevel(saved_level)


@pytest.fixture()
def logged_app(root_logger):
    app = Flask(__name__)
    app.config.update(TESTING=True, LOG_LEVEL="INFO")

    @app.route("/ok")
    def ok():  # pragma: no cover - invoked via test client
        return "ok", 200

    @app.route("/boom")
    def boom():  # pragma: no cover - invoked via test client
        raise RuntimeError("boom")

    setup_logging(app)
    init_request_logging(app)
    handler = RecordingHandler()
    root_logger.addHandler(handler)
    app.recorded = handler
    return app


def test_json_formatter_promotes_extras_to_top_level_keys():
    record = logging.makeLogRecord(
        {
            "name": "storefront.services.synchronizer",
            "levelno": logging.INFO,
            "levelname": "INFO",
            "msg": "Rate refresh %s",
            "args": ("changed",),
            "signature": "38:58",
            "rate": Decimal("38.50"),
            "_private": "hidden",
        }
    )

    payload = json.loads(JSONLogFormatter().format(record))

    assert payload["message"] == "Rate refresh changed"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "storefront.services.synchronizer"
    assert payload["thread_name"]
    assert "timestamp" in payload
    assert payload["signature"] == "38:58"
    assert payload["rate"] == "38.50"
    assert "_private" not in payload
    assert "levelno" not in payload


def test_json_formatter_includes_exception_text():
    try:
        raise ValueError("bad rate")
    except ValueError:
        record = logging.makeLogRecord({"msg": "failed", "exc_info": sys.exc_info()})

    payload = json.loads(JSONLogFormatter().format(record))

    assert "ValueError: bad rate" in payload["exc_info"]


def test_setup_logging_enables_json_formatter_when_configured(root_logger):
    app = Flask(__name__)
    app.config.update(LOG_JSON_ENABLED="true", LOG_LEVEL="DEBUG")

    setup_logging(app)

    assert root_logger.level == logging.DEBUG
    assert app.logger.level == logging.DEBUG
    assert len(root_logger.handlers) == 1
    assert isinstance(root_logger.handlers[0].formatter, JSONLogFormatter)
    assert logging.getLogger("apscheduler").level == logging.WARNING


def test_setup_logging_uses_plain_format_string(root_logger):
    app = Flask(__name__)
    app.config.update(LOG_JSON_ENABLED=False, LOG_LEVEL="warning", LOG_FORMAT="%(levelname)s:%(message)s")

    setup_logging(app)

    handler = root_logger.handlers[0]
    assert root_logger.level == logging.WARNING
    assert not isinstance(handler.formatter, JSONLogFormatter)
    assert handler.formatter._style._fmt == "%(levelname)s:%(message)s"


def test_setup_logging_falls_back_to_info_for_unknown_level(root_logger):
    app = Flask(__name__)
    app.config["LOG_LEVEL"] = "chatty"

    setup_logging(app)

    assert root_logger.level == logging.INFO


def test_request_logging_echoes_request_id(logged_app):
    response = logged_app.test_client().get("/ok", headers={"X-Request-ID": "req-42"})

    record = logged_app.recorded.messages("Request handled")[-1]
    assert response.headers["X-Request-ID"] == "req-42"
    assert record.event == "request.completed"
    assert record.method == "GET"
    assert record.route == "/ok"
    assert record.status == 200
    assert record.request_id == "req-42"
    assert record.duration_ms >= 0


def test_request_logging_generates_request_id(logged_app):
    response = logged_app.test_client().get("/ok")

    record = logged_app.recorded.messages("Request handled")[-1]
    assert response.headers["X-Request-ID"] == record.request_id
    assert len(record.request_id) == 32


def test_request_logging_captures_unhandled_errors(logged_app):
    with pytest.raises(RuntimeError):
        logged_app.test_client().get("/boom")

    record = logged_app.recorded.messages("Request failed")[-1]
    assert record.event == "request.failed"
    assert record.status == 500
    assert record.request_id
    assert "boom" in record.error


def test_sync_log_extra_drops_empty_fields():
    extra = sync_log_extra(event="rates.refresh", status="unchanged", source="mock", ticket=3)

    assert extra == {
        "event": "rates.refresh",
        "status": "unchanged",
        "source": "mock",
        "ticket": 3,
    }


def test_sync_log_extra_rounds_duration():
    extra = sync_log_extra(
        event="rates.refresh",
        status="error",
        source="rest",
        duration_ms=12.34567,
        error="timeout",
    )

    assert extra["duration_ms"] == 12.346
    assert extra["error"] == "timeout"


def test_sync_log_extra_carries_request_id_inside_a_request(logged_app):
    with logged_app.test_request_context("/rates/refresh"):
        g.request_id = "req-7"
        extra = sync_log_extra(event="rates.refresh", status="changed", source="mock")

    assert extra["request_id"] == "req-7"
