"""Logging setup for the storefront rate service.

Records are rendered with a plain format string or as one JSON object per
line. Fields passed through ``extra=`` become top-level JSON keys; that is how
request and synchronizer events carry their context.
"""

from __future__ import annotations

import json
import logging
import time
import uuid
from datetime import UTC, datetime
from typing import Any

from flask import Flask, g, has_request_context, request
from werkzeug.exceptions import HTTPException

REQUEST_ID_HEADER = "X-Request-ID"
DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# Attributes every LogRecord carries; anything else arrived through ``extra``.
STANDARD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}

# Third-party loggers and the lowest level they may log at.
QUIET_LOGGERS = {
    "apscheduler": logging.WARNING,  # logs every job run at INFO
    "urllib3": logging.WARNING,
}


class JSONLogFormatter(logging.Formatter):
    """Format LogRecord instances into structured JSON strings."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "thread_name": record.threadName,
            "message": record.getMessage(),
        }
        payload.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in STANDARD_ATTRS and not key.startswith("_")
        )
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = self.formatStack(record.stack_info)
        return json.dumps(payload, default=_json_default, separators=(",", ":"))


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    return str(value)


def setup_logging(app: Flask) -> None:
    """Install a single root handler driven by the ``LOG_*`` settings."""

    if app.extensions.get("logging_configured"):
        return

    level = _level(app.config.get("LOG_LEVEL"))
    handler = logging.StreamHandler()
    handler.setLevel(level)
    if _flag(app.config.get("LOG_JSON_ENABLED")):
        handler.setFormatter(JSONLogFormatter())
    else:
        handler.setFormatter(logging.Formatter(app.config.get("LOG_FORMAT") or DEFAULT_FORMAT))

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)

    for name, floor in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(max(level, floor))

    # Flask and werkzeug emit through the root handler only.
    for logger in (app.logger, logging.getLogger("werkzeug")):
        logger.handlers.clear()
        logger.setLevel(level)
        logger.propagate = True

    app.extensions["logging_configured"] = True


def init_request_logging(app: Flask) -> None:
    """Log one record per request, correlated through ``X-Request-ID``."""

    if app.extensions.get("request_logging_configured"):
        return

    @app.before_request
    def _begin_request():
        g.request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        g.request_started = time.perf_counter()
        g.request_logged = False

    @app.after_request
    def _request_completed(response):
        request_id = g.get("request_id")
        if request_id:
            response.headers.setdefault(REQUEST_ID_HEADER, request_id)
        app.logger.info(
            "Request handled",
            extra=_request_extra("request.completed", response.status_code),
        )
        g.request_logged = True
        return response

    @app.teardown_request
    def _request_failed(exc: BaseException | None):
        if exc is None or g.get("request_logged"):
            return
        status = exc.code if isinstance(exc, HTTPException) and exc.code else 500
        app.logger.error(
            "Request failed",
            extra=_request_extra("request.failed", status, error=str(exc)),
        )
        g.request_logged = True

    app.extensions["request_logging_configured"] = True


def _request_extra(event: str, status: int, error: str | None = None) -> dict[str, Any]:
    started = g.get("request_started")
    return _compact(
        {
            "event": event,
            "status": status,
            "method": request.method,
            "route": request.url_rule.rule if request.url_rule else request.path,
            "path": request.path,
            "request_id": g.get("request_id"),
            "duration_ms": (time.perf_counter() - started) * 1000 if started is not None else None,
            "client_ip": request.remote_addr,
            "error": error,
        }
    )


def sync_log_extra(
    *,
    event: str,
    status: str,
    source: str,
    ticket: int | None = None,
    signature: str | None = None,
    previous_signature: str | None = None,
    duration_ms: float | None = None,
    error: str | None = None,
) -> dict[str, Any]:
    """Structured fields attached to rate synchronizer log records.

    A refresh triggered from an HTTP request also carries that request's id;
    refreshes on the polling thread do not.
    """

    return _compact(
        {
            "event": event,
            "status": status,
            "source": source,
            "ticket": ticket,
            "signature": signature,
            "previous_signature": previous_signature,
            "duration_ms": duration_ms,
            "request_id": g.get("request_id") if has_request_context() else None,
            "error": error,
        }
    )


def _compact(fields: dict[str, Any]) -> dict[str, Any]:
    if fields.get("duration_ms") is not None:
        fields["duration_ms"] = round(fields["duration_ms"], 3)
    return {key: value for key, value in fields.items() if value is not None}


def _level(value: Any) -> int:
    if isinstance(value, int):
        return value
    if not value:
        return logging.INFO
    resolved = logging.getLevelName(str(value).upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def _flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() in {"1", "true", "yes", "on"}
