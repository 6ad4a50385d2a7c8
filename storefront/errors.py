"""JSON error responses for the rate API.

Every error renders as ``{"message": ..., "field_errors": {field: [...]}}``;
``field_errors`` is omitted when the error is not tied to an input field.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from flask import Flask, jsonify

from storefront.services.rate_admin import RateValidationError

STATUS_MESSAGES: dict[int, str] = {
    400: "Request could not be processed.",
    404: "Resource not found.",
    422: "Submitted data is invalid.",
    503: "Service temporarily unavailable. Please retry in a moment.",
}


class APIError(Exception):
    """Base class for API-level errors."""

    status_code: int = 400

    def __init__(
        self,
        message: str = "",
        *,
        status_code: int | None = None,
        field_errors: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code
        self.message = message or STATUS_MESSAGES.get(self.status_code, "Request failed.")
        self.field_errors = _normalize_field_errors(field_errors or {})

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"message": self.message}
        if self.field_errors:
            body["field_errors"] = self.field_errors
        return body


class ValidationError(APIError):
    """Rejected input; ``field`` attributes the message to one input field."""

    status_code = 422

    def __init__(
        self,
        message: str = "",
        *,
        field: str | None = None,
        field_errors: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message, field_errors=field_errors)
        if field and field not in self.field_errors:
            self.field_errors[field] = [self.message]


class ServiceUnavailableError(APIError):
    """A collaborator the endpoint needs (cache, feed, synchronizer) is missing."""

    status_code = 503


def register_error_handlers(app: Flask) -> None:
    """Attach error handlers to the Flask application."""

    @app.errorhandler(APIError)
    def handle_api_error(error: APIError):
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(RateValidationError)
    def handle_rate_validation_error(error: RateValidationError):
        return handle_api_error(ValidationError(error.message, field=error.field))


def _normalize_field_errors(field_errors: Mapping[str, Any]) -> dict[str, list[str]]:
    result: dict[str, list[str]] = {}
    for field, messages in field_errors.items():
        if messages is None:
            continue
        if isinstance(messages, str):
            messages = [messages]
        elif not isinstance(messages, (list, tuple)):
            messages = [messages]
        normalized = [str(message) for message in messages if message is not None]
        if normalized:
            result[str(field)] = normalized
    return result
