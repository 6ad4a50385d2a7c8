from __future__ import annotations

from flask import Flask

from storefront.errors import APIError, ServiceUnavailableError, ValidationError, register_error_handlers
from storefront.services.rate_admin import RateValidationError


def _make_app() -> Flask:
    app = Flask(__name__)
    register_error_handlers(app)

    @app.route("/invalid-rate")
    def invalid_rate():  # pragma: no cover - invoked via test client
        raise RateValidationError("BCV rate must be greater than 0", field="bcv_rate")

    @app.route("/invalid-amount")
    def invalid_amount():  # pragma: no cover - invoked via test client
        raise ValidationError(field="amount")

    @app.route("/unavailable")
    def unavailable():  # pragma: no cover - invoked via test client
        raise APIError(status_code=503)

    return app


def test_rate_validation_error_maps_to_422_with_field_errors():
    response = _make_app().test_client().get("/invalid-rate")

    assert response.status_code == 422
    assert response.get_json() == {
        "message": "BCV rate must be greater than 0",
        "field_errors": {"bcv_rate": ["BCV rate must be greater than 0"]},
    }


def test_validation_error_uses_default_message_for_field():
    response = _make_app().test_client().get("/invalid-amount")

    assert response.status_code == 422
    payload = response.get_json()
    assert payload["message"] == "Submitted data is invalid."
    assert payload["field_errors"] == {"amount": ["Submitted data is invalid."]}


def test_api_error_falls_back_to_default_message():
    response = _make_app().test_client().get("/unavailable")

    assert response.status_code == 503
    assert response.get_json() == {
        "message": "Service temporarily unavailable. Please retry in a moment."
    }


def test_field_errors_are_normalized_to_lists_of_strings():
    error = ValidationError(
        "Bad query",
        field_errors={"amount": "must be positive", "limit": [1, None], "since": None},
    )

    assert error.to_dict() == {
        "message": "Bad query",
        "field_errors": {"amount": ["must be positive"], "limit": ["1"]},
    }


def test_service_unavailable_error_keeps_custom_message():
    error = ServiceUnavailableError("Rate cache unavailable.")

    assert error.status_code == 503
    assert error.to_dict() == {"message": "Rate cache unavailable."}
