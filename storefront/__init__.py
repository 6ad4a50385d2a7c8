"""Application factory for the storefront exchange rate service."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from flask import Flask
from flask_smorest import Api

from config import get_config
from .cli import register_cli
from .database import init_app as init_db
from .logging import init_request_logging, setup_logging

OPENAPI_DEFAULTS = {
    "API_TITLE": "Storefront Rates API",
    "API_VERSION": "v1",
    "OPENAPI_VERSION": "3.0.3",
    "OPENAPI_URL_PREFIX": "/docs",
    "OPENAPI_SWAGGER_UI_PATH": "/",
    "OPENAPI_SWAGGER_UI_URL": "https://cdn.jsdelivr.net/npm/swagger-ui-dist/",
}


def create_app(
    config_name: str | None = None,
    config_overrides: Mapping[str, Any] | None = None,
) -> Flask:
    """Build the app; with ``SYNC_ENABLED`` the rate cache is hydrated before it returns."""

    app = Flask(__name__)
    app.config.from_object(get_config(config_name))
    if config_overrides:
        app.config.update(config_overrides)
    for key, value in OPENAPI_DEFAULTS.items():
        app.config.setdefault(key, value)

    setup_logging(app)
    init_request_logging(app)
    init_db(app)
    _init_rate_sync(app)
    _register_api(app)

    from .errors import register_error_handlers

    register_error_handlers(app)
    register_cli(app)
    return app


def _init_rate_sync(app: Flask) -> None:
    """Pick the rate source, then build and (optionally) start the synchronizer."""

    from . import models  # noqa: F401  # Ensure models are imported for metadata
    from .services import init_synchronizer
    from .sources.registry import init_source

    init_source(app)
    init_synchronizer(app)


def _register_api(app: Flask) -> Api:
    from .health import blp as health_blp
    from .rates import blp as rates_blp

    api = Api(app)
    api.register_blueprint(health_blp, url_prefix="/health")
    api.register_blueprint(rates_blp, url_prefix="/rates")
    app.extensions["smorest_api"] = api
    return api
