"""Exchange rate blueprint: cached rate, price projection and change feed."""

from __future__ import annotations

from flask_smorest import Blueprint

blp = Blueprint("Rates", __name__, description="Exchange rate and price display endpoints")

from . import routes  # noqa: E402,F401
