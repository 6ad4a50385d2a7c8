"""Route handlers for the cached exchange rate."""

from __future__ import annotations

from flask import current_app
from flask.views import MethodView

from storefront.errors import ServiceUnavailableError
from storefront.schemas import (
    ActiveRateSchema,
    ChangesQuerySchema,
    DisplayPriceSchema,
    HistoryQuerySchema,
    PriceQuerySchema,
    RateChangesSchema,
    RateHistorySchema,
    RefreshOutcomeSchema,
)
from storefront.services.notifier import ChangeFeed
from storefront.services.price_projector import calculation_example, project
from storefront.services.rate_admin import list_exchange_rate_history
from storefront.services.rate_cache import RateCache
from storefront.services.synchronizer import (
    CACHE_EXT_KEY,
    FEED_EXT_KEY,
    RateSynchronizer,
    get_synchronizer,
)

from . import blp


def _cache() -> RateCache:
    cache: RateCache | None = current_app.extensions.get(CACHE_EXT_KEY)
    if cache is None:
        raise ServiceUnavailableError("Rate cache unavailable.")
    return cache


def _synchronizer() -> RateSynchronizer:
    synchronizer = get_synchronizer(current_app)
    if synchronizer is None:
        raise ServiceUnavailableError("Rate synchronizer unavailable.")
    return synchronizer


@blp.route("/active")
class ActiveRate(MethodView):
    @blp.response(200, ActiveRateSchema())
    def get(self):
        rate = _cache().read()
        if rate is None:
            return {"rate": None, "example": None}
        return {"rate": rate.to_dict(), "example": calculation_example(rate)}


@blp.route("/price")
class Price(MethodView):
    @blp.arguments(PriceQuerySchema, location="query")
    @blp.response(200, DisplayPriceSchema())
    def get(self, query):
        return project(query["amount"], _cache().read()).to_dict()


@blp.route("/changes")
class Changes(MethodView):
    @blp.arguments(ChangesQuerySchema, location="query")
    @blp.response(200, RateChangesSchema())
    def get(self, query):
        feed: ChangeFeed | None = current_app.extensions.get(FEED_EXT_KEY)
        if feed is None:
            raise ServiceUnavailableError("Rate change feed unavailable.")
        changes = feed.recent(limit=query.get("limit"), since=query.get("since"))
        return {
            "last_sequence": feed.last_sequence,
            "changes": [change.to_dict() for change in changes],
        }


@blp.route("/history")
class History(MethodView):
    @blp.arguments(HistoryQuerySchema, location="query")
    @blp.response(200, RateHistorySchema())
    def get(self, query):
        rates = list_exchange_rate_history(limit=query["limit"])
        return {"rates": [rate.to_dict() for rate in rates]}


@blp.route("/refresh")
class Refresh(MethodView):
    @blp.response(202, RefreshOutcomeSchema())
    def post(self):
        outcome = _synchronizer().refresh()
        return {
            "message": "Refresh completed." if outcome.applied else "Refresh not applied.",
            "status": outcome.status,
            "ticket": outcome.ticket,
            "signature": outcome.rate.signature if outcome.rate else None,
            "previous_signature": outcome.previous.signature if outcome.previous else None,
            "error": outcome.error,
        }
