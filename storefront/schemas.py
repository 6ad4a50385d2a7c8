"""Schemas for API requests and responses."""

from __future__ import annotations

from decimal import Decimal

from marshmallow import Schema, fields, validate

# Largest price the API will project, in USD.
MAX_AMOUNT_USD = Decimal("1000000000000")


class HealthStatusSchema(Schema):
    status = fields.String(required=True)
    app = fields.String()


class HealthRatesSchema(Schema):
    status = fields.String(required=True)
    source = fields.String(allow_none=True)
    signature = fields.String(allow_none=True)
    last_updated = fields.String(allow_none=True)
    cached_at = fields.String(allow_none=True)
    last_success = fields.String(allow_none=True)
    last_failure = fields.String(allow_none=True)
    last_error = fields.String(allow_none=True)
    running = fields.Boolean(allow_none=True)
    interval_seconds = fields.Float(allow_none=True)


class ExchangeRateSchema(Schema):
    id = fields.Integer(allow_none=True)
    bcv_rate = fields.String(required=True)
    black_market_rate = fields.String(required=True)
    is_active = fields.Boolean(required=True)
    updated_at = fields.String(required=True)
    created_at = fields.String(allow_none=True)
    updated_by = fields.String(allow_none=True)
    signature = fields.String(required=True)


class CalculationExampleSchema(Schema):
    reference_price = fields.String(required=True)
    bcv_rate = fields.String(required=True)
    black_market_rate = fields.String(required=True)
    usd_price = fields.String(required=True)
    ves_price = fields.String(required=True)
    formatted_result = fields.String(required=True)


class ActiveRateSchema(Schema):
    rate = fields.Nested(ExchangeRateSchema, allow_none=True)
    example = fields.Nested(CalculationExampleSchema, allow_none=True)


class PriceQuerySchema(Schema):
    amount = fields.Decimal(
        required=True, validate=validate.Range(min=0, max=MAX_AMOUNT_USD), as_string=True
    )


class DisplayPriceSchema(Schema):
    amount_usd = fields.String(required=True)
    usd_display = fields.String(required=True)
    has_local = fields.Boolean(required=True)
    bcv_amount = fields.String(allow_none=True)
    black_market_amount = fields.String(allow_none=True)
    bcv_display = fields.String(allow_none=True)
    black_market_display = fields.String(allow_none=True)
    text = fields.String(required=True)


class ChangesQuerySchema(Schema):
    limit = fields.Integer(load_default=None, validate=validate.Range(min=1, max=100))
    since = fields.Integer(load_default=None, validate=validate.Range(min=0))


class RateChangeSchema(Schema):
    sequence = fields.Integer(required=True)
    old = fields.Nested(ExchangeRateSchema, required=True)
    new = fields.Nested(ExchangeRateSchema, required=True)
    detected_at = fields.String(required=True)


class RateChangesSchema(Schema):
    last_sequence = fields.Integer(required=True)
    changes = fields.List(fields.Nested(RateChangeSchema), required=True)


class HistoryQuerySchema(Schema):
    limit = fields.Integer(load_default=10, validate=validate.Range(min=1, max=100))


class RateHistorySchema(Schema):
    rates = fields.List(fields.Nested(ExchangeRateSchema), required=True)


class RefreshOutcomeSchema(Schema):
    message = fields.String(required=True)
    status = fields.String(required=True)
    ticket = fields.Integer(allow_none=True)
    signature = fields.String(allow_none=True)
    previous_signature = fields.String(allow_none=True)
    error = fields.String(allow_none=True)


class ErrorMessageSchema(Schema):
    message = fields.String(required=True)
