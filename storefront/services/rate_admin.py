"""Administrative writes and history for persisted exchange rates."""

from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError

from storefront.database import get_session
from storefront.models import ExchangeRateRecord
from storefront.sources import ExchangeRate, record_to_rate
from storefront.utils.datetime import utc_now

from .price_projector import to_decimal

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 10


class RateValidationError(ValueError):
    """Raised when submitted rates fail validation."""

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field


def validate_exchange_rates(
    bcv_rate: Decimal | int | float | str | None,
    black_market_rate: Decimal | int | float | str | None,
) -> tuple[Decimal, Decimal]:
    """Return normalized rates or raise RateValidationError."""

    bcv = _positive_rate(bcv_rate, field="bcv_rate", label="BCV rate")
    black = _positive_rate(black_market_rate, field="black_market_rate", label="Black market rate")
    if bcv > black:
        raise RateValidationError(
            "Black market rate should typically be higher than BCV rate",
            field="black_market_rate",
        )
    return bcv, black


def _positive_rate(value, *, field: str, label: str) -> Decimal:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise RateValidationError(f"{label} is required", field=field)
    try:
        rate = to_decimal(value)
    except ValueError as exc:
        raise RateValidationError(f"{label} must be a number", field=field) from exc
    if rate <= 0:
        raise RateValidationError(f"{label} must be greater than 0", field=field)
    return rate


def activate_exchange_rate(
    bcv_rate: Decimal | int | float | str,
    black_market_rate: Decimal | int | float | str,
    updated_by: str | None = None,
    session=None,
) -> ExchangeRate:
    """Deactivate the current rate and store a new active one in one transaction."""

    bcv, black = validate_exchange_rates(bcv_rate, black_market_rate)
    session = session or get_session()
    now = utc_now()
    try:
        session.execute(
            update(ExchangeRateRecord)
            .where(ExchangeRateRecord.is_active.is_(True))
            .values(is_active=False, updated_at=now)
        )
        record = ExchangeRateRecord(
            bcv_rate=bcv,
            black_market_rate=black,
            is_active=True,
            updated_by=updated_by,
            created_at=now,
            updated_at=now,
        )
        session.add(record)
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        raise

    logger.info("Activated exchange rate id=%s (BCV %s, parallel %s)", record.id, bcv, black)
    return record_to_rate(record)


def list_exchange_rate_history(limit: int = DEFAULT_HISTORY_LIMIT, session=None) -> list[ExchangeRate]:
    """Most recent rates first, active or not."""

    if limit <= 0:
        raise RateValidationError("limit must be a positive integer", field="limit")
    session = session or get_session()
    statement = (
        select(ExchangeRateRecord)
        .order_by(ExchangeRateRecord.created_at.desc(), ExchangeRateRecord.id.desc())
        .limit(limit)
    )
    return [record_to_rate(record) for record in session.execute(statement).scalars()]
