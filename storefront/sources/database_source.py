"""Rate source backed by the local ``exchange_rates`` table."""

from __future__ import annotations

from collections.abc import Callable

from sqlalchemy import select
from sqlalchemy.exc import MultipleResultsFound, SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.database import new_session
from storefront.models import ExchangeRateRecord

from .base import MalformedRateError, RateSource, RateSourceError
from .schemas import ExchangeRate

SessionFactory = Callable[[], Session]


def record_to_rate(record: ExchangeRateRecord) -> ExchangeRate:
    """Convert an ORM row into the immutable rate value."""

    try:
        return ExchangeRate(
            bcv_rate=record.bcv_rate,
            black_market_rate=record.black_market_rate,
            is_active=record.is_active,
            updated_at=record.updated_at,
            id=record.id,
            created_at=record.created_at,
            updated_by=record.updated_by,
        )
    except (TypeError, ValueError, AttributeError) as exc:
        raise MalformedRateError(f"Invalid exchange rate row id={record.id}: {exc}") from exc


class DatabaseRateSource(RateSource):
    """Reads the active row with a short-lived session per call."""

    name = "database"

    def __init__(self, session_factory: SessionFactory | None = None) -> None:
        self._session_factory = session_factory or new_session

    def get_active_rate(self) -> ExchangeRate | None:
        statement = select(ExchangeRateRecord).where(ExchangeRateRecord.is_active.is_(True))
        try:
            with self._session_factory() as session:
                record = session.execute(statement).scalar_one_or_none()
                if record is None:
                    return None
                return record_to_rate(record)
        except MultipleResultsFound as exc:
            raise MalformedRateError("More than one active exchange rate is stored") from exc
        except (SQLAlchemyError, RuntimeError) as exc:
            raise RateSourceError(f"Unable to read the active exchange rate: {exc}") from exc
