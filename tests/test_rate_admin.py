from __future__ import annotations

from decimal import Decimal

import pytest

from storefront.models import ExchangeRateRecord
from storefront.services.rate_admin import (
    RateValidationError,
    activate_exchange_rate,
    list_exchange_rate_history,
    validate_exchange_rates,
)


def test_validate_exchange_rates_normalizes_input():
    assert validate_exchange_rates("36.5", 55) == (Decimal("36.5"), Decimal("55"))


def test_validate_accepts_equal_rates():
    assert validate_exchange_rates(40, 40) == (Decimal("40"), Decimal("40"))


@pytest.mark.parametrize(
    "bcv, black, field",
    [
        (None, 55, "bcv_rate"),
        ("", 55, "bcv_rate"),
        (0, 55, "bcv_rate"),
        ("abc", 55, "bcv_rate"),
        (36, -1, "black_market_rate"),
        (60, 55, "black_market_rate"),
    ],
)
def test_validate_exchange_rates_rejects_bad_input(bcv, black, field):
    with pytest.raises(RateValidationError) as exc_info:
        validate_exchange_rates(bcv, black)

    assert exc_info.value.field == field


def test_activate_deactivates_previous_rate(db_session):
    first = activate_exchange_rate(36, 55, updated_by="admin-1", session=db_session)
    second = activate_exchange_rate(38, 58, updated_by="admin-1", session=db_session)

    rows = db_session.query(ExchangeRateRecord).order_by(ExchangeRateRecord.id).all()

    assert [row.id for row in rows] == [first.id, second.id]
    assert [row.is_active for row in rows] == [False, True]
    assert second.is_active is True
    assert second.signature == "38:58"


def test_activate_rejects_invalid_rates_without_writing(db_session):
    with pytest.raises(RateValidationError):
        activate_exchange_rate(60, 55, session=db_session)

    assert db_session.query(ExchangeRateRecord).count() == 0


def test_history_is_newest_first_and_limited(db_session):
    for bcv, black in ((36, 55), (37, 56), (38, 58)):
        activate_exchange_rate(bcv, black, session=db_session)

    history = list_exchange_rate_history(limit=2, session=db_session)

    assert [rate.signature for rate in history] == ["38:58", "37:56"]
    assert history[0].is_active is True
    assert history[1].is_active is False


def test_history_rejects_non_positive_limit(db_session):
    with pytest.raises(RateValidationError):
        list_exchange_rate_history(limit=0, session=db_session)
