"""Mock rate source for local development and tests."""

from __future__ import annotations

from decimal import Decimal

from storefront.utils.datetime import utc_now

from .base import RateSource
from .schemas import ExchangeRate

DEFAULT_BCV_RATE = Decimal("36.50")
DEFAULT_BLACK_MARKET_RATE = Decimal("55.00")


class MockRateSource(RateSource):
    """In-memory source returning a settable active rate."""

    name = "mock"

    def __init__(
        self,
        bcv_rate: Decimal | None = DEFAULT_BCV_RATE,
        black_market_rate: Decimal | None = DEFAULT_BLACK_MARKET_RATE,
    ) -> None:
        self._rate: ExchangeRate | None = None
        if bcv_rate is not None and black_market_rate is not None:
            self.set_rate(bcv_rate, black_market_rate)

    def set_rate(self, bcv_rate: Decimal, black_market_rate: Decimal) -> ExchangeRate:
        self._rate = ExchangeRate(
            bcv_rate=bcv_rate,
            black_market_rate=black_market_rate,
            is_active=True,
            updated_at=utc_now(),
        )
        return self._rate

    def clear(self) -> None:
        self._rate = None

    def get_active_rate(self) -> ExchangeRate | None:
        return self._rate
