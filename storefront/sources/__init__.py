"""Rate source interfaces and the exchange rate value type."""

from .base import MalformedRateError, RateSource, RateSourceError
from .schemas import ExchangeRate, rate_signature
from .database_source import DatabaseRateSource, record_to_rate
from .mock import MockRateSource
from .rest_source import RestRateSource

__all__ = [
    "DatabaseRateSource",
    "ExchangeRate",
    "MalformedRateError",
    "MockRateSource",
    "RateSource",
    "RateSourceError",
    "RestRateSource",
    "rate_signature",
    "record_to_rate",
]
