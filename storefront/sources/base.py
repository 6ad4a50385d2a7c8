"""Abstract interface for exchange rate sources."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from .schemas import ExchangeRate


class RateSourceError(Exception):
    """Raised when the rate source cannot be read."""


class MalformedRateError(RateSourceError):
    """Raised when the source returns a record that cannot be interpreted."""


class RateSource(ABC):
    """Read side of the authoritative store holding the active exchange rate."""

    name: str

    @abstractmethod
    def get_active_rate(self) -> ExchangeRate | None:
        """Return the active rate, or None when no rate is currently active."""
