"""Process-wide holder for the last known active exchange rate."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from storefront.sources.schemas import ExchangeRate, rate_signature
from storefront.utils.datetime import utc_now


@dataclass(frozen=True)
class CacheEntry:
    """Immutable cache contents; the signature is always derived from ``rate``."""

    rate: ExchangeRate | None
    signature: str | None
    written_at: datetime | None


EMPTY_ENTRY = CacheEntry(rate=None, signature=None, written_at=None)


class RateCache:
    """Single-writer, many-reader snapshot of the active rate.

    Writes replace the whole entry with one attribute assignment, so readers
    always see a rate together with its own signature and never block.
    Only the rate synchronizer writes to the cache; once frozen, writes are
    ignored.
    """

    def __init__(self) -> None:
        self._entry: CacheEntry = EMPTY_ENTRY
        self._frozen = False

    def read(self) -> ExchangeRate | None:
        return self._entry.rate

    def entry(self) -> CacheEntry:
        return self._entry

    @property
    def signature(self) -> str | None:
        return self._entry.signature

    @property
    def frozen(self) -> bool:
        return self._frozen

    def write(self, rate: ExchangeRate | None) -> bool:
        """Swap in a new rate; returns False when the cache is frozen."""

        if self._frozen:
            return False
        self._entry = CacheEntry(rate=rate, signature=rate_signature(rate), written_at=utc_now())
        return True

    def freeze(self) -> None:
        self._frozen = True
