"""Change notification ports for exchange rate updates."""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable

from storefront.logging import sync_log_extra
from storefront.sources.schemas import ExchangeRate
from storefront.utils.datetime import utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateChange:
    """One observed transition between two distinct active rates."""

    sequence: int
    old: ExchangeRate
    new: ExchangeRate
    detected_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "sequence": self.sequence,
            "old": self.old.to_dict(),
            "new": self.new.to_dict(),
            "detected_at": self.detected_at.isoformat(),
        }


class ChangeNotifier(ABC):
    """Receives exactly one call per detected rate change."""

    @abstractmethod
    def notify(self, old: ExchangeRate, new: ExchangeRate) -> None:
        """Report a change; must not block the caller."""


class LoggingChangeNotifier(ChangeNotifier):
    def __init__(self, source_name: str = "unknown") -> None:
        self._source_name = source_name

    def notify(self, old: ExchangeRate, new: ExchangeRate) -> None:
        logger.info(
            "Exchange rate changed from BCV %s / parallel %s to BCV %s / parallel %s",
            old.bcv_rate,
            old.black_market_rate,
            new.bcv_rate,
            new.black_market_rate,
            extra=sync_log_extra(
                event="rates.change",
                status="changed",
                source=self._source_name,
                signature=new.signature,
                previous_signature=old.signature,
            ),
        )


class ChangeFeed(ChangeNotifier):
    """Bounded in-memory feed of recent changes, polled by storefront clients.

    Each change gets a monotonically increasing sequence number so a client
    can ask for everything after the last change it has already shown.
    """

    def __init__(self, maxlen: int = 20) -> None:
        if maxlen <= 0:
            raise ValueError("maxlen must be a positive integer")
        self._changes: deque[RateChange] = deque(maxlen=maxlen)
        self._sequence = 0
        self._lock = threading.Lock()

    def notify(self, old: ExchangeRate, new: ExchangeRate) -> None:
        with self._lock:
            self._sequence += 1
            self._changes.append(
                RateChange(sequence=self._sequence, old=old, new=new, detected_at=utc_now())
            )

    @property
    def last_sequence(self) -> int:
        return self._sequence

    def recent(self, limit: int | None = None, since: int | None = None) -> list[RateChange]:
        """Return changes newest first, optionally only those after ``since``."""

        with self._lock:
            changes = list(self._changes)
        if since is not None:
            changes = [change for change in changes if change.sequence > since]
        changes.reverse()
        if limit is not None:
            changes = changes[: max(limit, 0)]
        return changes


class NotifierGroup(ChangeNotifier):
    """Fan a change out to several notifiers; one failing does not stop the rest."""

    def __init__(self, notifiers: Iterable[ChangeNotifier]) -> None:
        self._notifiers = list(notifiers)

    def notify(self, old: ExchangeRate, new: ExchangeRate) -> None:
        for notifier in self._notifiers:
            try:
                notifier.notify(old, new)
            except Exception:
                logger.exception("Change notifier %s failed", type(notifier).__name__)
