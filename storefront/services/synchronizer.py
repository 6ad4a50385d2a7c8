"""Keeps the process-wide rate cache in step with the rate source."""

from __future__ import annotations

import atexit
import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from time import perf_counter
from typing import Any

from storefront.logging import sync_log_extra
from storefront.sources import ExchangeRate, RateSource, RateSourceError, rate_signature
from storefront.sources.registry import get_source
from storefront.utils.datetime import utc_now

from .notifier import ChangeFeed, ChangeNotifier, LoggingChangeNotifier, NotifierGroup
from .rate_cache import RateCache
from .ticker import APSchedulerTicker, Ticker

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 30

SYNCHRONIZER_EXT_KEY = "rate_synchronizer"
CACHE_EXT_KEY = "rate_cache"
FEED_EXT_KEY = "rate_change_feed"

# Refresh outcome statuses.
INITIAL = "initial"
CHANGED = "changed"
UNCHANGED = "unchanged"
CLEARED = "cleared"
DISCARDED = "discarded"
FAILED = "failed"
STOPPED = "stopped"


@dataclass(frozen=True)
class RefreshOutcome:
    """What a single refresh did to the cache."""

    status: str
    ticket: int | None = None
    rate: ExchangeRate | None = None
    previous: ExchangeRate | None = None
    error: str | None = None

    @property
    def applied(self) -> bool:
        return self.status in {INITIAL, CHANGED, UNCHANGED, CLEARED}

    @property
    def notified(self) -> bool:
        return self.status == CHANGED


@dataclass(frozen=True)
class SyncStatus:
    running: bool
    stopped: bool
    hydrated: bool
    interval_seconds: float
    last_success: datetime | None
    last_failure: datetime | None
    last_error: str | None


class RateSynchronizer:
    """Sole writer of a RateCache.

    Lifecycle: ``hydrate`` (optional, once) -> ``start`` -> ``stop``.
    Every refresh draws a ticket; a result is applied only if no refresh with
    a later ticket has been applied already and the synchronizer is still
    live. The notifier is called once per signature change, and never for
    the first value the cache receives.
    """

    def __init__(
        self,
        source: RateSource,
        cache: RateCache,
        notifier: ChangeNotifier,
        ticker: Ticker,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._source = source
        self._cache = cache
        self._notifier = notifier
        self._ticker = ticker
        self._interval = interval_seconds
        self._lock = threading.RLock()
        self._issued = 0
        self._applied = 0
        self._hydrated = False
        self._started = False
        self._stopped = False
        self._last_success: datetime | None = None
        self._last_failure: datetime | None = None
        self._last_error: str | None = None

    @property
    def cache(self) -> RateCache:
        return self._cache

    @property
    def source_name(self) -> str:
        return getattr(self._source, "name", type(self._source).__name__)

    def hydrate(self, server_snapshot: ExchangeRate | None) -> bool:
        """Seed the cache from a server-side read; never notifies."""

        with self._lock:
            if self._hydrated or self._started or self._stopped:
                logger.warning(
                    "Ignoring hydrate after synchronizer lifecycle began",
                    extra=sync_log_extra(
                        event="rates.hydrate", status="ignored", source=self.source_name
                    ),
                )
                return False
            self._hydrated = True
            if server_snapshot is None:
                logger.info(
                    "No server snapshot to hydrate from; prices show USD only until a rate arrives",
                    extra=sync_log_extra(
                        event="rates.hydrate", status="empty", source=self.source_name
                    ),
                )
                return False
            self._cache.write(server_snapshot)

        logger.info(
            "Rate cache hydrated from server snapshot",
            extra=sync_log_extra(
                event="rates.hydrate",
                status="hydrated",
                source=self.source_name,
                signature=server_snapshot.signature,
            ),
        )
        return True

    def start(self) -> None:
        """Refresh once immediately, then poll every interval. Idempotent."""

        with self._lock:
            if self._started or self._stopped:
                return
            self._started = True

        self.refresh()

        with self._lock:
            if self._stopped:
                return
            self._ticker.schedule(self._on_tick, self._interval)

    def stop(self) -> None:
        """Cancel polling and freeze the cache. Idempotent."""

        with self._lock:
            if self._stopped:
                return
            self._stopped = True
            self._cache.freeze()
        self._ticker.cancel()
        logger.info(
            "Rate synchronizer stopped",
            extra=sync_log_extra(event="rates.stop", status="stopped", source=self.source_name),
        )

    def refresh(self) -> RefreshOutcome:
        """Fetch the active rate and apply it unless superseded or stopped.

        Source failures are logged and reported in the outcome, never raised.
        """

        with self._lock:
            if self._stopped:
                return RefreshOutcome(status=STOPPED)
            self._issued += 1
            ticket = self._issued

        start = perf_counter()
        try:
            rate = self._source.get_active_rate()
        except RateSourceError as exc:
            return self._record_failure(ticket, exc, (perf_counter() - start) * 1000)
        return self._apply(ticket, rate, (perf_counter() - start) * 1000)

    def status(self) -> SyncStatus:
        with self._lock:
            return SyncStatus(
                running=self._started and not self._stopped,
                stopped=self._stopped,
                hydrated=self._hydrated,
                interval_seconds=self._interval,
                last_success=self._last_success,
                last_failure=self._last_failure,
                last_error=self._last_error,
            )

    def _on_tick(self) -> None:
        self.refresh()

    def _apply(self, ticket: int, rate: ExchangeRate | None, duration_ms: float) -> RefreshOutcome:
        with self._lock:
            if self._stopped:
                return self._discard(ticket, rate, "stopped")
            if ticket < self._applied:
                return self._discard(ticket, rate, "superseded")

            self._applied = ticket
            previous = self._cache.read()
            self._cache.write(rate)
            self._last_success = utc_now()
            self._last_error = None

            status = self._classify(previous, rate)
            outcome = RefreshOutcome(status=status, ticket=ticket, rate=rate, previous=previous)
            if outcome.notified:
                self._notify(previous, rate)

        logger.info(
            "Rate refresh %s",
            status,
            extra=sync_log_extra(
                event="rates.refresh",
                status=status,
                source=self.source_name,
                ticket=ticket,
                signature=rate_signature(rate),
                previous_signature=rate_signature(previous),
                duration_ms=duration_ms,
            ),
        )
        return outcome

    @staticmethod
    def _classify(previous: ExchangeRate | None, rate: ExchangeRate | None) -> str:
        if rate is None:
            return CLEARED
        if previous is None:
            return INITIAL
        if previous.signature != rate.signature:
            return CHANGED
        return UNCHANGED

    def _notify(self, old: ExchangeRate | None, new: ExchangeRate | None) -> None:
        if old is None or new is None:
            return
        try:
            self._notifier.notify(old, new)
        except Exception:
            logger.exception(
                "Change notifier raised; cache update kept",
                extra=sync_log_extra(
                    event="rates.change",
                    status="notify_failed",
                    source=self.source_name,
                    signature=new.signature,
                    previous_signature=old.signature,
                ),
            )

    def _discard(self, ticket: int, rate: ExchangeRate | None, reason: str) -> RefreshOutcome:
        logger.info(
            "Discarding rate refresh result (%s)",
            reason,
            extra=sync_log_extra(
                event="rates.discard",
                status=reason,
                source=self.source_name,
                ticket=ticket,
                signature=rate_signature(rate),
            ),
        )
        return RefreshOutcome(status=DISCARDED, ticket=ticket, rate=rate, error=reason)

    def _record_failure(self, ticket: int, exc: Exception, duration_ms: float) -> RefreshOutcome:
        with self._lock:
            if not self._stopped:
                self._last_failure = utc_now()
                self._last_error = str(exc)
        logger.warning(
            "Rate refresh failed; keeping last known rate: %s",
            exc,
            extra=sync_log_extra(
                event="rates.refresh",
                status="error",
                source=self.source_name,
                ticket=ticket,
                duration_ms=duration_ms,
                error=str(exc),
            ),
        )
        return RefreshOutcome(status=FAILED, ticket=ticket, error=str(exc))


def read_server_snapshot(source: RateSource) -> ExchangeRate | None:
    """Server-side read used for hydration; degrades to None on any source error."""

    try:
        return source.get_active_rate()
    except RateSourceError as exc:
        logger.error("Unable to read server snapshot from %s: %s", getattr(source, "name", source), exc)
        return None


def init_synchronizer(app, ticker: Ticker | None = None) -> RateSynchronizer:
    """Build the cache, notifiers and synchronizer and store them on the app."""

    existing = app.extensions.get(SYNCHRONIZER_EXT_KEY)
    if existing is not None:
        return existing

    source: RateSource | None = app.extensions.get("rate_source")
    if source is None:
        with app.app_context():
            source = get_source(app.config.get("RATE_SOURCE"))

    cache = RateCache()
    feed = ChangeFeed(maxlen=int(app.config.get("RATE_CHANGE_FEED_SIZE", 20)))
    notifier = NotifierGroup([LoggingChangeNotifier(source_name=source.name), feed])
    synchronizer = RateSynchronizer(
        source=source,
        cache=cache,
        notifier=notifier,
        ticker=ticker or APSchedulerTicker(timezone=app.config.get("SCHEDULER_TIMEZONE", "UTC")),
        interval_seconds=float(app.config.get("RATE_POLL_INTERVAL_SECONDS", DEFAULT_INTERVAL_SECONDS)),
    )

    app.extensions[CACHE_EXT_KEY] = cache
    app.extensions[FEED_EXT_KEY] = feed
    app.extensions[SYNCHRONIZER_EXT_KEY] = synchronizer

    if not app.config.get("SYNC_ENABLED", True):
        logger.info("Rate synchronizer disabled via configuration.")
        return synchronizer

    synchronizer.hydrate(read_server_snapshot(source))
    synchronizer.start()
    atexit.register(synchronizer.stop)
    return synchronizer


def get_synchronizer(app) -> RateSynchronizer | None:
    return app.extensions.get(SYNCHRONIZER_EXT_KEY)


def status_payload(synchronizer: RateSynchronizer | None) -> dict[str, Any]:
    """Summarize cache and polling state for the health endpoint."""

    if synchronizer is None:
        return {"status": "uninitialized"}

    sync_status = synchronizer.status()
    entry = synchronizer.cache.entry()
    if entry.written_at is None:
        state = "uninitialized"
    elif entry.rate is None:
        state = "no_active_rate"
    else:
        state = "ok"

    return {
        "status": state,
        "source": synchronizer.source_name,
        "signature": entry.signature,
        "last_updated": entry.rate.updated_at.isoformat() if entry.rate else None,
        "cached_at": entry.written_at.isoformat() if entry.written_at else None,
        "last_success": sync_status.last_success.isoformat() if sync_status.last_success else None,
        "last_failure": sync_status.last_failure.isoformat() if sync_status.last_failure else None,
        "last_error": sync_status.last_error,
        "running": sync_status.running,
        "interval_seconds": sync_status.interval_seconds,
    }
