"""Interval scheduling for the rate polling loop."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Callable

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

logger = logging.getLogger(__name__)

REFRESH_JOB_ID = "refresh_exchange_rate"


class Ticker(ABC):
    """Calls a callback repeatedly at a fixed interval until cancelled."""

    @abstractmethod
    def schedule(self, callback: Callable[[], object], interval_seconds: float) -> None:
        """Arm the repeating callback; the first call happens one interval from now."""

    @abstractmethod
    def cancel(self) -> None:
        """Stop firing; must be safe to call more than once."""

    @property
    @abstractmethod
    def running(self) -> bool:
        """Whether the callback is currently armed."""


class APSchedulerTicker(Ticker):
    """Ticker backed by an APScheduler background scheduler."""

    def __init__(
        self,
        timezone: str = "UTC",
        scheduler: BackgroundScheduler | None = None,
    ) -> None:
        self._scheduler = scheduler or BackgroundScheduler(timezone=timezone)
        self._cancelled = False

    @property
    def scheduler(self) -> BackgroundScheduler:
        return self._scheduler

    @property
    def running(self) -> bool:
        return not self._cancelled and bool(getattr(self._scheduler, "running", False))

    def schedule(self, callback: Callable[[], object], interval_seconds: float) -> None:
        if self._cancelled:
            logger.warning("Ticker already cancelled; ignoring schedule request.")
            return
        self._scheduler.add_job(
            callback,
            trigger=IntervalTrigger(seconds=interval_seconds),
            id=REFRESH_JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        if not self._scheduler.running:
            self._scheduler.start()
        logger.info("Rate polling armed every %ss", interval_seconds)

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        if getattr(self._scheduler, "running", False):
            self._scheduler.shutdown(wait=False)
        logger.info("Rate polling cancelled")
