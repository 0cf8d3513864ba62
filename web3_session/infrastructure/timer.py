"""
Named timers on an asyncio scheduler.

Each timer is an APScheduler job keyed by its name. Creating a timer with a name
that is already scheduled replaces it. Ticks of one timer never overlap.
"""

import inspect
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger

logger = logging.getLogger(__name__)


@dataclass
class TimerHandle:
    """Cancellation handle returned by TimerService.create_timer()"""
    name: str
    interval_ms: int
    recurring: bool
    service: "TimerService"

    def cancel(self) -> bool:
        return self.service.cancel_timer(self.name)

    @property
    def active(self) -> bool:
        return self.service.is_active(self.name)


class TimerService:
    """
    Manages named timers for a service instance.

    Usage:
        timers = TimerService()
        handle = timers.create_timer("poll", 500, True, poll_node)
        ...
        handle.cancel()
    """

    def __init__(self, scheduler: Optional[AsyncIOScheduler] = None):
        self.scheduler = scheduler or AsyncIOScheduler()

    def _ensure_started(self):
        # AsyncIOScheduler binds to the running loop on start
        if not self.scheduler.running:
            self.scheduler.start()
            logger.info("⏰ Timer scheduler started")

    def create_timer(
        self,
        name: str,
        interval_ms: int,
        recurring: bool,
        on_tick: Callable[[], Any]
    ) -> TimerHandle:
        """
        Schedule ``on_tick`` every ``interval_ms`` (or once, if not recurring).
        ``on_tick`` may be a plain function or return an awaitable.
        """
        self._ensure_started()

        async def tick():
            result = on_tick()
            if inspect.isawaitable(result):
                await result

        interval = timedelta(milliseconds=interval_ms)
        if recurring:
            trigger = IntervalTrigger(seconds=interval.total_seconds())
        else:
            trigger = DateTrigger(run_date=datetime.now(self.scheduler.timezone) + interval)

        self.scheduler.add_job(
            tick,
            trigger,
            id=name,
            name=name,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=None,
        )
        logger.debug(f"⏰ Timer '{name}' scheduled ({interval_ms}ms, recurring={recurring})")

        return TimerHandle(name=name, interval_ms=interval_ms, recurring=recurring, service=self)

    def cancel_timer(self, name: str) -> bool:
        """Stop a timer. An in-flight tick completes. Returns False if it was not scheduled."""
        try:
            self.scheduler.remove_job(name)
        except JobLookupError:
            return False
        logger.debug(f"⏰ Timer '{name}' cancelled")
        return True

    def is_active(self, name: str) -> bool:
        return self.scheduler.get_job(name) is not None

    def shutdown(self):
        """Stop the scheduler and drop all timers"""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("⏰ Timer scheduler stopped")
