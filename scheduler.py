"""Scheduling utilities for the daily prayer schedule refresh."""
from __future__ import annotations

import logging
from contextlib import suppress
from datetime import datetime, time as time_module, timedelta
from typing import Callable, Optional

import pytz
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.date import DateTrigger
from tzlocal import get_localzone_name

LOGGER = logging.getLogger(__name__)

REFRESH_TIME = time_module(hour=0, minute=5)


def local_timezone_name() -> str:
    """Return the device timezone name, falling back to UTC when unknown."""
    try:
        timezone_name = get_localzone_name()
    except Exception:  # pragma: no cover - platform dependent
        LOGGER.warning("Unable to determine local timezone; defaulting to UTC", exc_info=True)
        return "UTC"
    try:
        pytz.timezone(timezone_name)
    except pytz.UnknownTimeZoneError:
        LOGGER.warning("Unknown timezone '%s'; falling back to UTC", timezone_name)
        return "UTC"
    return timezone_name


def next_refresh_time(reference: datetime, timezone_name: str) -> datetime:
    """Return 00:05 on the day after ``reference`` in ``timezone_name``."""
    tzinfo = pytz.timezone(timezone_name)
    if reference.tzinfo is not None:
        reference = reference.astimezone(tzinfo)
    next_day = reference.date() + timedelta(days=1)
    return tzinfo.localize(datetime.combine(next_day, REFRESH_TIME))


class PrayerScheduler:
    """Wrap APScheduler to run the once-a-day schedule refresh."""

    def __init__(self, timezone: Optional[str] = None) -> None:
        self._scheduler = BackgroundScheduler(timezone=timezone or local_timezone_name())
        self._refresh_job_id: Optional[str] = None

    def start(self) -> None:
        if not self._scheduler.running:
            LOGGER.info("Starting background scheduler")
            self._scheduler.start()

    def shutdown(self) -> None:
        if self._scheduler.running:
            LOGGER.info("Stopping background scheduler")
            self._scheduler.shutdown(wait=False)

    @property
    def timezone(self) -> str:
        tzinfo = self._scheduler.timezone
        zone = getattr(tzinfo, "zone", None) or getattr(tzinfo, "key", None)
        return str(zone or tzinfo)

    def schedule_refresh(self, next_run: datetime, refresh_callback: Callable[[], None]) -> None:
        """Schedule a single refresh job, replacing any existing one."""
        self.cancel_refresh()
        trigger = DateTrigger(run_date=next_run)
        job = self._scheduler.add_job(refresh_callback, trigger=trigger)
        LOGGER.debug("Scheduled refresh job %s at %s", job.id, next_run)
        self._refresh_job_id = job.id

    def cancel_refresh(self) -> None:
        if not self._refresh_job_id:
            return
        LOGGER.debug("Removing existing refresh job %s", self._refresh_job_id)
        with suppress(JobLookupError):
            self._scheduler.remove_job(self._refresh_job_id)
        self._refresh_job_id = None
