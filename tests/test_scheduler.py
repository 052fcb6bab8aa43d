from datetime import datetime

import pytz

import scheduler
from scheduler import PrayerScheduler, local_timezone_name, next_refresh_time


def test_next_refresh_time_from_naive_reference():
    refresh = next_refresh_time(datetime(2026, 10, 19, 21, 30), "Asia/Jakarta")

    assert refresh.strftime("%Y-%m-%d %H:%M") == "2026-10-20 00:05"
    assert refresh.tzinfo.zone == "Asia/Jakarta"


def test_next_refresh_time_converts_aware_reference():
    reference = pytz.UTC.localize(datetime(2026, 10, 19, 20, 0))

    refresh = next_refresh_time(reference, "Asia/Jakarta")

    assert refresh.strftime("%Y-%m-%d %H:%M") == "2026-10-21 00:05"


def test_local_timezone_falls_back_to_utc(monkeypatch):
    monkeypatch.setattr(scheduler, "get_localzone_name", lambda: "Not/AZone")

    assert local_timezone_name() == "UTC"


def test_schedule_refresh_replaces_previous_job():
    prayer_scheduler = PrayerScheduler(timezone="Asia/Jakarta")
    run_at = next_refresh_time(datetime(2026, 10, 19, 21, 30), "Asia/Jakarta")

    prayer_scheduler.schedule_refresh(run_at, lambda: None)
    prayer_scheduler.schedule_refresh(run_at, lambda: None)

    assert len(prayer_scheduler._scheduler.get_jobs()) == 1
    assert prayer_scheduler.timezone == "Asia/Jakarta"


def test_cancel_refresh_tolerates_missing_job():
    prayer_scheduler = PrayerScheduler(timezone="UTC")
    run_at = next_refresh_time(datetime(2026, 10, 19, 21, 30), "UTC")
    prayer_scheduler.schedule_refresh(run_at, lambda: None)
    prayer_scheduler._scheduler.remove_all_jobs()

    prayer_scheduler.cancel_refresh()

    assert prayer_scheduler._scheduler.get_jobs() == []
