import json
import logging
import os
from datetime import date, datetime

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

try:
    from PyQt5 import QtWidgets
except Exception:  # pragma: no cover - fallback path
    try:
        from PySide2 import QtWidgets
    except Exception:  # pragma: no cover - fallback path
        from PySide6 import QtWidgets

import pytest

from countdown import ADZAN_LABEL, CountdownView, PrayerClock
from main import SELECTED_CITY_KEY, PrayerApp
from prayer_times import City, PrayerDay
from storage import MemoryStore
from ui import CitySelectorDialog, PrayerTimesWindow

SCHEDULE = {
    "subuh": "04:30",
    "dhuha": "06:00",
    "dzuhur": "12:00",
    "ashar": "15:15",
    "maghrib": "18:00",
    "isya": "19:15",
}


@pytest.fixture(scope="module")
def qt_app():
    app = QtWidgets.QApplication.instance()
    if app is None:
        app = QtWidgets.QApplication([])
    yield app


class _DummyWindow:
    def __init__(self) -> None:
        self.countdowns: list = []
        self.prayers: list = []
        self.extra_times: list = []
        self.dates: list[str] = []
        self.status_messages: list[str] = []

    def update_countdown(self, view) -> None:
        self.countdowns.append(view)

    def update_location(self, location: str, region: str) -> None:
        return None

    def update_date(self, text: str) -> None:
        self.dates.append(text)

    def update_prayers(self, prayers) -> None:
        self.prayers.append(list(prayers))

    def update_extra_times(self, times) -> None:
        self.extra_times.append(dict(times))

    def update_verse(self, verse) -> None:
        return None

    def update_hadith(self, hadith) -> None:
        return None

    def set_status(self, text: str) -> None:
        self.status_messages.append(text)


class _DummyAudio:
    def __init__(self) -> None:
        self.plays: list[float] = []
        self.stops = 0

    def play(self, offset_seconds: float = 0) -> bool:
        self.plays.append(offset_seconds)
        return True

    def stop(self) -> None:
        self.stops += 1


class _DummyTimer:
    def __init__(self) -> None:
        self.active = True

    def stop(self) -> None:
        self.active = False

    def start(self, interval: int) -> None:
        self.active = True


class _DummyScheduler:
    timezone = "Asia/Jakarta"

    def __init__(self) -> None:
        self.refreshes: list = []
        self.cancelled = 0

    def schedule_refresh(self, next_run, callback) -> None:
        self.refreshes.append(next_run)

    def cancel_refresh(self) -> None:
        self.cancelled += 1


class _AppHarness:
    def __init__(self, now: datetime) -> None:
        self.window = _DummyWindow()
        self.state_store = MemoryStore()
        self.audio = _DummyAudio()
        self.prayer_clock = PrayerClock(self.audio, self.state_store, clock=lambda: now)
        self.prayer_clock.set_schedule(SCHEDULE)
        self.countdown_timer = _DummyTimer()
        self.scheduler = None
        self.current_city = City("1301", "KOTA JAKARTA")
        self.current_prayer_day = PrayerDay(
            city_id="1301",
            location="KOTA JAKARTA",
            region="DKI JAKARTA",
            gregorian_date=date(2026, 10, 19),
            schedule=dict(SCHEDULE),
            extra_times={"imsak": "04:20", "terbit": "05:40"},
        )
        self.selector_opened = 0
        self.selected: list = []

    def open_city_selector(self) -> None:
        self.selector_opened += 1

    def select_city(self, city: City, save: bool = True) -> None:
        self.selected.append((city, save))

    def update_countdown(self) -> None:
        PrayerApp.update_countdown(self)

    def _ensure_scheduler(self) -> None:
        if self.scheduler is None:
            self.scheduler = _DummyScheduler()

    _format_gregorian_date = staticmethod(PrayerApp._format_gregorian_date)


def test_update_countdown_renders_clock_view():
    harness = _AppHarness(datetime(2026, 10, 19, 11, 45))

    PrayerApp.update_countdown(harness)

    assert harness.window.countdowns[-1] == CountdownView("dzuhur", "15 menit lagi", False)


def test_update_countdown_announces_at_prayer_time():
    harness = _AppHarness(datetime(2026, 10, 19, 12, 0, 0))

    PrayerApp.update_countdown(harness)

    view = harness.window.countdowns[-1]
    assert view.announcing is True
    assert view.remaining_label == ADZAN_LABEL
    assert harness.audio.plays == [0]


def test_update_countdown_without_schedule_clears_view():
    harness = _AppHarness(datetime(2026, 10, 19, 11, 45))
    harness.current_prayer_day = None

    PrayerApp.update_countdown(harness)

    assert harness.window.countdowns == [None]


def test_restore_city_uses_saved_choice():
    harness = _AppHarness(datetime(2026, 10, 19, 11, 45))
    harness.state_store.set(SELECTED_CITY_KEY, json.dumps({"id": "1609", "lokasi": "KOTA BANDUNG"}))

    PrayerApp._restore_city(harness)

    assert harness.selected == [(City("1609", "KOTA BANDUNG"), False)]
    assert harness.selector_opened == 0


def test_restore_city_discards_malformed_choice():
    harness = _AppHarness(datetime(2026, 10, 19, 11, 45))
    harness.state_store.set(SELECTED_CITY_KEY, "{broken")

    PrayerApp._restore_city(harness)

    assert harness.state_store.get(SELECTED_CITY_KEY) is None
    assert harness.selector_opened == 1
    assert harness.selected == []


def test_change_city_stops_countdown_and_audio():
    harness = _AppHarness(datetime(2026, 10, 19, 12, 0))
    harness.state_store.set(SELECTED_CITY_KEY, json.dumps({"id": "1301", "lokasi": "KOTA JAKARTA"}))
    PrayerApp.update_countdown(harness)
    stops_before = harness.audio.stops

    PrayerApp.change_city(harness)

    assert harness.countdown_timer.active is False
    assert harness.audio.stops == stops_before + 1
    assert harness.current_city is None
    assert harness.current_prayer_day is None
    assert harness.state_store.get(SELECTED_CITY_KEY) is None
    assert harness.window.extra_times[-1] == {}
    assert harness.window.countdowns[-1] is None
    assert harness.selector_opened == 1


def test_refresh_success_renders_day_and_starts_countdown():
    harness = _AppHarness(datetime(2026, 10, 19, 11, 45))
    prayer_day = harness.current_prayer_day
    harness.current_prayer_day = None
    harness.countdown_timer.active = False

    PrayerApp._handle_refresh_success(harness, (prayer_day, None, None))

    assert harness.current_prayer_day is prayer_day
    assert harness.window.dates[-1] == "Senin, 19 Oktober 2026"
    assert harness.window.extra_times[-1] == {"imsak": "04:20", "terbit": "05:40"}
    assert harness.window.countdowns[-1] == CountdownView("dzuhur", "15 menit lagi", False)
    assert harness.countdown_timer.active is True
    assert len(harness.scheduler.refreshes) == 1


def test_format_gregorian_date_in_indonesian():
    assert PrayerApp._format_gregorian_date(date(2026, 10, 19)) == "Senin, 19 Oktober 2026"


def test_apply_log_level_falls_back_to_debug(caplog: pytest.LogCaptureFixture):
    root = logging.getLogger()
    previous = root.level
    try:
        assert PrayerApp._apply_log_level("info") == logging.INFO
        assert root.level == logging.INFO

        with caplog.at_level(logging.WARNING, logger="main"):
            assert PrayerApp._apply_log_level("verbose") == logging.DEBUG
        assert root.level == logging.DEBUG
        assert "Unknown log level" in caplog.text
    finally:
        root.setLevel(previous)


def test_window_shows_imsak_and_terbit(qt_app: QtWidgets.QApplication):
    window = PrayerTimesWindow()

    window.update_extra_times({"imsak": "04:20", "terbit": "05:40"})

    assert window.extra_times_label.text() == "Imsak 04:20   |   Terbit 05:40"

    window.update_extra_times({})

    assert window.extra_times_label.text() == ""


def test_window_highlights_announcing_prayer(qt_app: QtWidgets.QApplication):
    window = PrayerTimesWindow()
    window.update_prayers(list(SCHEDULE.items()))

    window.update_countdown(CountdownView("dzuhur", ADZAN_LABEL, True))
    qt_app.processEvents()

    assert window.announcing is True
    assert window.countdown_title.text() == "Waktu Sholat"
    assert window.countdown_prayer_label.text() == "Dzuhur"
    assert window.countdown_remaining_label.text() == ADZAN_LABEL
    assert window.prayer_cards["dzuhur"][0].property("active") is True
    assert window.prayer_cards["ashar"][0].property("active") is False

    window.update_countdown(CountdownView("ashar", "3 jam 15 menit lagi", False))

    assert window.announcing is False
    assert window.countdown_title.text() == "Menuju Waktu Sholat"


def test_city_selector_filters_and_emits(qt_app: QtWidgets.QApplication):
    dialog = CitySelectorDialog()
    cities = [City("1301", "KOTA JAKARTA"), City("1609", "KOTA BANDUNG")]
    chosen: list = []
    dialog.city_selected.connect(chosen.append)

    dialog.set_cities(cities)
    dialog.search_edit.setText("band")
    qt_app.processEvents()

    assert dialog.visible_cities() == [cities[1]]
    assert dialog.city_list.count() == 1

    dialog.city_list.itemClicked.emit(dialog.city_list.item(0))

    assert chosen == [cities[1]]

    dialog.search_edit.setText("surabaya")
    assert dialog.city_list.count() == 0
    assert dialog.message_label.text() == "Tidak ada kota yang sesuai dengan pencarian"
