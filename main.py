"""Entry point for the Sholatyuk prayer times desktop application."""
from __future__ import annotations

import json
import logging
import sys
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

try:  # Prefer PyQt5, fall back to Qt for Python if available
    from PyQt5 import QtCore, QtWidgets  # type: ignore
except Exception:  # pragma: no cover - fallback only used when PyQt5 missing
    try:
        from PySide2 import QtCore, QtWidgets  # type: ignore
    except Exception:
        from PySide6 import QtCore, QtWidgets  # type: ignore

try:  # Compatibility alias for Qt signal and slot decorators
    Signal = QtCore.pyqtSignal  # type: ignore[attr-defined]
    Slot = QtCore.pyqtSlot  # type: ignore[attr-defined]
except AttributeError:  # pragma: no cover - PySide compatibility
    Signal = QtCore.Signal  # type: ignore[attr-defined]
    Slot = QtCore.Slot  # type: ignore[attr-defined]

from adhan_player import AdhanPlayer
from countdown import PrayerClock
from inspiration import Hadith, InspirationService, QuranVerse
from prayer_times import MYQURAN_BASE_URL, City, PrayerDay, PrayerTimesService, city_from_record
from scheduler import PrayerScheduler, next_refresh_time
from storage import JsonFileStore
from ui import CitySelectorDialog, PrayerTimesWindow

APP_ROOT = Path(__file__).parent
CONFIG_PATH = APP_ROOT / "config.json"
SELECTED_CITY_KEY = "selectedCity"
TICK_INTERVAL_MS = 1000

DEFAULT_CONFIG: Dict[str, Any] = {
    "api_base_url": MYQURAN_BASE_URL,
    "adzan_audio": "assets/adzan.mp3",
    "state_file": "state.json",
    "log_level": "DEBUG",
    "request_timeout": 10,
}

ID_WEEKDAYS = ["Senin", "Selasa", "Rabu", "Kamis", "Jumat", "Sabtu", "Minggu"]

ID_MONTHS = [
    "Januari",
    "Februari",
    "Maret",
    "April",
    "Mei",
    "Juni",
    "Juli",
    "Agustus",
    "September",
    "Oktober",
    "November",
    "Desember",
]

logging.basicConfig(level=logging.DEBUG, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
LOGGER = logging.getLogger(__name__)


class _AsyncDispatcher(QtCore.QObject):
    """Provide main-thread delivery for background task callbacks."""

    success = Signal(object)
    error = Signal(object)

    def __init__(
        self,
        owner: "PrayerApp",
        on_success: Callable[[Any], None],
        on_error: Callable[[Exception], None],
    ) -> None:
        super().__init__()
        self._owner = owner
        self._on_success = on_success
        self._on_error = on_error
        self.success.connect(self._handle_success)  # type: ignore[attr-defined]
        self.error.connect(self._handle_error)  # type: ignore[attr-defined]

    @Slot(object)
    def _handle_success(self, result: Any) -> None:
        try:
            self._on_success(result)
        finally:
            self._owner._async_dispatchers.discard(self)
            self.deleteLater()

    @Slot(object)
    def _handle_error(self, exc: Exception) -> None:
        try:
            self._on_error(exc)
        finally:
            self._owner._async_dispatchers.discard(self)
            self.deleteLater()


class PrayerApp(QtWidgets.QApplication):
    """Coordinates the window, the countdown clock, and background fetches."""

    def __init__(self, argv: list[str]) -> None:
        super().__init__(argv)
        self.setApplicationName("Sholatyuk")

        self._config: Dict[str, Any] = {**DEFAULT_CONFIG, **self._load_json(CONFIG_PATH, default={})}
        self._apply_log_level(self._config.get("log_level", "DEBUG"))
        LOGGER.debug("Loaded config keys: %s", list(self._config.keys()))

        self._executor = ThreadPoolExecutor(max_workers=3)
        self._async_dispatchers: Set[_AsyncDispatcher] = set()

        base_url = str(self._config["api_base_url"])
        timeout = float(self._config["request_timeout"])
        self.prayer_service = PrayerTimesService(base_url=base_url, timeout=timeout)
        self.inspiration_service = InspirationService(base_url=base_url, timeout=timeout)

        self.state_store = JsonFileStore(APP_ROOT / str(self._config["state_file"]))
        self.adhan_player = AdhanPlayer(str(APP_ROOT / str(self._config["adzan_audio"])))
        self.prayer_clock = PrayerClock(self.adhan_player, self.state_store)

        self.current_city: Optional[City] = None
        self.current_prayer_day: Optional[PrayerDay] = None
        self.current_verse: Optional[QuranVerse] = None
        self.current_hadith: Optional[Hadith] = None
        self._cities: List[City] = []
        self.scheduler: Optional[PrayerScheduler] = None

        self.window = PrayerTimesWindow()
        self.window.on_change_city(self.change_city)
        self.window.on_refresh_verse(self.refresh_verse)
        self.window.on_refresh_hadith(self.refresh_hadith)
        self.window.show()

        self.city_dialog = CitySelectorDialog(self.window)
        self.city_dialog.city_selected.connect(self.select_city)  # type: ignore
        self.city_dialog.retry_requested.connect(self._load_cities)  # type: ignore

        self.countdown_timer = QtCore.QTimer(self)
        self.countdown_timer.timeout.connect(self.update_countdown)  # type: ignore

        self.aboutToQuit.connect(self._cleanup)  # type: ignore

        QtCore.QTimer.singleShot(100, self._restore_city)

    # ------------------------------------------------------------------
    def _restore_city(self) -> None:
        raw = self.state_store.get(SELECTED_CITY_KEY)
        city: Optional[City] = None
        if raw:
            try:
                city = city_from_record(json.loads(raw))
            except ValueError:
                LOGGER.error("Error loading saved city: %r", raw)
            if city is None:
                self.state_store.delete(SELECTED_CITY_KEY)

        if city is None:
            self.open_city_selector()
            return
        LOGGER.info("Restoring saved city %s (%s)", city.name, city.id)
        self.select_city(city, save=False)

    def open_city_selector(self) -> None:
        if self._cities:
            self.city_dialog.set_cities(self._cities)
        else:
            self.city_dialog.show_loading()
            self._load_cities()
        self.city_dialog.show()

    def _load_cities(self) -> None:
        def on_success(cities: List[City]) -> None:
            self._cities = cities
            self.city_dialog.set_cities(cities)

        def on_error(exc: Exception) -> None:
            LOGGER.error("Error getting cities", exc_info=exc)
            self.city_dialog.show_error("Gagal memuat data kota. Silakan coba lagi.")

        self._run_async(self.prayer_service.fetch_cities, on_success, on_error)

    def select_city(self, city: City, save: bool = True) -> None:
        LOGGER.info("Selected city %s (%s)", city.name, city.id)
        self.current_city = city
        if save:
            self.state_store.set(SELECTED_CITY_KEY, json.dumps(city.to_record()))
        self.refresh_prayer_times()

    def change_city(self) -> None:
        LOGGER.info("Clearing selected city")
        self.state_store.delete(SELECTED_CITY_KEY)
        self.countdown_timer.stop()
        self.prayer_clock.dispose()
        if self.scheduler:
            self.scheduler.cancel_refresh()
        self.current_city = None
        self.current_prayer_day = None
        self.window.update_location("", "")
        self.window.update_date("")
        self.window.update_prayers([])
        self.window.update_extra_times({})
        self.window.update_countdown(None)
        self.window.set_status("")
        self.open_city_selector()

    def refresh_prayer_times(self) -> None:
        city = self.current_city
        if city is None:
            return
        self.window.set_status("Memuat jadwal sholat...")

        def task() -> Tuple[PrayerDay, Optional[QuranVerse], Optional[Hadith]]:
            prayer_day = self.prayer_service.fetch_prayer_times(city.id)

            verse: Optional[QuranVerse] = None
            hadith: Optional[Hadith] = None
            try:
                verse = self.inspiration_service.fetch_random_verse()
            except Exception:  # pragma: no cover - network failure handled gracefully
                LOGGER.warning("Random verse fetch failed", exc_info=True)
            try:
                hadith = self.inspiration_service.fetch_random_hadith()
            except Exception:  # pragma: no cover - network failure handled gracefully
                LOGGER.warning("Random hadith fetch failed", exc_info=True)
            return prayer_day, verse, hadith

        self._run_async(task, self._handle_refresh_success, self._handle_refresh_error)

    def _handle_refresh_success(self, result: Tuple[PrayerDay, Optional[QuranVerse], Optional[Hadith]]) -> None:
        prayer_day, verse, hadith = result
        LOGGER.info("Prayer times refreshed for %s", prayer_day.location)
        self.current_prayer_day = prayer_day
        self.current_verse = verse
        self.current_hadith = hadith

        self.window.update_location(prayer_day.location, prayer_day.region)
        self.window.update_date(self._format_gregorian_date(prayer_day.gregorian_date))
        self.window.update_prayers(prayer_day.display_times())
        self.window.update_extra_times(prayer_day.extra_times)
        self.window.update_verse(verse)
        self.window.update_hadith(hadith)
        self.window.set_status("")

        self.countdown_timer.stop()
        self.prayer_clock.set_schedule(prayer_day.schedule)
        self.update_countdown()
        self.countdown_timer.start(TICK_INTERVAL_MS)

        self._ensure_scheduler()
        assert self.scheduler is not None
        refresh_time = next_refresh_time(datetime.now().astimezone(), self.scheduler.timezone)
        self.scheduler.schedule_refresh(refresh_time, lambda: QtCore.QTimer.singleShot(0, self.refresh_prayer_times))

    def _handle_refresh_error(self, error: Exception) -> None:
        LOGGER.error("Failed to refresh prayer times", exc_info=error)
        if isinstance(error, RuntimeError):
            message = str(error)
        else:
            message = "Terjadi kesalahan saat memuat data. Silakan coba lagi."
        self.window.set_status(message)
        if self.current_prayer_day is None:
            self.countdown_timer.stop()
            self.prayer_clock.dispose()
            self.window.update_countdown(None)

        choice = QtWidgets.QMessageBox.warning(
            self.window,
            "Kesalahan",
            message,
            QtWidgets.QMessageBox.Retry | QtWidgets.QMessageBox.Close,
        )
        if choice == QtWidgets.QMessageBox.Retry:
            self.refresh_prayer_times()

    def update_countdown(self) -> None:
        if not self.current_prayer_day:
            self.window.update_countdown(None)
            return
        self.window.update_countdown(self.prayer_clock.refresh())

    def refresh_verse(self) -> None:
        self.window.set_refreshing("quran", True)

        def on_success(verse: QuranVerse) -> None:
            self.current_verse = verse
            self.window.update_verse(verse)
            self.window.set_refreshing("quran", False)

        def on_error(exc: Exception) -> None:
            LOGGER.error("Error refreshing verse", exc_info=exc)
            self.window.set_refreshing("quran", False)

        self._run_async(self.inspiration_service.fetch_random_verse, on_success, on_error)

    def refresh_hadith(self) -> None:
        self.window.set_refreshing("hadith", True)

        def on_success(hadith: Hadith) -> None:
            self.current_hadith = hadith
            self.window.update_hadith(hadith)
            self.window.set_refreshing("hadith", False)

        def on_error(exc: Exception) -> None:
            LOGGER.error("Error refreshing hadith", exc_info=exc)
            self.window.set_refreshing("hadith", False)

        self._run_async(self.inspiration_service.fetch_random_hadith, on_success, on_error)

    # ------------------------------------------------------------------
    def _ensure_scheduler(self) -> None:
        if self.scheduler:
            return
        self.scheduler = PrayerScheduler()
        self.scheduler.start()
        LOGGER.debug("Started scheduler for timezone %s", self.scheduler.timezone)

    @staticmethod
    def _apply_log_level(name: Any) -> int:
        level = logging.getLevelName(str(name).upper())
        if not isinstance(level, int):
            LOGGER.warning("Unknown log level %r in config; using DEBUG", name)
            level = logging.DEBUG
        logging.getLogger().setLevel(level)
        return level

    @staticmethod
    def _format_gregorian_date(day: date) -> str:
        weekday = ID_WEEKDAYS[day.weekday()]
        month = ID_MONTHS[day.month - 1]
        return f"{weekday}, {day.day} {month} {day.year}"

    def _run_async(self, func, on_success, on_error) -> None:
        LOGGER.debug("Submitting background task %s", getattr(func, "__name__", func))
        dispatcher = _AsyncDispatcher(self, on_success, on_error)
        self._async_dispatchers.add(dispatcher)
        future = self._executor.submit(func)

        def _done(future_result) -> None:
            try:
                result = future_result.result()
            except Exception as exc:  # pragma: no cover - UI glue
                LOGGER.exception("Background task %s raised an exception", getattr(func, "__name__", func), exc_info=exc)
                dispatcher.error.emit(exc)
            else:
                dispatcher.success.emit(result)

        future.add_done_callback(_done)

    @staticmethod
    def _load_json(path: Path, default: Dict[str, Any]) -> Dict[str, Any]:
        if not path.exists():
            return default
        with path.open("r", encoding="utf-8") as handle:
            return json.load(handle)

    def _cleanup(self) -> None:
        self.countdown_timer.stop()
        self.prayer_clock.dispose()
        if self.scheduler:
            self.scheduler.shutdown()
        self._executor.shutdown(wait=False)


def main() -> int:
    app = PrayerApp(sys.argv)
    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
