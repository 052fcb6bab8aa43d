"""UI components for the prayer times application."""

from .window import PrayerTimesWindow
from .city_selector import CitySelectorDialog

__all__ = ["PrayerTimesWindow", "CitySelectorDialog"]
