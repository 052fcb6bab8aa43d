"""Utilities for listing cities and fetching daily prayer times from MyQuran."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional

import requests

LOGGER = logging.getLogger(__name__)

MYQURAN_BASE_URL = "https://api.myquran.com/v2"
PRAYER_ORDER = ["subuh", "dhuha", "dzuhur", "ashar", "maghrib", "isya"]
MISSING_TIME = "-"


@dataclass
class City:
    id: str
    name: str

    def to_record(self) -> Dict[str, str]:
        return {"id": self.id, "lokasi": self.name}


@dataclass
class PrayerDay:
    city_id: str
    location: str
    region: str
    gregorian_date: date
    schedule: Dict[str, str]
    extra_times: Dict[str, str] = field(default_factory=dict)

    def display_times(self) -> List[tuple[str, str]]:
        """Return the six prayers in display order, using ``-`` for gaps."""
        return [(prayer, self.schedule.get(prayer) or MISSING_TIME) for prayer in PRAYER_ORDER]


class PrayerTimesService:
    """Fetches the city catalogue and daily schedules from the MyQuran API."""

    def __init__(self, base_url: str = MYQURAN_BASE_URL, timeout: float = 10) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def fetch_cities(self) -> List[City]:
        url = f"{self.base_url}/sholat/kota/semua"
        LOGGER.debug("Requesting city catalogue from %s", url)
        response = requests.get(url, timeout=self.timeout)
        LOGGER.debug("City catalogue response status: %s", response.status_code)
        response.raise_for_status()

        payload = response.json()
        records = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(records, list) or payload.get("status") is not True:
            raise RuntimeError("Gagal memuat data kota")

        cities = [
            City(id=str(record["id"]), name=str(record["lokasi"]))
            for record in records
            if isinstance(record, dict) and record.get("id") is not None and record.get("lokasi")
        ]
        LOGGER.debug("Loaded %d cities", len(cities))
        return cities

    def fetch_prayer_times(self, city_id: str, target_date: Optional[date] = None) -> PrayerDay:
        target_date = target_date or date.today()
        url = f"{self.base_url}/sholat/jadwal/{city_id}/{target_date.strftime('%Y-%m-%d')}"
        LOGGER.debug("Fetching prayer times for city %s (date=%s)", city_id, target_date)
        response = requests.get(url, timeout=self.timeout)
        LOGGER.debug("Prayer times response status: %s", response.status_code)
        response.raise_for_status()

        payload = response.json()
        data: Dict[str, Any] = (payload.get("data") if isinstance(payload, dict) else None) or {}
        if not data or payload.get("status") is not True:
            raise RuntimeError("Gagal mendapatkan jadwal sholat")
        jadwal = data.get("jadwal")
        if not isinstance(jadwal, dict) or not data.get("id") or not data.get("lokasi"):
            LOGGER.error("Missing required fields in prayer times data: %s", data)
            raise RuntimeError("Gagal mendapatkan jadwal sholat")

        schedule = {prayer: str(jadwal[prayer]) for prayer in PRAYER_ORDER if jadwal.get(prayer)}
        extra_times = {key: str(jadwal[key]) for key in ("imsak", "terbit") if jadwal.get(key)}
        LOGGER.debug("Parsed schedule for %s: %s", data.get("lokasi"), schedule)

        return PrayerDay(
            city_id=str(data["id"]),
            location=str(data["lokasi"]),
            region=str(data.get("daerah", "")),
            gregorian_date=_parse_iso_date(jadwal.get("date")) or target_date,
            schedule=schedule,
            extra_times=extra_times,
        )


def search_cities(cities: Iterable[City], term: str) -> List[City]:
    """Case-insensitive substring match on the city name."""
    needle = term.strip().lower()
    if not needle:
        return list(cities)
    return [city for city in cities if needle in city.name.lower()]


def city_from_record(value: Optional[object]) -> Optional[City]:
    """Build a :class:`City` from a stored ``{"id", "lokasi"}`` mapping."""
    if not isinstance(value, dict):
        return None
    city_id = value.get("id")
    name = value.get("lokasi")
    if city_id in (None, "") or not name:
        return None
    return City(id=str(city_id), name=str(name))


def _parse_iso_date(value: Optional[object]) -> Optional[date]:
    try:
        return datetime.strptime(str(value), "%Y-%m-%d").date() if value else None
    except (TypeError, ValueError):
        return None
