"""Random Quran verse and hadith retrieval for the home page."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict

import requests

from prayer_times import MYQURAN_BASE_URL

LOGGER = logging.getLogger(__name__)


@dataclass
class QuranVerse:
    """A single ayah with its Indonesian translation."""

    surah_name: str
    arabic: str
    translation: str
    number: int

    @property
    def reference(self) -> str:
        return f"QS. {self.surah_name}: {self.number}"


@dataclass
class Hadith:
    narrator: str
    number: int
    arabic: str
    translation: str

    @property
    def reference(self) -> str:
        return f"{self.narrator} No. {self.number}"


class InspirationService:
    """Fetches random verses and hadith from the MyQuran API."""

    def __init__(self, base_url: str = MYQURAN_BASE_URL, timeout: float = 10) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def fetch_random_verse(self) -> QuranVerse:
        payload = self._get("quran/ayat/acak")
        data = payload.get("data") or {}
        surah = ((data.get("info") or {}).get("surat") or {})
        surah_name = (surah.get("nama") or {}).get("id")
        ayat = data.get("ayat") or {}
        if payload.get("status") is not True or not (surah_name and ayat.get("arab") and ayat.get("text") and ayat.get("ayah")):
            LOGGER.error("Missing required fields in Quran data: %s", data)
            raise RuntimeError("Gagal mendapatkan ayat Al-Quran")

        try:
            number = int(ayat["ayah"])
        except (TypeError, ValueError) as exc:
            raise RuntimeError(f"Invalid ayah number: {ayat['ayah']!r}") from exc

        return QuranVerse(
            surah_name=str(surah_name),
            arabic=str(ayat["arab"]),
            translation=str(ayat["text"]),
            number=number,
        )

    def fetch_random_hadith(self) -> Hadith:
        payload = self._get("hadits/perawi/acak")
        data = payload.get("data") or {}
        perawi = ((payload.get("info") or {}).get("perawi") or {})
        if not (data.get("arab") and data.get("id") and perawi.get("name")):
            LOGGER.error("Missing required fields in hadith data: %s", payload)
            raise RuntimeError("Gagal mendapatkan hadist")

        return Hadith(
            narrator=str(perawi["name"]),
            number=int(data.get("number") or 0),
            arabic=str(data["arab"]),
            translation=str(data["id"]),
        )

    def _get(self, path: str) -> Dict[str, Any]:
        url = f"{self.base_url}/{path}"
        LOGGER.debug("Requesting %s", url)
        response = requests.get(url, timeout=self.timeout)
        LOGGER.debug("Response status for %s: %s", path, response.status_code)
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict):
            raise RuntimeError(f"Unexpected response from {url}")
        return payload
