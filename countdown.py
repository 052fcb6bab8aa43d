"""Countdown and adzan detection for the daily prayer schedule."""
from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, Mapping, Optional, Protocol, Tuple, Union

LOGGER = logging.getLogger(__name__)

ANNOUNCE_WINDOW = timedelta(minutes=5)
STORAGE_KEY = "lastAdzan"
STARTED_AT_FORMAT = "%Y-%m-%d %H:%M:%S"
ADZAN_LABEL = "Adzan Berkumandang"
UNAVAILABLE_LABEL = "Jadwal tidak tersedia"


class AudioSink(Protocol):
    def play(self, offset_seconds: float = 0) -> bool:
        ...

    def stop(self) -> None:
        ...


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Announcing:
    prayer: str
    started_at: datetime


AnnouncementState = Union[Idle, Announcing]


@dataclass(frozen=True)
class LastAnnouncement:
    """Record persisted when an adzan starts so a restart can resume it."""

    prayer: str
    time: str
    prayer_time: str
    started_at: datetime

    def to_json(self) -> str:
        return json.dumps(
            {
                "prayer": self.prayer,
                "time": self.time,
                "startedAt": self.started_at.strftime(STARTED_AT_FORMAT),
                "prayerTime": self.prayer_time,
            }
        )

    @classmethod
    def from_json(cls, raw: str) -> Optional["LastAnnouncement"]:
        """Parse a stored record, returning ``None`` for anything malformed."""
        try:
            payload = json.loads(raw)
            return cls(
                prayer=str(payload["prayer"]),
                time=str(payload.get("time", payload["prayerTime"])),
                prayer_time=str(payload["prayerTime"]),
                started_at=datetime.strptime(payload["startedAt"], STARTED_AT_FORMAT),
            )
        except (TypeError, ValueError, KeyError, AttributeError):
            return None

    def matches(self, schedule: Mapping[str, str]) -> bool:
        return schedule.get(self.prayer) == self.prayer_time


@dataclass(frozen=True)
class CountdownView:
    next_prayer: Optional[str]
    remaining_label: str
    announcing: bool


UNAVAILABLE_VIEW = CountdownView(next_prayer=None, remaining_label=UNAVAILABLE_LABEL, announcing=False)


def format_remaining(minutes: int) -> str:
    """Render a minute count as an Indonesian countdown label."""
    hours, minutes = divmod(minutes, 60)
    if hours > 0:
        return f"{hours} jam {minutes} menit lagi"
    return f"{minutes} menit lagi"


def parse_prayer_time(value: str) -> Optional[Tuple[int, int]]:
    try:
        hour_text, minute_text = value.strip().split(":")[:2]
        hour, minute = int(hour_text), int(minute_text)
    except (AttributeError, ValueError):
        return None
    if not (0 <= hour < 24 and 0 <= minute < 60):
        return None
    return hour, minute


def find_next_prayer(now: datetime, schedule: Mapping[str, str]) -> Optional[Tuple[str, str, int]]:
    """Return ``(prayer, time, minutes_until)`` for the closest upcoming prayer.

    Times are compared at minute precision. A prayer whose time today is already
    behind ``now`` is moved to tomorrow, so the last prayer of the day wraps to
    the first one of the next day. A prayer whose minute equals the current
    minute yields a difference of 0.
    """
    current_minute = now.replace(second=0, microsecond=0)
    best: Optional[Tuple[str, str, int]] = None
    for prayer, time_text in schedule.items():
        parsed = parse_prayer_time(time_text)
        if parsed is None:
            LOGGER.debug("Skipping unparsable time %r for %s", time_text, prayer)
            continue
        hour, minute = parsed
        occurrence = current_minute.replace(hour=hour, minute=minute)
        if occurrence < current_minute:
            occurrence += timedelta(days=1)
        diff = int((occurrence - current_minute).total_seconds() // 60)
        if best is None or diff < best[2]:
            best = (prayer, time_text, diff)
    return best


class PrayerClock:
    """Evaluate the schedule every second and drive the adzan lifecycle.

    The clock owns the persisted :class:`LastAnnouncement` stored under
    :data:`STORAGE_KEY` and the playback state of the injected audio sink.
    """

    def __init__(
        self,
        audio: AudioSink,
        store: KeyValueStore,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._audio = audio
        self._store = store
        self._clock = clock
        self._schedule: Dict[str, str] = {}
        self._state: AnnouncementState = Idle()
        self._lock = threading.RLock()

    @property
    def state(self) -> AnnouncementState:
        return self._state

    def set_schedule(self, schedule: Mapping[str, str]) -> None:
        """Replace the schedule, dropping any announcement bound to the old one."""
        with self._lock:
            LOGGER.debug("Schedule replaced with %d entries", len(schedule))
            self._schedule = dict(schedule)
            self._enter_idle(force_stop=True)
            record = self._load_record()
            if record is not None and not record.matches(self._schedule):
                LOGGER.info("Discarding adzan record for %s; schedule changed", record.prayer)
                self._discard_record()

    def refresh(self) -> CountdownView:
        return self.tick(self._clock(), self._schedule)

    def dispose(self) -> None:
        with self._lock:
            self._enter_idle(force_stop=True)

    def tick(self, now: datetime, schedule: Mapping[str, str]) -> CountdownView:
        with self._lock:
            record = self._load_record()
            if record is not None:
                if not record.matches(schedule):
                    LOGGER.info("Discarding stale adzan record for %s at %s", record.prayer, record.prayer_time)
                    self._discard_record()
                    self._enter_idle()
                else:
                    elapsed = now - record.started_at
                    if timedelta(0) <= elapsed < ANNOUNCE_WINDOW:
                        self._resume(record, elapsed)
                        return CountdownView(next_prayer=record.prayer, remaining_label=ADZAN_LABEL, announcing=True)

            upcoming = find_next_prayer(now, schedule)
            if upcoming is None:
                self._enter_idle()
                return UNAVAILABLE_VIEW

            prayer, time_text, minutes = upcoming
            if minutes == 0:
                self._begin(prayer, time_text, now)
                return CountdownView(next_prayer=prayer, remaining_label=ADZAN_LABEL, announcing=True)

            self._enter_idle()
            return CountdownView(next_prayer=prayer, remaining_label=format_remaining(minutes), announcing=False)

    # ------------------------------------------------------------------
    def _load_record(self) -> Optional[LastAnnouncement]:
        raw = self._store.get(STORAGE_KEY)
        if raw is None:
            return None
        record = LastAnnouncement.from_json(raw)
        if record is None:
            LOGGER.debug("Discarding malformed adzan record: %r", raw)
            self._discard_record()
        return record

    def _discard_record(self) -> None:
        try:
            self._store.delete(STORAGE_KEY)
        except OSError:
            LOGGER.exception("Failed to delete adzan record")

    def _begin(self, prayer: str, time_text: str, now: datetime) -> None:
        if isinstance(self._state, Announcing) and self._state.prayer == prayer:
            # Record missing from the store; keep the running announcement.
            return
        started_at = now.replace(microsecond=0)
        record = LastAnnouncement(prayer=prayer, time=time_text, prayer_time=time_text, started_at=started_at)
        try:
            self._store.set(STORAGE_KEY, record.to_json())
        except OSError:
            LOGGER.exception("Failed to persist adzan record for %s", prayer)
        LOGGER.info("Adzan started for %s at %s", prayer, time_text)
        self._state = Announcing(prayer=prayer, started_at=started_at)
        self._play(0)

    def _resume(self, record: LastAnnouncement, elapsed: timedelta) -> None:
        target = Announcing(prayer=record.prayer, started_at=record.started_at)
        if self._state == target:
            return
        offset = elapsed.total_seconds()
        LOGGER.info("Resuming adzan for %s at offset %.0fs", record.prayer, offset)
        self._state = target
        self._play(offset)

    def _enter_idle(self, force_stop: bool = False) -> None:
        was_announcing = isinstance(self._state, Announcing)
        self._state = Idle()
        if was_announcing:
            LOGGER.info("Adzan finished")
        if was_announcing or force_stop:
            try:
                self._audio.stop()
            except Exception:
                LOGGER.exception("Failed to stop adzan audio")

    def _play(self, offset_seconds: float) -> None:
        try:
            started = self._audio.play(offset_seconds)
        except Exception:
            LOGGER.exception("Failed to play adzan audio")
            return
        if started is False:
            LOGGER.warning("Adzan audio did not start")
