"""Small key-value stores used to persist application state between runs."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Optional

LOGGER = logging.getLogger(__name__)


class JsonFileStore:
    """Persist string values in a flat JSON object on disk."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def get(self, key: str) -> Optional[str]:
        value = self._read().get(key)
        return None if value is None else str(value)

    def set(self, key: str, value: str) -> None:
        payload = self._read()
        payload[key] = value
        self._write(payload)

    def delete(self, key: str) -> None:
        payload = self._read()
        if key not in payload:
            return
        del payload[key]
        self._write(payload)

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except (OSError, ValueError):
            LOGGER.warning("Ignoring unreadable state file %s", self.path, exc_info=True)
            return {}
        if not isinstance(payload, dict):
            LOGGER.warning("Ignoring state file %s with unexpected content", self.path)
            return {}
        return payload

    def _write(self, payload: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as handle:
            json.dump(payload, handle, indent=2)
        LOGGER.debug("Persisted state keys to %s: %s", self.path, list(payload.keys()))


class MemoryStore:
    """Dictionary-backed store."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._values: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def delete(self, key: str) -> None:
        self._values.pop(key, None)
