"""Audio playback utilities for the adzan."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

try:  # Prefer PyQt5 multimedia bindings, fall back to Qt for Python variants
    from PyQt5 import QtCore, QtMultimedia  # type: ignore
except Exception:  # pragma: no cover - fallback path
    try:
        from PySide2 import QtCore, QtMultimedia  # type: ignore
    except Exception:
        from PySide6 import QtCore, QtMultimedia  # type: ignore

LOGGER = logging.getLogger(__name__)


class AdhanPlayer(QtCore.QObject):
    """Play the adzan recording from an arbitrary offset using Qt Multimedia."""

    def __init__(self, audio_path: str, parent: Optional[QtCore.QObject] = None) -> None:
        super().__init__(parent)
        self.audio_path = Path(audio_path)
        self._player = QtMultimedia.QMediaPlayer(self)
        self._audio_output = None
        if hasattr(QtMultimedia, "QAudioOutput"):
            self._audio_output = QtMultimedia.QAudioOutput()
            if hasattr(self._audio_output, "setParent"):
                self._audio_output.setParent(self)
            if hasattr(self._player, "setAudioOutput"):
                self._player.setAudioOutput(self._audio_output)
            self._audio_output.setVolume(1.0)
        elif hasattr(self._player, "setVolume"):
            # Qt5 API uses direct volume control on the player
            self._player.setVolume(100)

        self._using_new_api = hasattr(self._player, "setSource")
        self._loaded = False
        self._active = False

        self._player.mediaStatusChanged.connect(self._on_media_status_changed)  # type: ignore
        if hasattr(self._player, "errorOccurred"):
            self._player.errorOccurred.connect(self._on_error)  # type: ignore
        elif hasattr(self._player, "error"):
            self._player.error.connect(self._on_error)  # type: ignore

    def play(self, offset_seconds: float = 0) -> bool:
        """Start the recording at ``offset_seconds``; returns ``False`` if the file is missing."""
        if not self.audio_path.exists():
            LOGGER.error("Adzan audio file missing: %s", self.audio_path)
            return False

        if not self._loaded:
            url = QtCore.QUrl.fromLocalFile(str(self.audio_path))
            if self._using_new_api:
                self._player.setSource(url)
            else:
                self._player.setMedia(QtMultimedia.QMediaContent(url))  # type: ignore[attr-defined]
            self._loaded = True

        position_ms = max(0, int(offset_seconds * 1000))
        LOGGER.debug("Playing adzan audio %s from %dms", self.audio_path, position_ms)
        self._player.setPosition(position_ms)
        self._player.play()
        self._active = True
        return True

    def stop(self) -> None:
        """Stop playback and rewind to the start of the recording."""
        if self._active:
            LOGGER.debug("Stopping active adzan playback")
        self._player.stop()
        self._player.setPosition(0)
        self._active = False

    def _on_media_status_changed(self, status: int) -> None:
        if status == QtMultimedia.QMediaPlayer.EndOfMedia:
            LOGGER.debug("Adzan audio reached the end")
            self._player.stop()
            self._player.setPosition(0)
            self._active = False

    def _on_error(self, *args: object) -> None:  # pragma: no cover - backend dependent
        error = args[0] if args else None
        if hasattr(QtMultimedia.QMediaPlayer, "NoError") and error == QtMultimedia.QMediaPlayer.NoError:
            return
        LOGGER.error("Adzan playback error: %s", getattr(self._player, "errorString", lambda: "unknown")())
        self._active = False
