"""Main window for the prayer times application."""
from __future__ import annotations

from typing import Callable, Dict, Mapping, Optional, Sequence, Tuple

ACCENT_COLOR_HEX = "#7c3aed"
ADZAN_COLOR_HEX = "#16a34a"

try:  # Prefer PyQt5, fall back to Qt for Python
    from PyQt5 import QtCore, QtGui, QtWidgets  # type: ignore
except Exception:  # pragma: no cover - fallback path
    try:
        from PySide2 import QtCore, QtGui, QtWidgets  # type: ignore
    except Exception:
        from PySide6 import QtCore, QtGui, QtWidgets  # type: ignore

from countdown import CountdownView
from inspiration import Hadith, QuranVerse

PAGE_PRAYER = 0
PAGE_QURAN = 1
PAGE_HADITH = 2


class PrayerTimesWindow(QtWidgets.QMainWindow):
    """Main application window with the schedule, countdown, verse and hadith."""

    def __init__(self) -> None:
        super().__init__()
        self._active_prayer: Optional[str] = None
        self._announcing = False

        self.setObjectName("PrayerWindow")
        self.setWindowTitle("Sholatyuk")
        self.setAttribute(QtCore.Qt.WA_StyledBackground, True)
        self.resize(960, 640)

        central = QtWidgets.QWidget()
        self.setCentralWidget(central)
        root_layout = QtWidgets.QVBoxLayout(central)
        root_layout.setContentsMargins(24, 24, 24, 24)
        root_layout.setSpacing(16)

        root_layout.addWidget(self._build_header())
        root_layout.addWidget(self._build_nav_bar())

        self.page_stack = QtWidgets.QStackedWidget()
        self.page_stack.addWidget(self._build_prayer_page())
        self.page_stack.addWidget(self._build_text_page("quran"))
        self.page_stack.addWidget(self._build_text_page("hadith"))
        root_layout.addWidget(self.page_stack, stretch=1)

        self.status_label = QtWidgets.QLabel()
        self.status_label.setObjectName("statusLabel")
        self.status_label.setWordWrap(True)
        root_layout.addWidget(self.status_label)

        self._change_city_handler: Optional[Callable[[], None]] = None
        self._refresh_verse_handler: Optional[Callable[[], None]] = None
        self._refresh_hadith_handler: Optional[Callable[[], None]] = None

        self.change_city_button.clicked.connect(self._emit_change_city)  # type: ignore
        self.quran_refresh_button.clicked.connect(self._emit_refresh_verse)  # type: ignore
        self.hadith_refresh_button.clicked.connect(self._emit_refresh_hadith)  # type: ignore

        self._set_active_page(PAGE_PRAYER)
        self.setStyleSheet(self._stylesheet())

    # -- Builders -----------------------------------------------------------
    def _build_header(self) -> QtWidgets.QWidget:
        header = QtWidgets.QFrame()
        header.setObjectName("Header")
        layout = QtWidgets.QHBoxLayout(header)
        layout.setContentsMargins(0, 0, 0, 0)

        title = QtWidgets.QLabel("Sholatyuk")
        title.setObjectName("appTitle")
        title_font = QtGui.QFont(title.font())
        title_font.setPointSize(20)
        title_font.setBold(True)
        title.setFont(title_font)

        info_layout = QtWidgets.QVBoxLayout()
        self.location_label = QtWidgets.QLabel("")
        self.location_label.setObjectName("locationLabel")
        self.date_label = QtWidgets.QLabel("")
        self.date_label.setObjectName("dateLabel")
        info_layout.addWidget(self.location_label)
        info_layout.addWidget(self.date_label)

        self.change_city_button = QtWidgets.QPushButton("Ganti Kota")
        self.change_city_button.setObjectName("headerButton")

        layout.addWidget(title)
        layout.addSpacing(16)
        layout.addLayout(info_layout, stretch=1)
        layout.addWidget(self.change_city_button, alignment=QtCore.Qt.AlignRight)
        return header

    def _build_nav_bar(self) -> QtWidgets.QWidget:
        bar = QtWidgets.QFrame()
        bar.setObjectName("NavBar")
        layout = QtWidgets.QHBoxLayout(bar)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(8)

        self._nav_group = QtWidgets.QButtonGroup(self)
        self._nav_group.setExclusive(True)
        self._nav_buttons: Dict[int, QtWidgets.QPushButton] = {}
        for index, text in ((PAGE_PRAYER, "Jadwal Sholat"), (PAGE_QURAN, "Al-Quran"), (PAGE_HADITH, "Hadits")):
            button = QtWidgets.QPushButton(text)
            button.setCheckable(True)
            button.setObjectName("navButton")
            button.clicked.connect(lambda _checked=False, idx=index: self._set_active_page(idx))  # type: ignore
            self._nav_group.addButton(button, index)
            self._nav_buttons[index] = button
            layout.addWidget(button)
        layout.addStretch(1)
        return bar

    def _build_prayer_page(self) -> QtWidgets.QWidget:
        page = QtWidgets.QWidget()
        layout = QtWidgets.QVBoxLayout(page)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(16)

        self.countdown_card = QtWidgets.QFrame()
        self.countdown_card.setObjectName("countdownCard")
        card_layout = QtWidgets.QVBoxLayout(self.countdown_card)
        card_layout.setContentsMargins(24, 16, 24, 16)
        self.countdown_title = QtWidgets.QLabel("Menuju Waktu Sholat")
        self.countdown_title.setAlignment(QtCore.Qt.AlignCenter)
        self.countdown_prayer_label = QtWidgets.QLabel("")
        self.countdown_prayer_label.setObjectName("countdownPrayer")
        self.countdown_prayer_label.setAlignment(QtCore.Qt.AlignCenter)
        self.countdown_remaining_label = QtWidgets.QLabel("")
        self.countdown_remaining_label.setObjectName("countdownRemaining")
        self.countdown_remaining_label.setAlignment(QtCore.Qt.AlignCenter)
        card_layout.addWidget(self.countdown_title)
        card_layout.addWidget(self.countdown_prayer_label)
        card_layout.addWidget(self.countdown_remaining_label)
        layout.addWidget(self.countdown_card)

        grid = QtWidgets.QGridLayout()
        grid.setHorizontalSpacing(12)
        grid.setVerticalSpacing(12)
        self.prayer_grid = grid
        self.prayer_cards: Dict[str, Tuple[QtWidgets.QFrame, QtWidgets.QLabel]] = {}
        layout.addLayout(grid)
        self.extra_times_label = QtWidgets.QLabel("")
        self.extra_times_label.setObjectName("extraTimes")
        self.extra_times_label.setAlignment(QtCore.Qt.AlignCenter)
        layout.addWidget(self.extra_times_label)
        layout.addStretch(1)
        return page

    def _build_text_page(self, kind: str) -> QtWidgets.QWidget:
        page = QtWidgets.QFrame()
        page.setObjectName("textCard")
        layout = QtWidgets.QVBoxLayout(page)
        layout.setContentsMargins(24, 24, 24, 24)
        layout.setSpacing(12)

        arabic = QtWidgets.QLabel("")
        arabic.setObjectName("arabicText")
        arabic.setWordWrap(True)
        arabic.setAlignment(QtCore.Qt.AlignRight)
        arabic.setLayoutDirection(QtCore.Qt.RightToLeft)
        translation = QtWidgets.QLabel("Data tidak tersedia")
        translation.setWordWrap(True)
        reference = QtWidgets.QLabel("")
        reference.setObjectName("referenceText")
        refresh = QtWidgets.QPushButton("Ayat Lain" if kind == "quran" else "Hadits Lain")

        layout.addWidget(arabic)
        layout.addWidget(translation)
        layout.addWidget(reference)
        layout.addStretch(1)
        layout.addWidget(refresh, alignment=QtCore.Qt.AlignRight)

        setattr(self, f"{kind}_arabic_label", arabic)
        setattr(self, f"{kind}_translation_label", translation)
        setattr(self, f"{kind}_reference_label", reference)
        setattr(self, f"{kind}_refresh_button", refresh)
        return page

    def _set_active_page(self, index: int) -> None:
        self.page_stack.setCurrentIndex(index)
        button = self._nav_buttons.get(index)
        if button is not None and not button.isChecked():
            button.setChecked(True)

    # -- Handlers -----------------------------------------------------------
    def on_change_city(self, handler: Callable[[], None]) -> None:
        self._change_city_handler = handler

    def on_refresh_verse(self, handler: Callable[[], None]) -> None:
        self._refresh_verse_handler = handler

    def on_refresh_hadith(self, handler: Callable[[], None]) -> None:
        self._refresh_hadith_handler = handler

    def _emit_change_city(self) -> None:
        if self._change_city_handler:
            self._change_city_handler()

    def _emit_refresh_verse(self) -> None:
        if self._refresh_verse_handler:
            self._refresh_verse_handler()

    def _emit_refresh_hadith(self) -> None:
        if self._refresh_hadith_handler:
            self._refresh_hadith_handler()

    # -- Updates ------------------------------------------------------------
    def update_location(self, location: str, region: str) -> None:
        parts = [part for part in (location, region) if part]
        self.location_label.setText(", ".join(parts))

    def update_date(self, date_text: str) -> None:
        self.date_label.setText(date_text)

    def update_prayers(self, prayers: Sequence[Tuple[str, str]]) -> None:
        for frame, _ in self.prayer_cards.values():
            self.prayer_grid.removeWidget(frame)
            frame.deleteLater()
        self.prayer_cards.clear()

        for index, (name, time_text) in enumerate(prayers):
            frame = QtWidgets.QFrame()
            frame.setObjectName("prayerCard")
            card_layout = QtWidgets.QVBoxLayout(frame)
            name_label = QtWidgets.QLabel(name.capitalize())
            name_label.setAlignment(QtCore.Qt.AlignCenter)
            time_label = QtWidgets.QLabel(time_text)
            time_label.setObjectName("prayerTime")
            time_label.setAlignment(QtCore.Qt.AlignCenter)
            card_layout.addWidget(name_label)
            card_layout.addWidget(time_label)
            self.prayer_grid.addWidget(frame, index // 3, index % 3)
            self.prayer_cards[name] = (frame, time_label)
        self._highlight_prayer(self._active_prayer)

    def update_extra_times(self, times: Mapping[str, str]) -> None:
        """Show imsak and terbit below the prayer grid."""
        parts = [f"{name.capitalize()} {time_text}" for name, time_text in times.items()]
        self.extra_times_label.setText("   |   ".join(parts))

    def update_countdown(self, view: Optional[CountdownView]) -> None:
        if view is None:
            self.countdown_title.setText("Menuju Waktu Sholat")
            self.countdown_prayer_label.setText("")
            self.countdown_remaining_label.setText("")
            self._set_announcing(False)
            self._highlight_prayer(None)
            return

        self.countdown_title.setText("Waktu Sholat" if view.announcing else "Menuju Waktu Sholat")
        self.countdown_prayer_label.setText(view.next_prayer.capitalize() if view.next_prayer else "-")
        self.countdown_remaining_label.setText(view.remaining_label)
        self._set_announcing(view.announcing)
        self._highlight_prayer(view.next_prayer)

    def update_verse(self, verse: Optional[QuranVerse]) -> None:
        if verse is None:
            self._fill_text_page("quran", "", "Data tidak tersedia", "")
            return
        self._fill_text_page("quran", verse.arabic, verse.translation, verse.reference)

    def update_hadith(self, hadith: Optional[Hadith]) -> None:
        if hadith is None:
            self._fill_text_page("hadith", "", "Data tidak tersedia", "")
            return
        self._fill_text_page("hadith", hadith.arabic, hadith.translation, hadith.reference)

    def set_refreshing(self, kind: str, refreshing: bool) -> None:
        button: QtWidgets.QPushButton = getattr(self, f"{kind}_refresh_button")
        button.setEnabled(not refreshing)

    def set_status(self, text: str) -> None:
        self.status_label.setText(text)

    @property
    def announcing(self) -> bool:
        return self._announcing

    def _fill_text_page(self, kind: str, arabic: str, translation: str, reference: str) -> None:
        getattr(self, f"{kind}_arabic_label").setText(arabic)
        getattr(self, f"{kind}_translation_label").setText(translation)
        getattr(self, f"{kind}_reference_label").setText(reference)

    def _set_announcing(self, announcing: bool) -> None:
        if announcing == self._announcing:
            return
        self._announcing = announcing
        self.countdown_card.setProperty("announcing", announcing)
        self.countdown_card.style().unpolish(self.countdown_card)
        self.countdown_card.style().polish(self.countdown_card)

    def _highlight_prayer(self, prayer_name: Optional[str]) -> None:
        self._active_prayer = prayer_name
        for name, (frame, _) in self.prayer_cards.items():
            frame.setProperty("active", name == prayer_name)
            frame.style().unpolish(frame)
            frame.style().polish(frame)

    def _stylesheet(self) -> str:
        return f"""
        QMainWindow#PrayerWindow {{ background-color: #111827; }}
        QLabel {{ color: #e5e7eb; }}
        QLabel#appTitle {{ color: {ACCENT_COLOR_HEX}; }}
        QLabel#countdownPrayer {{ font-size: 22px; font-weight: bold; color: {ACCENT_COLOR_HEX}; }}
        QLabel#countdownRemaining {{ font-size: 16px; color: #9ca3af; }}
        QLabel#prayerTime {{ font-size: 18px; font-weight: bold; }}
        QLabel#extraTimes {{ color: #9ca3af; }}
        QLabel#arabicText {{ font-size: 22px; }}
        QLabel#referenceText {{ color: #9ca3af; font-style: italic; }}
        QFrame#countdownCard, QFrame#prayerCard, QFrame#textCard {{
            background-color: #1f2937; border: 1px solid #374151; border-radius: 12px;
        }}
        QFrame#countdownCard[announcing="true"] {{ background-color: #14532d; border-color: {ADZAN_COLOR_HEX}; }}
        QFrame#prayerCard[active="true"] {{ border-color: {ACCENT_COLOR_HEX}; }}
        QPushButton {{ background-color: #1f2937; color: #e5e7eb; border-radius: 8px; padding: 6px 12px; }}
        QPushButton:checked {{ background-color: {ACCENT_COLOR_HEX}; }}
        """
