"""City selection dialog with incremental search."""
from __future__ import annotations

from typing import List, Optional

try:  # Prefer PyQt5 consistency
    from PyQt5 import QtCore, QtWidgets  # type: ignore
except Exception:  # pragma: no cover - fallback
    try:
        from PySide2 import QtCore, QtWidgets  # type: ignore
    except Exception:
        from PySide6 import QtCore, QtWidgets  # type: ignore

try:  # Compatibility alias for Qt signals
    Signal = QtCore.pyqtSignal  # type: ignore[attr-defined]
except AttributeError:  # pragma: no cover - PySide compatibility
    Signal = QtCore.Signal  # type: ignore[attr-defined]

from prayer_times import City, search_cities

LOADING_TEXT = "Memuat daftar kota..."
EMPTY_TEXT = "Tidak ada kota yang sesuai dengan pencarian"


class CitySelectorDialog(QtWidgets.QDialog):
    """Lets the user search the city catalogue and pick one."""

    city_selected = Signal(object)
    retry_requested = Signal()

    def __init__(self, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent)
        self.setWindowTitle("Jadwal Sholat")
        self.setModal(True)
        self.resize(480, 560)

        self._cities: List[City] = []
        self._visible: List[City] = []

        layout = QtWidgets.QVBoxLayout(self)
        layout.setContentsMargins(24, 24, 24, 24)
        layout.setSpacing(12)

        subtitle = QtWidgets.QLabel("Pilih kota Anda untuk melihat jadwal sholat")
        subtitle.setWordWrap(True)
        layout.addWidget(subtitle)

        self.search_edit = QtWidgets.QLineEdit()
        self.search_edit.setPlaceholderText("Cari kota...")
        self.search_edit.textChanged.connect(self._apply_filter)  # type: ignore
        layout.addWidget(self.search_edit)

        self.message_label = QtWidgets.QLabel(LOADING_TEXT)
        self.message_label.setAlignment(QtCore.Qt.AlignCenter)
        self.message_label.setWordWrap(True)
        layout.addWidget(self.message_label)

        self.city_list = QtWidgets.QListWidget()
        self.city_list.itemClicked.connect(self._on_item_activated)  # type: ignore
        layout.addWidget(self.city_list, stretch=1)

        self.retry_button = QtWidgets.QPushButton("Coba Lagi")
        self.retry_button.clicked.connect(self._on_retry)  # type: ignore
        self.retry_button.hide()
        layout.addWidget(self.retry_button, alignment=QtCore.Qt.AlignRight)

    def show_loading(self) -> None:
        self.retry_button.hide()
        self.city_list.clear()
        self.message_label.setText(LOADING_TEXT)
        self.message_label.show()

    def show_error(self, message: str) -> None:
        self.city_list.clear()
        self.message_label.setText(message)
        self.message_label.show()
        self.retry_button.show()

    def set_cities(self, cities: List[City]) -> None:
        self._cities = list(cities)
        self.retry_button.hide()
        self._apply_filter(self.search_edit.text())

    def visible_cities(self) -> List[City]:
        return list(self._visible)

    def _apply_filter(self, term: str) -> None:
        self._visible = search_cities(self._cities, term)
        self.city_list.clear()
        for city in self._visible:
            item = QtWidgets.QListWidgetItem(city.name)
            item.setData(QtCore.Qt.UserRole, city.id)
            self.city_list.addItem(item)
        if self._visible:
            self.message_label.hide()
        else:
            self.message_label.setText(EMPTY_TEXT)
            self.message_label.show()

    def _on_item_activated(self, item: QtWidgets.QListWidgetItem) -> None:
        row = self.city_list.row(item)
        if 0 <= row < len(self._visible):
            self.city_selected.emit(self._visible[row])
            self.accept()

    def _on_retry(self) -> None:
        self.show_loading()
        self.retry_requested.emit()
