from __future__ import annotations

from PySide6.QtCore import Qt, Signal
from PySide6.QtWidgets import (
    QAbstractItemView,
    QHBoxLayout,
    QLabel,
    QListWidget,
    QListWidgetItem,
    QVBoxLayout,
    QWidget,
)

from marklink.services.text_search_service import SOURCE_DOCUMENT, SOURCE_FILE, SearchMatch


class MarkerResultsPanel(QWidget):
    documentOffsetActivated = Signal(str, int)  # document key, character offset
    fileLineActivated = Signal(str, int)  # file path, line number
    documentActivated = Signal(str)  # document key or file path without position

    def __init__(self, parent=None):
        super().__init__(parent)
        self._matches: list[SearchMatch] = []
        self._query = ""

        self.status_label = QLabel("No marker search yet.", self)
        self.status_label.setTextInteractionFlags(Qt.TextSelectableByMouse)

        self.list = QListWidget(self)
        self.list.setSelectionMode(QAbstractItemView.SingleSelection)
        self.list.setUniformItemSizes(True)
        self.list.itemActivated.connect(self._on_item_activated)

        top = QHBoxLayout()
        top.setContentsMargins(0, 0, 0, 0)
        top.addWidget(self.status_label, 1)

        lay = QVBoxLayout(self)
        lay.setContentsMargins(0, 0, 0, 0)
        lay.addLayout(top)
        lay.addWidget(self.list)

    def clear_results(self) -> None:
        self._matches = []
        self._query = ""
        self.list.clear()
        self.status_label.setText("No marker search yet.")

    def set_results(self, query: str, matches: list[SearchMatch]) -> None:
        self._query = str(query or "")
        self._matches = [m for m in matches if isinstance(m, SearchMatch)]
        self.list.clear()
        for row, match in enumerate(self._matches):
            item = QListWidgetItem(match.display_text())
            item.setData(Qt.UserRole, row)
            tip = f"Offset {match.position} in open document" if match.source == SOURCE_DOCUMENT else match.label
            item.setToolTip(tip)
            self.list.addItem(item)
        self.status_label.setText(f"{len(self._matches)} match(es) for {self._query}")

    def query(self) -> str:
        return self._query

    def matches(self) -> list[SearchMatch]:
        return list(self._matches)

    def lines(self) -> list[str]:
        return [self.list.item(i).text() for i in range(self.list.count())]

    def activate_row(self, row: int) -> bool:
        if row < 0 or row >= len(self._matches):
            return False
        match = self._matches[row]
        if match.position is None:
            self.documentActivated.emit(match.label)
        elif match.source == SOURCE_FILE:
            self.fileLineActivated.emit(match.label, int(match.position))
        else:
            self.documentOffsetActivated.emit(match.label, int(match.position))
        return True

    def _on_item_activated(self, item: QListWidgetItem) -> None:
        row = item.data(Qt.UserRole)
        if isinstance(row, int):
            self.activate_row(row)
