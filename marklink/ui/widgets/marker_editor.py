from __future__ import annotations

from bisect import bisect_left
from dataclasses import dataclass
from typing import Callable, Iterable

from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QColor, QFont, QFontDatabase, QKeyEvent, QTextCharFormat, QTextCursor
from PySide6.QtWidgets import QPlainTextEdit, QTextEdit


def qt_position_for_offset(text: str, offset: int) -> int:
    """Python str offset -> QTextCursor position (UTF-16 code units)."""
    prefix = text[: max(0, int(offset))]
    return len(prefix.encode("utf-16-le")) // 2


def offset_for_qt_position(text: str, position: int) -> int:
    target = max(0, int(position))
    units = 0
    for index, char in enumerate(text):
        if units >= target:
            return index
        units += 2 if ord(char) > 0xFFFF else 1
    return len(text)


class _OffsetMap:
    """Converts many offsets against one text snapshot in a single pass."""

    def __init__(self, text: str):
        self._length = len(text)
        self._units: list[int] | None = None
        if any(ord(char) > 0xFFFF for char in text):
            units = [0]
            for char in text:
                units.append(units[-1] + (2 if ord(char) > 0xFFFF else 1))
            self._units = units

    def to_qt(self, offset: int) -> int:
        offset = max(0, min(self._length, int(offset)))
        return offset if self._units is None else self._units[offset]

    def to_offset(self, position: int) -> int:
        position = max(0, int(position))
        if self._units is None:
            return min(self._length, position)
        return min(self._length, bisect_left(self._units, position))


@dataclass
class _ActivatableRegion:
    # Cursor selection moves with edits, so hits follow the rendered link.
    cursor: QTextCursor
    on_activate: Callable[[], None]

    def contains(self, position: int) -> bool:
        return self.cursor.selectionStart() <= position < self.cursor.selectionEnd()


class MarkerEditor(QPlainTextEdit):
    """Plain-text editor that renders marker spans as Ctrl+clickable links."""

    regionActivated = Signal(int, int)  # start, end (python offsets)

    LINK_COLOR = "#4A8FD8"

    def __init__(self, parent=None):
        super().__init__(parent)
        self._regions: list[_ActivatableRegion] = []
        self.setLineWrapMode(QPlainTextEdit.LineWrapMode.WidgetWidth)
        self.setFont(QFontDatabase.systemFont(QFontDatabase.SystemFont.FixedFont))
        self.setMouseTracking(True)

    # ---------- Activatable regions ----------

    def add_activatable(self, start: int, end: int, on_activate: Callable[[], None]) -> None:
        region = self._make_region(_OffsetMap(self.toPlainText()), start, end, on_activate)
        if region is None:
            return
        self._regions.append(region)
        self._rebuild_extra_selections()

    def set_activatable(self, regions: Iterable[tuple[int, int, Callable[[], None]]]) -> None:
        """Replace every region at once; selections are rebuilt a single time."""
        offsets = _OffsetMap(self.toPlainText())
        self._regions = []
        for start, end, on_activate in regions:
            region = self._make_region(offsets, start, end, on_activate)
            if region is not None:
                self._regions.append(region)
        self._rebuild_extra_selections()

    def clear_activatable(self) -> None:
        if not self._regions:
            return
        self._regions = []
        self._rebuild_extra_selections()

    def activatable_regions(self) -> list[tuple[int, int]]:
        offsets = _OffsetMap(self.toPlainText())
        return [self._region_span(offsets, r) for r in self._regions if self._is_live(r)]

    def region_at(self, offset: int) -> _ActivatableRegion | None:
        position = qt_position_for_offset(self.toPlainText(), offset)
        for region in self._regions:
            if region.contains(position):
                return region
        return None

    def activate_at(self, offset: int) -> bool:
        region = self.region_at(offset)
        if region is None:
            return False
        start, end = self._region_span(_OffsetMap(self.toPlainText()), region)
        self.regionActivated.emit(start, end)
        region.on_activate()
        return True

    # ---------- Navigation ----------

    def jump_to_offset(self, offset: int) -> None:
        text = self.toPlainText()
        cursor = self.textCursor()
        cursor.setPosition(min(qt_position_for_offset(text, offset), self.document().characterCount() - 1))
        self.setTextCursor(cursor)
        self.centerCursor()
        self.setFocus()

    def jump_to_line(self, line: int) -> None:
        block = self.document().findBlockByNumber(max(0, int(line) - 1))
        if not block.isValid():
            block = self.document().lastBlock()
        cursor = QTextCursor(block)
        self.setTextCursor(cursor)
        self.centerCursor()
        self.setFocus()

    # ---------- Events ----------

    def mouseMoveEvent(self, e):
        over_link = False
        if e.modifiers() & Qt.ControlModifier:
            over_link = self.region_at(self._offset_at_point(e.position().toPoint())) is not None
        self.viewport().setCursor(Qt.PointingHandCursor if over_link else Qt.IBeamCursor)
        super().mouseMoveEvent(e)

    def mousePressEvent(self, e):
        if e.button() == Qt.LeftButton and (e.modifiers() & Qt.ControlModifier):
            if self.activate_at(self._offset_at_point(e.position().toPoint())):
                e.accept()
                return
        super().mousePressEvent(e)

    def keyPressEvent(self, event: QKeyEvent):
        if event.key() in (Qt.Key_Return, Qt.Key_Enter) and (event.modifiers() & Qt.ControlModifier):
            offset = offset_for_qt_position(self.toPlainText(), self.textCursor().position())
            if self.activate_at(offset):
                event.accept()
                return
        super().keyPressEvent(event)

    # ---------- Helpers ----------

    def _make_region(
        self,
        offsets: _OffsetMap,
        start: int,
        end: int,
        on_activate: Callable[[], None],
    ) -> _ActivatableRegion | None:
        if end <= start:
            return None
        limit = max(0, self.document().characterCount() - 1)
        qt_start = min(offsets.to_qt(start), limit)
        qt_end = min(offsets.to_qt(end), limit)
        if qt_end <= qt_start:
            return None
        cursor = QTextCursor(self.document())
        cursor.setPosition(qt_start)
        cursor.setPosition(qt_end, QTextCursor.KeepAnchor)
        return _ActivatableRegion(cursor, on_activate)

    @staticmethod
    def _is_live(region: _ActivatableRegion) -> bool:
        return region.cursor.selectionEnd() > region.cursor.selectionStart()

    @staticmethod
    def _region_span(offsets: _OffsetMap, region: _ActivatableRegion) -> tuple[int, int]:
        return (
            offsets.to_offset(region.cursor.selectionStart()),
            offsets.to_offset(region.cursor.selectionEnd()),
        )

    def _offset_at_point(self, point) -> int:
        cursor = self.cursorForPosition(point)
        return offset_for_qt_position(self.toPlainText(), cursor.position())

    def _link_format(self) -> QTextCharFormat:
        fmt = QTextCharFormat()
        fmt.setForeground(QColor(self.LINK_COLOR))
        fmt.setFontUnderline(True)
        fmt.setUnderlineStyle(QTextCharFormat.SingleUnderline)
        fmt.setFontWeight(QFont.Weight.DemiBold)
        return fmt

    def _rebuild_extra_selections(self):
        selections: list[QTextEdit.ExtraSelection] = []
        fmt = self._link_format()
        for region in self._regions:
            sel = QTextEdit.ExtraSelection()
            # Shares the document position with the region; edits move both.
            sel.cursor = region.cursor
            sel.format = fmt
            selections.append(sel)
        self.setExtraSelections(selections)
