from __future__ import annotations

import os
import uuid
from dataclasses import dataclass
from pathlib import Path

from PySide6.QtCore import Signal
from PySide6.QtGui import QTextDocument
from PySide6.QtWidgets import QMessageBox, QTabWidget, QVBoxLayout, QWidget

from marklink.ui.widgets.marker_editor import MarkerEditor


@dataclass
class DocumentRecord:
    key: str
    document: QTextDocument
    editor: MarkerEditor
    file_path: str | None = None
    untitled_name: str = "untitled"

    @property
    def display_name(self) -> str:
        return os.path.basename(self.file_path) if self.file_path else self.untitled_name


class EditorWorkspace(QWidget):
    documentCreated = Signal(object)  # DocumentRecord
    documentMutated = Signal(object)  # DocumentRecord
    documentClosed = Signal(str)  # key

    def __init__(self, parent=None):
        super().__init__(parent)
        self._documents: dict[str, DocumentRecord] = {}
        self._untitled_count = 0

        self.tabs = QTabWidget(self)
        self.tabs.setTabsClosable(True)
        self.tabs.setMovable(True)
        self.tabs.tabCloseRequested.connect(self._on_tab_close_requested)

        lay = QVBoxLayout(self)
        lay.setContentsMargins(0, 0, 0, 0)
        lay.addWidget(self.tabs)

    # -------- documents --------

    @staticmethod
    def canonical_path(path: str) -> str:
        try:
            return str(Path(path).expanduser().resolve())
        except Exception:
            return os.path.abspath(path)

    @staticmethod
    def is_document_alive(document: QTextDocument | None) -> bool:
        if not isinstance(document, QTextDocument):
            return False
        try:
            _ = document.isModified()
        except RuntimeError:
            return False
        return True

    def open_document_records(self) -> list[DocumentRecord]:
        return [r for r in self._documents.values() if self.is_document_alive(r.document)]

    def record(self, key: str) -> DocumentRecord | None:
        return self._documents.get(key)

    def record_for_document(self, document: object) -> DocumentRecord | None:
        for record in self._documents.values():
            if record.document is document:
                return record
        return None

    def current_record(self) -> DocumentRecord | None:
        editor = self.tabs.currentWidget()
        for record in self._documents.values():
            if record.editor is editor:
                return record
        return None

    def new_document(self, text: str = "") -> DocumentRecord:
        editor = MarkerEditor(self)
        editor.setPlainText(text)
        editor.document().setModified(False)
        key = f"__editor__/{uuid.uuid4()}"
        self._untitled_count += 1
        return self._register(key, editor, None, untitled_name=f"untitled-{self._untitled_count}")

    def open_file(self, path: str) -> DocumentRecord | None:
        cpath = self.canonical_path(path)
        existing = self._documents.get(cpath)
        if existing is not None:
            self.tabs.setCurrentWidget(existing.editor)
            return existing
        if not os.path.isfile(cpath):
            QMessageBox.warning(self, "Open Error", f"File does not exist:\n{cpath}")
            return None
        try:
            text = Path(cpath).read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            QMessageBox.warning(self, "Open Error", f"Could not read file:\n{exc}")
            return None
        editor = MarkerEditor(self)
        editor.setPlainText(text)
        editor.document().setModified(False)
        return self._register(cpath, editor, cpath)

    def save_record(self, record: DocumentRecord) -> bool:
        if not record.file_path:
            return False
        try:
            Path(record.file_path).write_text(record.document.toPlainText(), encoding="utf-8")
        except OSError as exc:
            QMessageBox.warning(self, "Save Error", f"Could not save file:\n{exc}")
            return False
        record.document.setModified(False)
        self._refresh_tab_title(record)
        return True

    def close_document(self, key: str) -> bool:
        record = self._documents.pop(key, None)
        if record is None:
            return False
        index = self.tabs.indexOf(record.editor)
        if index >= 0:
            self.tabs.removeTab(index)
        self.documentClosed.emit(key)
        record.editor.deleteLater()
        return True

    # -------- navigation --------

    def goto_document_offset(self, key: str, offset: int) -> bool:
        record = self._documents.get(key)
        if record is None or not self.is_document_alive(record.document):
            return False
        self.tabs.setCurrentWidget(record.editor)
        record.editor.jump_to_offset(offset)
        return True

    def goto_file_line(self, path: str, line: int) -> bool:
        record = self.open_file(path)
        if record is None:
            return False
        self.tabs.setCurrentWidget(record.editor)
        record.editor.jump_to_line(line)
        return True

    def goto_label(self, label: str) -> bool:
        if label in self._documents:
            self.tabs.setCurrentWidget(self._documents[label].editor)
            return True
        return self.open_file(label) is not None

    # -------- helpers --------

    def _register(
        self,
        key: str,
        editor: MarkerEditor,
        file_path: str | None,
        *,
        untitled_name: str = "untitled",
    ) -> DocumentRecord:
        record = DocumentRecord(
            key=key,
            document=editor.document(),
            editor=editor,
            file_path=file_path,
            untitled_name=untitled_name,
        )
        self._documents[key] = record
        self.tabs.addTab(editor, record.display_name)
        self.tabs.setCurrentWidget(editor)
        editor.document().contentsChanged.connect(lambda k=key: self._on_contents_changed(k))
        editor.document().modificationChanged.connect(lambda _m, k=key: self._on_modification_changed(k))
        self.documentCreated.emit(record)
        return record

    def _on_contents_changed(self, key: str):
        record = self._documents.get(key)
        if record is None:
            return
        self.documentMutated.emit(record)

    def _on_modification_changed(self, key: str):
        record = self._documents.get(key)
        if record is not None:
            self._refresh_tab_title(record)

    def _refresh_tab_title(self, record: DocumentRecord):
        index = self.tabs.indexOf(record.editor)
        if index < 0:
            return
        title = record.display_name
        if record.document.isModified():
            title = f"*{title}"
        self.tabs.setTabText(index, title)
        self.tabs.setTabToolTip(index, record.file_path or record.key)

    def _on_tab_close_requested(self, index: int):
        editor = self.tabs.widget(index)
        for key, record in list(self._documents.items()):
            if record.editor is not editor:
                continue
            if record.document.isModified() and record.file_path:
                answer = QMessageBox.question(
                    self,
                    "Unsaved Changes",
                    f"Save changes to {record.display_name} before closing?",
                    QMessageBox.Save | QMessageBox.Discard | QMessageBox.Cancel,
                )
                if answer == QMessageBox.Cancel:
                    return
                if answer == QMessageBox.Save and not self.save_record(record):
                    return
            self.close_document(key)
            return
