from __future__ import annotations

import uuid
from pathlib import Path
from typing import Callable

from PySide6.QtCore import Qt
from PySide6.QtGui import QAction, QGuiApplication, QKeySequence
from PySide6.QtWidgets import QDockWidget, QFileDialog, QMainWindow, QMessageBox

from marklink.services.marker_grammar import LOCATION, REFERENCE
from marklink.services.marker_search_service import MarkerSearchService
from marklink.services.markers import Interval, MarkerError, TextSource
from marklink.services.text_search_service import RipgrepSearch, SearchMatch
from marklink.settings_models import MarkLinkSettings, default_settings
from marklink.ui.controllers import MarkerLinkController, MarkerSearchController
from marklink.ui.editor_workspace import EditorWorkspace
from marklink.ui.marker_registry import MarkerRegistry, TextDocumentClassifier
from marklink.ui.widgets.marker_results_panel import MarkerResultsPanel


class MainWindow(QMainWindow):
    def __init__(self, settings: MarkLinkSettings | None = None, parent=None):
        super().__init__(parent)
        self.setWindowTitle("MarkLink")
        self.resize(1100, 760)
        cfg = settings or default_settings()
        marker_cfg = cfg.get("markers", {})
        search_cfg = cfg.get("search", {})

        self.workspace = EditorWorkspace(self)
        self.setCentralWidget(self.workspace)

        self.results_panel = MarkerResultsPanel(self)
        self.results_dock = QDockWidget("Marker Links", self)
        self.results_dock.setObjectName("marker_links_dock")
        self.results_dock.setWidget(self.results_panel)
        self.addDockWidget(Qt.BottomDockWidgetArea, self.results_dock)
        self.results_panel.documentOffsetActivated.connect(self.workspace.goto_document_offset)
        self.results_panel.fileLineActivated.connect(self.workspace.goto_file_line)
        self.results_panel.documentActivated.connect(self.workspace.goto_label)

        self.text_search = RipgrepSearch(
            executable=str(search_cfg.get("executable") or "rg"),
            timeout_s=float(search_cfg.get("timeout_s") or 0),
            extra_args=list(search_cfg.get("extra_args") or []),
        )
        self.registry = MarkerRegistry(
            TextDocumentClassifier(marker_cfg.get("text_language_ids")),
            presenter=self,
            debounce_ms=int(marker_cfg.get("debounce_ms", 1000)),
            parent=self,
        )
        self.search_service = MarkerSearchService(
            self.registry.documents,
            self.text_search,
            root=str(search_cfg.get("root") or "~"),
        )
        self.search_controller = MarkerSearchController(self.search_service, presenter=self, parent=self)
        self.link_controller = MarkerLinkController(
            self.workspace,
            self.registry,
            self.search_controller,
            self.text_search,
            parent=self,
        )

        for source in (self.registry, self.search_controller, self.link_controller):
            source.statusMessage.connect(self._show_status)

        self._build_menus()

    # ---------- Presenter ----------

    def make_activatable(self, interval: Interval, on_activate: Callable[[], None]) -> None:
        record = self.workspace.record_for_document(interval.document)
        if record is None:
            return
        record.editor.add_activatable(interval.start, interval.end, on_activate)

    def set_activatable(self, document: TextSource, regions: list[tuple[Interval, Callable[[], None]]]) -> None:
        record = self.workspace.record_for_document(document)
        if record is None:
            return
        record.editor.set_activatable((interval.start, interval.end, cb) for interval, cb in regions)

    def clear_activatable(self, document: TextSource) -> None:
        record = self.workspace.record_for_document(document)
        if record is None:
            return
        record.editor.clear_activatable()

    def display(self, query: str, matches: list[SearchMatch]) -> None:
        self.results_panel.set_results(query, matches)
        self.results_dock.show()
        self.results_dock.raise_()

    # ---------- Activation ----------

    def activate_marker_links(self) -> MarkerError | None:
        missing = self.link_controller.activate()
        if missing is not None:
            QMessageBox.critical(self, "Marker Links", missing.message)
        self._sync_toggle_action()
        return missing

    def deactivate_marker_links(self) -> None:
        self.link_controller.deactivate()
        self._sync_toggle_action()

    def closeEvent(self, event):
        self.link_controller.deactivate()
        super().closeEvent(event)

    # ---------- Actions ----------

    def _build_menus(self):
        file_menu = self.menuBar().addMenu("&File")
        act_new = QAction("New", self)
        act_new.setShortcut(QKeySequence.New)
        act_new.triggered.connect(lambda: self.workspace.new_document())
        file_menu.addAction(act_new)

        act_open = QAction("Open...", self)
        act_open.setShortcut(QKeySequence.Open)
        act_open.triggered.connect(self._open_files_dialog)
        file_menu.addAction(act_open)

        act_save = QAction("Save", self)
        act_save.setShortcut(QKeySequence.Save)
        act_save.triggered.connect(self._save_current)
        file_menu.addAction(act_save)

        markers_menu = self.menuBar().addMenu("&Markers")
        self.act_toggle_links = QAction("Marker Links Active", self)
        self.act_toggle_links.setCheckable(True)
        self.act_toggle_links.triggered.connect(self._on_toggle_links)
        markers_menu.addAction(self.act_toggle_links)

        act_insert = QAction("Insert Location Marker", self)
        act_insert.setShortcut(QKeySequence("Ctrl+Alt+L"))
        act_insert.triggered.connect(self.insert_location_marker)
        markers_menu.addAction(act_insert)

    def insert_location_marker(self) -> str:
        """Insert a fresh location marker and copy its reference to the clipboard."""
        record = self.workspace.current_record()
        if record is None:
            return ""
        marker_uuid = str(uuid.uuid4())
        record.editor.textCursor().insertText(f"({LOCATION.token} {marker_uuid})")
        QGuiApplication.clipboard().setText(f"({REFERENCE.token} {marker_uuid})")
        self._show_status(f"Inserted location {marker_uuid}; reference copied to clipboard.")
        return marker_uuid

    def _on_toggle_links(self, checked: bool):
        if checked:
            self.activate_marker_links()
        else:
            self.deactivate_marker_links()

    def _sync_toggle_action(self):
        self.act_toggle_links.setChecked(self.link_controller.active)

    def _open_files_dialog(self):
        paths, _ = QFileDialog.getOpenFileNames(self, "Open Files")
        for path in paths:
            self.workspace.open_file(path)

    def _save_current(self):
        record = self.workspace.current_record()
        if record is None:
            return
        if not record.file_path:
            path, _ = QFileDialog.getSaveFileName(self, "Save As")
            if not path:
                return
            try:
                Path(path).write_text(record.document.toPlainText(), encoding="utf-8")
            except OSError as exc:
                QMessageBox.warning(self, "Save Error", f"Could not save file:\n{exc}")
                return
            # Re-open under the file's key; scratch keys are not stable identities.
            self.workspace.close_document(record.key)
            self.workspace.open_file(path)
            return
        self.workspace.save_record(record)

    def _show_status(self, text: str):
        self.statusBar().showMessage(str(text or ""), 4000)
