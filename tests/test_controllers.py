"""Tests for marker link activation and marker search controllers."""

from __future__ import annotations

from PySide6.QtCore import QObject, Signal
from PySide6.QtTest import QTest

from marklink.services.marker_search_service import MarkerSearchService
from marklink.services.markers import ERROR_MISSING_DEPENDENCY, MarkerError
from marklink.services.text_search_service import SOURCE_FILE, SearchMatch, TextSearchResult
from marklink.ui.controllers import MarkerLinkController, MarkerSearchController
from marklink.ui.marker_registry import MarkerRegistry, TextDocumentClassifier
from tests.doc_helpers import LOC_UUID, OTHER_UUID, text_handle


class FakeHost(QObject):
    documentCreated = Signal(object)
    documentMutated = Signal(object)
    documentClosed = Signal(str)

    def __init__(self, handles=()):
        super().__init__()
        self.handles = list(handles)

    def open_document_records(self):
        return list(self.handles)


class FakeFileSearch:
    def __init__(self, available: bool = True, matches=None, status: str = "ok", message: str = "") -> None:
        self.available = available
        self.result = TextSearchResult(status=status, matches=list(matches or []), message=message)
        self.patterns: list[str] = []

    def check_available(self):
        if self.available:
            return None
        return MarkerError(ERROR_MISSING_DEPENDENCY, "rg missing")

    def search(self, pattern, root, *, fixed_strings=False):
        self.patterns.append(pattern)
        return self.result


class RecordingPresenter:
    def __init__(self) -> None:
        self.regions: list[tuple[int, int]] = []
        self.callbacks: list = []
        self.displayed: list[tuple[str, list]] = []

    def clear_activatable(self, document) -> None:
        self.regions.clear()
        self.callbacks.clear()

    def make_activatable(self, interval, on_activate) -> None:
        self.regions.append((interval.start, interval.end))
        self.callbacks.append(on_activate)

    def display(self, query, matches) -> None:
        self.displayed.append((query, list(matches)))


def _wire(handles=(), file_search=None, debounce_ms=50):
    presenter = RecordingPresenter()
    host = FakeHost(handles)
    files = file_search or FakeFileSearch()
    registry = MarkerRegistry(TextDocumentClassifier(), presenter, debounce_ms=debounce_ms)
    service = MarkerSearchService(registry.documents, files, root="/r")
    search = MarkerSearchController(service, presenter)
    controller = MarkerLinkController(host, registry, search, files)
    return controller, host, registry, presenter, files


class TestMarkerLinkController:
    def test_missing_ripgrep_installs_nothing(self) -> None:
        handle = text_handle("a", f"(loc {LOC_UUID})")
        controller, host, registry, presenter, _ = _wire([handle], FakeFileSearch(available=False))
        messages: list[str] = []
        controller.statusMessage.connect(messages.append)

        error = controller.activate()
        host.documentCreated.emit(handle)

        assert isinstance(error, MarkerError)
        assert error.kind == ERROR_MISSING_DEPENDENCY
        assert controller.active is False
        assert registry.entries() == []
        assert presenter.regions == []
        assert messages == ["rg missing"]

    def test_activation_indexes_open_documents(self) -> None:
        handle = text_handle("a", f"(loc {LOC_UUID}) (ref {OTHER_UUID})")
        controller, _, registry, presenter, _ = _wire([handle])
        changes: list[bool] = []
        controller.activationChanged.connect(changes.append)

        assert controller.activate() is None
        assert controller.activate() is None

        assert controller.active is True
        assert changes == [True]
        assert registry.index_for("a").marker_count == 2
        assert len(presenter.regions) == 2

    def test_host_events_drive_the_registry(self) -> None:
        controller, host, registry, _, _ = _wire()
        controller.activate()
        handle = text_handle("new", "")

        host.documentCreated.emit(handle)
        assert registry.index_for("new").marker_count == 0

        handle.document.setPlainText(f"(ref {OTHER_UUID})")
        host.documentMutated.emit(handle)
        assert registry.index_for("new").marker_count == 0
        QTest.qWait(300)
        assert registry.index_for("new").marker_count == 1

        host.documentClosed.emit("new")
        assert registry.entry("new") is None

    def test_deactivate_stops_listening(self) -> None:
        handle = text_handle("a", "")
        controller, host, registry, _, _ = _wire([handle])
        controller.activate()
        handle.document.setPlainText(f"(loc {LOC_UUID})")
        host.documentMutated.emit(handle)

        controller.deactivate()
        QTest.qWait(200)
        host.documentCreated.emit(text_handle("b", ""))

        assert controller.active is False
        assert registry.scheduler.pending_keys() == []
        assert registry.index_for("a").marker_count == 0
        assert registry.entry("b") is None

    def test_activating_a_marker_searches_for_its_complement(self) -> None:
        file_hit = SearchMatch(label="/r/far.txt", position=9, source=SOURCE_FILE)
        files = FakeFileSearch(matches=[file_hit])
        a = text_handle("a", f"(loc {LOC_UUID})")
        b = text_handle("b", f"xx (ref {LOC_UUID})")
        controller, _, _, presenter, _ = _wire([a, b], files)
        controller.activate()

        # Regions of the last indexed document ("b") are installed.
        presenter.callbacks[0]()

        query, matches = presenter.displayed[-1]
        assert files.patterns == [query]
        assert [(m.label, m.position) for m in matches] == [("a", 0), ("/r/far.txt", 9)]


class TestMarkerSearchController:
    def test_summary_and_display(self) -> None:
        files = FakeFileSearch(status="failed", message="rg: denied")
        presenter = RecordingPresenter()
        service = MarkerSearchService(lambda: [], files)
        controller = MarkerSearchController(service, presenter)
        messages: list[str] = []
        finished = []
        controller.statusMessage.connect(messages.append)
        controller.searchFinished.connect(finished.append)

        outcome = controller.search("needle")

        assert presenter.displayed == [("needle", [])]
        assert finished == [outcome]
        assert messages == ["0 match(es): 0 in open documents, 0 on disk. rg: denied"]

    def test_search_without_presenter(self) -> None:
        service = MarkerSearchService(lambda: [], FakeFileSearch())
        outcome = MarkerSearchController(service).search("x")

        assert outcome.matches == []
