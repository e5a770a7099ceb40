from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, Iterable, Optional, Protocol

from PySide6.QtCore import QObject, Signal

from marklink.services.language_id import is_text_language, language_id_for_path
from marklink.services.marker_index import DocumentIndex
from marklink.services.marker_search_service import OpenDocumentText
from marklink.services.markers import ERROR_INELIGIBLE, Interval, Marker, MarkerError, TextSource
from marklink.ui.reindex_scheduler import DEFAULT_DEBOUNCE_MS, ReindexScheduler

DOCUMENT_CREATED = "created"
DOCUMENT_MUTATED = "mutated"


@dataclass(frozen=True, slots=True)
class DocumentInfo:
    key: str
    document: TextSource
    display_name: str


@dataclass
class RegistryEntry:
    key: str
    handle: Any
    document: TextSource
    display_name: str
    eligible: bool = True
    index: Optional[DocumentIndex] = None


class DocumentClassifier(Protocol):
    def classify(self, handle: Any) -> DocumentInfo | MarkerError:
        ...

    def is_alive(self, handle: Any) -> bool:
        ...


class MarkerPresenter(Protocol):
    def make_activatable(self, interval: Interval, on_activate: Callable[[], None]) -> None:
        ...

    def clear_activatable(self, document: TextSource) -> None:
        ...

    def display(self, query: str, matches: list) -> None:
        ...

    # Optional: set_activatable(document, [(interval, on_activate), ...]) replaces
    # a document's regions in one call instead of clear + make per marker.


class TextDocumentClassifier:
    """Eligible handles expose ``key``, ``document`` and ``file_path`` and are text-like by name."""

    def __init__(self, text_language_ids: Iterable[str] | None = None):
        self.text_language_ids = tuple(text_language_ids) if text_language_ids is not None else None

    def classify(self, handle: Any) -> DocumentInfo | MarkerError:
        document = getattr(handle, "document", None)
        key = str(getattr(handle, "key", "") or "").strip()
        if document is None or not key or not callable(getattr(document, "toPlainText", None)):
            return MarkerError(ERROR_INELIGIBLE, "Not a text document.")
        if not self.is_alive(handle):
            return MarkerError(ERROR_INELIGIBLE, f"Document {key} is closed.")

        file_path = getattr(handle, "file_path", None)
        language_id = language_id_for_path(file_path)
        if not is_text_language(language_id, self.text_language_ids):
            return MarkerError(ERROR_INELIGIBLE, f"{language_id} documents are not indexed for markers.")

        # Full path, like file matches, so same-named files stay distinguishable.
        display_name = str(file_path) if file_path else str(getattr(handle, "display_name", "") or key)
        return DocumentInfo(key=key, document=document, display_name=display_name)

    def is_alive(self, handle: Any) -> bool:
        document = getattr(handle, "document", None)
        if document is None:
            return False
        try:
            # Deleted Qt objects raise on any call.
            document.toPlainText()
        except RuntimeError:
            return False
        return True


class MarkerRegistry(QObject):
    indexRebuilt = Signal(str, object)  # key, DocumentIndex
    entryForgotten = Signal(str)
    statusMessage = Signal(str)

    def __init__(
        self,
        classifier: DocumentClassifier,
        presenter: MarkerPresenter | None = None,
        *,
        debounce_ms: int = DEFAULT_DEBOUNCE_MS,
        parent=None,
    ):
        super().__init__(parent)
        self._classifier = classifier
        self._presenter = presenter
        self._activation_handler: Callable[[Marker], None] | None = None
        self._entries: dict[str, RegistryEntry] = {}
        self.scheduler = ReindexScheduler(debounce_ms, parent=self)
        self.scheduler.reindexDue.connect(self.reindex)

    # ---------- Public API ----------

    def set_presenter(self, presenter: MarkerPresenter | None):
        self._presenter = presenter

    def set_activation_handler(self, handler: Callable[[Marker], None] | None):
        self._activation_handler = handler

    def set_debounce_ms(self, delay_ms: int):
        self.scheduler.set_delay_ms(delay_ms)

    def observe(self, kind: str, handle: Any) -> DocumentIndex | MarkerError | None:
        if kind not in (DOCUMENT_CREATED, DOCUMENT_MUTATED):
            raise ValueError(f"Unknown document event: {kind!r}")

        info = self._classifier.classify(handle)
        if isinstance(info, MarkerError):
            return info

        entry = self._ensure_entry(info, handle)
        if kind == DOCUMENT_CREATED:
            return self.reindex(entry.key)

        self.scheduler.schedule(entry.key)
        return None

    def init(self, handles: Iterable[Any]) -> int:
        indexed = 0
        for handle in handles:
            result = self.observe(DOCUMENT_CREATED, handle)
            if isinstance(result, DocumentIndex):
                indexed += 1
        return indexed

    def teardown(self):
        self.scheduler.cancel_all()

    def reindex(self, key: str) -> DocumentIndex | None:
        self.scheduler.cancel(key)
        entry = self._entries.get(key)
        if entry is None:
            return None
        if not self._classifier.is_alive(entry.handle):
            self.forget(key)
            return None

        index = DocumentIndex.rebuild(key, entry.document)
        entry.index = index
        self._install_activatable_regions(entry, index)
        self.indexRebuilt.emit(key, index)
        return index

    def forget(self, key: str) -> bool:
        self.scheduler.release(key)
        entry = self._entries.pop(key, None)
        if entry is None:
            return False
        self.entryForgotten.emit(key)
        return True

    def entry(self, key: str) -> RegistryEntry | None:
        return self._entries.get(key)

    def entries(self) -> list[RegistryEntry]:
        return list(self._entries.values())

    def index_for(self, key: str) -> DocumentIndex | None:
        entry = self._entries.get(key)
        return entry.index if entry is not None else None

    def documents(self) -> list[OpenDocumentText]:
        out: list[OpenDocumentText] = []
        for entry in list(self._entries.values()):
            if not self._classifier.is_alive(entry.handle):
                continue
            out.append(
                OpenDocumentText(
                    key=entry.key,
                    display_name=entry.display_name,
                    text=str(entry.document.toPlainText() or ""),
                )
            )
        return out

    # ---------- Helpers ----------

    def _ensure_entry(self, info: DocumentInfo, handle: Any) -> RegistryEntry:
        entry = self._entries.get(info.key)
        if entry is None:
            entry = RegistryEntry(
                key=info.key,
                handle=handle,
                document=info.document,
                display_name=info.display_name,
            )
            self._entries[info.key] = entry
            return entry
        entry.handle = handle
        entry.document = info.document
        entry.display_name = info.display_name
        entry.eligible = True
        return entry

    def _install_activatable_regions(self, entry: RegistryEntry, index: DocumentIndex):
        presenter = self._presenter
        if presenter is None:
            return
        regions = [(marker.interval, partial(self._activate, marker)) for marker in index.markers()]
        try:
            replace_all = getattr(presenter, "set_activatable", None)
            if callable(replace_all):
                replace_all(entry.document, regions)
                return
            presenter.clear_activatable(entry.document)
            for interval, on_activate in regions:
                presenter.make_activatable(interval, on_activate)
        except Exception as exc:
            # Presentation failures must not break indexing.
            self.statusMessage.emit(f"Could not show markers for {entry.display_name}: {exc}")

    def _activate(self, marker: Marker):
        handler = self._activation_handler
        if handler is None:
            return
        handler(marker)
