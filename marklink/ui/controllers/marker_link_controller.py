"""Activation and deactivation of live marker indexing."""

from __future__ import annotations

from typing import Any, Iterable, Protocol

from PySide6.QtCore import QObject, Signal, SignalInstance

from marklink.services.markers import MarkerError
from marklink.services.text_search_service import RipgrepSearch
from marklink.ui.controllers.marker_search_controller import MarkerSearchController
from marklink.ui.marker_registry import DOCUMENT_CREATED, DOCUMENT_MUTATED, MarkerRegistry


class DocumentHost(Protocol):
    documentCreated: SignalInstance
    documentMutated: SignalInstance
    documentClosed: SignalInstance

    def open_document_records(self) -> Iterable[Any]:
        ...


class MarkerLinkController(QObject):
    activationChanged = Signal(bool)
    statusMessage = Signal(str)

    def __init__(
        self,
        host: DocumentHost,
        registry: MarkerRegistry,
        search_controller: MarkerSearchController,
        text_search: RipgrepSearch,
        parent=None,
    ):
        super().__init__(parent)
        self._host = host
        self._registry = registry
        self._search_controller = search_controller
        self._text_search = text_search
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    def activate(self) -> MarkerError | None:
        if self._active:
            return None
        missing = self._text_search.check_available()
        if missing is not None:
            self.statusMessage.emit(missing.message)
            return missing

        self._registry.set_activation_handler(self._search_controller.activate_marker)
        self._host.documentCreated.connect(self._on_document_created)
        self._host.documentMutated.connect(self._on_document_mutated)
        self._host.documentClosed.connect(self._on_document_closed)
        self._active = True

        indexed = self._registry.init(self._host.open_document_records())
        self.statusMessage.emit(f"Marker links active; indexed {indexed} open document(s).")
        self.activationChanged.emit(True)
        return None

    def deactivate(self) -> None:
        if not self._active:
            return
        for signal, slot in (
            (self._host.documentCreated, self._on_document_created),
            (self._host.documentMutated, self._on_document_mutated),
            (self._host.documentClosed, self._on_document_closed),
        ):
            try:
                signal.disconnect(slot)
            except (RuntimeError, TypeError):
                pass
        self._registry.teardown()
        self._registry.set_activation_handler(None)
        self._active = False
        self.statusMessage.emit("Marker links inactive.")
        self.activationChanged.emit(False)

    def _on_document_created(self, handle: object) -> None:
        self._registry.observe(DOCUMENT_CREATED, handle)

    def _on_document_mutated(self, handle: object) -> None:
        self._registry.observe(DOCUMENT_MUTATED, handle)

    def _on_document_closed(self, key: str) -> None:
        self._registry.forget(str(key or ""))
