"""Controller for marker activation: complementary search and result display."""

from __future__ import annotations

from PySide6.QtCore import QObject, Signal

from marklink.services.marker_search_service import AggregatedSearch, MarkerSearchService
from marklink.services.markers import Marker
from marklink.ui.marker_registry import MarkerPresenter


class MarkerSearchController(QObject):
    searchFinished = Signal(object)  # AggregatedSearch
    statusMessage = Signal(str)

    def __init__(
        self,
        search_service: MarkerSearchService,
        presenter: MarkerPresenter | None = None,
        parent=None,
    ):
        super().__init__(parent)
        self._search_service = search_service
        self._presenter = presenter

    def set_presenter(self, presenter: MarkerPresenter | None) -> None:
        self._presenter = presenter

    def activate_marker(self, marker: Marker) -> AggregatedSearch:
        return self.search(marker.search_pattern())

    def search(self, pattern: str) -> AggregatedSearch:
        outcome = self._search_service.run(pattern)
        if self._presenter is not None:
            self._presenter.display(outcome.query, list(outcome.matches))

        summary = (
            f"{len(outcome.matches)} match(es): "
            f"{outcome.document_match_count} in open documents, {outcome.file_match_count} on disk."
        )
        if outcome.file_search_error:
            summary = f"{summary} {outcome.file_search_error}"
        self.statusMessage.emit(summary)
        self.searchFinished.emit(outcome)
        return outcome
