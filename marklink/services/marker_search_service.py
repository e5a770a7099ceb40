"""Aggregate marker search over open documents and files on disk."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable, Iterable, Protocol

from marklink.services.markers import ERROR_SEARCH_FAILED, MarkerError
from marklink.services.text_search_service import SOURCE_DOCUMENT, SearchMatch, TextSearchResult


@dataclass(frozen=True, slots=True)
class OpenDocumentText:
    key: str
    display_name: str
    text: str


class FileSearch(Protocol):
    def search(self, pattern: str, root: str, *, fixed_strings: bool = False) -> TextSearchResult:
        ...


@dataclass(slots=True)
class AggregatedSearch:
    query: str
    matches: list[SearchMatch] = field(default_factory=list)
    document_match_count: int = 0
    file_match_count: int = 0
    file_search_error: str = ""

    @property
    def error(self) -> MarkerError | None:
        if not self.file_search_error:
            return None
        return MarkerError(ERROR_SEARCH_FAILED, self.file_search_error)


def search_open_documents(pattern: re.Pattern[str], documents: Iterable[OpenDocumentText]) -> list[SearchMatch]:
    results: list[SearchMatch] = []
    for doc in documents:
        for match in pattern.finditer(doc.text):
            results.append(
                SearchMatch(
                    label=doc.key,
                    position=int(match.start()),
                    source=SOURCE_DOCUMENT,
                    display_name=doc.display_name,
                )
            )
    return results


class MarkerSearchService:
    """In-memory matches first, then filesystem matches; no ranking or dedup."""

    def __init__(
        self,
        documents_provider: Callable[[], Iterable[OpenDocumentText]],
        file_search: FileSearch,
        *,
        root: str = "~",
    ) -> None:
        self._documents_provider = documents_provider
        self._file_search = file_search
        self.root = str(root or "~")
        self.last_error = ""

    def search(self, pattern: str) -> list[SearchMatch]:
        return self.run(pattern).matches

    def run(self, pattern: str) -> AggregatedSearch:
        outcome = AggregatedSearch(query=pattern)
        compiled = re.compile(pattern)

        in_memory = search_open_documents(compiled, self._documents_provider())
        on_disk = self._search_files(pattern)

        outcome.matches = in_memory + on_disk.matches
        outcome.document_match_count = len(in_memory)
        outcome.file_match_count = len(on_disk.matches)
        outcome.file_search_error = "" if on_disk.ok else (on_disk.message or "File search failed.")
        self.last_error = outcome.file_search_error
        return outcome

    def _search_files(self, pattern: str) -> TextSearchResult:
        try:
            return self._file_search.search(pattern, self.root)
        except Exception as exc:
            return TextSearchResult(status="failed", message=f"File search failed: {exc}")
