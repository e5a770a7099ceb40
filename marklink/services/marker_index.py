"""Full-text marker extraction and the per-document marker index."""

from __future__ import annotations

from dataclasses import dataclass, field

from marklink.services.marker_grammar import LOCATION, MARKER_KINDS, REFERENCE, MarkerKind
from marklink.services.markers import Marker, MarkerError, TextSource, make_interval, make_marker


def scan_kind(document: TextSource, kind: MarkerKind, text: str | None = None) -> list[Marker]:
    source = str(document.toPlainText() or "") if text is None else text
    markers: list[Marker] = []
    for match in kind.pattern.finditer(source):
        interval = make_interval(document, match.start(), match.end())
        if isinstance(interval, MarkerError):
            continue
        marker = make_marker(kind, interval)
        if isinstance(marker, MarkerError):
            continue
        markers.append(marker)
    return markers


def extract_markers(document: TextSource) -> tuple[list[Marker], list[Marker]]:
    """Scan the whole document once per kind; returns (locations, references)."""
    text = str(document.toPlainText() or "")
    found = {kind.name: scan_kind(document, kind, text) for kind in MARKER_KINDS}
    return found[LOCATION.name], found[REFERENCE.name]


@dataclass(frozen=True, slots=True)
class DocumentIndex:
    key: str
    locations: tuple[Marker, ...] = field(default_factory=tuple)
    references: tuple[Marker, ...] = field(default_factory=tuple)

    @classmethod
    def rebuild(cls, key: str, document: TextSource) -> "DocumentIndex":
        locations, references = extract_markers(document)
        return cls(key=str(key), locations=tuple(locations), references=tuple(references))

    @classmethod
    def empty(cls, key: str) -> "DocumentIndex":
        return cls(key=str(key))

    def markers(self) -> list[Marker]:
        return sorted(
            list(self.locations) + list(self.references),
            key=lambda marker: (marker.start, marker.end),
        )

    def marker_at(self, position: int) -> Marker | None:
        for marker in self.markers():
            if marker.interval.contains(position):
                return marker
        return None

    def signature(self) -> tuple[tuple[str, int, int, str], ...]:
        return tuple((m.kind.name, m.start, m.end, m.uuid) for m in self.markers())

    @property
    def marker_count(self) -> int:
        return len(self.locations) + len(self.references)
