"""Marker value types.

Constructors in this module never raise on bad input; they return a
``MarkerError`` instead and callers check for it with ``isinstance``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from marklink.services.marker_grammar import LOCATION, REFERENCE, MarkerKind, search_pattern_for

ERROR_OUT_OF_RANGE = "out_of_range"
ERROR_NO_MATCH = "no_match"
ERROR_INELIGIBLE = "ineligible"
ERROR_MISSING_DEPENDENCY = "missing_dependency"
ERROR_SEARCH_FAILED = "search_failed"


class TextSource(Protocol):
    def toPlainText(self) -> str:
        ...


@dataclass(frozen=True, slots=True)
class MarkerError:
    kind: str
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True, slots=True)
class Interval:
    document: TextSource
    start: int
    end: int

    @property
    def text(self) -> str:
        # Read from the live document; an Interval is a span, not a copy.
        return str(self.document.toPlainText() or "")[self.start : self.end]

    @property
    def length(self) -> int:
        return self.end - self.start

    def contains(self, position: int) -> bool:
        return self.start <= int(position) < self.end


@dataclass(frozen=True, slots=True)
class Marker:
    kind: MarkerKind
    interval: Interval
    uuid: str

    @property
    def is_location(self) -> bool:
        return self.kind is LOCATION

    @property
    def is_reference(self) -> bool:
        return self.kind is REFERENCE

    @property
    def complement(self) -> MarkerKind:
        return self.kind.complement

    @property
    def start(self) -> int:
        return self.interval.start

    @property
    def end(self) -> int:
        return self.interval.end

    def search_pattern(self) -> str:
        """Pattern for the markers this one points at."""
        return search_pattern_for(self.complement, self.uuid)


def make_interval(document: TextSource, start: int, end: int) -> Interval | MarkerError:
    text_length = len(str(document.toPlainText() or ""))
    start = int(start)
    end = int(end)
    if start < 0 or start > end or end > text_length:
        return MarkerError(
            ERROR_OUT_OF_RANGE,
            f"Interval {start}..{end} is outside document bounds 0..{text_length}.",
        )
    return Interval(document=document, start=start, end=end)


def make_marker(kind: MarkerKind, interval: Interval) -> Marker | MarkerError:
    text = interval.text
    match = kind.pattern.fullmatch(text)
    if match is None:
        return MarkerError(
            ERROR_NO_MATCH,
            f"Text {text!r} at {interval.start}..{interval.end} is not a {kind.name} marker.",
        )
    return Marker(kind=kind, interval=interval, uuid=match.group("uuid"))


def make_location(interval: Interval) -> Marker | MarkerError:
    return make_marker(LOCATION, interval)


def make_reference(interval: Interval) -> Marker | MarkerError:
    return make_marker(REFERENCE, interval)
