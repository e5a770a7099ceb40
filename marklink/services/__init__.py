"""Qt-free marker parsing, indexing and search services."""

from .marker_grammar import LOCATION, MARKER_KINDS, REFERENCE, MarkerKind, search_pattern_for
from .marker_index import DocumentIndex, extract_markers
from .marker_search_service import AggregatedSearch, MarkerSearchService, OpenDocumentText
from .markers import Interval, Marker, MarkerError, make_interval, make_marker
from .text_search_service import RipgrepSearch, SearchMatch, TextSearchResult, parse_search_output

__all__ = [
    "LOCATION",
    "MARKER_KINDS",
    "REFERENCE",
    "MarkerKind",
    "search_pattern_for",
    "DocumentIndex",
    "extract_markers",
    "AggregatedSearch",
    "MarkerSearchService",
    "OpenDocumentText",
    "Interval",
    "Marker",
    "MarkerError",
    "make_interval",
    "make_marker",
    "RipgrepSearch",
    "SearchMatch",
    "TextSearchResult",
    "parse_search_output",
]
