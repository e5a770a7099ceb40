"""Tests for marker grammar, intervals and marker construction."""

from __future__ import annotations

import re

import pytest

from marklink.services.marker_grammar import (
    LOCATION,
    REFERENCE,
    is_uuid_text,
    kind_for_name,
    search_pattern_for,
)
from marklink.services.markers import (
    ERROR_NO_MATCH,
    ERROR_OUT_OF_RANGE,
    Interval,
    Marker,
    MarkerError,
    make_interval,
    make_location,
    make_marker,
    make_reference,
)
from tests.doc_helpers import LOC_UUID, OTHER_UUID, FakeDocument


class TestGrammar:
    def test_uuid_shape(self) -> None:
        assert is_uuid_text(OTHER_UUID)
        assert is_uuid_text(OTHER_UUID.upper())
        assert not is_uuid_text("2f40255-e55b-4a2a-8e4d-fbda29f6c5fb")
        assert not is_uuid_text("2f402556e55b4a2a8e4dfbda29f6c5fb")
        assert not is_uuid_text("zf402556-e55b-4a2a-8e4d-fbda29f6c5fb")

    def test_patterns_accept_any_whitespace_run(self) -> None:
        text = f"(loc \t\n  {LOC_UUID})"
        match = LOCATION.pattern.search(text)
        assert match is not None
        assert match.group("uuid") == LOC_UUID

    def test_patterns_require_whitespace_and_parens(self) -> None:
        assert LOCATION.pattern.search(f"(loc{LOC_UUID})") is None
        assert LOCATION.pattern.search(f"loc {LOC_UUID})") is None
        assert LOCATION.pattern.search(f"(loc {LOC_UUID}") is None
        assert REFERENCE.pattern.search(f"(loc {LOC_UUID})") is None

    def test_kinds_are_complementary(self) -> None:
        assert LOCATION.complement is REFERENCE
        assert REFERENCE.complement is LOCATION
        assert kind_for_name("Location") is LOCATION

    def test_unknown_kind_name_raises(self) -> None:
        with pytest.raises(ValueError):
            kind_for_name("anchor")

    def test_search_pattern_matches_only_that_uuid(self) -> None:
        pattern = re.compile(search_pattern_for(REFERENCE, LOC_UUID))
        assert pattern.search(f"x (ref   {LOC_UUID}) y")
        assert not pattern.search(f"(ref {OTHER_UUID})")
        assert not pattern.search(f"(loc {LOC_UUID})")

    def test_search_pattern_is_case_sensitive(self) -> None:
        pattern = re.compile(search_pattern_for(REFERENCE, OTHER_UUID))
        assert not pattern.search(f"(ref {OTHER_UUID.upper()})")


class TestInterval:
    def test_valid_interval(self) -> None:
        doc = FakeDocument("hello world")
        interval = make_interval(doc, 6, 11)

        assert isinstance(interval, Interval)
        assert interval.document is doc
        assert (interval.start, interval.end) == (6, 11)
        assert interval.text == "world"

    def test_empty_interval_at_end_is_valid(self) -> None:
        doc = FakeDocument("abc")
        assert isinstance(make_interval(doc, 3, 3), Interval)

    @pytest.mark.parametrize("start,end", [(-1, 2), (3, 2), (0, 4)])
    def test_out_of_range(self, start: int, end: int) -> None:
        result = make_interval(FakeDocument("abc"), start, end)

        assert isinstance(result, MarkerError)
        assert result.kind == ERROR_OUT_OF_RANGE

    def test_text_reflects_current_document(self) -> None:
        doc = FakeDocument("hello world")
        interval = make_interval(doc, 0, 5)
        doc.text = "HELLO world"

        assert interval.text == "HELLO"

    def test_bounds_read_at_construction_time(self) -> None:
        doc = FakeDocument("abc")
        assert isinstance(make_interval(doc, 0, 6), MarkerError)
        doc.text = "abcdef"
        assert isinstance(make_interval(doc, 0, 6), Interval)


class TestMarkerConstruction:
    def test_reference_from_matching_interval(self) -> None:
        text = f"see (ref {OTHER_UUID}) here"
        doc = FakeDocument(text)
        start = text.index("(")
        interval = make_interval(doc, start, text.index(")") + 1)

        marker = make_reference(interval)

        assert isinstance(marker, Marker)
        assert marker.is_reference
        assert not marker.is_location
        assert marker.uuid == OTHER_UUID
        assert marker.complement is LOCATION

    def test_wrong_kind_is_an_error(self) -> None:
        text = f"(ref {OTHER_UUID})"
        interval = make_interval(FakeDocument(text), 0, len(text))

        result = make_location(interval)

        assert isinstance(result, MarkerError)
        assert result.kind == ERROR_NO_MATCH

    def test_partial_span_is_an_error(self) -> None:
        text = f"(loc {LOC_UUID}) trailing"
        interval = make_interval(FakeDocument(text), 0, len(text))

        assert isinstance(make_marker(LOCATION, interval), MarkerError)

    def test_search_pattern_targets_complement(self) -> None:
        text = f"(loc {LOC_UUID})"
        marker = make_location(make_interval(FakeDocument(text), 0, len(text)))

        assert re.search(marker.search_pattern(), f"(ref {LOC_UUID})")
        assert not re.search(marker.search_pattern(), text)
