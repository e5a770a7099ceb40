"""Text grammar for location/reference markers.

A marker is ``(loc <uuid>)`` or ``(ref <uuid>)`` with one or more whitespace
characters between the token and the UUID. UUIDs are matched as literal text
and never normalized, so comparisons stay case-sensitive.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

UUID_PATTERN_TEXT = (
    r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}"
)
UUID_PATTERN = re.compile(rf"^{UUID_PATTERN_TEXT}$")


def _marker_pattern(token: str) -> re.Pattern[str]:
    return re.compile(rf"\({re.escape(token)}\s+(?P<uuid>{UUID_PATTERN_TEXT})\)")


@dataclass(frozen=True, slots=True)
class MarkerKind:
    name: str
    token: str
    pattern: re.Pattern[str]
    complement_name: str

    @property
    def complement(self) -> "MarkerKind":
        return kind_for_name(self.complement_name)

    def search_pattern_for(self, uuid: str) -> str:
        return search_pattern_for(self, uuid)


LOCATION = MarkerKind(
    name="location",
    token="loc",
    pattern=_marker_pattern("loc"),
    complement_name="reference",
)
REFERENCE = MarkerKind(
    name="reference",
    token="ref",
    pattern=_marker_pattern("ref"),
    complement_name="location",
)
MARKER_KINDS: tuple[MarkerKind, ...] = (LOCATION, REFERENCE)
_KINDS_BY_NAME = {kind.name: kind for kind in MARKER_KINDS}


def kind_for_name(name: str) -> MarkerKind:
    key = str(name or "").strip().lower()
    try:
        return _KINDS_BY_NAME[key]
    except KeyError:
        raise ValueError(f"Unknown marker kind: {name!r}") from None


def is_uuid_text(text: str) -> bool:
    return bool(UUID_PATTERN.match(str(text or "")))


def search_pattern_for(kind: MarkerKind, uuid: str) -> str:
    """Regex text matching ``kind`` markers that carry exactly ``uuid``.

    The result only uses syntax shared by Python ``re`` and ripgrep, so the
    same text drives both the in-memory and the filesystem search.
    """
    uuid_text = str(uuid or "")
    # Hex digits and dashes are literal outside a class in both dialects.
    if not is_uuid_text(uuid_text):
        uuid_text = re.escape(uuid_text)
    return rf"\({re.escape(kind.token)}\s+{uuid_text}\)"
