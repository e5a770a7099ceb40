from __future__ import annotations

from copy import deepcopy
from typing import Any, Mapping, TypedDict

from marklink.services.language_id import DEFAULT_TEXT_LANGUAGE_IDS

DEFAULT_DEBOUNCE_MS = 1000
MAX_DEBOUNCE_MS = 60000


class MarkerSettings(TypedDict, total=False):
    debounce_ms: int
    text_language_ids: list[str]


class SearchSettings(TypedDict, total=False):
    executable: str
    root: str
    timeout_s: float
    extra_args: list[str]


class MarkLinkSettings(TypedDict, total=False):
    markers: MarkerSettings
    search: SearchSettings


def default_settings() -> MarkLinkSettings:
    return {
        "markers": {
            "debounce_ms": DEFAULT_DEBOUNCE_MS,
            "text_language_ids": list(DEFAULT_TEXT_LANGUAGE_IDS),
        },
        "search": {
            "executable": "rg",
            "root": "~",
            "timeout_s": 0,
            "extra_args": [],
        },
    }


def normalize_settings(raw: Mapping[str, Any] | None) -> MarkLinkSettings:
    out = default_settings()
    data = raw if isinstance(raw, Mapping) else {}

    markers = data.get("markers")
    if isinstance(markers, Mapping):
        try:
            debounce = int(markers.get("debounce_ms", DEFAULT_DEBOUNCE_MS))
        except (TypeError, ValueError):
            debounce = DEFAULT_DEBOUNCE_MS
        out["markers"]["debounce_ms"] = max(0, min(MAX_DEBOUNCE_MS, debounce))

        language_ids = markers.get("text_language_ids")
        if isinstance(language_ids, list):
            cleaned = [str(v).strip().lower() for v in language_ids if str(v or "").strip()]
            out["markers"]["text_language_ids"] = cleaned

    search = data.get("search")
    if isinstance(search, Mapping):
        executable = str(search.get("executable") or "").strip()
        if executable:
            out["search"]["executable"] = executable
        root = str(search.get("root") or "").strip()
        if root:
            out["search"]["root"] = root
        try:
            timeout = float(search.get("timeout_s") or 0)
        except (TypeError, ValueError):
            timeout = 0
        out["search"]["timeout_s"] = max(0.0, timeout)
        extra_args = search.get("extra_args")
        if isinstance(extra_args, list):
            out["search"]["extra_args"] = [str(v) for v in extra_args]

    return deepcopy(out)
