"""Language-id resolution and text-document eligibility.

Maps file names to a language id, and language ids to "text-like or not".
Only text-like documents are indexed for markers.
"""

from __future__ import annotations

from pathlib import Path

DEFAULT_TEXT_LANGUAGE_IDS: tuple[str, ...] = (
    "plaintext",
    "markdown",
    "org",
    "rst",
    "todo",
    "tex",
)

_EXTENSION_LANGUAGE_IDS: dict[str, str] = {
    ".txt": "plaintext",
    ".text": "plaintext",
    ".log": "plaintext",
    ".md": "markdown",
    ".markdown": "markdown",
    ".org": "org",
    ".rst": "rst",
    ".tex": "tex",
    ".todo": "todo",
    ".task": "todo",
}


def language_id_for_path(file_path: str | None, *, default: str = "plaintext") -> str:
    """Return a normalized language id for a file path; unnamed buffers get ``default``."""
    path_text = str(file_path or "").strip()
    fallback = str(default or "plaintext").strip().lower() or "plaintext"
    if not path_text:
        return fallback

    suffix = Path(path_text).suffix.lower()
    if suffix in _EXTENSION_LANGUAGE_IDS:
        return _EXTENSION_LANGUAGE_IDS[suffix]
    if not suffix:
        return fallback
    return "unknown"


def is_text_language(language_id: str, text_language_ids: tuple[str, ...] | list[str] | None = None) -> bool:
    allowed = DEFAULT_TEXT_LANGUAGE_IDS if text_language_ids is None else text_language_ids
    key = str(language_id or "").strip().lower()
    return bool(key) and key in {str(item).strip().lower() for item in allowed}
