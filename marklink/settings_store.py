from __future__ import annotations

import json
import os
from copy import deepcopy
from pathlib import Path
from typing import Any, Mapping

from marklink.settings_models import MarkLinkSettings, default_settings, normalize_settings

APP_DIR_ENV = "MARKLINK_APP_DIR"
APP_DIRNAME = ".marklink"
SETTINGS_FILENAME = "settings.json"


class SettingsStoreError(RuntimeError):
    """Raised when the settings file cannot be written."""


def default_app_dir() -> Path:
    override = os.environ.get(APP_DIR_ENV, "").strip()
    if override:
        return Path(override).expanduser()
    return Path.home() / APP_DIRNAME


def merge_missing(data: Mapping[str, Any], defaults: Mapping[str, Any]) -> dict[str, Any]:
    """Fill keys missing from ``data`` with ``defaults``; explicit values win."""
    merged = deepcopy(dict(data))
    for key, default_value in defaults.items():
        current = merged.get(key)
        if key not in merged:
            merged[key] = deepcopy(default_value)
        elif isinstance(current, dict) and isinstance(default_value, dict):
            merged[key] = merge_missing(current, default_value)
    return merged


class JsonSettingsStore:
    def __init__(self, path: Path | None = None) -> None:
        self.path = Path(path) if path is not None else default_app_dir() / SETTINGS_FILENAME
        self.data: dict[str, Any] = merge_missing({}, default_settings())
        self.last_error: str | None = None

    def load(self) -> MarkLinkSettings:
        self.last_error = None
        if not self.path.exists():
            self.data = merge_missing({}, default_settings())
            return self.settings()
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            # Keep defaults; never rewrite a file we could not parse.
            self.last_error = str(exc)
            return self.settings()
        if not isinstance(raw, dict):
            self.last_error = f"Settings root in '{self.path}' must be a JSON object, found {type(raw).__name__}."
            return self.settings()
        self.data = merge_missing(raw, default_settings())
        return self.settings()

    def save(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(self.data, indent=2, sort_keys=True), encoding="utf-8")
        except OSError as exc:
            raise SettingsStoreError(f"Could not write settings file '{self.path}': {exc}") from exc

    def settings(self) -> MarkLinkSettings:
        return normalize_settings(self.data)

    def get(self, key: str, default: Any = None) -> Any:
        current: Any = self.settings()
        for part in str(key or "").split("."):
            if not isinstance(current, Mapping) or part not in current:
                return default
            current = current[part]
        return current

    def set(self, key: str, value: Any) -> bool:
        parts = [p for p in str(key or "").split(".") if p]
        if not parts:
            raise ValueError("Key cannot be empty.")
        if self.get(key) == value:
            return False
        current = self.data
        for part in parts[:-1]:
            child = current.get(part)
            if not isinstance(child, dict):
                child = {}
                current[part] = child
            current = child
        current[parts[-1]] = value
        return True
