"""Filesystem marker search backed by ripgrep."""

from __future__ import annotations

import os
import shutil
import subprocess
from dataclasses import dataclass, field

from marklink.services.markers import ERROR_MISSING_DEPENDENCY, MarkerError

SOURCE_DOCUMENT = "document"
SOURCE_FILE = "file"


@dataclass(frozen=True, slots=True)
class SearchMatch:
    label: str
    position: int | None
    source: str  # document | file
    display_name: str = ""

    def display_text(self) -> str:
        name = self.display_name or self.label
        if self.position is None:
            return name
        return f"{name}:{self.position}"

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "position": self.position,
            "source": self.source,
            "display_name": self.display_name,
        }


@dataclass(slots=True)
class TextSearchResult:
    status: str  # ok | failed
    matches: list[SearchMatch] = field(default_factory=list)
    message: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.status == "ok"


def parse_search_output(stdout: str) -> list[SearchMatch]:
    """Parse ``path:line:...`` rows; only the first two fields are used."""
    matches: list[SearchMatch] = []
    for raw in (stdout or "").splitlines():
        line = raw.rstrip("\r")
        if not line:
            continue
        parts = line.split(":", 2)
        if len(parts) < 2:
            continue
        path, line_text = parts[0], parts[1]
        if not path:
            continue
        try:
            line_number = int(line_text)
        except ValueError:
            continue
        matches.append(SearchMatch(label=path, position=line_number, source=SOURCE_FILE))
    return matches


class RipgrepSearch:
    def __init__(
        self,
        *,
        executable: str = "rg",
        timeout_s: float | None = None,
        extra_args: list[str] | None = None,
    ) -> None:
        self.executable = str(executable or "rg").strip() or "rg"
        self.timeout_s = timeout_s if timeout_s and timeout_s > 0 else None
        self.extra_args = [str(arg) for arg in (extra_args or [])]

    def resolve_executable(self) -> str:
        if os.path.isabs(self.executable):
            return self.executable if os.access(self.executable, os.X_OK) else ""
        return str(shutil.which(self.executable) or "")

    def check_available(self) -> MarkerError | None:
        if self.resolve_executable():
            return None
        return MarkerError(
            ERROR_MISSING_DEPENDENCY,
            f"'{self.executable}' (ripgrep) was not found on PATH; marker search across files needs it.",
        )

    def build_command(self, pattern: str, root: str, *, fixed_strings: bool = False) -> list[str]:
        cmd = [
            self.resolve_executable() or self.executable,
            "--line-number",
            "--no-heading",
            "--with-filename",
            "--color",
            "never",
        ]
        if fixed_strings:
            cmd.append("--fixed-strings")
        cmd.extend(self.extra_args)
        cmd.extend(["-e", pattern, root])
        return cmd

    def search(self, pattern: str, root: str, *, fixed_strings: bool = False) -> TextSearchResult:
        search_root = os.path.expanduser(str(root or "~"))
        cmd = self.build_command(pattern, search_root, fixed_strings=fixed_strings)
        try:
            proc = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout_s,
            )
        except subprocess.TimeoutExpired:
            return TextSearchResult(
                status="failed",
                message=f"File search timed out after {self.timeout_s:g}s.",
            )
        except OSError as exc:
            return TextSearchResult(status="failed", message=f"Could not run {self.executable}: {exc}")

        matches = parse_search_output(proc.stdout or "")
        stderr = (proc.stderr or "").strip()
        # rg: 0 = matches, 1 = no matches, 2 = error (output may still be partial).
        if proc.returncode in (0, 1):
            return TextSearchResult(status="ok", matches=matches, stderr=stderr)
        first_error = stderr.splitlines()[0] if stderr else f"exit code {proc.returncode}"
        return TextSearchResult(
            status="failed",
            matches=matches,
            message=f"File search reported errors: {first_error}",
            stderr=stderr,
        )
