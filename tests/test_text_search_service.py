"""Tests for the ripgrep-backed file search."""

from __future__ import annotations

import subprocess
from types import SimpleNamespace
from unittest import mock

from marklink.services.markers import ERROR_MISSING_DEPENDENCY, MarkerError
from marklink.services.text_search_service import (
    SOURCE_FILE,
    RipgrepSearch,
    SearchMatch,
    parse_search_output,
)

WHICH = "marklink.services.text_search_service.shutil.which"
RUN = "marklink.services.text_search_service.subprocess.run"


def _proc(returncode: int, stdout: str = "", stderr: str = "") -> SimpleNamespace:
    return SimpleNamespace(returncode=returncode, stdout=stdout, stderr=stderr)


def test_parse_search_output_takes_path_and_line() -> None:
    stdout = (
        "/home/u/a.txt:3:(ref 1111): trailing colon text\n"
        "/home/u/b.md:12:(ref 1111)\n"
        "\n"
        "garbage line\n"
        "/home/u/c.txt:notanumber:x\n"
        ":5:empty path\n"
    )

    matches = parse_search_output(stdout)

    assert matches == [
        SearchMatch(label="/home/u/a.txt", position=3, source=SOURCE_FILE),
        SearchMatch(label="/home/u/b.md", position=12, source=SOURCE_FILE),
    ]


def test_display_text() -> None:
    assert SearchMatch("/a.txt", 3, SOURCE_FILE).display_text() == "/a.txt:3"
    assert SearchMatch("k", None, SOURCE_FILE, "notes").display_text() == "notes"


def test_build_command_shape() -> None:
    search = RipgrepSearch(extra_args=["--hidden"])

    with mock.patch(WHICH, return_value="/usr/bin/rg"):
        cmd = search.build_command(r"\(ref\s+x\)", "/home/u")

    assert cmd == [
        "/usr/bin/rg",
        "--line-number",
        "--no-heading",
        "--with-filename",
        "--color",
        "never",
        "--hidden",
        "-e",
        r"\(ref\s+x\)",
        "/home/u",
    ]


def test_build_command_fixed_strings() -> None:
    with mock.patch(WHICH, return_value=None):
        cmd = RipgrepSearch().build_command("(ref x)", "/r", fixed_strings=True)

    assert cmd[0] == "rg"
    assert "--fixed-strings" in cmd
    assert cmd[-3:] == ["-e", "(ref x)", "/r"]


def test_check_available() -> None:
    search = RipgrepSearch()

    with mock.patch(WHICH, return_value="/usr/bin/rg"):
        assert search.check_available() is None
    with mock.patch(WHICH, return_value=None):
        error = search.check_available()

    assert isinstance(error, MarkerError)
    assert error.kind == ERROR_MISSING_DEPENDENCY


def test_search_ok_with_matches() -> None:
    with mock.patch(WHICH, return_value="/usr/bin/rg"), mock.patch(
        RUN, return_value=_proc(0, "/r/a.txt:7:(loc x)\n")
    ) as run:
        result = RipgrepSearch(timeout_s=5).search("pat", "/r")

    assert result.ok
    assert [(m.label, m.position) for m in result.matches] == [("/r/a.txt", 7)]
    assert run.call_args.kwargs["timeout"] == 5
    assert run.call_args.kwargs["capture_output"] is True


def test_no_matches_is_ok_and_empty() -> None:
    with mock.patch(WHICH, return_value="/usr/bin/rg"), mock.patch(RUN, return_value=_proc(1)):
        result = RipgrepSearch().search("pat", "/r")

    assert result.ok
    assert result.matches == []


def test_error_exit_keeps_partial_matches() -> None:
    proc = _proc(2, "/r/a.txt:1:x\n", "rg: /r/locked: Permission denied\n")
    with mock.patch(WHICH, return_value="/usr/bin/rg"), mock.patch(RUN, return_value=proc):
        result = RipgrepSearch().search("pat", "/r")

    assert not result.ok
    assert len(result.matches) == 1
    assert "Permission denied" in result.message


def test_timeout_and_launch_failure() -> None:
    with mock.patch(WHICH, return_value="/usr/bin/rg"), mock.patch(
        RUN, side_effect=subprocess.TimeoutExpired(cmd="rg", timeout=2)
    ):
        timed_out = RipgrepSearch(timeout_s=2).search("pat", "/r")
    with mock.patch(WHICH, return_value="/usr/bin/rg"), mock.patch(RUN, side_effect=OSError("boom")):
        crashed = RipgrepSearch().search("pat", "/r")

    assert not timed_out.ok
    assert "timed out" in timed_out.message
    assert not crashed.ok
    assert "boom" in crashed.message


def test_root_is_user_expanded() -> None:
    with mock.patch(WHICH, return_value="/usr/bin/rg"), mock.patch(RUN, return_value=_proc(1)) as run:
        RipgrepSearch().search("pat", "~")

    assert not run.call_args.args[0][-1].startswith("~")


def test_non_positive_timeout_means_no_limit() -> None:
    assert RipgrepSearch(timeout_s=0).timeout_s is None
    assert RipgrepSearch(timeout_s=-1).timeout_s is None
