from __future__ import annotations

import pytest

from serialmon.errors import MacroError
from serialmon.macros import MACROS, expand_macro, help_lines, is_help_request, is_macro


@pytest.mark.parametrize("text", ["HUHN read x", "huhn help", "Huhn"])
def test_prefix_is_case_insensitive(text: str) -> None:
    assert is_macro(text)


def test_plain_commands_are_not_macros() -> None:
    assert not is_macro("scan -ap")
    assert not is_macro("")


def test_read_sends_each_line_with_crlf(tmp_path) -> None:
    script = tmp_path / "attack.txt"
    script.write_text("scan -ap\r\n\nselect -ap 0\nattack -deauth\n", encoding="utf-8")

    assert expand_macro(f"huhn read {script}") == b"scan -ap\r\nselect -ap 0\r\nattack -deauth\r\n"


def test_read_missing_file_raises(tmp_path) -> None:
    with pytest.raises(MacroError, match="Couldn't read"):
        expand_macro(f"HUHN READ {tmp_path / 'missing.txt'}")


def test_read_needs_a_file_name() -> None:
    with pytest.raises(MacroError):
        expand_macro("huhn read")


def test_unknown_macro_raises() -> None:
    with pytest.raises(MacroError, match="Unknown macro: dance"):
        expand_macro("huhn dance")


def test_help_sends_nothing_to_the_device() -> None:
    assert expand_macro("huhn") == b""
    assert expand_macro("HUHN help") == b""


@pytest.mark.parametrize(
    ("text", "expected"),
    [("huhn", True), (" HUHN Help ", True), ("huhn read x", False), ("help", False)],
)
def test_help_requests(text: str, expected: bool) -> None:
    assert is_help_request(text) is expected


def test_help_lines_list_every_macro() -> None:
    lines = help_lines()
    assert len(lines) == len(MACROS)
    assert all(any(entry.hint in line and entry.description in line for line in lines) for entry in MACROS.values())
