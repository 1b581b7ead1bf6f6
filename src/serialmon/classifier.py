"""Line classification for device output.

Each received line is tested against an ordered rule table; the first rule
that matches decides the line's style. The table is built once at import time
and never mutated, so it can be read from any context.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache

from rich.style import Style


@dataclass(frozen=True)
class LineStyle:
    color: str
    bold: bool = False

    def to_prompt_toolkit(self) -> str:
        """Style string for prompt_toolkit formatted text."""
        style = f"fg:ansi{self.color}"
        return f"{style} bold" if self.bold else style

    def to_rich(self) -> Style:
        return Style(color=self.color, bold=self.bold)


@dataclass(frozen=True)
class Rule:
    name: str
    pattern: re.Pattern[str]
    style: LineStyle


DEFAULT_STYLE = LineStyle("white")

RULES: tuple[Rule, ...] = (
    # Wide ASCII art (the device's boot logo)
    Rule("ascii_art", re.compile(r"^(`|\.|:|/|-|\+|o|s|h|d|y| ){50,}"), LineStyle("white")),
    Rule("command", re.compile(r"^# "), LineStyle("white", bold=True)),
    Rule("separator", re.compile(r"^\s*(-|=|#)+\s*$", re.MULTILINE), LineStyle("blue")),
    Rule("headline", re.compile(r"^\[ =+ ?.* ?=+ \]"), LineStyle("yellow", bold=True)),
    Rule("status", re.compile(r"^> \w+"), LineStyle("cyan")),
    Rule("error", re.compile(r"^(ERROR)|(WARNING): "), LineStyle("red")),
    Rule("key_value", re.compile(r"^.*: +.*"), LineStyle("green")),
    Rule("default_value", re.compile(r"^\[.*\]"), LineStyle("green", bold=True)),
    # command [-arg <value>] [-flag]
    Rule("usage", re.compile(r"^\S+( \[?-\S*( <\S*>)?\]?)*\s*$", re.MULTILINE), LineStyle("yellow")),
)


def match_rule(line: str) -> Rule | None:
    """Return the highest-priority rule matching ``line``, if any."""
    for rule in RULES:
        if rule.pattern.search(line):
            return rule
    return None


@lru_cache(maxsize=4096)
def classify(line: str) -> LineStyle:
    """Style for a line of device output; computed once per distinct line."""
    rule = match_rule(line)
    return rule.style if rule is not None else DEFAULT_STYLE
