"""Macro commands expanded locally into bytes for the device.

A submitted line whose upper-cased form starts with ``MACRO_PREFIX`` is not
sent as typed. The word after the prefix selects a registered macro, which
turns the remaining arguments into the byte sequence to transmit.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from serialmon.errors import MacroError
from serialmon.messages import LINE_ENDING

logger = logging.getLogger(__name__)

MACRO_PREFIX = "HUHN"

MacroHandler = Callable[[list[str]], bytes]
MacroExpander = Callable[[str], bytes]


@dataclass
class MacroDef:
    description: str
    hint: str
    handler: MacroHandler


MACROS: dict[str, MacroDef] = {}


def register_macro(name: str, description: str, hint: str) -> Callable[[MacroHandler], MacroHandler]:
    """Decorator to register a macro subcommand."""

    def _decorator(func: MacroHandler) -> MacroHandler:
        MACROS[name] = MacroDef(description=description, hint=hint, handler=func)
        return func

    return _decorator


def is_macro(text: str) -> bool:
    return text.upper().startswith(MACRO_PREFIX)


@register_macro("read", description="Send every line of a script file.", hint="huhn read <file>")
def _read_script(args: list[str]) -> bytes:
    if not args:
        raise MacroError("read needs a file name")
    path = Path(" ".join(args)).expanduser()
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        raise MacroError(f"Couldn't read {path}: {exc}") from exc
    lines = [line.rstrip("\r") for line in text.split("\n") if line.strip()]
    logger.info("Sending %d line(s) from %s", len(lines), path)
    return "".join(f"{line}{LINE_ENDING}" for line in lines).encode("utf-8")


@register_macro("help", description="List macro commands.", hint="huhn help")
def _help(_args: list[str]) -> bytes:
    # Shown locally by the monitor, nothing goes to the device.
    return b""


def is_help_request(text: str) -> bool:
    words = text.strip().split()
    if not words or not is_macro(words[0]):
        return False
    return len(words) == 1 or words[1].lower() == "help"


def help_lines() -> list[str]:
    return [f"{entry.hint:<20} - {entry.description}" for entry in MACROS.values()]


def expand_macro(text: str) -> bytes:
    """Turn a prefixed command into the bytes to send to the device."""
    words = text.strip().split()
    if not words or not is_macro(words[0]):
        raise MacroError(f"Not a macro command: {text!r}")
    if len(words) == 1:
        return _help([])
    name, args = words[1].lower(), words[2:]
    entry = MACROS.get(name)
    if entry is None:
        raise MacroError(f"Unknown macro: {words[1]}")
    return entry.handler(args)
