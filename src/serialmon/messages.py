"""Values carried over the input and output channels."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

STOP_COMMAND = "stop\n"
EXIT_WORD = "EXIT"
CLEAR_WORD = "CLEAR"
LINE_ENDING = "\r\n"


@dataclass(frozen=True)
class Raw:
    """An ordinary command typed by the user."""

    text: str


@dataclass(frozen=True)
class Stop:
    """Cancel keystroke; forwarded to the device as a stop command."""


@dataclass(frozen=True)
class Exit:
    """End the session."""


@dataclass(frozen=True)
class ClearDisplay:
    """Ask the display owner to empty its scrollback."""


ControlMessage = Union[Raw, Stop, Exit]
OutputMessage = Union[str, ClearDisplay]


def is_word(text: str, word: str) -> bool:
    """Case-insensitive comparison of a trimmed command against a control word."""
    return text.strip().upper() == word
