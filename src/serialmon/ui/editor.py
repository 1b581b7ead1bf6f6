"""Editable input line for the full-screen UI."""

from __future__ import annotations

from enum import Enum


class Mode(str, Enum):
    INSERT = "insert"
    NAVIGATION = "navigation"


class InputEditState:
    """Text being typed plus a cursor measured in characters."""

    def __init__(self) -> None:
        self.buffer = ""
        self.cursor = 0
        self.mode = Mode.INSERT

    def insert(self, char: str) -> None:
        self.buffer = self.buffer[: self.cursor] + char + self.buffer[self.cursor :]
        self.cursor += len(char)

    def backspace(self) -> None:
        if self.cursor == 0:
            return
        self.buffer = self.buffer[: self.cursor - 1] + self.buffer[self.cursor :]
        self.cursor -= 1

    def left(self) -> None:
        self.cursor = max(0, self.cursor - 1)

    def right(self) -> None:
        self.cursor = min(len(self.buffer), self.cursor + 1)

    def replace(self, text: str) -> None:
        self.buffer = text
        self.cursor = len(text)

    def take(self) -> str:
        """Empty the line and return what it held."""
        text = self.buffer
        self.buffer = ""
        self.cursor = 0
        return text

    def toggle_mode(self) -> Mode:
        self.mode = Mode.NAVIGATION if self.mode is Mode.INSERT else Mode.INSERT
        return self.mode
