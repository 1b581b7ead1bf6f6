"""State and key handling of the full-screen monitor, independent of the terminal."""

from __future__ import annotations

import logging
from enum import Enum, auto
from typing import Callable

from serialmon.channels import Channel
from serialmon.classifier import classify
from serialmon.errors import ChannelSendError
from serialmon.history import HistoryBuffer
from serialmon.interrupts import InterruptTracker
from serialmon.messages import EXIT_WORD, ClearDisplay, ControlMessage, Exit, OutputMessage, Raw, Stop, is_word
from serialmon.scroll import ScrollState
from serialmon.ui.editor import InputEditState, Mode

logger = logging.getLogger(__name__)

StyledLine = tuple[str, str]


class Key(Enum):
    CHAR = auto()
    BACKSPACE = auto()
    LEFT = auto()
    RIGHT = auto()
    UP = auto()
    DOWN = auto()
    PAGE_UP = auto()
    PAGE_DOWN = auto()
    WHEEL_UP = auto()
    WHEEL_DOWN = auto()
    ENTER = auto()
    ESCAPE = auto()
    INTERRUPT = auto()


class MonitorView:
    """Everything the monitor screen shows, and what each key does to it.

    The view owns the scrollback, the input line, command history, scroll
    position and the interrupt tracker. It talks to the rest of the program
    only through the input channel it sends on and the output channel it
    drains.
    """

    def __init__(
        self,
        input_channel: Channel[ControlMessage],
        *,
        color: bool = True,
        tracker: InterruptTracker | None = None,
    ) -> None:
        self._input = input_channel
        self.color = color
        self.scrollback: list[str] = []
        self.edit = InputEditState()
        self.history = HistoryBuffer()
        self.scroll = ScrollState()
        self.tracker = tracker if tracker is not None else InterruptTracker()
        self.finished = False
        self.exit_reason: str | None = None

        self._keymaps: dict[Mode, dict[Key, Callable[[str], None]]] = {
            Mode.INSERT: {
                Key.CHAR: self._put_char,
                Key.BACKSPACE: lambda _: self.edit.backspace(),
                Key.LEFT: lambda _: self.edit.left(),
                Key.RIGHT: lambda _: self.edit.right(),
                Key.UP: lambda _: self.edit.replace(self.history.previous()),
                Key.DOWN: lambda _: self.edit.replace(self.history.next()),
                Key.PAGE_UP: lambda _: self.scroll.scroll_up(),
                Key.PAGE_DOWN: lambda _: self.scroll.scroll_down(),
                Key.WHEEL_UP: lambda _: self.scroll.scroll_up(),
                Key.WHEEL_DOWN: lambda _: self.scroll.scroll_down(),
                Key.ENTER: lambda _: self.submit(),
                Key.ESCAPE: lambda _: self.edit.toggle_mode(),
                Key.INTERRUPT: lambda _: self.interrupt(),
            },
            Mode.NAVIGATION: {
                Key.UP: lambda _: self.scroll.scroll_up(),
                Key.PAGE_UP: lambda _: self.scroll.scroll_up(),
                Key.WHEEL_UP: lambda _: self.scroll.scroll_up(),
                Key.DOWN: lambda _: self.scroll.scroll_down(),
                Key.PAGE_DOWN: lambda _: self.scroll.scroll_down(),
                Key.WHEEL_DOWN: lambda _: self.scroll.scroll_down(),
                Key.ESCAPE: lambda _: self.edit.toggle_mode(),
            },
        }

    @property
    def mode(self) -> Mode:
        return self.edit.mode

    def handle_key(self, key: Key, data: str = "") -> bool:
        """Apply a key press. Returns False if the current mode ignores it."""
        if self.finished:
            return False
        action = self._keymaps[self.edit.mode].get(key)
        if action is None:
            return False
        action(data)
        return True

    def _put_char(self, data: str) -> None:
        if data and data.isprintable():
            self.edit.insert(data)

    def _send(self, message: ControlMessage) -> bool:
        try:
            self._input.send(message)
        except ChannelSendError as exc:
            logger.error("Couldn't send %s: %s", type(message).__name__, exc)
            return False
        return True

    def finish(self, reason: str) -> None:
        if not self.finished:
            logger.info("Monitor view finished: %s", reason)
        self.finished = True
        self.exit_reason = self.exit_reason or reason

    def submit(self) -> str:
        text = self.edit.take()
        self.history.commit(text)
        self.scrollback.append(text)
        self._send(Raw(text))
        if is_word(text, EXIT_WORD):
            self.finish("exit command")
        return text

    def interrupt(self) -> None:
        if not self._send(Stop()):
            self.scrollback.append("Couldn't stop!")
        if self.tracker.record():
            self._send(Exit())
            self.finish("repeated interrupt")

    def receive(self, message: OutputMessage) -> None:
        if isinstance(message, ClearDisplay):
            self.scrollback.clear()
            self.scroll.reset()
            return
        self.scrollback.append(message.rstrip("\r\n"))

    def drain_one(self, output: Channel[OutputMessage]) -> bool:
        """Move at most one pending output message into the scrollback.

        Raises ChannelClosed once the session has ended and everything it
        sent has been shown.
        """
        message = output.try_recv()
        if message is None:
            return False
        self.receive(message)
        return True

    def style_for(self, line: str) -> str:
        return classify(line).to_prompt_toolkit() if self.color else ""

    def visible_lines(self, height: int) -> list[StyledLine]:
        """Lay out one frame of the scrollback pane."""
        self.scroll.update(len(self.scrollback), height)
        start = self.scroll.offset
        return [(self.style_for(line), line) for line in self.scrollback[start : start + height]]
