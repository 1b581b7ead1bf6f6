"""Line-mode input: a prompt_toolkit prompt running as its own task."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from pathlib import Path
from typing import Any

from prompt_toolkit import PromptSession  # type: ignore
from prompt_toolkit.history import FileHistory, History, InMemoryHistory  # type: ignore
from prompt_toolkit.key_binding import KeyBindings  # type: ignore

from serialmon.channels import Channel
from serialmon.errors import ChannelSendError
from serialmon.interrupts import InterruptTracker
from serialmon.messages import EXIT_WORD, ControlMessage, Exit, Raw, Stop, is_word

logger = logging.getLogger(__name__)

PROMPT = ">> "


def _history_keys() -> KeyBindings:
    kb = KeyBindings()

    @kb.add("up")
    def _(event):  # type: ignore
        event.current_buffer.auto_up(count=event.arg)

    @kb.add("down")
    def _(event):  # type: ignore
        event.current_buffer.auto_down(count=event.arg)

    return kb


class InputReceiver:
    """Reads one line per ``receive_once()`` and forwards it on the input channel.

    The prompt is awaited with ``prompt_async``, so waiting on the user never
    holds up device output printed above it.
    """

    def __init__(
        self,
        channel: Channel[ControlMessage],
        *,
        history_file: Path | None = None,
        tracker: InterruptTracker | None = None,
        session: Any = None,
    ) -> None:
        self._channel = channel
        self._tracker = tracker if tracker is not None else InterruptTracker()
        if session is None:
            session = PromptSession(history=self._build_history(history_file), key_bindings=_history_keys())
        self._session = session
        self._task: asyncio.Task[None] | None = None
        self._done = False

    @staticmethod
    def _build_history(history_file: Path | None) -> History:
        if history_file is None:
            return InMemoryHistory()
        try:
            history_file.parent.mkdir(parents=True, exist_ok=True)
            return FileHistory(str(history_file))
        except OSError as exc:
            logger.warning("History file %s unavailable: %s", history_file, exc)
            return InMemoryHistory()

    def _send(self, message: ControlMessage) -> bool:
        try:
            self._channel.send(message)
        except ChannelSendError as exc:
            logger.error("Couldn't report input to the monitor: %s", exc)
            return False
        return True

    async def receive_once(self) -> bool:
        """Read a single line. Returns False once the receiver should stop."""
        try:
            line = await self._session.prompt_async(PROMPT)
        except KeyboardInterrupt:
            if not self._send(Stop()):
                return False
            if self._tracker.record():
                self._send(Exit())
                return False
            return True
        except EOFError:
            if not self._done:
                self._send(Exit())
            return False
        except Exception:
            logger.exception("Input reader failed")
            return False

        # PromptSession appends accepted lines to its history (persisted by FileHistory).
        if not self._send(Raw(line)):
            return False
        return not is_word(line, EXIT_WORD)

    async def run(self) -> None:
        try:
            while not self._done and await self.receive_once():
                pass
        finally:
            self._done = True
            self._channel.close()

    def start(self) -> asyncio.Task[None]:
        self._task = asyncio.ensure_future(self.run())
        return self._task

    async def stop(self) -> None:
        """Abandon a pending prompt and wait for the reader to wind down."""
        self._done = True
        task = self._task
        if task is None or task.done():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
