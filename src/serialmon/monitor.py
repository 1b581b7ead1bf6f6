"""The session loop: device lines out to the display, user commands in to the device."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any, Awaitable, Callable

from serialmon.channels import Channel, ChannelClosed
from serialmon.errors import ChannelSendError, MacroError, PortReadError
from serialmon.log_utils import log_context, log_event
from serialmon.macros import MacroExpander, expand_macro, help_lines, is_help_request, is_macro
from serialmon.messages import (
    CLEAR_WORD,
    EXIT_WORD,
    LINE_ENDING,
    STOP_COMMAND,
    ClearDisplay,
    ControlMessage,
    Exit,
    OutputMessage,
    Raw,
    Stop,
    is_word,
)
from serialmon.port import SerialPort

logger = logging.getLogger(__name__)

ClearAction = Callable[[], None]


class Monitor:
    """Races the next device line against the next input message.

    Whichever completes first is handled; when both are ready in the same
    round the device line goes first. The loop ends on end of stream, a read
    error, an exit command, or when the input side closes its channel. The
    output channel is closed on the way out so the display can stop too.
    """

    def __init__(
        self,
        port: SerialPort,
        input_channel: Channel[ControlMessage],
        output_channel: Channel[OutputMessage],
        *,
        clear: ClearAction | None = None,
        expand: MacroExpander = expand_macro,
    ) -> None:
        self._port = port
        self._input = input_channel
        self._output = output_channel
        self._clear = clear or self._request_clear
        self._expand = expand
        self.end_reason: str | None = None

    def _request_clear(self) -> None:
        self._output.send(ClearDisplay())

    async def _write(self, data: bytes, what: str) -> None:
        if not await self._port.write(data):
            logger.error("Couldn't send %s", what)

    def _forward_line(self, line: str) -> None:
        try:
            self._output.send(line)
        except ChannelSendError as exc:
            logger.warning("Dropping device line, display is gone: %s", exc)

    async def handle_message(self, message: ControlMessage) -> bool:
        """Act on one input message. Returns False when the session should end."""
        if isinstance(message, Exit):
            return False
        if isinstance(message, Stop):
            await self._write(STOP_COMMAND.encode("utf-8"), "stop command")
            return True
        if not isinstance(message, Raw):
            logger.warning("Ignoring unknown input message %r", message)
            return True

        text = message.text
        if is_word(text, EXIT_WORD):
            return False
        if is_word(text, CLEAR_WORD):
            try:
                self._clear()
            except ChannelSendError as exc:
                logger.warning("Couldn't clear the display: %s", exc)
            return True
        if is_macro(text):
            if is_help_request(text):
                for line in help_lines():
                    self._forward_line(f"{line}\n")
                return True
            try:
                data = self._expand(text)
            except MacroError as exc:
                log_event(logger, "macro_failed", level=logging.ERROR, command=text, error=str(exc))
                return True
            if data:
                await self._write(data, "macro output")
            return True
        await self._write(f"{text}{LINE_ENDING}".encode("utf-8"), "message")
        return True

    def _report_unhandled(self, task: asyncio.Task[Any] | None) -> None:
        """Log input that arrived in the round the session ended."""
        if task is None or not task.done() or task.cancelled() or task.exception() is not None:
            return
        log_event(logger, "input_dropped", level=logging.WARNING, message=repr(task.result()))

    async def run(self) -> str:
        """Run the session loop and return why it ended."""
        read_task: asyncio.Task[Any] | None = None
        recv_task: asyncio.Task[Any] | None = None
        with log_context(port=self._port.session.path):
            log_event(logger, "session_started")
            try:
                while True:
                    if read_task is None:
                        read_task = asyncio.ensure_future(self._port.read_line())
                    if recv_task is None:
                        recv_task = asyncio.ensure_future(self._input.recv())
                    done, _ = await asyncio.wait({read_task, recv_task}, return_when=asyncio.FIRST_COMPLETED)

                    if read_task in done:
                        task, read_task = read_task, None
                        try:
                            line = task.result()
                        except PortReadError as exc:
                            log_event(logger, "port_read_failed", level=logging.ERROR, error=str(exc))
                            self.end_reason = "read error"
                            break
                        if line is None:
                            self.end_reason = "end of stream"
                            break
                        self._forward_line(line)

                    if recv_task in done:
                        task, recv_task = recv_task, None
                        try:
                            message = task.result()
                        except ChannelClosed:
                            self.end_reason = "input closed"
                            break
                        if not await self.handle_message(message):
                            self.end_reason = "exit"
                            break
            finally:
                self._report_unhandled(recv_task)
                for task in (read_task, recv_task):
                    if task is not None and not task.done():
                        task.cancel()
                        with contextlib.suppress(asyncio.CancelledError, Exception):
                            await task
                self._output.close()
                log_event(logger, "session_ended", reason=self.end_reason or "cancelled")
        return self.end_reason or "cancelled"


async def run_session(
    monitor: Monitor,
    display: Callable[[], Awaitable[None]] | None = None,
) -> str:
    """Run the session loop alongside a display coroutine.

    Each side ends on its own; a display failure (for example the terminal
    could not be set up) is re-raised once both have stopped.
    """
    if display is None:
        return await monitor.run()
    display_task = asyncio.ensure_future(display())
    try:
        reason = await monitor.run()
    except BaseException:
        display_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await display_task
        raise
    await display_task
    return reason
