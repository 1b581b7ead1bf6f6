"""Line mode: a prompt at the bottom, device output printed above it."""

from __future__ import annotations

import logging
from pathlib import Path

from prompt_toolkit.patch_stdout import patch_stdout  # type: ignore

from serialmon.channels import Channel, ChannelClosed
from serialmon.display import Display
from serialmon.messages import ClearDisplay, ControlMessage, OutputMessage
from serialmon.receiver import InputReceiver
from serialmon.ui.terminal import restored_terminal

logger = logging.getLogger(__name__)


async def print_output(output: Channel[OutputMessage], display: Display) -> None:
    """Print device lines until the session closes the output channel."""
    while True:
        try:
            message = await output.recv()
        except ChannelClosed:
            return
        if isinstance(message, ClearDisplay):
            display.clear()
        else:
            display.device_line(message)


class LineModeUI:
    def __init__(
        self,
        input_channel: Channel[ControlMessage],
        output_channel: Channel[OutputMessage],
        display: Display,
        *,
        history_file: Path | None = None,
        receiver: InputReceiver | None = None,
    ) -> None:
        self._output = output_channel
        self._display = display
        self.receiver = receiver if receiver is not None else InputReceiver(input_channel, history_file=history_file)

    async def run(self) -> None:
        with restored_terminal(None), patch_stdout():
            self.receiver.start()
            try:
                await print_output(self._output, self._display)
            finally:
                await self.receiver.stop()
