"""Command-line entrypoint."""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Callable

from serialmon.channels import Channel
from serialmon.config import MonitorConfig, build_parser, load_config
from serialmon.discovery import auto_select, manual_select
from serialmon.display import Display
from serialmon.errors import PortOpenError, TerminalSetupError
from serialmon.log_utils import build_log_config, configure_logging
from serialmon.messages import ControlMessage, OutputMessage
from serialmon.monitor import Monitor, run_session
from serialmon.plain import LineModeUI
from serialmon.port import SerialPort
from serialmon.ui.app import TerminalUI

logger = logging.getLogger(__name__)

PortOpener = Callable[[str], SerialPort]


async def select_port(config: MonitorConfig, display: Display) -> str | None:
    if config.port:
        return config.port
    if config.auto:
        return await auto_select(display=display)
    return await manual_select(display=display)


async def run_monitor(
    config: MonitorConfig,
    display: Display,
    *,
    open_port: PortOpener = SerialPort.open,
) -> int:
    if config.driver:
        display.driver()
        display.goodbye()
        return 0

    path = await select_port(config, display)
    if path is None:
        display.hint()
        return 1

    try:
        port = open_port(path)
    except PortOpenError as exc:
        display.error(str(exc))
        display.hint()
        return 1
    display.connected(path)

    input_channel: Channel[ControlMessage] = Channel("input")
    output_channel: Channel[OutputMessage] = Channel("output")
    try:
        if config.welcome:
            await port.send_welcome()
        monitor = Monitor(port, input_channel, output_channel)
        ui: TerminalUI | LineModeUI
        if config.tui:
            ui = TerminalUI(input_channel, output_channel, tick_rate=config.tick_rate, color=config.color)
        else:
            ui = LineModeUI(input_channel, output_channel, display, history_file=config.history_file)
        reason = await run_session(monitor, ui.run)
    finally:
        port.close()
    logger.info("Session on %s ended: %s", path, reason)
    display.goodbye()
    return 0


async def main(argv: list[str]) -> int:
    args = build_parser().parse_args(argv[1:])
    configure_logging(build_log_config())
    config = load_config(args)
    display = Display(color=config.color)
    try:
        return await run_monitor(config, display)
    except TerminalSetupError as exc:
        logger.error("Terminal setup failed: %s", exc, exc_info=True)
        display.error(str(exc))
        return 1


def main_entry() -> int:
    try:
        return asyncio.run(main(sys.argv))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    raise SystemExit(main_entry())
