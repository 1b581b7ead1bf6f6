"""Find the serial device to connect to."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Iterable

from prompt_toolkit import PromptSession  # type: ignore
from serial.tools.list_ports import comports

from serialmon.display import Display

logger = logging.getLogger(__name__)

POLL_INTERVAL = 0.5

PortLister = Callable[[], Iterable[object]]
Ask = Callable[[str], Awaitable[str]]


def available_ports(lister: PortLister = comports) -> list[str]:
    return sorted(str(getattr(info, "device", info)) for info in lister())


async def auto_select(
    *,
    lister: PortLister = comports,
    display: Display | None = None,
    poll_interval: float = POLL_INTERVAL,
    timeout: float | None = None,
) -> str | None:
    """Use the only attached port, or wait for a new one to be plugged in."""
    known = set(available_ports(lister))
    if len(known) == 1:
        return next(iter(known))
    if display is not None:
        display.status("Plug in your device (waiting for a new serial port)...")

    loop = asyncio.get_running_loop()
    deadline = None if timeout is None else loop.time() + timeout
    while deadline is None or loop.time() < deadline:
        await asyncio.sleep(poll_interval)
        current = set(available_ports(lister))
        added = sorted(current - known)
        if added:
            logger.info("Detected new serial port %s", added[0])
            return added[0]
        known = current
    return None


async def _prompt(message: str) -> str:
    return await PromptSession().prompt_async(message)


async def manual_select(
    *,
    lister: PortLister = comports,
    display: Display | None = None,
    ask: Ask = _prompt,
) -> str | None:
    """List the attached ports and let the user pick one by number or path."""
    ports = available_ports(lister)
    if not ports:
        return None
    if display is not None:
        for number, path in enumerate(ports):
            display.status(f"[{number}] {path}", style="white")
    try:
        answer = (await ask("Select port: ")).strip()
    except (EOFError, KeyboardInterrupt):
        return None
    if answer.isdigit() and int(answer) < len(ports):
        return ports[int(answer)]
    if answer in ports:
        return answer
    logger.warning("Invalid port selection %r", answer)
    return None
