"""Rich-rendered console output for line mode and status messages."""

from __future__ import annotations

from io import StringIO
from threading import Lock
from typing import Any

from prompt_toolkit.application.current import get_app_or_none  # type: ignore
from prompt_toolkit.formatted_text import ANSI  # type: ignore
from prompt_toolkit.shortcuts import clear as clear_screen  # type: ignore
from prompt_toolkit.shortcuts import print_formatted_text  # type: ignore
from rich.console import Console
from rich.text import Text

from serialmon.classifier import classify

DRIVER_HINT = "Make sure the USB serial driver for your board is installed (CP210x / CH340)."
NO_PORT_HINT = "No serial port found. Plug in the device or pass one explicitly with --port."
DRIVER_PAGES = {
    "CP210x": "https://www.silabs.com/developers/usb-to-uart-bridge-vcp-drivers",
    "CH340": "https://www.wch-ic.com/downloads/CH341SER_EXE.html",
}


class Display:
    """Prints through prompt_toolkit so output stays above an active prompt."""

    def __init__(self, color: bool = True) -> None:
        self.color = color
        self._buffer = StringIO()
        self._console = Console(
            file=self._buffer,
            force_terminal=color,
            no_color=not color,
            color_system="standard" if color else None,
            markup=False,
            highlight=False,
            soft_wrap=True,
        )
        self._lock = Lock()

    def render(self, *args: Any, **kwargs: Any) -> str:
        kwargs.setdefault("end", "\n")
        with self._lock:
            self._buffer.seek(0)
            self._buffer.truncate(0)
            self._console.print(*args, **kwargs)
            return self._buffer.getvalue()

    def _print(self, *args: Any, **kwargs: Any) -> None:
        output = self.render(*args, **kwargs)
        if output:
            print_formatted_text(ANSI(output), end="")

    def device_line(self, line: str) -> None:
        text = line.rstrip("\r\n")
        style = classify(text).to_rich() if self.color else None
        self._print(Text(text, style=style or ""))

    def status(self, message: str, style: str = "cyan") -> None:
        self._print(Text(message, style=style if self.color else ""))

    def connected(self, path: str) -> None:
        self.status(f"Connected to {path}", style="green")

    def hint(self) -> None:
        self.status(NO_PORT_HINT, style="yellow")
        self.status(DRIVER_HINT, style="yellow")

    def error(self, message: str) -> None:
        self.status(message, style="red")

    def goodbye(self) -> None:
        self.status("Goodbye!", style="magenta")

    def driver(self) -> None:
        self.status(DRIVER_HINT, style="yellow")
        for chip, url in DRIVER_PAGES.items():
            self.status(f"{chip}: {url}", style="white")

    def clear(self) -> None:
        """Clear the visible terminal; a running prompt is redrawn below."""
        app = get_app_or_none()
        if app is not None and app.is_running:
            app.renderer.clear()
        else:
            clear_screen()
