"""Full-screen monitor built on a prompt_toolkit Application.

The screen is a bordered message pane with a scrollbar above a one-line
input box. A background ticker moves device output into the view at a fixed
rate; key and mouse events are translated into ``Key`` presses on the view.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from prompt_toolkit.application import Application  # type: ignore
from prompt_toolkit.data_structures import Point  # type: ignore
from prompt_toolkit.formatted_text import StyleAndTextTuples  # type: ignore
from prompt_toolkit.key_binding import KeyBindings  # type: ignore
from prompt_toolkit.keys import Keys  # type: ignore
from prompt_toolkit.layout import Layout  # type: ignore
from prompt_toolkit.layout.containers import HSplit, VSplit, Window  # type: ignore
from prompt_toolkit.layout.controls import FormattedTextControl  # type: ignore
from prompt_toolkit.mouse_events import MouseEvent, MouseEventType  # type: ignore
from prompt_toolkit.output import ColorDepth  # type: ignore
from prompt_toolkit.utils import get_cwidth  # type: ignore
from prompt_toolkit.widgets import Frame  # type: ignore

from serialmon.channels import Channel, ChannelClosed
from serialmon.errors import TerminalSetupError
from serialmon.messages import ControlMessage, OutputMessage
from serialmon.ui.terminal import restored_terminal
from serialmon.ui.view import Key, MonitorView

logger = logging.getLogger(__name__)

DEFAULT_TICK_RATE = 0.015
# Borders of both frames plus the input line.
CHROME_ROWS = 5

_KEY_NAMES: dict[str, Key] = {
    "backspace": Key.BACKSPACE,
    "left": Key.LEFT,
    "right": Key.RIGHT,
    "up": Key.UP,
    "down": Key.DOWN,
    "pageup": Key.PAGE_UP,
    "pagedown": Key.PAGE_DOWN,
    "enter": Key.ENTER,
    "escape": Key.ESCAPE,
    "c-c": Key.INTERRUPT,
    Keys.SIGINT: Key.INTERRUPT,
}


class ScrollbackControl(FormattedTextControl):
    """Message pane that turns the mouse wheel into scroll keys."""

    def __init__(self, text: Any, on_wheel: Any) -> None:
        super().__init__(text, focusable=False)
        self._on_wheel = on_wheel

    def mouse_handler(self, mouse_event: MouseEvent):  # type: ignore[override]
        if mouse_event.event_type == MouseEventType.SCROLL_UP:
            self._on_wheel(Key.WHEEL_UP)
            return None
        if mouse_event.event_type == MouseEventType.SCROLL_DOWN:
            self._on_wheel(Key.WHEEL_DOWN)
            return None
        return NotImplemented


class TerminalUI:
    def __init__(
        self,
        input_channel: Channel[ControlMessage],
        output_channel: Channel[OutputMessage],
        *,
        tick_rate: float = DEFAULT_TICK_RATE,
        color: bool = True,
        view: MonitorView | None = None,
        app_input: Any = None,
        app_output: Any = None,
    ) -> None:
        self._input = input_channel
        self._output = output_channel
        self._tick_rate = tick_rate
        self._color = color
        self.view = view or MonitorView(input_channel, color=color)
        self._app_input = app_input
        self._app_output = app_output
        self._app: Application | None = None

    # -- rendering -----------------------------------------------------

    def _viewport_height(self) -> int:
        if self._app is None:
            return 1
        return max(1, self._app.output.get_size().rows - CHROME_ROWS)

    def _render_messages(self) -> StyleAndTextTuples:
        fragments: StyleAndTextTuples = []
        for style, text in self.view.visible_lines(self._viewport_height()):
            fragments.append((style, text))
            fragments.append(("", "\n"))
        return fragments[:-1]

    def _render_scrollbar(self) -> StyleAndTextTuples:
        height = self._viewport_height()
        if height < 3:
            return [("", "\n".join(" " * height))]
        scroll = self.view.scroll
        rows = ["│"] * height
        rows[0], rows[-1] = "^", "v"
        if scroll.bottom > 0:
            thumb = 1 + round((height - 3) * scroll.offset / scroll.bottom)
            rows[thumb] = "█"
        return [("class:scrollbar", "\n".join(rows))]

    def _render_input(self) -> StyleAndTextTuples:
        return [("fg:ansiyellow" if self._color else "", self.view.edit.buffer)]

    def _input_cursor(self) -> Point:
        edit = self.view.edit
        return Point(x=get_cwidth(edit.buffer[: edit.cursor]), y=0)

    def _input_title(self) -> str:
        return f"Input ({self.view.mode.value})"

    # -- events ----------------------------------------------------------

    def _press(self, key: Key, data: str = "") -> None:
        self.view.handle_key(key, data)
        if self.view.finished:
            self._exit_app()

    def _key_bindings(self) -> KeyBindings:
        kb = KeyBindings()

        def _bind(name: Any, key: Key) -> None:
            @kb.add(name, eager=True)
            def _(event):  # type: ignore
                self._press(key)

        for name, key in _KEY_NAMES.items():
            _bind(name, key)

        @kb.add(Keys.Any)
        def _(event):  # type: ignore
            self._press(Key.CHAR, event.data)

        return kb

    def _build_app(self) -> Application:
        messages = VSplit(
            [
                Window(ScrollbackControl(self._render_messages, self._press), wrap_lines=False),
                Window(FormattedTextControl(self._render_scrollbar), width=1),
            ]
        )
        input_window = Window(
            FormattedTextControl(
                self._render_input,
                focusable=True,
                show_cursor=True,
                get_cursor_position=self._input_cursor,
            ),
            height=1,
        )
        root = HSplit(
            [
                Frame(messages, title="Messages"),
                Frame(input_window, title=self._input_title),
            ]
        )
        try:
            app: Application = Application(
                layout=Layout(root, focused_element=input_window),
                key_bindings=self._key_bindings(),
                full_screen=True,
                mouse_support=True,
                input=self._app_input,
                output=self._app_output,
                color_depth=None if self._color else ColorDepth.MONOCHROME,
            )
        except Exception as exc:  # noqa: BLE001 - console/platform specific failures
            raise TerminalSetupError(f"Couldn't set up the terminal: {exc}") from exc
        app.ttimeoutlen = 0.05
        return app

    def _exit_app(self) -> None:
        app = self._app
        if app is not None and app.is_running and not app.is_done:
            app.exit()

    # -- loop ------------------------------------------------------------

    async def _tick(self) -> None:
        loop = asyncio.get_running_loop()
        while not self.view.finished:
            started = loop.time()
            try:
                self.view.drain_one(self._output)
            except ChannelClosed:
                self.view.finish("session ended")
                break
            if self._app is not None:
                self._app.invalidate()
            await asyncio.sleep(max(0.0, self._tick_rate - (loop.time() - started)))
        self._exit_app()

    def _start_ticker(self) -> None:
        assert self._app is not None
        self._app.create_background_task(self._tick())

    async def run(self) -> None:
        """Run until exit, a repeated interrupt, or the end of the session.

        The input channel is closed on the way out so the monitor loop sees
        that the user side is gone.
        """
        try:
            self._app = self._build_app()
            with restored_terminal(self._app.output):
                try:
                    await self._app.run_async(pre_run=self._start_ticker)
                except OSError as exc:
                    raise TerminalSetupError(f"Terminal I/O failed: {exc}") from exc
        finally:
            self._input.close()
            logger.info("Terminal UI stopped: %s", self.view.exit_reason or "closed")
