"""Put the terminal back the way we found it, whatever happens."""

from __future__ import annotations

import contextlib
import logging
import sys
from typing import Any, Iterator

logger = logging.getLogger(__name__)


def _save_tty_mode(stream: Any) -> tuple[int, list[Any]] | None:
    try:
        import termios
    except ImportError:
        # Windows: the console mode is restored by prompt_toolkit's input.
        return None
    try:
        fd = stream.fileno()
        if not stream.isatty():
            return None
        return fd, termios.tcgetattr(fd)
    except (OSError, ValueError, AttributeError):
        return None


def _restore_tty_mode(saved: tuple[int, list[Any]] | None) -> None:
    if saved is None:
        return
    import termios

    fd, attrs = saved
    termios.tcsetattr(fd, termios.TCSADRAIN, attrs)


def restore_output(output: Any) -> None:
    """Leave the alternate screen, stop mouse reporting, show the cursor."""
    steps = (
        output.disable_mouse_support,
        output.quit_alternate_screen,
        output.reset_attributes,
        output.show_cursor,
        output.flush,
    )
    for step in steps:
        try:
            step()
        except Exception as exc:  # noqa: BLE001 - keep restoring the rest
            logger.warning("Terminal restore step %s failed: %s", getattr(step, "__name__", step), exc)


@contextlib.contextmanager
def restored_terminal(output: Any, stdin: Any = None) -> Iterator[None]:
    """Scope in which the terminal may be in raw, alternate-screen mode.

    The line discipline saved on entry and the output modes are restored on
    every exit path, including exceptions and cancellation.
    """
    saved = _save_tty_mode(stdin if stdin is not None else sys.stdin)
    try:
        yield
    finally:
        if output is not None:
            restore_output(output)
        try:
            _restore_tty_mode(saved)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Couldn't restore terminal mode: %s", exc)
