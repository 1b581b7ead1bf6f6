"""Exception hierarchy for the serial monitor."""

from __future__ import annotations


class MonitorError(Exception):
    """Base class for all serial monitor failures."""


class PortOpenError(MonitorError):
    """The device could not be opened; the session attempt is over."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Couldn't open {path}: {reason}")
        self.path = path
        self.reason = reason


class PortReadError(MonitorError):
    """Reading from the device failed; ends the session loop."""


class PortWriteError(MonitorError):
    """Writing to the device failed; never fatal."""


class ChannelSendError(MonitorError):
    """A message could not be delivered because the channel is closed."""


class TerminalSetupError(MonitorError):
    """The terminal could not be put into (or driven in) full-screen mode."""


class MacroError(MonitorError):
    """A macro command could not be expanded into bytes."""
