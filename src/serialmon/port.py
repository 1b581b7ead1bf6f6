"""Serial device access.

pyserial is blocking, so reads and writes run on worker threads via
``asyncio.to_thread``. A read waits up to the port timeout for a line feed;
timeouts without a complete line keep accumulating until the line is done.
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Callable

import serial

from serialmon.errors import PortOpenError, PortReadError, PortWriteError
from serialmon.log_utils import log_event, log_lines_enabled

logger = logging.getLogger(__name__)

WELCOME_COMMAND = b"welcome\r\n"
LINE_FEED = b"\n"


@dataclass(frozen=True)
class PortSettings:
    baudrate: int = 115200
    bytesize: int = serial.EIGHTBITS
    parity: str = serial.PARITY_NONE
    stopbits: float = serial.STOPBITS_ONE
    timeout: float = 10.0
    xonxoff: bool = False
    rtscts: bool = False
    dsrdtr: bool = False

    def as_kwargs(self) -> dict[str, Any]:
        return {
            "baudrate": self.baudrate,
            "bytesize": self.bytesize,
            "parity": self.parity,
            "stopbits": self.stopbits,
            "timeout": self.timeout,
            "xonxoff": self.xonxoff,
            "rtscts": self.rtscts,
            "dsrdtr": self.dsrdtr,
        }


DEFAULT_SETTINGS = PortSettings()


@dataclass
class Session:
    path: str
    settings: PortSettings = field(default=DEFAULT_SETTINGS)
    open: bool = True


SerialFactory = Callable[..., Any]


class SerialPort:
    """Owns one open serial device for the lifetime of a session."""

    def __init__(self, handle: Any, session: Session) -> None:
        self._serial = handle
        self.session = session
        self._pending = bytearray()

    @classmethod
    def open(
        cls,
        path: str,
        settings: PortSettings = DEFAULT_SETTINGS,
        *,
        factory: SerialFactory = serial.Serial,
    ) -> "SerialPort":
        try:
            handle = factory(port=path, **settings.as_kwargs())
        except (serial.SerialException, OSError, ValueError) as exc:
            log_event(logger, "port_open_failed", level=logging.ERROR, path=path, error=str(exc))
            raise PortOpenError(path, str(exc)) from exc

        if os.name == "posix":
            # Let other tools observe the port alongside us.
            try:
                handle.exclusive = False
            except (serial.SerialException, OSError, ValueError) as exc:
                logger.warning("Unable to release exclusive lock on %s: %s", path, exc)

        log_event(logger, "port_opened", path=path, baudrate=settings.baudrate)
        return cls(handle, Session(path=path, settings=settings))

    @property
    def is_open(self) -> bool:
        return self.session.open and bool(getattr(self._serial, "is_open", True))

    def _read_chunk(self) -> bytes:
        return self._serial.read_until(LINE_FEED)

    async def read_line(self) -> str | None:
        """Return the next line including its line feed, or None at end of stream.

        Bytes are decoded as UTF-8 with invalid sequences replaced.
        """
        while True:
            if not self.is_open:
                return self._flush_pending()
            try:
                chunk = await asyncio.to_thread(self._read_chunk)
            except (serial.SerialException, OSError) as exc:
                if not self.is_open:
                    return self._flush_pending()
                raise PortReadError(str(exc)) from exc
            if not chunk:
                # Timeout with nothing new; a closed port means end of stream.
                if not self.is_open:
                    return self._flush_pending()
                continue
            self._pending.extend(chunk)
            if self._pending.endswith(LINE_FEED):
                line = bytes(self._pending).decode("utf-8", errors="replace")
                self._pending.clear()
                if log_lines_enabled():
                    logger.debug("rx %r", line)
                return line

    def _flush_pending(self) -> str | None:
        if not self._pending:
            return None
        line = bytes(self._pending).decode("utf-8", errors="replace")
        self._pending.clear()
        return line

    def _write_all(self, data: bytes) -> None:
        self._serial.write(data)
        self._serial.flush()

    async def write(self, data: bytes) -> bool:
        """Write raw bytes. Failures are logged and reported as False."""
        try:
            await self.write_strict(data)
        except PortWriteError as exc:
            log_event(logger, "port_write_failed", level=logging.ERROR, error=str(exc), size=len(data))
            return False
        return True

    async def write_strict(self, data: bytes) -> None:
        if not self.is_open:
            raise PortWriteError("port is closed")
        try:
            await asyncio.to_thread(self._write_all, data)
        except (serial.SerialException, OSError) as exc:
            raise PortWriteError(str(exc)) from exc

    async def send_welcome(self) -> bool:
        ok = await self.write(WELCOME_COMMAND)
        if not ok:
            logger.warning("Couldn't send welcome command to %s", self.session.path)
        return ok

    def close(self) -> None:
        if not self.session.open:
            return
        self.session.open = False
        cancel = getattr(self._serial, "cancel_read", None)
        if cancel is not None:
            try:
                cancel()
            except (serial.SerialException, OSError, NotImplementedError) as exc:
                logger.debug("cancel_read failed: %s", exc)
        try:
            self._serial.close()
        except (serial.SerialException, OSError) as exc:
            logger.warning("Error closing %s: %s", self.session.path, exc)
        log_event(logger, "port_closed", path=self.session.path)
