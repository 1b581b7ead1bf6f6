from __future__ import annotations

import threading
from typing import Any, Iterable

import serial

from serialmon.errors import ChannelSendError
from serialmon.port import SerialPort


class FakeSerial:
    """Stands in for ``serial.Serial``: scripted reads, recorded writes.

    Once the scripted chunks run out, reads block until ``finish()`` (or
    ``cancel_read()``/``close()``) and then report end of stream.
    """

    def __init__(
        self,
        chunks: Iterable[bytes] = (),
        *,
        hold: bool = False,
        read_error: Exception | None = None,
        write_error: Exception | None = None,
        **kwargs: Any,
    ) -> None:
        self.kwargs = kwargs
        self._chunks = list(chunks)
        self._released = threading.Event()
        if not hold:
            self._released.set()
        self.read_error = read_error
        self.write_error = write_error
        self.written = bytearray()
        self.is_open = True
        self.exclusive: bool | None = None
        self.closed = False

    def read_until(self, expected: bytes = b"\n") -> bytes:
        if self.read_error is not None:
            raise self.read_error
        if self._chunks:
            return self._chunks.pop(0)
        self._released.wait(timeout=5)
        self.is_open = False
        return b""

    def write(self, data: bytes) -> int:
        if self.write_error is not None:
            raise self.write_error
        self.written.extend(data)
        return len(data)

    def flush(self) -> None:
        pass

    def finish(self) -> None:
        self._released.set()

    def cancel_read(self) -> None:
        self._released.set()

    def close(self) -> None:
        self.closed = True
        self.is_open = False
        self._released.set()


def open_fake_port(fake: FakeSerial, path: str = "/dev/ttyUSB0") -> SerialPort:
    def _factory(**kwargs: Any) -> FakeSerial:
        fake.kwargs = kwargs
        return fake

    return SerialPort.open(path, factory=_factory)


def failing_factory(**_kwargs: Any) -> FakeSerial:
    raise serial.SerialException("could not open port: No such file or directory")


class Outbox:
    """Minimal input-channel stand-in for synchronous view tests."""

    def __init__(self) -> None:
        self.sent: list[Any] = []
        self.closed = False

    def send(self, item: Any) -> None:
        if self.closed:
            raise ChannelSendError("outbox is closed")
        self.sent.append(item)

    def close(self) -> None:
        self.closed = True


class FakeClock:
    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds
