"""One-way message channels between the monitor's concurrent contexts.

A channel belongs to the event loop it was created on. ``send`` may be called
from any thread (signal handlers and worker threads included); the item
is handed to the owning loop with ``call_soon_threadsafe``. Channels are
unbounded and FIFO.
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import Generic, TypeVar

from serialmon.errors import ChannelSendError

T = TypeVar("T")

_CLOSED = object()


class ChannelClosed(Exception):
    """Raised on receive once the channel is closed and drained."""


class Channel(Generic[T]):
    def __init__(self, name: str = "channel") -> None:
        self.name = name
        self._loop = asyncio.get_running_loop()
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _in_owner_loop(self) -> bool:
        try:
            return asyncio.get_running_loop() is self._loop
        except RuntimeError:
            return False

    def _put(self, item: object) -> None:
        if self._in_owner_loop():
            self._queue.put_nowait(item)
            return
        try:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, item)
        except RuntimeError as exc:
            raise ChannelSendError(f"{self.name}: event loop is gone") from exc

    def send(self, item: T) -> None:
        if self._closed:
            raise ChannelSendError(f"{self.name} is closed")
        self._put(item)

    def close(self) -> None:
        """Close the channel; queued items are still delivered first."""
        if self._closed:
            return
        self._closed = True
        with contextlib.suppress(ChannelSendError):
            self._put(_CLOSED)

    def _unwrap(self, item: object) -> T:
        if item is _CLOSED:
            # Leave the marker for any later receiver.
            self._queue.put_nowait(_CLOSED)
            raise ChannelClosed(self.name)
        return item  # type: ignore[return-value]

    def try_recv(self) -> T | None:
        """Return the next item without waiting, or None if nothing is queued."""
        try:
            item = self._queue.get_nowait()
        except asyncio.QueueEmpty:
            return None
        return self._unwrap(item)

    async def recv(self) -> T:
        return self._unwrap(await self._queue.get())

    def pending(self) -> int:
        return self._queue.qsize()
