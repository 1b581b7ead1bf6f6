"""Escalate repeated cancel keystrokes into a hard exit."""

from __future__ import annotations

import time
from collections import deque
from typing import Callable

SPAM_COUNT = 3
SPAM_WINDOW = 3.0


class InterruptTracker:
    """Remembers the last few interrupt timestamps.

    ``record()`` returns True when the newest interrupt completes a run of
    ``SPAM_COUNT`` interrupts spanning at most ``SPAM_WINDOW`` seconds.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        count: int = SPAM_COUNT,
        window: float = SPAM_WINDOW,
    ) -> None:
        self._clock = clock
        self._window = window
        self._stamps: deque[float] = deque(maxlen=count)

    def __len__(self) -> int:
        return len(self._stamps)

    def record(self) -> bool:
        now = self._clock()
        self._stamps.append(now)
        if len(self._stamps) < (self._stamps.maxlen or 0):
            return False
        oldest = self._stamps[0]
        if now - oldest <= self._window:
            self._stamps.clear()
            return True
        # Stale: drop the oldest so the next interrupt is judged against
        # the remaining ones.
        self._stamps.popleft()
        return False

    def reset(self) -> None:
        self._stamps.clear()
