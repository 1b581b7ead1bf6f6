"""Command history with a navigable cursor and a trailing staging entry."""

from __future__ import annotations


class HistoryBuffer:
    """Submitted commands, oldest first, followed by an empty staging slot.

    ``index`` always points into ``entries``; ``index == len(entries) - 1``
    means the user is on the staging slot, i.e. not browsing history.
    """

    def __init__(self) -> None:
        self._entries: list[str] = [""]
        self._index = 0

    @property
    def index(self) -> int:
        return self._index

    @property
    def entries(self) -> tuple[str, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def on_staging(self) -> bool:
        return self._index == len(self._entries) - 1

    def previous(self) -> str:
        if self._index > 0:
            self._index -= 1
        return self._entries[self._index]

    def next(self) -> str:
        if self._index < len(self._entries) - 1:
            self._index += 1
        return self._entries[self._index]

    def add(self, entry: str) -> None:
        self._entries.insert(len(self._entries) - 1, entry)

    def reset(self) -> None:
        self._index = len(self._entries) - 1

    def commit(self, entry: str) -> None:
        """Record a submission and return the cursor to the staging slot."""
        self.add(entry)
        self.reset()
