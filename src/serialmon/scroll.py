"""Scroll position of the scrollback pane with auto-follow."""

from __future__ import annotations

# Lines the view may be scrolled past the last line of content.
SCROLL_MARGIN = 1


class ScrollState:
    """View offset into the scrollback.

    While ``manual`` is False the offset tracks the bottom on every frame.
    Any user scroll sets ``manual``; reaching the bottom clears it again.
    """

    def __init__(self, margin: int = SCROLL_MARGIN) -> None:
        self.offset = 0
        self.content_length = 0
        self.viewport_height = 0
        self.manual = False
        self._margin = margin

    @property
    def bottom(self) -> int:
        return max(0, self.content_length - self.viewport_height + self._margin)

    def _settle(self) -> None:
        self.offset = max(0, min(self.offset, self.bottom))
        if self.offset >= self.bottom:
            self.manual = False

    def update(self, content_length: int, viewport_height: int) -> None:
        """Called once per frame with the current content and view sizes."""
        self.content_length = max(0, content_length)
        self.viewport_height = max(0, viewport_height)
        if not self.manual:
            self.offset = self.bottom
        self._settle()

    def scroll_up(self, lines: int = 1) -> None:
        self.manual = True
        self.offset = max(0, self.offset - lines)
        self._settle()

    def scroll_down(self, lines: int = 1) -> None:
        self.manual = True
        self.offset += lines
        self._settle()

    def reset(self) -> None:
        self.offset = 0
        self.content_length = 0
        self.manual = False
