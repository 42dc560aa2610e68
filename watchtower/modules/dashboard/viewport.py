from __future__ import annotations

from typing import List, Sequence

from rich.text import Text

LINES_PER_ITEM = 3


class Viewport:
    """A fixed-size window over a list of rendered lines."""

    def __init__(self, width: int = 80, height: int = 30) -> None:
        self.width = width
        self.height = height
        self.lines: List[Text] = []
        self.y_offset = 0

    @property
    def max_offset(self) -> int:
        return max(0, len(self.lines) - self.height)

    def set_content(self, lines: Sequence[Text]) -> None:
        self.lines = list(lines)
        self.set_y_offset(self.y_offset)

    def set_size(self, width: int, height: int) -> None:
        self.width = max(1, width)
        self.height = max(1, height)
        self.set_y_offset(self.y_offset)

    def set_y_offset(self, offset: int) -> None:
        self.y_offset = min(max(0, offset), self.max_offset)

    def line_down(self, count: int = 1) -> None:
        self.set_y_offset(self.y_offset + count)

    def line_up(self, count: int = 1) -> None:
        self.set_y_offset(self.y_offset - count)

    def half_view_down(self) -> None:
        self.line_down(max(1, self.height // 2))

    def half_view_up(self) -> None:
        self.line_up(max(1, self.height // 2))

    def goto_top(self) -> None:
        self.y_offset = 0

    def goto_bottom(self) -> None:
        self.y_offset = self.max_offset

    def visible_lines(self) -> List[Text]:
        return self.lines[self.y_offset : self.y_offset + self.height]


def scroll_into_view(viewport: Viewport, header_line_count: int, selected_index: int) -> None:
    """Move the window so the selected item's whole line span is visible.

    Index 0 always jumps to the very top so the header above the list shows.
    """
    if selected_index == 0:
        viewport.goto_top()
        return
    if viewport.height <= 0:
        return
    item_start = max(0, header_line_count + selected_index * LINES_PER_ITEM)
    item_end = item_start + LINES_PER_ITEM - 1
    if item_start < viewport.y_offset:
        viewport.set_y_offset(item_start)
        return
    if item_end >= viewport.y_offset + viewport.height:
        viewport.set_y_offset(item_end - viewport.height + 1)
