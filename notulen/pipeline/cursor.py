from __future__ import annotations

import logging
from typing import Callable, Optional

from .canvas import DrawingCanvas

logger = logging.getLogger(__name__)


class LayoutCursor:
    """
    Vertical position on the current page.

    ``advance`` holds the only page-break rule of the document: a block that
    would end below ``margin_top + usable_height`` moves to the top of a new
    page. Content is never shrunk to avoid a break.
    """

    def __init__(self, canvas: DrawingCanvas) -> None:
        self.canvas = canvas
        self.top = canvas.geometry.margin_top
        self.limit = canvas.geometry.margin_top + canvas.usable_height
        self.y = self.top

    @property
    def page_index(self) -> int:
        return self.canvas.page_count - 1

    def fits(self, height: float) -> bool:
        return self.y + height <= self.limit

    def advance(self, height: float, on_break: Optional[Callable[[], None]] = None) -> float:
        # A block taller than a whole page still goes on the current page when nothing precedes it.
        if not self.fits(height) and self.y > self.top:
            self.break_page()
            if on_break is not None:
                on_break()
        applied = self.y
        self.y += height
        return applied

    def break_page(self) -> float:
        self.canvas.new_page()
        self.y = self.top
        logger.debug("Page break -> page %d", self.page_index + 1)
        return self.y

    def move_to(self, y: float) -> float:
        self.y = y
        return self.y

    def skip(self, height: float) -> float:
        self.y += height
        return self.y
