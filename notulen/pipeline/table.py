from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from reportlab.lib import colors

from .canvas import DrawingCanvas, TextStyle, hex_color
from .cursor import LayoutCursor
from .text import PT_TO_MM, FontSpec, Line, block_height, wrap

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ColumnSpec:
    width: float
    align: str = "left"  # left | center | right
    min_height: float = 0.0


@dataclass(frozen=True)
class CellStyle:
    text_color: Optional[colors.Color] = None
    font_style: Optional[str] = None  # normal | bold | italic


@dataclass(frozen=True)
class CellBounds:
    x: float
    y: float
    width: float
    height: float


StyleHook = Callable[[int, int], Optional[CellStyle]]
OverlayHook = Callable[[int, int, CellBounds], None]


@dataclass(frozen=True)
class TableStyle:
    font_name: str = "Times-Roman"
    font_bold: str = "Times-Bold"
    font_italic: str = "Times-Italic"
    font_bold_italic: str = "Times-BoldItalic"
    font_size: float = 10.0
    padding: float = 3.0
    line_weight: float = 0.1
    line_height_factor: float = 1.15
    line_color: colors.Color = field(default_factory=lambda: colors.black)
    text_color: colors.Color = field(default_factory=lambda: colors.black)
    header_fill: Optional[colors.Color] = None
    header_valign: str = "middle"  # top | middle

    @classmethod
    def from_preset(cls, preset: dict, section: str) -> "TableStyle":
        table = preset.get(section, {})
        return cls(
            font_name=str(preset.get("font_name", "Times-Roman")),
            font_bold=str(preset.get("font_bold", "Times-Bold")),
            font_italic=str(preset.get("font_italic", "Times-Italic")),
            font_bold_italic=str(preset.get("font_bold_italic", "Times-BoldItalic")),
            font_size=float(table.get("font_size", 10)),
            padding=float(table.get("cell_padding", 3)),
            line_weight=float(table.get("line_weight", 0.1)),
            line_height_factor=float(preset.get("line_height_factor", 1.15)),
            line_color=hex_color(table.get("line_color", "#000000")),
            text_color=hex_color(preset.get("text_color", "#000000")),
            header_fill=hex_color(table["header_fill"]) if table.get("header_fill") else None,
            header_valign=str(table.get("header_valign", "middle")),
        )

    def font(self, font_style: Optional[str]) -> FontSpec:
        names = {
            "bold": self.font_bold,
            "italic": self.font_italic,
            "bolditalic": self.font_bold_italic,
        }
        return FontSpec(names.get(font_style or "normal", self.font_name), self.font_size)

    @property
    def line_height(self) -> float:
        return self.font_size * self.line_height_factor * PT_TO_MM


@dataclass
class _Cell:
    lines: List[Line]
    font: FontSpec
    color: colors.Color


@dataclass
class _Row:
    cells: List[_Cell]
    height: float


class TableRenderer:
    """
    Ruled grid that flows over as many pages as its rows need.

    Rows are never split. When a row does not fit, the cursor breaks the
    page and the header row is drawn again before the row continues.
    """

    def __init__(self, canvas: DrawingCanvas, cursor: LayoutCursor, style: TableStyle) -> None:
        self.canvas = canvas
        self.cursor = cursor
        self.style = style
        self.header_pages: List[int] = []
        self.row_pages: List[int] = []

    def _measure(
        self,
        values: Sequence[str],
        columns: Sequence[ColumnSpec],
        row_index: Optional[int],
        style_hook: Optional[StyleHook],
    ) -> _Row:
        style = self.style
        cells: List[_Cell] = []
        height = 0.0
        for col_index, column in enumerate(columns):
            value = values[col_index] if col_index < len(values) else ""
            font_style = "bold" if row_index is None else None
            color = style.text_color
            if row_index is not None and style_hook is not None:
                override = style_hook(row_index, col_index)
                if override is not None:
                    font_style = override.font_style or font_style
                    color = override.text_color or color
            font = style.font(font_style)
            lines = wrap(str(value), max(1.0, column.width - 2 * style.padding), font)
            cell_h = block_height(len(lines), style.line_height) + 2 * style.padding
            height = max(height, cell_h, column.min_height)
            cells.append(_Cell(lines, font, color))
        return _Row(cells, height)

    def _draw_row(self, row: _Row, columns: Sequence[ColumnSpec], y: float, header: bool) -> List[CellBounds]:
        style = self.style
        x = self.canvas.geometry.margin_left
        lh = style.line_height
        bounds: List[CellBounds] = []
        for cell, column in zip(row.cells, columns):
            self.canvas.rect(
                x,
                y,
                column.width,
                row.height,
                weight=style.line_weight,
                stroke_color=style.line_color,
                fill_color=style.header_fill if header else None,
            )
            size_mm = cell.font.size * PT_TO_MM
            if header and style.header_valign == "middle":
                top = y + (row.height - len(cell.lines) * lh) / 2
            else:
                top = y + style.padding
            align = "center" if header else column.align
            if align == "center":
                tx = x + column.width / 2
            elif align == "right":
                tx = x + column.width - style.padding
            else:
                tx = x + style.padding
            text_style = TextStyle(font=cell.font, color=cell.color, align=align)
            for i, line in enumerate(cell.lines):
                if not line.text:
                    continue
                baseline = top + i * lh + (lh + size_mm) / 2 - size_mm * 0.15
                self.canvas.text(line.text, tx, baseline, text_style)
            bounds.append(CellBounds(x, y, column.width, row.height))
            x += column.width
        return bounds

    def render(
        self,
        columns: Sequence[ColumnSpec],
        header: Sequence[str],
        body: Sequence[Sequence[str]],
        style_hook: Optional[StyleHook] = None,
        overlay_hook: Optional[OverlayHook] = None,
    ) -> float:
        head = self._measure(header, columns, None, None)
        rows = [self._measure(values, columns, index, style_hook) for index, values in enumerate(body)]

        def emit_header() -> None:
            y = self.cursor.advance(head.height)
            self._draw_row(head, columns, y, header=True)
            self.header_pages.append(self.cursor.page_index)

        # Keep the header together with the first body row.
        lead = head.height + (rows[0].height if rows else 0.0)
        start = self.cursor.advance(lead)
        self.cursor.move_to(start)
        emit_header()

        for row_index, row in enumerate(rows):
            y = self.cursor.advance(row.height, on_break=emit_header)
            bounds = self._draw_row(row, columns, y, header=False)
            self.row_pages.append(self.cursor.page_index)
            if overlay_hook is None:
                continue
            for col_index, cell_bounds in enumerate(bounds):
                try:
                    overlay_hook(row_index, col_index, cell_bounds)
                except Exception:
                    logger.warning(
                        "Cell overlay failed at row %d column %d", row_index, col_index, exc_info=True
                    )
        return self.cursor.y
