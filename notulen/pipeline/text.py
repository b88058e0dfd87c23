from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import List, Optional

from bs4 import BeautifulSoup
from reportlab.lib.units import mm
from reportlab.pdfbase.pdfmetrics import stringWidth

from ..config import INVALID_DATE, MISSING_VALUE, MONTHS_SHORT, WEEKDAYS

PT_TO_MM = 1.0 / mm


@dataclass(frozen=True)
class FontSpec:
    name: str = "Times-Roman"
    size: float = 10.0


@dataclass(frozen=True)
class Line:
    text: str
    width: float


def text_width(text: str, font: FontSpec) -> float:
    return stringWidth(text, font.name, font.size) * PT_TO_MM


def _split_long_token(token: str, max_width: float, font: FontSpec) -> List[str]:
    # Hard split for tokens wider than the column.
    parts: List[str] = []
    cur = ""
    for ch in token:
        if cur and text_width(cur + ch, font) > max_width:
            parts.append(cur)
            cur = ch
        else:
            cur += ch
    if cur:
        parts.append(cur)
    return parts


def _wrap_paragraph(paragraph: str, max_width: float, font: FontSpec) -> List[str]:
    words = paragraph.split()
    if not words:
        return [""]

    lines: List[str] = []
    cur: List[str] = []

    for w in words:
        test = " ".join(cur + [w])
        if text_width(test, font) <= max_width:
            cur.append(w)
            continue

        if cur:
            lines.append(" ".join(cur))
            cur = []

        if text_width(w, font) <= max_width:
            cur = [w]
        else:
            pieces = _split_long_token(w, max_width, font)
            lines.extend(pieces[:-1])
            cur = [pieces[-1]]

    if cur:
        lines.append(" ".join(cur))
    return lines


def wrap(text: Optional[str], max_width: float, font: FontSpec) -> List[Line]:
    """
    Word-wrap ``text`` into lines no wider than ``max_width`` millimetres.

    Explicit newlines start a new line. Blank input gives a single empty
    line so callers can always advance by at least one line.
    """
    raw = (text or "").replace("\r\n", "\n").replace("\r", "\n")
    out: List[Line] = []
    for paragraph in raw.split("\n"):
        for line in _wrap_paragraph(paragraph, max_width, font):
            out.append(Line(line, text_width(line, font)))
    if not out or all(not line.text for line in out):
        return [Line("", 0.0)]
    return out


def block_height(line_count: int, line_height: float) -> float:
    return max(1, line_count) * line_height


def strip_html(html: Optional[str]) -> str:
    """Reduce rich text to its plain text content."""
    if not html:
        return ""
    return BeautifulSoup(html, "html.parser").get_text()


def _parse_date(value) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def format_date(value) -> str:
    """Indonesian short date, e.g. ``5 Mar 2024``."""
    if value is None or value == "":
        return MISSING_VALUE
    parsed = _parse_date(value)
    if parsed is None:
        return INVALID_DATE
    return f"{parsed.day} {MONTHS_SHORT[parsed.month - 1]} {parsed.year}"


def day_name(value) -> str:
    if value is None or value == "":
        return ""
    parsed = _parse_date(value)
    if parsed is None:
        return ""
    return WEEKDAYS[parsed.weekday()]
