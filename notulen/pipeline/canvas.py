from __future__ import annotations

import base64
import io
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Union

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from .text import FontSpec

logger = logging.getLogger(__name__)

ImagePayload = Union[str, bytes, ImageReader]


def hex_color(value: str, default=colors.black) -> colors.Color:
    if not value:
        return default
    try:
        return colors.HexColor("#" + str(value).lstrip("#"))
    except Exception:
        return default


@dataclass(frozen=True)
class PageGeometry:
    width: float
    height: float
    margin_top: float = 20.0
    margin_bottom: float = 20.0
    margin_left: float = 14.0
    margin_right: float = 14.0

    @property
    def usable_height(self) -> float:
        return self.height - self.margin_top - self.margin_bottom

    @property
    def content_width(self) -> float:
        return self.width - self.margin_left - self.margin_right


LANDSCAPE_A4 = PageGeometry(width=landscape(A4)[0] / mm, height=landscape(A4)[1] / mm)


@dataclass(frozen=True)
class TextStyle:
    font: FontSpec = field(default_factory=FontSpec)
    color: colors.Color = field(default_factory=lambda: colors.black)
    align: str = "left"  # left | center | right


@dataclass(frozen=True)
class TextOp:
    content: str
    x: float
    y: float
    style: TextStyle

    def draw(self, pdf: canvas.Canvas, page_h: float) -> None:
        pdf.setFont(self.style.font.name, self.style.font.size)
        pdf.setFillColor(self.style.color)
        x, y = self.x * mm, (page_h - self.y) * mm
        if self.style.align == "center":
            pdf.drawCentredString(x, y, self.content)
        elif self.style.align == "right":
            pdf.drawRightString(x, y, self.content)
        else:
            pdf.drawString(x, y, self.content)


@dataclass(frozen=True)
class LineOp:
    x1: float
    y1: float
    x2: float
    y2: float
    weight: float
    color: colors.Color = field(default_factory=lambda: colors.black)

    def draw(self, pdf: canvas.Canvas, page_h: float) -> None:
        pdf.setStrokeColor(self.color)
        pdf.setLineWidth(self.weight * mm)
        pdf.line(self.x1 * mm, (page_h - self.y1) * mm, self.x2 * mm, (page_h - self.y2) * mm)


@dataclass(frozen=True)
class RectOp:
    x: float
    y: float
    width: float
    height: float
    weight: float
    stroke_color: colors.Color = field(default_factory=lambda: colors.black)
    fill_color: Optional[colors.Color] = None

    def draw(self, pdf: canvas.Canvas, page_h: float) -> None:
        pdf.setStrokeColor(self.stroke_color)
        pdf.setLineWidth(self.weight * mm)
        fill = 0
        if self.fill_color is not None:
            pdf.setFillColor(self.fill_color)
            fill = 1
        pdf.rect(
            self.x * mm,
            (page_h - self.y - self.height) * mm,
            self.width * mm,
            self.height * mm,
            stroke=1 if self.weight > 0 else 0,
            fill=fill,
        )


@dataclass(frozen=True)
class ImageOp:
    image: ImageReader
    x: float
    y: float
    width: float
    height: float

    def draw(self, pdf: canvas.Canvas, page_h: float) -> None:
        pdf.drawImage(
            self.image,
            self.x * mm,
            (page_h - self.y - self.height) * mm,
            width=self.width * mm,
            height=self.height * mm,
            mask="auto",
        )


DrawOp = Union[TextOp, LineOp, RectOp, ImageOp]


@dataclass
class Page:
    index: int
    ops: List[DrawOp] = field(default_factory=list)

    def texts(self) -> List[str]:
        return [op.content for op in self.ops if isinstance(op, TextOp)]

    def images(self) -> List[ImageOp]:
        return [op for op in self.ops if isinstance(op, ImageOp)]


def _payload_bytes(payload: Union[str, bytes]) -> bytes:
    if isinstance(payload, bytes):
        return payload
    text = payload.strip()
    if text.startswith("data:"):
        _, _, text = text.partition(",")
    # Line-wrapped base64 bodies are accepted.
    return base64.b64decode("".join(text.split()), validate=True)


class DrawingCanvas:
    """
    Page sequence with drawing primitives in millimetres.

    Origin is the top-left corner and y grows downward. Operations are
    recorded per page and only turned into PDF bytes by ``serialize``.
    """

    def __init__(self, geometry: PageGeometry = LANDSCAPE_A4) -> None:
        self.geometry = geometry
        self.pages: List[Page] = [Page(index=0)]

    @property
    def page_width(self) -> float:
        return self.geometry.width

    @property
    def page_height(self) -> float:
        return self.geometry.height

    @property
    def usable_height(self) -> float:
        return self.geometry.usable_height

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def current_page(self) -> Page:
        return self.pages[-1]

    def new_page(self) -> Page:
        page = Page(index=len(self.pages))
        self.pages.append(page)
        return page

    def text(self, content: str, x: float, y: float, style: TextStyle) -> None:
        self.current_page.ops.append(TextOp(str(content), x, y, style))

    def line(self, x1: float, y1: float, x2: float, y2: float, weight: float = 0.1, color=colors.black) -> None:
        self.current_page.ops.append(LineOp(x1, y1, x2, y2, weight, color))

    def rect(
        self,
        x: float,
        y: float,
        w: float,
        h: float,
        weight: float = 0.1,
        stroke_color=colors.black,
        fill_color=None,
    ) -> None:
        self.current_page.ops.append(RectOp(x, y, w, h, weight, stroke_color, fill_color))

    def decode_image(self, payload: Optional[ImagePayload]) -> Optional[ImageReader]:
        """Return a drawable handle, or None when the payload is not a usable image."""
        if payload is None or payload == "" or payload == b"":
            return None
        if isinstance(payload, ImageReader):
            return payload
        try:
            reader = ImageReader(io.BytesIO(_payload_bytes(payload)))
            reader.getSize()
            # getSize only reads the header.
            reader.getRGBData()
        except Exception:
            logger.warning("Could not decode image payload", exc_info=True)
            return None
        return reader

    def image(self, payload: Optional[ImagePayload], x: float, y: float, w: float, h: float) -> bool:
        reader = self.decode_image(payload)
        if reader is None:
            return False
        self.current_page.ops.append(ImageOp(reader, x, y, w, h))
        return True

    def serialize(self, title: Optional[str] = None) -> bytes:
        buf = io.BytesIO()
        page_w, page_h = self.geometry.width, self.geometry.height
        # invariant=1 keeps the creation date and document id out of the output.
        pdf = canvas.Canvas(buf, pagesize=(page_w * mm, page_h * mm), invariant=1)
        if title:
            pdf.setTitle(title)
        for page in self.pages:
            for op in page.ops:
                if isinstance(op, ImageOp):
                    try:
                        op.draw(pdf, page_h)
                    except Exception:
                        logger.warning("Skipping image on page %d", page.index + 1, exc_info=True)
                    continue
                op.draw(pdf, page_h)
            pdf.showPage()
        pdf.save()
        return buf.getvalue()
