from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import List, Optional

from .. import config
from ..config import LAYOUT as L
from ..models import AttendanceStatus, MeetingRecord
from .canvas import LANDSCAPE_A4, DrawingCanvas, PageGeometry, TextStyle, hex_color
from .cursor import LayoutCursor
from .reference import ReferenceData, resolve_unit_name
from .table import CellBounds, CellStyle, ColumnSpec, TableRenderer, TableStyle
from .text import FontSpec, block_height, day_name, format_date, strip_html, wrap

logger = logging.getLogger(__name__)


def suggested_file_name(title: str) -> str:
    slug = re.sub(r"\s+", "-", title or "")
    return f"{config.FILE_NAME_PREFIX}{slug}.pdf"


def agenda_rows(record: MeetingRecord) -> List[List[str]]:
    if not record.items:
        return [list(config.AGENDA_PLACEHOLDER_ROW)]
    return [
        [
            str(index + 1),
            item.topic,
            strip_html(item.decision),
            strip_html(item.action),
            item.pic,
            item.monitoring,
        ]
        for index, item in enumerate(record.items)
    ]


def attendance_rows(record: MeetingRecord, reference: ReferenceData) -> List[List[str]]:
    rows: List[List[str]] = []
    for index, participant in enumerate(record.participants):
        status = config.ABSENT_TEXT if participant.attendance == AttendanceStatus.TIDAK_HADIR else ""
        rows.append([str(index + 1), participant.name, resolve_unit_name(participant, reference), status])
    return rows


@dataclass
class AssembledDocument:
    canvas: DrawingCanvas
    file_name: str
    attendance_page: int = 0

    @property
    def page_count(self) -> int:
        return self.canvas.page_count


class DocumentAssembler:
    """
    Composes the minutes form followed by the attendance form.

    One canvas and one cursor per export; every block goes through the
    cursor so page breaks follow a single rule.
    """

    def __init__(
        self,
        record: MeetingRecord,
        reference: ReferenceData,
        geometry: PageGeometry = LANDSCAPE_A4,
        style: Optional[dict] = None,
    ) -> None:
        self.record = record
        self.reference = reference
        self.style = style if style is not None else config.load_style_preset()
        self.canvas = DrawingCanvas(geometry)
        self.cursor = LayoutCursor(self.canvas)
        self.text_color = hex_color(self.style.get("text_color", "#000000"))
        self.logo = self.canvas.decode_image(reference.logo)
        self.agenda_table: Optional[TableRenderer] = None
        self.attendance_table: Optional[TableRenderer] = None

    # -- helpers -----------------------------------------------------------

    def _text_style(self, size: float, bold: bool = False) -> TextStyle:
        name = self.style.get("font_bold", "Times-Bold") if bold else self.style.get("font_name", "Times-Roman")
        return TextStyle(font=FontSpec(str(name), float(size)), color=self.text_color)

    @property
    def _left(self) -> float:
        return self.canvas.geometry.margin_left

    def _label_row(self, label: str, label_x: float, colon_x: float, y: float, size: float) -> None:
        bold = self._text_style(size, bold=True)
        self.canvas.text(label, label_x, y, bold)
        self.canvas.text(":", colon_x, y, bold)

    def _date_text(self) -> str:
        return f"{day_name(self.record.date)} / {format_date(self.record.date)}"

    def _time_text(self) -> str:
        return f"{self.record.time or config.MISSING_VALUE} {config.TIME_SUFFIX}"

    # -- blocks ------------------------------------------------------------

    def draw_form_header(self, caption: str, revision_date: str) -> None:
        if self.logo is not None:
            self.canvas.image(self.logo, L["logo_x"], L["logo_y"], L["logo_size"], L["logo_size"])
        text_x = L["header_text_x_with_logo"] if self.logo is not None else self._left
        self.canvas.text(
            caption, text_x, L["header_caption_y"], self._text_style(self.style.get("header_caption_size", 12), bold=True)
        )
        self.canvas.text(
            revision_date, text_x, L["header_date_y"], self._text_style(self.style.get("header_date_size", 10), bold=True)
        )
        self.canvas.line(
            self._left,
            L["header_rule_y"],
            self.canvas.page_width - self.canvas.geometry.margin_right,
            L["header_rule_y"],
            weight=L["header_rule_weight"],
        )
        self.cursor.move_to(L["meta_start_y"])

    def draw_minutes_metadata(self) -> None:
        size = float(self.style.get("meta_size", 11))
        value_style = self._text_style(size)
        start_page = self.cursor.page_index
        y0 = self.cursor.y

        # Right column first, fixed rows on the page where the block starts.
        col2_x = L["meta_col2_x"]
        col2_colon = col2_x + L["meta_col2_label_width"]
        right_rows = [
            ("Hari/Tanggal", self._date_text()),
            ("Jam", self._time_text()),
            ("PIC", self.record.pic_name or config.MISSING_VALUE),
        ]
        for i, (label, value) in enumerate(right_rows):
            y = y0 + i * L["meta_row_height"]
            self._label_row(label, col2_x, col2_colon, y, size)
            self.canvas.text(value, col2_colon + L["meta_value_gap"], y, value_style)
        right_bottom = y0 + (len(right_rows) - 1) * L["meta_row_height"]

        # Left column: the wrapped title pushes the rows below it down.
        colon_x = self._left + L["meta_label_offset"]
        value_x = colon_x + L["meta_value_gap"]
        title_lines = wrap(self.record.title, L["meta_title_width"], value_style.font)

        acara_y = self.cursor.advance(block_height(len(title_lines), L["meta_title_line_height"]) + L["meta_row_gap"])
        self._label_row("Acara", self._left, colon_x, acara_y, size)
        for i, line in enumerate(title_lines):
            self.canvas.text(line.text, value_x, acara_y + i * L["meta_title_line_height"], value_style)

        tempat_y = self.cursor.advance(L["meta_row_height"])
        self._label_row("Tempat", self._left, colon_x, tempat_y, size)
        self.canvas.text(self.record.location or "", value_x, tempat_y, value_style)

        peserta_y = self.cursor.advance(L["meta_row_height"])
        self._label_row("Peserta", self._left, colon_x, peserta_y, size)
        self.canvas.text(config.ATTENDEE_REFERENCE_NOTE, value_x, peserta_y, value_style)

        if self.cursor.page_index == start_page:
            last_row = max(peserta_y, right_bottom)
        else:
            last_row = peserta_y
        self.cursor.move_to(last_row + L["table_gap"])

    def draw_agenda_table(self) -> float:
        columns = [
            ColumnSpec(width, align="center" if i == 0 else "left")
            for i, width in enumerate(config.AGENDA_COLUMN_WIDTHS)
        ]
        self.agenda_table = TableRenderer(
            self.canvas, self.cursor, TableStyle.from_preset(self.style, "agenda")
        )
        return self.agenda_table.render(columns, config.AGENDA_HEADERS, agenda_rows(self.record))

    def draw_signature_block(self) -> None:
        size = float(self.style.get("signature_size", 11))
        style = self._text_style(size)
        x = L["signature_x"]

        self.cursor.skip(L["table_gap"])
        y = self.cursor.advance(L["signature_block_height"])
        self.canvas.text(config.SIGNATURE_CAPTION[0], x, y, style)
        self.canvas.text(config.SIGNATURE_CAPTION[1], x, y + 5, style)

        signed = self.canvas.image(
            self.record.pic_signature,
            x,
            y + 10,
            L["signature_image_width"],
            L["signature_image_height"],
        )
        if not signed:
            self.canvas.text(config.SIGNATURE_BLANK_RULE, x, y + 30, style)
        self.canvas.text(f"( {self.record.pic_name or config.MISSING_VALUE} )", x, y + 35, style)
        self.cursor.move_to(y + L["signature_advance"])

    def draw_attachments(self) -> None:
        if not self.record.attachments:
            return
        size = float(self.style.get("attachment_size", 10))
        item_style = self._text_style(size)

        y = self.cursor.advance(L["attachment_caption_height"])
        self.canvas.text(
            config.ATTACHMENTS_CAPTION, self._left, y, self._text_style(self.style.get("meta_size", 11), bold=True)
        )

        for attachment in self.record.attachments:
            if not attachment.is_image:
                y = self.cursor.advance(L["attachment_line_height"])
                self.canvas.text(f"- {attachment.file_name} {config.DOCUMENT_SUFFIX}", self._left, y, item_style)
                continue

            handle = self.canvas.decode_image(attachment.file_path)
            if handle is None:
                y = self.cursor.advance(L["attachment_error_block"])
                self.canvas.text(f"- {attachment.file_name}", self._left, y, item_style)
                self.canvas.text(config.IMAGE_ERROR_TEXT, self._left, y + 10, item_style)
                continue

            # The box is fixed; the bitmap is scaled into it whatever its native size.
            y = self.cursor.advance(L["attachment_image_block"])
            self.canvas.text(f"- {attachment.file_name}", self._left, y, item_style)
            self.canvas.image(
                handle, self._left, y + 2, L["attachment_image_width"], L["attachment_image_height"]
            )

    def draw_attendance_metadata(self) -> None:
        size = float(self.style.get("meta_size", 11))
        value_style = self._text_style(size)
        colon_x = self._left + L["attendance_label_width"]
        value_x = colon_x + L["meta_value_gap"]
        max_width = self.canvas.page_width - self.canvas.geometry.margin_right - value_x
        row_h = L["attendance_row_height"]

        rows = [
            ("Hari / Tanggal", self._date_text()),
            ("Jam", self._time_text()),
            ("Tempat", self.record.location or ""),
            ("Acara", self.record.title),
        ]
        for label, value in rows:
            lines = wrap(value, max_width, value_style.font)
            y = self.cursor.advance(block_height(len(lines), row_h))
            self._label_row(label, self._left, colon_x, y, size)
            for i, line in enumerate(lines):
                self.canvas.text(line.text, value_x, y + i * row_h, value_style)
        self.cursor.move_to(self.cursor.y - row_h + L["table_gap"])

    def draw_attendance_table(self) -> float:
        participants = self.record.participants
        absent_color = hex_color(self.style.get("absent_color", "#DC2626"))
        status_col = len(config.ATTENDANCE_COLUMN_WIDTHS) - 1
        columns = [
            ColumnSpec(
                width,
                align="center" if i == 0 else "left",
                min_height=config.ATTENDANCE_SIGNATURE_MIN_HEIGHT if i == status_col else 0.0,
            )
            for i, width in enumerate(config.ATTENDANCE_COLUMN_WIDTHS)
        ]

        def style_hook(row: int, col: int) -> Optional[CellStyle]:
            if col == status_col and participants[row].attendance == AttendanceStatus.TIDAK_HADIR:
                return CellStyle(text_color=absent_color, font_style="italic")
            return None

        def overlay_hook(row: int, col: int, bounds: CellBounds) -> None:
            participant = participants[row]
            if col != status_col or participant.attendance != AttendanceStatus.HADIR:
                return
            if not participant.signature:
                return
            self.canvas.image(
                participant.signature,
                bounds.x + L["participant_signature_offset_x"],
                bounds.y + L["participant_signature_offset_y"],
                L["participant_signature_width"],
                L["participant_signature_height"],
            )

        self.attendance_table = TableRenderer(
            self.canvas, self.cursor, TableStyle.from_preset(self.style, "attendance")
        )
        return self.attendance_table.render(
            columns,
            config.ATTENDANCE_HEADERS,
            attendance_rows(self.record, self.reference),
            style_hook=style_hook,
            overlay_hook=overlay_hook,
        )

    # -- pipeline ----------------------------------------------------------

    def assemble(self) -> AssembledDocument:
        self.draw_form_header(config.MINUTES_FORM_CAPTION, config.MINUTES_FORM_DATE)
        self.draw_minutes_metadata()
        self.draw_agenda_table()
        self.draw_signature_block()
        self.draw_attachments()

        # The attendance form always opens its own page.
        self.cursor.break_page()
        attendance_page = self.cursor.page_index
        self.draw_form_header(config.ATTENDANCE_FORM_CAPTION, config.ATTENDANCE_FORM_DATE)
        self.draw_attendance_metadata()
        self.draw_attendance_table()

        logger.info("Assembled %s: %d pages", self.record.title, self.canvas.page_count)
        return AssembledDocument(self.canvas, suggested_file_name(self.record.title), attendance_page)


def build_document(
    record: MeetingRecord,
    reference: ReferenceData,
    geometry: PageGeometry = LANDSCAPE_A4,
) -> AssembledDocument:
    return DocumentAssembler(record, reference, geometry=geometry).assemble()
