from __future__ import annotations

from pathlib import Path
from typing import Dict, List
import json


BASE_DIR = Path(__file__).resolve().parent
OUT_DIR = Path.cwd() / "out"
DB_PATH = OUT_DIR / "notulen.db"
STYLE_PRESET_PATH = BASE_DIR / "assets" / "form_styles.json"

# Form revision stamps. Static on purpose: they identify the paper form, not the meeting.
MINUTES_FORM_CAPTION = "No.BO.29.3.1-V3 Borang Notulen"
MINUTES_FORM_DATE = "30 Agustus 2017"
ATTENDANCE_FORM_CAPTION = "No.BO.29.3.2-V1 Borang Daftar Hadir"
ATTENDANCE_FORM_DATE = "27 November 2017"

AGENDA_HEADERS: List[str] = ["No", "Pokok Bahasan", "Keputusan", "Tindakan", "PIC", "Monitoring"]
AGENDA_PLACEHOLDER_ROW: List[str] = ["-", "Tidak ada item pembahasan", "-", "-", "-", "-"]
ATTENDANCE_HEADERS: List[str] = ["No.", "NAMA", "BAGIAN", "PARAF"]

ATTENDEE_REFERENCE_NOTE = "Sesuai Daftar Hadir (Terlampir)"
ABSENT_TEXT = "Tidak Hadir"
TIME_SUFFIX = "WIB"
MISSING_VALUE = "-"
INVALID_DATE = "Invalid Date"

SIGNATURE_CAPTION = ["Mengetahui,", "Penanggung Jawab Rapat"]
SIGNATURE_BLANK_RULE = ".........................................."

ATTACHMENTS_CAPTION = "Lampiran:"
DOCUMENT_SUFFIX = "(Dokumen)"
IMAGE_ERROR_TEXT = "(Error rendering image)"

EXPORT_FAILED_MESSAGE = "Gagal mengexport PDF. Coba refresh halaman."
FILE_NAME_PREFIX = "Notulen-"

MONTHS_SHORT: List[str] = ["Jan", "Feb", "Mar", "Apr", "Mei", "Jun", "Jul", "Agu", "Sep", "Okt", "Nov", "Des"]
# Monday first, matching date.weekday().
WEEKDAYS: List[str] = ["Senin", "Selasa", "Rabu", "Kamis", "Jumat", "Sabtu", "Minggu"]

# Layout, in millimetres from the top-left corner of a landscape A4 page.
LAYOUT: Dict[str, float] = {
    "margin_top": 20.0,
    "margin_bottom": 20.0,
    "margin_side": 14.0,
    "logo_x": 14.0,
    "logo_y": 5.0,
    "logo_size": 25.0,
    "header_text_x_with_logo": 45.0,
    "header_caption_y": 15.0,
    "header_date_y": 20.0,
    "header_rule_y": 32.0,
    "header_rule_weight": 0.5,
    "meta_start_y": 40.0,
    "meta_label_offset": 20.0,
    "meta_value_gap": 3.0,
    "meta_title_width": 120.0,
    "meta_title_line_height": 5.0,
    "meta_row_gap": 2.0,
    "meta_row_height": 7.0,
    "meta_col2_x": 160.0,
    "meta_col2_label_width": 35.0,
    "table_gap": 10.0,
    "signature_x": 230.0,
    "signature_block_height": 40.0,
    "signature_advance": 45.0,
    "signature_image_width": 30.0,
    "signature_image_height": 15.0,
    "attachment_caption_height": 8.0,
    "attachment_image_block": 80.0,
    "attachment_image_width": 100.0,
    "attachment_image_height": 75.0,
    "attachment_error_block": 15.0,
    "attachment_line_height": 6.0,
    "attendance_row_height": 6.0,
    "attendance_label_width": 35.0,
    "participant_signature_offset_x": 10.0,
    "participant_signature_offset_y": 2.0,
    "participant_signature_width": 25.0,
    "participant_signature_height": 10.0,
}

AGENDA_COLUMN_WIDTHS: List[float] = [12, 50, 65, 65, 35, 40]
ATTENDANCE_COLUMN_WIDTHS: List[float] = [15, 90, 80, 60]
ATTENDANCE_SIGNATURE_MIN_HEIGHT = 15.0


def load_style_preset() -> dict:
    with STYLE_PRESET_PATH.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def set_out_dir(path: Path) -> None:
    global OUT_DIR, DB_PATH
    OUT_DIR = path
    DB_PATH = OUT_DIR / "notulen.db"
