from __future__ import annotations

import asyncio

import fitz  # PyMuPDF
import pytest

from notulen import config
from notulen.models import ExportRecord, GlobalSettings, Participant, Unit, User, get_session, init_db
from notulen.pipeline.export import ExportError, export_minutes, run_export, save_export
from notulen.pipeline.reference import DatabaseReferenceSource, StaticReferenceSource, fetch_reference
from sqlmodel import select


class FailingSource(StaticReferenceSource):
    async def fetch_units(self):
        raise ConnectionError("units unavailable")


class BarrierSource(StaticReferenceSource):
    """Each fetch waits until all three have started."""

    def __init__(self) -> None:
        super().__init__()
        self.started = 0

    async def _wait_for_all(self) -> None:
        self.started += 1
        while self.started < 3:
            await asyncio.sleep(0)

    async def fetch_users(self):
        await self._wait_for_all()
        return []

    async def fetch_units(self):
        await self._wait_for_all()
        return []

    async def fetch_global_settings(self):
        await self._wait_for_all()
        return GlobalSettings()


def test_reference_fetches_run_concurrently() -> None:
    source = BarrierSource()
    reference = asyncio.run(asyncio.wait_for(fetch_reference(source), timeout=2))
    assert source.started == 3
    assert reference.users == []


def test_export_produces_pdf_with_both_forms(make_record, png_data_url) -> None:
    source = StaticReferenceSource(
        users=[User(id=1, unit_id=2)],
        units=[Unit(id=2, name="Tata Usaha")],
        settings=GlobalSettings(logo_base64=png_data_url),
    )
    record = make_record(participants=[Participant(name="Andi", user_id=1, signature=png_data_url)])
    result = run_export(record, source)

    assert result.file_name == "Notulen-Rapat-Koordinasi-Mutu.pdf"
    assert result.content.startswith(b"%PDF")
    with fitz.open(stream=result.content, filetype="pdf") as doc:
        assert doc.page_count == result.page_count
        minutes = doc.load_page(0).get_text()
        attendance = doc.load_page(result.attendance_page).get_text()
        assert doc.load_page(0).rect.width > doc.load_page(0).rect.height
    assert "Borang Notulen" in minutes
    assert "Pokok Bahasan" in minutes
    assert "Borang Daftar Hadir" in attendance
    assert "Tata Usaha" in attendance


def test_export_is_byte_identical(make_record, png_data_url) -> None:
    source = StaticReferenceSource(settings=GlobalSettings(logo_base64=png_data_url))
    record = make_record(pic_signature=png_data_url)
    first = run_export(record, source)
    second = run_export(record, source)
    assert first.content == second.content


def test_fetch_failure_raises_single_export_error(make_record, out_dir, caplog) -> None:
    with pytest.raises(ExportError) as info:
        asyncio.run(export_minutes(make_record(), FailingSource()))
    assert str(info.value) == config.EXPORT_FAILED_MESSAGE
    assert isinstance(info.value.__cause__, ConnectionError)
    assert "Export failed" in caplog.text
    assert not out_dir.exists() or not list(out_dir.rglob("*.pdf"))


def test_database_reference_source(out_dir, png_data_url) -> None:
    init_db()
    with get_session() as session:
        session.add(Unit(id=1, name="Keuangan"))
        session.add(User(id=5, name="Andi", unit_id=1))
        session.add(GlobalSettings(logo_base64=png_data_url))
        session.commit()

    reference = asyncio.run(fetch_reference(DatabaseReferenceSource()))
    assert [u.name for u in reference.units] == ["Keuangan"]
    assert reference.unit_name_for_user(5) == "Keuangan"
    assert reference.logo == png_data_url


def test_database_reference_source_defaults_when_empty(out_dir) -> None:
    reference = asyncio.run(fetch_reference(DatabaseReferenceSource()))
    assert reference.users == []
    assert reference.logo is None


def test_save_export_writes_and_records(make_record, out_dir) -> None:
    record = make_record()
    result = run_export(record, StaticReferenceSource())
    path = save_export(record, result)

    assert path.exists()
    assert path.read_bytes() == result.content
    assert path.parent.name == "rapat-koordinasi-mutu"
    assert not list(path.parent.glob("*.tmp"))
    with get_session() as session:
        rows = list(session.exec(select(ExportRecord)))
    assert len(rows) == 1
    assert rows[0].meeting_id == "m-1"
    assert rows[0].page_count == result.page_count


def _truncated_png_url() -> str:
    import base64
    import io

    from PIL import Image

    buf = io.BytesIO()
    Image.effect_noise((160, 80), 64).convert("RGB").save(buf, format="PNG")
    raw = buf.getvalue()
    return "data:image/png;base64," + base64.b64encode(raw[: len(raw) // 2]).decode("ascii")


def test_truncated_images_do_not_fail_export(make_record) -> None:
    from notulen.models import Attachment

    broken = _truncated_png_url()
    record = make_record(
        pic_signature=broken,
        participants=[Participant(name="Andi", unit_name="Keuangan", signature=broken)],
        attachments=[Attachment(file_name="foto.png", file_path=broken)],
    )
    result = run_export(record, StaticReferenceSource(settings=GlobalSettings(logo_base64=broken)))

    with fitz.open(stream=result.content, filetype="pdf") as doc:
        minutes = doc.load_page(0).get_text()
        assert all(not doc.load_page(i).get_images() for i in range(doc.page_count))
    assert config.SIGNATURE_BLANK_RULE in minutes
    assert config.IMAGE_ERROR_TEXT in minutes


def test_export_record_timestamp_is_timezone_aware() -> None:
    from datetime import timezone

    record = ExportRecord(meeting_id="m-1", file_name="Notulen-Rapat.pdf", path="rapat/Notulen-Rapat.pdf")
    assert record.created_at.tzinfo is timezone.utc
