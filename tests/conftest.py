from __future__ import annotations

import base64
import io
import tempfile
from pathlib import Path

import pytest
from PIL import Image

from notulen import config
from notulen.models import AgendaItem, Attachment, AttendanceStatus, MeetingRecord, Participant, reset_engine


def _png_data_url(size=(40, 20), color=(0, 0, 0)) -> str:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode("ascii")


@pytest.fixture
def png_data_url() -> str:
    return _png_data_url()


@pytest.fixture
def out_dir():
    with tempfile.TemporaryDirectory() as temp_dir:
        path = Path(temp_dir) / "out"
        config.set_out_dir(path)
        reset_engine()
        yield path


@pytest.fixture
def make_record():
    def factory(**overrides) -> MeetingRecord:
        data = dict(
            id="m-1",
            title="Rapat Koordinasi Mutu",
            location="Ruang Rapat Lt. 2",
            date="2024-03-05",
            time="09.00",
            pic_name="Dr. Sari",
            items=[
                AgendaItem(
                    topic="Evaluasi audit",
                    decision="<p>Disetujui <b>bersama</b></p>",
                    action="<ul><li>Tindak lanjut</li></ul>",
                    pic="Budi",
                    monitoring="Mingguan",
                )
            ],
            participants=[
                Participant(id="p1", name="Andi", unit_name="Keuangan"),
                Participant(id="p2", name="Bunga", attendance=AttendanceStatus.TIDAK_HADIR),
            ],
            attachments=[Attachment(file_name="notulen.docx", file_path="files/notulen.docx")],
        )
        data.update(overrides)
        return MeetingRecord(**data)

    return factory
