from __future__ import annotations

from pathlib import Path

import fitz

from notulen.pipeline.export import run_export
from notulen.pipeline.reference import StaticReferenceSource
from notulen.pipeline.render_preview import render_previews


class FakeSheet:
    """Stands in for a landscape A4 page."""

    def __init__(self, zooms: list) -> None:
        self.rect = fitz.Rect(0, 0, 842, 595)
        self._zooms = zooms

    def get_pixmap(self, matrix=None, alpha=False):  # noqa: ARG002
        self._zooms.append(round(matrix.a, 3))
        return FakePixmap()


class FakePixmap:
    def save(self, path: str) -> None:
        Path(path).write_bytes(b"png")


class FakeMinutes:
    def __init__(self, page_count: int) -> None:
        self.page_count = page_count
        self.requested: list = []
        self.zooms: list = []
        self.released = False

    def __enter__(self) -> "FakeMinutes":
        return self

    def __exit__(self, *exc) -> None:
        self.released = True

    def load_page(self, index: int) -> FakeSheet:
        self.requested.append(index)
        return FakeSheet(self.zooms)


def test_previews_skip_missing_pages_and_release_document(monkeypatch, tmp_path) -> None:
    doc = FakeMinutes(page_count=2)
    monkeypatch.setattr("notulen.pipeline.render_preview.fitz.open", lambda path: doc)

    previews = render_previews(tmp_path / "Notulen-Rapat.pdf", [0, 1, 5])

    assert doc.released
    assert doc.requested == [0, 1]
    assert [p.name for p in previews] == ["Notulen-Rapat_p1.png", "Notulen-Rapat_p2.png"]
    # Short side of 595pt scaled up to 1400px.
    assert doc.zooms == [round(1400 / 595, 3)] * 2


def test_previews_of_exported_minutes(make_record, tmp_path) -> None:
    result = run_export(make_record(), StaticReferenceSource())
    pdf_path = tmp_path / result.file_name
    pdf_path.write_bytes(result.content)

    previews = render_previews(pdf_path, [0, result.attendance_page], out_dir=tmp_path / "previews")

    assert [p.name for p in previews] == [
        "Notulen-Rapat-Koordinasi-Mutu_p1.png",
        f"Notulen-Rapat-Koordinasi-Mutu_p{result.attendance_page + 1}.png",
    ]
    for path in previews:
        assert path.read_bytes().startswith(b"\x89PNG")
