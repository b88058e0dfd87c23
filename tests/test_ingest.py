from __future__ import annotations

import csv
import json
import tempfile
from pathlib import Path
import unittest

from notulen import config
from notulen.models import AttendanceStatus, GlobalSettings, Unit, User, get_session, reset_engine
from notulen.pipeline.ingest import (
    ingest_units,
    ingest_users,
    load_meeting_record,
    slug_from_title,
    store_logo,
)
from sqlmodel import select


def _write_csv(path: Path, fieldnames, rows) -> Path:
    with path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.DictWriter(handle, fieldnames=fieldnames)
        writer.writeheader()
        writer.writerows(rows)
    return path


class IngestTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.temp_dir.name)
        config.set_out_dir(self.root / "out")
        reset_engine()

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def test_slug_generation(self) -> None:
        self.assertEqual(slug_from_title("Rapat Koordinasi / Mutu: 2024!"), "rapat-koordinasi-mutu-2024")

    def test_load_meeting_record(self) -> None:
        path = self.root / "record.json"
        path.write_text(
            json.dumps(
                {
                    "id": "m-9",
                    "title": "Rapat Pleno",
                    "date": "2024-03-05",
                    "participants": [{"name": "Andi", "attendance": "TIDAK_HADIR"}],
                    "attachments": [{"file_name": "a.png", "file_path": "data:image/png;base64,AAAA"}],
                }
            ),
            encoding="utf-8",
        )
        record = load_meeting_record(path)
        self.assertEqual(record.title, "Rapat Pleno")
        self.assertEqual(record.participants[0].attendance, AttendanceStatus.TIDAK_HADIR)
        self.assertTrue(record.attachments[0].is_image)
        self.assertEqual(record.items, [])

    def test_load_meeting_record_rejects_bad_json(self) -> None:
        path = self.root / "record.json"
        path.write_text("[1, 2", encoding="utf-8")
        with self.assertRaises(ValueError):
            load_meeting_record(path)
        with self.assertRaises(FileNotFoundError):
            load_meeting_record(self.root / "missing.json")

    def test_ingest_units_and_users(self) -> None:
        units_csv = _write_csv(self.root / "units.csv", ["id", "name"], [{"id": "1", "name": "Keuangan"}])
        users_csv = _write_csv(
            self.root / "users.csv",
            ["id", "name", "unit_id"],
            [{"id": "10", "name": "Andi", "unit_id": "1"}, {"id": "11", "name": "Bunga", "unit_id": ""}],
        )
        ingest_units(units_csv)
        ingest_users(users_csv)
        # Re-import updates in place.
        ingest_units(_write_csv(self.root / "units2.csv", ["id", "name"], [{"id": "1", "name": "Keuangan Pusat"}]))

        with get_session() as session:
            units = list(session.exec(select(Unit)))
            users = list(session.exec(select(User).order_by(User.id)))
        self.assertEqual([u.name for u in units], ["Keuangan Pusat"])
        self.assertEqual([u.unit_id for u in users], [1, None])

    def test_ingest_rejects_missing_columns(self) -> None:
        path = _write_csv(self.root / "units.csv", ["id"], [{"id": "1"}])
        with self.assertRaises(ValueError):
            ingest_units(path)

    def test_ingest_rejects_duplicate_ids(self) -> None:
        path = _write_csv(self.root / "units.csv", ["id", "name"], [{"id": "1", "name": "A"}, {"id": "1", "name": "B"}])
        with self.assertRaises(ValueError):
            ingest_units(path)

    def test_store_logo(self) -> None:
        logo = self.root / "logo.png"
        logo.write_bytes(b"\x89PNG fake")
        store_logo(logo)
        store_logo(logo)
        with get_session() as session:
            settings = list(session.exec(select(GlobalSettings)))
        self.assertEqual(len(settings), 1)
        self.assertTrue(settings[0].logo_base64.startswith("data:image/png;base64,"))


if __name__ == "__main__":
    unittest.main()
