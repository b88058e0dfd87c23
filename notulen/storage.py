from __future__ import annotations

from pathlib import Path

from . import config
from .models import ExportRecord, get_session, init_db


def export_dir(slug: str, base_dir: Path | None = None) -> Path:
    root = base_dir or config.OUT_DIR
    path = root / slug
    path.mkdir(parents=True, exist_ok=True)
    return path


def artifact_path(slug: str, file_name: str, base_dir: Path | None = None) -> Path:
    return export_dir(slug, base_dir=base_dir) / file_name


def write_atomic(path: Path, content: bytes) -> Path:
    temp_path = path.with_name(f"{path.name}.tmp")
    temp_path.write_bytes(content)
    temp_path.replace(path)
    return path


def record_export(meeting_id: str, file_name: str, path: Path, page_count: int) -> ExportRecord:
    init_db()
    try:
        stored = str(path.relative_to(config.OUT_DIR))
    except ValueError:
        stored = str(path)
    record = ExportRecord(meeting_id=meeting_id, file_name=file_name, path=stored, page_count=page_count)
    with get_session() as session:
        session.add(record)
        session.commit()
        session.refresh(record)
    return record
