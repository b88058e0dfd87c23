from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path

from .. import config
from ..models import MeetingRecord
from ..storage import artifact_path, record_export, write_atomic
from .assemble import build_document
from .canvas import LANDSCAPE_A4, PageGeometry
from .ingest import slug_from_title
from .reference import ReferenceSource, fetch_reference

logger = logging.getLogger(__name__)


class ExportError(RuntimeError):
    """Raised when an export cannot produce a document. The message is user-facing."""


@dataclass
class ExportResult:
    content: bytes
    file_name: str
    page_count: int
    attendance_page: int = 0


async def export_minutes(
    record: MeetingRecord,
    source: ReferenceSource,
    geometry: PageGeometry = LANDSCAPE_A4,
) -> ExportResult:
    """
    Fetch reference data, compose both forms and serialize them to PDF bytes.

    The three reference reads run concurrently and assembly starts only after
    all of them completed. Nothing is written anywhere; a failure at any step
    surfaces as a single ``ExportError``.
    """
    try:
        reference = await fetch_reference(source)
        document = build_document(record, reference, geometry=geometry)
        content = document.canvas.serialize(title=record.title)
    except Exception as exc:
        logger.exception("Export failed for %s", record.id or record.title)
        raise ExportError(config.EXPORT_FAILED_MESSAGE) from exc
    return ExportResult(
        content=content,
        file_name=document.file_name,
        page_count=document.page_count,
        attendance_page=document.attendance_page,
    )


def run_export(record: MeetingRecord, source: ReferenceSource) -> ExportResult:
    return asyncio.run(export_minutes(record, source))


def save_export(record: MeetingRecord, result: ExportResult, base_dir: Path | None = None) -> Path:
    slug = slug_from_title(record.title)
    file_name = result.file_name.replace("/", "-").replace("\\", "-")
    path = write_atomic(artifact_path(slug, file_name, base_dir=base_dir), result.content)
    record_export(record.id or slug, file_name, path, result.page_count)
    logger.info("Saved %s (%d pages)", path, result.page_count)
    return path
