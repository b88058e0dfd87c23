from __future__ import annotations

import base64
import csv
import hashlib
import json
import mimetypes
import re
from pathlib import Path
from typing import List

from slugify import slugify

from sqlmodel import select

from ..models import GlobalSettings, MeetingRecord, Unit, User, get_session, init_db


REQUIRED_UNIT_COLUMNS = {"id", "name"}
REQUIRED_USER_COLUMNS = {"id", "unit_id"}


def load_rows(csv_path: Path, required: set) -> List[dict]:
    if not csv_path.exists():
        raise FileNotFoundError(f"CSV not found: {csv_path}")
    with csv_path.open("r", encoding="utf-8") as handle:
        reader = csv.DictReader(handle)
        if reader.fieldnames is None:
            raise ValueError("CSV has no header")
        missing = required - set(reader.fieldnames)
        if missing:
            raise ValueError(f"CSV missing columns: {', '.join(sorted(missing))}")
        rows = [row for row in reader if any((value or "").strip() for value in row.values())]
    if not rows:
        raise ValueError("CSV has no data rows")
    return rows


def _optional_int(value: str | None) -> int | None:
    value = (value or "").strip()
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Expected an integer id, got: {value}") from None


def slug_from_title(title: str) -> str:
    slug = slugify(title)
    slug = re.sub(r"[^a-z0-9-]+", "-", slug.lower()).strip("-")
    if not slug:
        slug = hashlib.md5(title.encode("utf-8")).hexdigest()[:12]
    if ".." in slug or "/" in slug or "\\" in slug:
        raise ValueError("Invalid slug generated from title")
    return slug


def load_meeting_record(json_path: Path) -> MeetingRecord:
    if not json_path.exists():
        raise FileNotFoundError(f"Meeting record not found: {json_path}")
    try:
        payload = json.loads(json_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Meeting record is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise ValueError("Meeting record must be a JSON object")
    return MeetingRecord.model_validate(payload)


def ingest_units(csv_path: Path) -> List[Unit]:
    init_db()
    rows = load_rows(csv_path, REQUIRED_UNIT_COLUMNS)
    seen = set()
    units: List[Unit] = []
    for row in rows:
        unit_id = _optional_int(row["id"])
        name = (row["name"] or "").strip()
        if unit_id is None or not name:
            raise ValueError("Unit rows must include id and name")
        if unit_id in seen:
            raise ValueError(f"Duplicate unit id: {unit_id}")
        seen.add(unit_id)
        units.append(Unit(id=unit_id, name=name))
    with get_session() as session:
        for unit in units:
            session.merge(unit)
        session.commit()
    return units


def ingest_users(csv_path: Path) -> List[User]:
    init_db()
    rows = load_rows(csv_path, REQUIRED_USER_COLUMNS)
    seen = set()
    users: List[User] = []
    for row in rows:
        user_id = _optional_int(row["id"])
        if user_id is None:
            raise ValueError("User rows must include id")
        if user_id in seen:
            raise ValueError(f"Duplicate user id: {user_id}")
        seen.add(user_id)
        users.append(User(id=user_id, name=(row.get("name") or "").strip(), unit_id=_optional_int(row["unit_id"])))
    with get_session() as session:
        for user in users:
            session.merge(user)
        session.commit()
    return users


def store_logo(image_path: Path) -> GlobalSettings:
    if not image_path.exists():
        raise FileNotFoundError(f"Logo not found: {image_path}")
    mime = mimetypes.guess_type(image_path.name)[0] or "image/png"
    if not mime.startswith("image/"):
        raise ValueError(f"Logo must be an image file: {image_path}")
    encoded = base64.b64encode(image_path.read_bytes()).decode("ascii")
    init_db()
    with get_session() as session:
        settings = session.exec(select(GlobalSettings).order_by(GlobalSettings.id)).first() or GlobalSettings()
        settings.logo_base64 = f"data:{mime};base64,{encoded}"
        session.add(settings)
        session.commit()
        session.refresh(settings)
    return settings
