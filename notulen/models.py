from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum
from typing import List, Optional, Union

from sqlmodel import Field, SQLModel, Session, create_engine

from . import config


class MeetingStatus(str, Enum):
    DRAFT = "DRAFT"
    FINAL = "FINAL"


class AttendanceStatus(str, Enum):
    HADIR = "HADIR"
    TIDAK_HADIR = "TIDAK_HADIR"


# Reference data, owned by the host and read once per export.


class Unit(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = ""
    unit_id: Optional[int] = Field(default=None, foreign_key="unit.id")


class GlobalSettings(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    logo_base64: Optional[str] = None


class ExportRecord(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    meeting_id: str = Field(index=True)
    file_name: str
    path: str
    page_count: int = 0
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


# Meeting record, assembled in memory right before an export.

DateValue = Union[date, str, None]


class AgendaItem(SQLModel):
    topic: str = ""
    decision: str = ""
    action: str = ""
    pic: str = ""
    monitoring: str = ""


class Participant(SQLModel):
    id: Optional[str] = None
    name: str
    unit_name: Optional[str] = None
    user_id: Optional[int] = None
    attendance: AttendanceStatus = AttendanceStatus.HADIR
    signature: Optional[str] = None


class Attachment(SQLModel):
    file_name: str
    file_path: str = ""

    @property
    def is_image(self) -> bool:
        return self.file_path.startswith("data:image")


class MeetingRecord(SQLModel):
    id: Optional[str] = None
    title: str
    location: str = ""
    date: DateValue = None
    time: Optional[str] = None
    pic_name: Optional[str] = None
    pic_signature: Optional[str] = None
    items: List[AgendaItem] = Field(default_factory=list)
    participants: List[Participant] = Field(default_factory=list)
    attachments: List[Attachment] = Field(default_factory=list)
    status: MeetingStatus = MeetingStatus.DRAFT


# Reference reads run on executor threads.
CONNECT_ARGS = {"check_same_thread": False}

engine = create_engine(f"sqlite:///{config.DB_PATH}", connect_args=CONNECT_ARGS)


def reset_engine() -> None:
    global engine
    engine = create_engine(f"sqlite:///{config.DB_PATH}", connect_args=CONNECT_ARGS)


def init_db() -> None:
    config.OUT_DIR.mkdir(parents=True, exist_ok=True)
    SQLModel.metadata.create_all(engine)


def get_session() -> Session:
    return Session(engine, expire_on_commit=False)
