from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol

from sqlmodel import select

from ..config import MISSING_VALUE
from ..models import GlobalSettings, Participant, Unit, User, get_session, init_db


class ReferenceSource(Protocol):
    async def fetch_users(self) -> List[User]: ...

    async def fetch_units(self) -> List[Unit]: ...

    async def fetch_global_settings(self) -> GlobalSettings: ...


@dataclass
class ReferenceData:
    """Snapshot of the host's reference collections, taken once per export."""

    users: List[User] = field(default_factory=list)
    units: List[Unit] = field(default_factory=list)
    settings: GlobalSettings = field(default_factory=GlobalSettings)

    def __post_init__(self) -> None:
        self._users_by_id: Dict[int, User] = {u.id: u for u in self.users if u.id is not None}
        self._units_by_id: Dict[int, Unit] = {u.id: u for u in self.units if u.id is not None}

    @property
    def logo(self) -> Optional[str]:
        return self.settings.logo_base64 if self.settings else None

    def unit_name_for_user(self, user_id: Optional[int]) -> Optional[str]:
        user = self._users_by_id.get(user_id) if user_id is not None else None
        if user is None or user.unit_id is None:
            return None
        unit = self._units_by_id.get(user.unit_id)
        return unit.name if unit else None


def resolve_unit_name(participant: Participant, reference: ReferenceData) -> str:
    if participant.unit_name:
        return participant.unit_name
    return reference.unit_name_for_user(participant.user_id) or MISSING_VALUE


class DatabaseReferenceSource:
    """Reference collections read from the local SQLModel database."""

    def __init__(self) -> None:
        init_db()

    @staticmethod
    def _users() -> List[User]:
        with get_session() as session:
            return list(session.exec(select(User).order_by(User.id)))

    @staticmethod
    def _units() -> List[Unit]:
        with get_session() as session:
            return list(session.exec(select(Unit).order_by(Unit.id)))

    @staticmethod
    def _settings() -> GlobalSettings:
        with get_session() as session:
            settings = session.exec(select(GlobalSettings).order_by(GlobalSettings.id)).first()
            return settings or GlobalSettings()

    async def _run(self, fn):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, fn)

    async def fetch_users(self) -> List[User]:
        return await self._run(self._users)

    async def fetch_units(self) -> List[Unit]:
        return await self._run(self._units)

    async def fetch_global_settings(self) -> GlobalSettings:
        return await self._run(self._settings)


class StaticReferenceSource:
    """In-memory reference collections."""

    def __init__(
        self,
        users: Optional[List[User]] = None,
        units: Optional[List[Unit]] = None,
        settings: Optional[GlobalSettings] = None,
    ) -> None:
        self.users = list(users or [])
        self.units = list(units or [])
        self.settings = settings or GlobalSettings()

    async def fetch_users(self) -> List[User]:
        return list(self.users)

    async def fetch_units(self) -> List[Unit]:
        return list(self.units)

    async def fetch_global_settings(self) -> GlobalSettings:
        return self.settings


async def fetch_reference(source: ReferenceSource) -> ReferenceData:
    users, units, settings = await asyncio.gather(
        source.fetch_users(),
        source.fetch_units(),
        source.fetch_global_settings(),
    )
    return ReferenceData(users=list(users or []), units=list(units or []), settings=settings or GlobalSettings())
