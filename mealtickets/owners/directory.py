from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Protocol

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from mealtickets.db.models import UserTable


@dataclass(frozen=True, slots=True)
class Owner:
    """Minimal view of a ticket owner."""

    id: str
    name: str
    email: str


class OwnerDirectory(Protocol):
    async def find_by_id(self, owner_id: str) -> Owner | None:
        ...

    async def find_by_email(self, email: str) -> Owner | None:
        ...


class SqlOwnerDirectory:
    """Owner lookups against the ``users`` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def find_by_id(self, owner_id: str) -> Owner | None:
        async with self._session_factory() as session:
            row = await session.get(UserTable, owner_id)
        return None if row is None else self._table_to_owner(row)

    async def find_by_email(self, email: str) -> Owner | None:
        normalized = email.strip().lower()
        if not normalized:
            return None
        async with self._session_factory() as session:
            result = await session.execute(select(UserTable).where(func.lower(UserTable.email) == normalized))
            row = result.scalars().first()
        return None if row is None else self._table_to_owner(row)

    @staticmethod
    def _table_to_owner(row: UserTable) -> Owner:
        return Owner(id=row.id, name=row.name, email=row.email)


class InMemoryOwnerDirectory:
    """Directory backed by a dict; used by the ``memory`` backend and tests."""

    def __init__(self, owners: Iterable[Owner] = ()) -> None:
        self._owners: dict[str, Owner] = {}
        for owner in owners:
            self.add(owner)

    def add(self, owner: Owner) -> None:
        self._owners[owner.id] = owner

    async def find_by_id(self, owner_id: str) -> Owner | None:
        return self._owners.get(owner_id)

    async def find_by_email(self, email: str) -> Owner | None:
        normalized = email.strip().lower()
        for owner in self._owners.values():
            if owner.email.lower() == normalized:
                return owner
        return None


async def lookup_owners(directory: OwnerDirectory, owner_ids: Iterable[str]) -> dict[str, Owner]:
    """Resolve each distinct owner id once. Unknown ids are left out of the result."""

    resolved: dict[str, Owner] = {}
    for owner_id in dict.fromkeys(owner_ids):
        owner = await directory.find_by_id(owner_id)
        if owner is not None:
            resolved[owner_id] = owner
    return resolved
