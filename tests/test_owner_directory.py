from __future__ import annotations

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker

from mealtickets.db.models import UserTable
from mealtickets.owners.directory import InMemoryOwnerDirectory, Owner, SqlOwnerDirectory, lookup_owners
from tests.factories import ANA, BRUNO


@pytest.mark.asyncio
async def test_sql_directory_resolves_by_id_and_email(session_factory: async_sessionmaker):
    async with session_factory() as session:
        session.add(UserTable(id=ANA.id, name=ANA.name, email=ANA.email))
        await session.commit()
    directory = SqlOwnerDirectory(session_factory)

    assert await directory.find_by_id(ANA.id) == ANA
    assert await directory.find_by_email("ANA.TORRES@uni.example") == ANA
    assert await directory.find_by_id("missing") is None
    assert await directory.find_by_email("missing@uni.example") is None
    assert await directory.find_by_email("   ") is None


@pytest.mark.asyncio
async def test_in_memory_directory_lookups():
    directory = InMemoryOwnerDirectory([ANA])
    directory.add(BRUNO)

    assert await directory.find_by_id(BRUNO.id) == BRUNO
    assert await directory.find_by_email(" Bruno@UNI.example ") == BRUNO
    assert await directory.find_by_email("carla@uni.example") is None


@pytest.mark.asyncio
async def test_lookup_owners_skips_unknown_ids():
    directory = InMemoryOwnerDirectory([ANA, BRUNO])

    resolved = await lookup_owners(directory, [ANA.id, "ghost", ANA.id, BRUNO.id])

    assert resolved == {ANA.id: ANA, BRUNO.id: BRUNO}
    assert isinstance(resolved[ANA.id], Owner)
