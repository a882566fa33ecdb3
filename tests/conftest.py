from __future__ import annotations

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from mealtickets.owners.directory import InMemoryOwnerDirectory
from mealtickets.tickets.service import TicketService
from mealtickets.tickets.store import InMemoryTicketStore
from tests.factories import ANA, BRUNO, CARLA, UTC


@pytest.fixture
def owners() -> InMemoryOwnerDirectory:
    return InMemoryOwnerDirectory([ANA, BRUNO, CARLA])


@pytest.fixture
def store() -> InMemoryTicketStore:
    return InMemoryTicketStore()


@pytest.fixture
def service(store: InMemoryTicketStore, owners: InMemoryOwnerDirectory) -> TicketService:
    return TicketService.build(store, owners, zone=UTC)


@pytest_asyncio.fixture
async def engine(tmp_path) -> AsyncEngine:
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'tickets.db'}")
    try:
        async with engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, expire_on_commit=False)
