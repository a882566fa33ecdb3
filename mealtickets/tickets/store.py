from __future__ import annotations

import asyncio
import itertools
import logging
from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Mapping, Protocol, Sequence

from sqlalchemy import insert, select, update
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlmodel import SQLModel

from mealtickets.db.models import TicketTable

from .models import Ticket, TicketCriteria
from .state import TicketStateMachine, TicketStatus

logger = logging.getLogger(__name__)

_TICKETS = TicketTable.__table__


class TicketStore(Protocol):
    """Persistence boundary for ticket records.

    ``try_claim`` is the only mutating operation on existing tickets and must be a
    single atomic conditional update, never a read followed by a write.
    """

    async def insert(self, ticket: Ticket) -> Ticket:
        ...

    async def insert_batch(self, tickets: Sequence[Ticket]) -> list[Ticket]:
        ...

    async def find_matching(self, criteria: TicketCriteria) -> list[Ticket]:
        ...

    async def try_claim(
        self,
        owner_id: str,
        *,
        from_status: TicketStatus,
        to_status: TicketStatus,
        used_at: datetime | None,
    ) -> Ticket | None:
        ...


class SqlTicketStore:
    """Ticket store on SQLAlchemy async sessions (asyncpg in production)."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        engine: AsyncEngine | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._engine: AsyncEngine | None = engine

    async def ensure_schema(self) -> None:
        if self._engine is None:
            raise RuntimeError("Session factory is not bound to an async engine")
        async with self._engine.begin() as connection:
            await connection.run_sync(SQLModel.metadata.create_all)

    async def insert(self, ticket: Ticket) -> Ticket:
        stored = await self.insert_batch([ticket])
        return stored[0]

    async def insert_batch(self, tickets: Sequence[Ticket]) -> list[Ticket]:
        if not tickets:
            return []
        stmt = insert(_TICKETS).returning(*_TICKETS.c)
        params = [self._ticket_to_params(ticket) for ticket in tickets]
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(stmt, params)
                rows = result.mappings().all()
        stored = [self._row_to_ticket(row) for row in rows]
        # RETURNING order is not guaranteed for multi-row inserts everywhere.
        return sorted(stored, key=lambda ticket: ticket.sequence or 0)

    async def find_matching(self, criteria: TicketCriteria) -> list[Ticket]:
        stmt = select(_TICKETS)
        if criteria.issued_from is not None:
            stmt = stmt.where(_TICKETS.c.issued_at >= criteria.issued_from)
        if criteria.issued_to is not None:
            stmt = stmt.where(_TICKETS.c.issued_at <= criteria.issued_to)
        if criteria.status is not None:
            stmt = stmt.where(_TICKETS.c.status == criteria.status.value)
        if criteria.owner_id is not None:
            stmt = stmt.where(_TICKETS.c.owner_id == criteria.owner_id)
        stmt = stmt.order_by(_TICKETS.c.issued_at.asc(), _TICKETS.c.sequence.asc())

        async with self._session_factory() as session:
            result = await session.execute(stmt)
            rows = result.mappings().all()
        return [self._row_to_ticket(row) for row in rows]

    async def try_claim(
        self,
        owner_id: str,
        *,
        from_status: TicketStatus,
        to_status: TicketStatus,
        used_at: datetime | None,
    ) -> Ticket | None:
        TicketStateMachine.assert_transition(from_status, to_status)

        candidate_table = _TICKETS.alias("candidate")
        candidate = (
            select(candidate_table.c.id)
            .where(
                candidate_table.c.owner_id == owner_id,
                candidate_table.c.status == from_status.value,
            )
            .order_by(candidate_table.c.issued_at.asc(), candidate_table.c.sequence.asc())
            .limit(1)
            .with_for_update(skip_locked=True)
            .scalar_subquery()
        )
        stmt = (
            update(_TICKETS)
            .where(_TICKETS.c.id == candidate, _TICKETS.c.status == from_status.value)
            .values(status=to_status.value, used_at=used_at)
            .returning(*_TICKETS.c)
        )
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(stmt)
                row = result.mappings().first()
        if row is None:
            return None
        return self._row_to_ticket(row)

    @staticmethod
    def _ticket_to_params(ticket: Ticket) -> dict[str, Any]:
        return {
            "id": ticket.id,
            "price": ticket.price,
            "issued_at": ticket.issued_at,
            "used_at": ticket.used_at,
            "status": ticket.status.value,
            "owner_id": ticket.owner_id,
        }

    @staticmethod
    def _row_to_ticket(row: Mapping[str, Any]) -> Ticket:
        used_at = row["used_at"]
        return Ticket(
            id=str(row["id"]),
            price=Decimal(str(row["price"])),
            issued_at=_ensure_datetime(row["issued_at"]),
            used_at=None if used_at is None else _ensure_datetime(used_at),
            status=TicketStatus(str(row["status"])),
            owner_id=str(row["owner_id"]),
            sequence=int(row["sequence"]),
        )


class InMemoryTicketStore:
    """Process-local store. A single lock makes every claim indivisible."""

    def __init__(self) -> None:
        self._tickets: dict[str, Ticket] = {}
        self._sequence = itertools.count(1)
        self._lock = asyncio.Lock()

    async def insert(self, ticket: Ticket) -> Ticket:
        stored = await self.insert_batch([ticket])
        return stored[0]

    async def insert_batch(self, tickets: Sequence[Ticket]) -> list[Ticket]:
        async with self._lock:
            duplicate = next((ticket.id for ticket in tickets if ticket.id in self._tickets), None)
            if duplicate is not None:
                raise ValueError(f"Ticket {duplicate} already exists")
            stored = [replace(ticket, sequence=next(self._sequence)) for ticket in tickets]
            for ticket in stored:
                self._tickets[ticket.id] = ticket
        return [replace(ticket) for ticket in stored]

    async def find_matching(self, criteria: TicketCriteria) -> list[Ticket]:
        async with self._lock:
            matching = [replace(ticket) for ticket in self._tickets.values() if criteria.matches(ticket)]
        return sorted(matching, key=_fifo_key)

    async def try_claim(
        self,
        owner_id: str,
        *,
        from_status: TicketStatus,
        to_status: TicketStatus,
        used_at: datetime | None,
    ) -> Ticket | None:
        TicketStateMachine.assert_transition(from_status, to_status)
        async with self._lock:
            candidates = [
                ticket
                for ticket in self._tickets.values()
                if ticket.owner_id == owner_id and ticket.status == from_status
            ]
            if not candidates:
                return None
            oldest = min(candidates, key=_fifo_key)
            claimed = replace(oldest, status=to_status, used_at=used_at)
            self._tickets[claimed.id] = claimed
        logger.debug("Claimed ticket %s for owner %s", claimed.id, owner_id)
        return replace(claimed)


def _fifo_key(ticket: Ticket) -> tuple[datetime, int]:
    return ticket.issued_at, ticket.sequence or 0


def _ensure_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
    return datetime.fromisoformat(str(value))
