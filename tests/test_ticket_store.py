from __future__ import annotations

import asyncio
from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from mealtickets.tickets.models import TicketCriteria
from mealtickets.tickets.state import TicketStatus
from mealtickets.tickets.store import InMemoryTicketStore, SqlTicketStore
from tests.factories import ANA, BRUNO, NOON, make_ticket


@pytest.fixture(params=["sql", "memory"])
def any_store(request, session_factory):
    if request.param == "memory":
        return InMemoryTicketStore()
    return SqlTicketStore(session_factory)


@pytest.mark.asyncio
async def test_ensure_schema_creates_tickets_table_and_claim_index(engine: AsyncEngine):
    store = SqlTicketStore(async_sessionmaker(engine, expire_on_commit=False), engine=engine)

    await store.ensure_schema()

    async with engine.begin() as conn:
        tables = await conn.run_sync(lambda sync_conn: set(sa_inspect(sync_conn).get_table_names()))
        indexes = await conn.run_sync(
            lambda sync_conn: {index["name"] for index in sa_inspect(sync_conn).get_indexes("tickets")}
        )

    assert {"tickets", "users"} <= tables
    assert "ix_tickets_owner_status_issued" in indexes


@pytest.mark.asyncio
async def test_ensure_schema_requires_engine(session_factory):
    with pytest.raises(RuntimeError):
        await SqlTicketStore(session_factory).ensure_schema()


@pytest.mark.asyncio
async def test_insert_batch_assigns_increasing_sequence(any_store):
    tickets = [make_ticket(price="12.50") for _ in range(3)]

    stored = await any_store.insert_batch(tickets)

    assert [ticket.id for ticket in stored] == [ticket.id for ticket in tickets]
    sequences = [ticket.sequence for ticket in stored]
    assert sequences == sorted(sequences)
    assert len(set(sequences)) == 3
    assert all(ticket.price == Decimal("12.50") for ticket in stored)
    assert all(ticket.issued_at == NOON for ticket in stored)


@pytest.mark.asyncio
async def test_find_matching_applies_every_criterion(any_store):
    early = make_ticket(issued_at=NOON - timedelta(days=2))
    used = make_ticket(issued_at=NOON, status=TicketStatus.USED, used_at=NOON + timedelta(hours=1))
    late = make_ticket(issued_at=NOON + timedelta(days=2))
    other_owner = make_ticket(BRUNO.id, issued_at=NOON)
    for ticket in (late, used, early, other_owner):
        await any_store.insert(ticket)

    everything = await any_store.find_matching(TicketCriteria())
    assert len(everything) == 4

    window = await any_store.find_matching(
        TicketCriteria(issued_from=NOON - timedelta(days=1), issued_to=NOON + timedelta(days=1))
    )
    assert {ticket.id for ticket in window} == {used.id, other_owner.id}

    ana_available = await any_store.find_matching(TicketCriteria(status=TicketStatus.AVAILABLE, owner_id=ANA.id))
    assert [ticket.id for ticket in ana_available] == [early.id, late.id]


@pytest.mark.asyncio
async def test_try_claim_takes_oldest_first(any_store):
    newest = make_ticket(issued_at=NOON + timedelta(hours=2))
    oldest = make_ticket(issued_at=NOON)
    middle = make_ticket(issued_at=NOON + timedelta(hours=1))
    for ticket in (newest, oldest, middle):
        await any_store.insert(ticket)

    claimed = []
    for _ in range(3):
        ticket = await any_store.try_claim(
            ANA.id, from_status=TicketStatus.AVAILABLE, to_status=TicketStatus.USED, used_at=NOON
        )
        claimed.append(ticket)

    assert [ticket.id for ticket in claimed] == [oldest.id, middle.id, newest.id]
    assert all(ticket.status is TicketStatus.USED and ticket.used_at is not None for ticket in claimed)
    assert (
        await any_store.try_claim(
            ANA.id, from_status=TicketStatus.AVAILABLE, to_status=TicketStatus.USED, used_at=NOON
        )
        is None
    )


@pytest.mark.asyncio
async def test_try_claim_breaks_ties_by_insertion_order(any_store):
    batch = await any_store.insert_batch([make_ticket() for _ in range(3)])

    first = await any_store.try_claim(
        ANA.id, from_status=TicketStatus.AVAILABLE, to_status=TicketStatus.USED, used_at=NOON
    )

    assert first is not None
    assert first.id == batch[0].id


@pytest.mark.asyncio
async def test_try_claim_ignores_other_owners_and_states(any_store):
    await any_store.insert(make_ticket(BRUNO.id))
    await any_store.insert(make_ticket(status=TicketStatus.VOIDED))

    result = await any_store.try_claim(
        ANA.id, from_status=TicketStatus.AVAILABLE, to_status=TicketStatus.USED, used_at=NOON
    )

    assert result is None


@pytest.mark.asyncio
async def test_claimed_ticket_is_persisted_with_used_at(any_store):
    ticket = await any_store.insert(make_ticket())

    await any_store.try_claim(ANA.id, from_status=TicketStatus.AVAILABLE, to_status=TicketStatus.USED, used_at=NOON)

    [stored] = await any_store.find_matching(TicketCriteria(owner_id=ANA.id))
    assert stored.id == ticket.id
    assert stored.status is TicketStatus.USED
    assert stored.used_at == NOON


@pytest.mark.asyncio
async def test_try_claim_rejects_illegal_transition(any_store):
    with pytest.raises(ValueError):
        await any_store.try_claim(
            ANA.id, from_status=TicketStatus.USED, to_status=TicketStatus.AVAILABLE, used_at=None
        )


@pytest.mark.asyncio
async def test_in_memory_claims_are_exclusive_under_concurrency():
    store = InMemoryTicketStore()
    await store.insert_batch([make_ticket() for _ in range(4)])

    results = await asyncio.gather(
        *(
            store.try_claim(ANA.id, from_status=TicketStatus.AVAILABLE, to_status=TicketStatus.USED, used_at=NOON)
            for _ in range(10)
        )
    )

    claimed = [ticket.id for ticket in results if ticket is not None]
    assert len(claimed) == 4
    assert len(set(claimed)) == 4
    assert results.count(None) == 6


@pytest.mark.asyncio
async def test_in_memory_store_returns_copies():
    store = InMemoryTicketStore()
    stored = await store.insert(make_ticket())

    stored.status = TicketStatus.VOIDED

    [fresh] = await store.find_matching(TicketCriteria())
    assert fresh.status is TicketStatus.AVAILABLE


@pytest.mark.asyncio
async def test_in_memory_store_rejects_duplicate_ids():
    store = InMemoryTicketStore()
    ticket = make_ticket()
    await store.insert(ticket)

    with pytest.raises(ValueError):
        await store.insert(ticket)


@pytest.mark.asyncio
async def test_sql_claims_are_exclusive_under_concurrency(session_factory):
    store = SqlTicketStore(session_factory)
    await store.insert_batch([make_ticket() for _ in range(3)])

    results = await asyncio.gather(
        *(
            store.try_claim(ANA.id, from_status=TicketStatus.AVAILABLE, to_status=TicketStatus.USED, used_at=NOON)
            for _ in range(8)
        )
    )

    claimed = [ticket.id for ticket in results if ticket is not None]
    assert len(claimed) == 3
    assert len(set(claimed)) == 3
    assert results.count(None) == 5
