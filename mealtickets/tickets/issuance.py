from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from mealtickets.core.errors import InvalidQuantity, OwnerNotFound, TicketPersistenceError
from mealtickets.owners.directory import OwnerDirectory

from .models import Ticket, TicketWithOwner
from .state import TicketStateMachine
from .store import TicketStore

logger = logging.getLogger(__name__)

MAX_BATCH_QUANTITY = 5


class IssuanceService:
    """Create tickets for an existing owner, one or a small batch at a time."""

    def __init__(
        self,
        store: TicketStore,
        owners: OwnerDirectory,
        *,
        max_quantity: int = MAX_BATCH_QUANTITY,
    ) -> None:
        self._store = store
        self._owners = owners
        self._max_quantity = max_quantity

    async def create_tickets(self, owner_id: str, price: Decimal, quantity: int) -> list[TicketWithOwner]:
        if not 1 <= quantity <= self._max_quantity:
            raise InvalidQuantity(
                f"Between 1 and {self._max_quantity} tickets can be created per request; got {quantity}"
            )

        owner = await self._owners.find_by_id(owner_id)
        if owner is None:
            raise OwnerNotFound(f"No user found with id {owner_id}")

        issued_at = datetime.now(timezone.utc)
        tickets = [
            Ticket(
                id=str(uuid.uuid4()),
                price=Decimal(price),
                issued_at=issued_at,
                status=TicketStateMachine.initial_state(),
                owner_id=owner.id,
                used_at=None,
            )
            for _ in range(quantity)
        ]
        ticket_ids = [ticket.id for ticket in tickets]

        try:
            if quantity == 1:
                stored = [await self._store.insert(tickets[0])]
            else:
                stored = await self._store.insert_batch(tickets)
        except Exception as exc:
            logger.exception("Ticket insert failed for owner %s; requested ids %s", owner.id, ticket_ids)
            raise TicketPersistenceError(
                f"Failed to persist {quantity} ticket(s) for owner {owner.id}", ticket_ids=ticket_ids
            ) from exc

        if len(stored) != quantity:
            persisted = [ticket.id for ticket in stored]
            logger.error(
                "Partial batch insert for owner %s: requested %s, persisted %s",
                owner.id,
                ticket_ids,
                persisted,
            )
            raise TicketPersistenceError(
                f"Only {len(stored)} of {quantity} tickets were persisted for owner {owner.id}",
                ticket_ids=persisted,
            )

        logger.info("Issued %d ticket(s) for owner %s", quantity, owner.id)
        return [TicketWithOwner.combine(ticket, owner) for ticket in stored]
