from __future__ import annotations

import logging
from datetime import datetime, timezone

from opentelemetry import trace

from mealtickets.core.errors import NoAvailableTicket, OwnerNotFound
from mealtickets.owners.directory import OwnerDirectory

from .models import TicketWithOwner
from .state import TicketStatus
from .store import TicketStore

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class ConsumptionService:
    """Claim the oldest available ticket of an owner, at most once per ticket."""

    def __init__(self, store: TicketStore, owners: OwnerDirectory) -> None:
        self._store = store
        self._owners = owners

    async def consume_oldest(self, owner_email: str) -> TicketWithOwner:
        with tracer.start_as_current_span("tickets.consume") as span:
            owner = await self._owners.find_by_email(owner_email)
            if owner is None:
                raise OwnerNotFound(f"No user found with email {owner_email}")
            span.set_attribute("tickets.owner_id", owner.id)

            claimed = await self._store.try_claim(
                owner.id,
                from_status=TicketStatus.AVAILABLE,
                to_status=TicketStatus.USED,
                used_at=datetime.now(timezone.utc),
            )
            if claimed is None:
                logger.info("No available ticket for owner %s", owner.id)
                raise NoAvailableTicket(f"No available ticket was found for {owner.email}")

            span.set_attribute("tickets.ticket_id", claimed.id)
            logger.info("Ticket %s consumed by owner %s", claimed.id, owner.id)
            return TicketWithOwner.combine(claimed, owner)
