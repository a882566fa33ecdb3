from __future__ import annotations

from dataclasses import dataclass
from datetime import tzinfo
from decimal import Decimal

from mealtickets.owners.directory import OwnerDirectory

from .consumption import ConsumptionService
from .issuance import MAX_BATCH_QUANTITY, IssuanceService
from .models import Pagination, TicketFilters, TicketPage, TicketStats, TicketWithOwner
from .query import QueryService
from .stats import StatsService
from .store import TicketStore


@dataclass(slots=True)
class TicketService:
    """Entry point used by the HTTP layer; one instance per application."""

    issuance: IssuanceService
    consumption: ConsumptionService
    query: QueryService
    stats: StatsService

    @classmethod
    def build(
        cls,
        store: TicketStore,
        owners: OwnerDirectory,
        *,
        zone: tzinfo,
        max_quantity: int = MAX_BATCH_QUANTITY,
    ) -> TicketService:
        return cls(
            issuance=IssuanceService(store, owners, max_quantity=max_quantity),
            consumption=ConsumptionService(store, owners),
            query=QueryService(store, owners, zone=zone),
            stats=StatsService(store, owners, zone=zone),
        )

    async def create_tickets(self, *, owner_id: str, price: Decimal, quantity: int) -> list[TicketWithOwner]:
        return await self.issuance.create_tickets(owner_id, price, quantity)

    async def consume_oldest(self, *, owner_email: str) -> TicketWithOwner:
        return await self.consumption.consume_oldest(owner_email)

    async def list_tickets(self, filters: TicketFilters, pagination: Pagination) -> TicketPage:
        return await self.query.list_tickets(filters, pagination)

    async def compute_stats(self, filters: TicketFilters) -> TicketStats:
        return await self.stats.compute_stats(filters)
