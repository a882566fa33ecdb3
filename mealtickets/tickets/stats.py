from __future__ import annotations

from datetime import tzinfo
from decimal import Decimal

from mealtickets.owners.directory import OwnerDirectory, lookup_owners

from .filters import owner_matches_any, resolve_issued_range
from .models import TicketCriteria, TicketFilters, TicketStats
from .state import TicketStatus
from .store import TicketStore


class StatsService:
    """Ticket counts and revenue over a date/owner filtered population."""

    def __init__(self, store: TicketStore, owners: OwnerDirectory, *, zone: tzinfo) -> None:
        self._store = store
        self._owners = owners
        self._zone = zone

    async def compute_stats(self, filters: TicketFilters) -> TicketStats:
        # Status is not part of the statistics filter surface.
        issued = resolve_issued_range(filters.date_from, filters.date_to, zone=self._zone)
        criteria = TicketCriteria(
            issued_from=issued.start,
            issued_to=issued.end,
            owner_id=filters.owner_id or None,
        )
        tickets = await self._store.find_matching(criteria)
        owners = await lookup_owners(self._owners, (ticket.owner_id for ticket in tickets))

        stats = TicketStats()
        for ticket in tickets:
            owner = owners.get(ticket.owner_id)
            if owner is None:
                continue
            if not owner_matches_any(owner, name=filters.owner_name_contains, email=filters.owner_email_contains):
                continue
            stats.total_tickets += 1
            if ticket.status is TicketStatus.USED:
                stats.used_count += 1
                stats.total_revenue += Decimal(ticket.price)
            elif ticket.status is TicketStatus.AVAILABLE:
                stats.available_count += 1
        return stats
