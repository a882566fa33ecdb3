from __future__ import annotations

import logging
from datetime import tzinfo

from opentelemetry import trace

from mealtickets.core.errors import InvalidPagination
from mealtickets.owners.directory import OwnerDirectory, lookup_owners

from .filters import owner_matches_all, resolve_issued_range
from .models import PageMeta, Pagination, TicketCriteria, TicketFilters, TicketPage, TicketWithOwner
from .state import TicketStatus
from .store import TicketStore

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class QueryService:
    """Filtered, paginated ticket listing.

    Owner name/email filters cannot be pushed into the ticket store, so the
    listing runs in two phases: the store returns every ticket matching the
    date/status/owner-id criteria, then each distinct owner is resolved and the
    substring filters are applied in memory. Cost grows linearly with the number
    of tickets matching the first phase, which is fine for a single canteen but
    not for unbounded history; narrow the date range on large datasets.
    """

    def __init__(self, store: TicketStore, owners: OwnerDirectory, *, zone: tzinfo) -> None:
        self._store = store
        self._owners = owners
        self._zone = zone

    async def list_tickets(self, filters: TicketFilters, pagination: Pagination) -> TicketPage:
        if pagination.limit < 0:
            raise InvalidPagination("limit must be zero (no cap) or a positive number")
        if pagination.page < 1:
            raise InvalidPagination("page numbers start at 1")

        issued = resolve_issued_range(filters.date_from, filters.date_to, zone=self._zone)
        criteria = TicketCriteria(
            issued_from=issued.start,
            issued_to=issued.end,
            status=TicketStatus.parse(filters.status),
            owner_id=filters.owner_id or None,
        )

        with tracer.start_as_current_span("tickets.list") as span:
            tickets = await self._store.find_matching(criteria)
            owners = await lookup_owners(self._owners, (ticket.owner_id for ticket in tickets))

            matching: list[TicketWithOwner] = []
            for ticket in tickets:
                owner = owners.get(ticket.owner_id)
                if owner is None:
                    continue
                if owner_matches_all(owner, name=filters.owner_name_contains, email=filters.owner_email_contains):
                    matching.append(TicketWithOwner.combine(ticket, owner))

            span.set_attribute("tickets.scanned", len(tickets))
            span.set_attribute("tickets.matched", len(matching))

        total = len(matching)
        offset = pagination.offset
        if pagination.limit:
            page = matching[offset : offset + pagination.limit]
            has_more = offset + pagination.limit < total
        else:
            page = matching
            has_more = False

        logger.debug("Listed %d of %d matching tickets (scanned %d)", len(page), total, len(tickets))
        return TicketPage(
            data=page,
            meta=PageMeta(total=total, limit=pagination.limit, offset=offset, has_more=has_more),
        )
