from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from mealtickets.owners.directory import Owner

from .state import TicketStatus


@dataclass(slots=True)
class Ticket:
    """A single-use voucher bound to an owner."""

    id: str
    price: Decimal
    issued_at: datetime
    status: TicketStatus
    owner_id: str
    used_at: datetime | None = None
    sequence: int | None = None


@dataclass(slots=True)
class TicketWithOwner:
    """Ticket enriched with the owner's display attributes."""

    ticket: Ticket
    owner_name: str
    owner_email: str

    @classmethod
    def combine(cls, ticket: Ticket, owner: Owner) -> TicketWithOwner:
        return cls(ticket=ticket, owner_name=owner.name, owner_email=owner.email)


@dataclass(frozen=True, slots=True)
class TicketCriteria:
    """Predicate understood by the ticket store. ``None`` fields do not filter."""

    issued_from: datetime | None = None
    issued_to: datetime | None = None
    status: TicketStatus | None = None
    owner_id: str | None = None

    def matches(self, ticket: Ticket) -> bool:
        if self.issued_from is not None and ticket.issued_at < self.issued_from:
            return False
        if self.issued_to is not None and ticket.issued_at > self.issued_to:
            return False
        if self.status is not None and ticket.status != self.status:
            return False
        if self.owner_id is not None and ticket.owner_id != self.owner_id:
            return False
        return True


@dataclass(frozen=True, slots=True)
class TicketFilters:
    """Filters accepted by listing and statistics, as received from the caller.

    Dates stay raw strings here; parsing and validation happen in the services so
    that malformed input is reported as ``InvalidDate``.
    """

    date_from: str | None = None
    date_to: str | None = None
    status: str | None = None
    owner_id: str | None = None
    owner_name_contains: str | None = None
    owner_email_contains: str | None = None


@dataclass(frozen=True, slots=True)
class Pagination:
    """``limit == 0`` means no cap: every matching ticket is returned."""

    page: int = 1
    limit: int = 0

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(slots=True)
class PageMeta:
    total: int
    limit: int
    offset: int
    has_more: bool


@dataclass(slots=True)
class TicketPage:
    data: list[TicketWithOwner]
    meta: PageMeta


@dataclass(slots=True)
class TicketStats:
    total_tickets: int = 0
    total_revenue: Decimal = field(default_factory=lambda: Decimal("0"))
    available_count: int = 0
    used_count: int = 0
