"""Ticket lifecycle: issuance, consumption, listing and statistics."""

from .models import Pagination, Ticket, TicketCriteria, TicketFilters, TicketPage, TicketStats, TicketWithOwner
from .service import TicketService
from .state import TicketStateMachine, TicketStatus
from .store import InMemoryTicketStore, SqlTicketStore, TicketStore

__all__ = [
    "InMemoryTicketStore",
    "Pagination",
    "SqlTicketStore",
    "Ticket",
    "TicketCriteria",
    "TicketFilters",
    "TicketPage",
    "TicketService",
    "TicketStateMachine",
    "TicketStats",
    "TicketStatus",
    "TicketStore",
    "TicketWithOwner",
]
