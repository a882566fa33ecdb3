"""Database models and utilities."""

from .models import TicketTable, UserTable

__all__ = ["TicketTable", "UserTable"]
