"""SQLModel table definitions for the ticket data layer."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, Numeric, String
from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _uuid_str() -> str:
    return str(uuid.uuid4())


class UserTable(SQLModel, table=True):
    """Ticket owners. Maintained by the user registry, read-only here."""

    __tablename__ = "users"

    id: str = Field(default_factory=_uuid_str, sa_column=Column(String(36), primary_key=True))
    name: str = Field(sa_column=Column(String(255), nullable=False))
    email: str = Field(sa_column=Column(String(255), nullable=False, unique=True))


class TicketTable(SQLModel, table=True):
    """Issued meal tickets.

    ``sequence`` is the insertion order and breaks FIFO ties between tickets that
    share an ``issued_at`` (all tickets of one batch do).
    """

    __tablename__ = "tickets"
    __table_args__ = (
        Index("ix_tickets_owner_status_issued", "owner_id", "status", "issued_at"),
        CheckConstraint("(status = 'used') = (used_at IS NOT NULL)", name="ck_tickets_used_at_matches_status"),
    )

    sequence: int | None = Field(default=None, sa_column=Column(Integer, primary_key=True, autoincrement=True))
    id: str = Field(default_factory=_uuid_str, sa_column=Column(String(36), nullable=False, unique=True, index=True))
    price: Decimal = Field(sa_column=Column(Numeric(10, 2), nullable=False))
    issued_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))
    used_at: datetime | None = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))
    status: str = Field(sa_column=Column(String(20), nullable=False))
    owner_id: str = Field(sa_column=Column(String(36), ForeignKey("users.id"), nullable=False))
