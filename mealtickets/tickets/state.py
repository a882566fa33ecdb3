from __future__ import annotations

from enum import Enum


class TicketStatus(str, Enum):
    """Lifecycle states of a meal ticket."""

    AVAILABLE = "available"
    USED = "used"
    VOIDED = "voided"

    @classmethod
    def parse(cls, value: str | None) -> TicketStatus | None:
        """Return the matching status or ``None`` for blank and unknown values."""

        if not value:
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


class TicketStateMachine:
    """Validate ticket lifecycle transitions. Used and voided are terminal."""

    _TRANSITIONS: dict[TicketStatus, frozenset[TicketStatus]] = {
        TicketStatus.AVAILABLE: frozenset({TicketStatus.USED, TicketStatus.VOIDED}),
        TicketStatus.USED: frozenset(),
        TicketStatus.VOIDED: frozenset(),
    }

    @classmethod
    def initial_state(cls) -> TicketStatus:
        return TicketStatus.AVAILABLE

    @classmethod
    def can_transition(cls, current: TicketStatus, new: TicketStatus) -> bool:
        return new in cls._TRANSITIONS.get(current, frozenset())

    @classmethod
    def assert_transition(cls, current: TicketStatus, new: TicketStatus) -> None:
        if not cls.can_transition(current, new):
            raise ValueError(f"Invalid ticket status transition: {current.value} -> {new.value}")
