"""Error taxonomy shared by the ticket services and the HTTP layer."""

from __future__ import annotations

from typing import Any


class TicketingError(RuntimeError):
    """Base error carrying a machine readable code and an HTTP status."""

    code: str = "TICKETING_ERROR"
    status_code: int = 500
    title: str = "Ticketing error"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.title
        super().__init__(self.detail)

    def to_error_object(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "status": str(self.status_code),
            "title": self.title,
            "detail": self.detail,
        }


class TicketValidationError(TicketingError):
    """Caller input is structurally wrong; never retried."""

    code = "VALIDATION_ERROR"
    status_code = 400
    title = "Invalid request"


class InvalidQuantity(TicketValidationError):
    code = "MAX_TICKETS_EXCEEDED"
    title = "Invalid ticket quantity"


class InvalidDate(TicketValidationError):
    code = "INVALID_DATE"
    title = "Invalid date"


class InvalidDateRange(TicketValidationError):
    code = "INVALID_DATE_RANGE"
    title = "Invalid date range"


class InvalidPagination(TicketValidationError):
    code = "INVALID_PAGINATION"
    title = "Invalid pagination"


class TicketNotFoundError(TicketingError):
    """A referenced entity does not exist."""

    code = "NOT_FOUND"
    status_code = 404
    title = "Not found"


class OwnerNotFound(TicketNotFoundError):
    code = "USER_NOT_FOUND"
    title = "User not found"


class TicketConflictError(TicketingError):
    """The request is valid but no resource qualifies for it."""

    code = "CONFLICT"
    status_code = 409
    title = "Conflict"


class NoAvailableTicket(TicketConflictError):
    # Scanners treat this like the original "nothing to consume" 404.
    code = "NO_AVAILABLE_TICKET"
    status_code = 404
    title = "No available ticket"


class TicketServiceUnavailable(TicketingError):
    code = "SERVICE_UNAVAILABLE"
    status_code = 503
    title = "Service unavailable"


class TicketInternalError(TicketingError):
    """Persistence or unexpected failure. The detail is never shown to callers."""

    code = "INTERNAL_ERROR"
    status_code = 500
    title = "Internal server error"

    public_detail = "The request could not be completed. Please try again later."

    def to_error_object(self) -> dict[str, Any]:
        error = super().to_error_object()
        error["detail"] = self.public_detail
        return error


class TicketPersistenceError(TicketInternalError):
    code = "PERSISTENCE_ERROR"

    def __init__(self, detail: str | None = None, *, ticket_ids: list[str] | None = None) -> None:
        super().__init__(detail)
        self.ticket_ids = list(ticket_ids or [])
