from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from mealtickets.core.errors import TicketServiceUnavailable
from mealtickets.tickets.service import TicketService


async def get_ticket_service(request: Request) -> TicketService:
    service = getattr(request.app.state, "ticket_service", None)
    if service is None:
        raise TicketServiceUnavailable("Ticket service is not configured")
    return service


TicketServiceDep = Annotated[TicketService, Depends(get_ticket_service)]
