from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from fastapi import APIRouter, Query, status
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from mealtickets.dependencies.tickets import TicketServiceDep
from mealtickets.tickets.models import Pagination, TicketFilters, TicketPage, TicketStats, TicketWithOwner
from mealtickets.tickets.state import TicketStatus

router = APIRouter(prefix="/tickets", tags=["tickets"])


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TicketCreateRequest(CamelModel):
    user_id: str = Field(..., min_length=1, validation_alias=AliasChoices("userId", "user_id"))
    price: Decimal = Field(
        ..., ge=0, max_digits=10, decimal_places=2, validation_alias=AliasChoices("price", "precioTicket")
    )
    quantity: int = Field(default=1)


class TicketConsumeRequest(CamelModel):
    email: str = Field(..., min_length=1, max_length=255)


class TicketModel(CamelModel):
    id: str
    price: float
    issued_at: datetime
    used_at: datetime | None
    status: TicketStatus
    owner_id: str
    owner_name: str
    owner_email: str

    @classmethod
    def from_entity(cls, entity: TicketWithOwner) -> TicketModel:
        ticket = entity.ticket
        return cls(
            id=ticket.id,
            price=float(ticket.price),
            issued_at=ticket.issued_at,
            used_at=ticket.used_at,
            status=ticket.status,
            owner_id=ticket.owner_id,
            owner_name=entity.owner_name,
            owner_email=entity.owner_email,
        )


class TicketCreateResponse(CamelModel):
    message: str
    tickets: list[TicketModel]


class TicketConsumeResponse(CamelModel):
    message: str
    ticket: TicketModel


class PageMetaModel(CamelModel):
    total: int
    limit: int
    offset: int
    has_more: bool


class TicketPageModel(CamelModel):
    data: list[TicketModel]
    meta: PageMetaModel

    @classmethod
    def from_page(cls, page: TicketPage) -> TicketPageModel:
        return cls(
            data=[TicketModel.from_entity(item) for item in page.data],
            meta=PageMetaModel(
                total=page.meta.total,
                limit=page.meta.limit,
                offset=page.meta.offset,
                has_more=page.meta.has_more,
            ),
        )


class TicketStatsModel(CamelModel):
    total_tickets: int
    total_revenue: float
    available_count: int
    used_count: int

    @classmethod
    def from_stats(cls, stats: TicketStats) -> TicketStatsModel:
        return cls(
            total_tickets=stats.total_tickets,
            total_revenue=float(stats.total_revenue),
            available_count=stats.available_count,
            used_count=stats.used_count,
        )


@router.post("", response_model=TicketCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_tickets(payload: TicketCreateRequest, service: TicketServiceDep) -> TicketCreateResponse:
    created = await service.create_tickets(owner_id=payload.user_id, price=payload.price, quantity=payload.quantity)
    return TicketCreateResponse(
        message=f"{len(created)} ticket(s) created",
        tickets=[TicketModel.from_entity(item) for item in created],
    )


@router.get("", response_model=TicketPageModel, summary="List tickets with owner filters and pagination")
async def list_tickets(
    service: TicketServiceDep,
    date_from: str | None = Query(default=None, alias="from"),
    date_to: str | None = Query(default=None, alias="to"),
    legacy_from: str | None = Query(default=None, alias="fechaInicio", include_in_schema=False),
    legacy_to: str | None = Query(default=None, alias="fechaFin", include_in_schema=False),
    status_filter: str | None = Query(default=None, alias="status"),
    user_id: str | None = Query(default=None, alias="userId"),
    legacy_user_id: str | None = Query(default=None, alias="userID", include_in_schema=False),
    user_name: str | None = Query(default=None, alias="userName"),
    user_email: str | None = Query(default=None, alias="userEmail"),
    page: int = Query(default=1),
    limit: int = Query(default=0, description="Page size; 0 returns every matching ticket"),
) -> TicketPageModel:
    filters = TicketFilters(
        date_from=date_from or legacy_from,
        date_to=date_to or legacy_to,
        status=status_filter,
        owner_id=user_id or legacy_user_id,
        owner_name_contains=user_name,
        owner_email_contains=user_email,
    )
    result = await service.list_tickets(filters, Pagination(page=page, limit=limit))
    return TicketPageModel.from_page(result)


@router.get("/stats", response_model=TicketStatsModel, summary="Aggregate ticket counts and revenue")
async def ticket_stats(
    service: TicketServiceDep,
    date_from: str | None = Query(default=None, alias="from"),
    date_to: str | None = Query(default=None, alias="to"),
    user_id: str | None = Query(default=None, alias="userId"),
    legacy_user_id: str | None = Query(default=None, alias="userID", include_in_schema=False),
    user_name: str | None = Query(default=None, alias="userName"),
    user_email: str | None = Query(default=None, alias="userEmail"),
) -> TicketStatsModel:
    filters = TicketFilters(
        date_from=date_from,
        date_to=date_to,
        owner_id=user_id or legacy_user_id,
        owner_name_contains=user_name,
        owner_email_contains=user_email,
    )
    stats = await service.compute_stats(filters)
    return TicketStatsModel.from_stats(stats)


@router.post("/consume", response_model=TicketConsumeResponse)
async def consume_ticket(payload: TicketConsumeRequest, service: TicketServiceDep) -> TicketConsumeResponse:
    consumed = await service.consume_oldest(owner_email=payload.email)
    return TicketConsumeResponse(
        message="Entry registered; the oldest available ticket was used",
        ticket=TicketModel.from_entity(consumed),
    )
