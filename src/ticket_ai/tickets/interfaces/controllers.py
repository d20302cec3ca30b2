"""
Tickets Controllers (API Routes)
================================

FastAPI routes for ticket endpoints. Every route requires a bearer token;
role scoping happens in TicketService.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ticket_ai.infrastructure.database import get_session
from ticket_ai.infrastructure.events import EventBus
from ticket_ai.tickets.application import (
    CreateTicketRequest,
    ITicketRepository,
    TicketCreatedResponse,
    TicketDeletedResponse,
    TicketService,
    TicketView,
)
from ticket_ai.tickets.application.dto import TicketStatusStr
from ticket_ai.tickets.infrastructure import SQLAlchemyTicketRepository
from ticket_ai.users.application import IUserRepository
from ticket_ai.users.domain import User
from ticket_ai.users.interfaces.dependencies import (
    get_current_user,
    get_event_bus,
    get_user_repository,
)

router = APIRouter(prefix="/api/tickets", tags=["Tickets"])


# ========== Example payloads for Swagger ==========

CREATE_TICKET_EXAMPLE = {
    "title": "VPN fails",
    "description": "Cannot connect to corporate VPN"
}

TICKET_DETAIL_EXAMPLE = {
    "id": "7d0c4c1e-3f1b-4b8e-9d55-2b1f0c6f4e21",
    "title": "VPN fails",
    "description": "Cannot connect to corporate VPN",
    "status": "IN_PROGRESS",
    "created_by": "123e4567-e89b-12d3-a456-426614174000",
    "assigned_to": {"id": "0b8f8a4e-5c8e-4f7a-b1f4-1d8f4a3c2b10", "email": "mod@example.com"},
    "priority": "high",
    "helpful_notes": "Check the client certificate and split-tunnel routes.",
    "related_skills": ["networking", "vpn"],
    "created_at": "2024-01-15T10:00:00Z",
    "updated_at": "2024-01-15T10:00:05Z"
}


# ========== Dependencies ==========

def get_ticket_repository(session: AsyncSession = Depends(get_session)) -> ITicketRepository:
    return SQLAlchemyTicketRepository(session)


def get_ticket_service(
    tickets: ITicketRepository = Depends(get_ticket_repository),
    users: IUserRepository = Depends(get_user_repository),
    events: Optional[EventBus] = Depends(get_event_bus)
) -> TicketService:
    return TicketService(tickets, users, events)


# ========== Route Handlers ==========

@router.post(
    "",
    response_model=TicketCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a ticket",
    description="""
    Persist a ticket with status `TODO` and start the intake pipeline
    (triage, assignment, notification) in the background.

    Re-read the ticket to observe priority, notes, skills and assignee.
    """,
    responses={201: {"content": {"application/json": {"example": {
        "message": "ticket created and processing started",
        "ticket": {**TICKET_DETAIL_EXAMPLE, "status": "TODO", "assigned_to": None,
                   "priority": None, "helpful_notes": "", "related_skills": []}
    }}}}}
)
async def create_ticket(
    payload: CreateTicketRequest,
    actor: User = Depends(get_current_user),
    service: TicketService = Depends(get_ticket_service)
):
    ticket = await service.create_ticket(actor, payload.title, payload.description)
    return TicketCreatedResponse(
        message="ticket created and processing started",
        ticket=await service.to_view(actor, ticket)
    )


@router.get(
    "",
    response_model=List[TicketView],
    summary="List tickets",
    description="Plain users see their own tickets; moderators and admins see all. Newest first."
)
async def list_tickets(
    status_filter: Optional[TicketStatusStr] = Query(None, alias="status"),
    actor: User = Depends(get_current_user),
    service: TicketService = Depends(get_ticket_service)
):
    tickets = await service.list_tickets(actor, status=status_filter)
    return await service.to_views(actor, tickets)


@router.get(
    "/{ticket_id}",
    response_model=TicketView,
    summary="Get a ticket",
    responses={
        200: {"content": {"application/json": {"example": TICKET_DETAIL_EXAMPLE}}},
        404: {"description": "Ticket not found or not visible to the caller"}
    }
)
async def get_ticket(
    ticket_id: str,
    actor: User = Depends(get_current_user),
    service: TicketService = Depends(get_ticket_service)
):
    ticket = await service.get_ticket(actor, ticket_id)
    return await service.to_view(actor, ticket)


@router.delete(
    "/{ticket_id}",
    response_model=TicketDeletedResponse,
    summary="Delete a ticket"
)
async def delete_ticket(
    ticket_id: str,
    actor: User = Depends(get_current_user),
    service: TicketService = Depends(get_ticket_service)
):
    await service.delete_ticket(actor, ticket_id)
    return TicketDeletedResponse(message="ticket deleted", id=ticket_id)


# Export router for inclusion in main app
tickets_router = router
