"""
Tickets Application Services
============================

Role-scoped ticket operations used by the API layer.

Access rules, checked on every call:
- role ``user``: create tickets; read, list and delete only their own
- moderators and admins: read, list and delete every ticket
"""

from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional

from ticket_ai.config import EventName
from ticket_ai.core import ResourceNotFoundException
from ticket_ai.infrastructure.events import EventBus
from ticket_ai.shared.infrastructure.logging import get_logger
from ticket_ai.tickets.application.dto import TicketDetail, TicketSummary, TicketView
from ticket_ai.tickets.domain import Ticket
from ticket_ai.users.application import IUserRepository
from ticket_ai.users.domain import User

logger = get_logger(__name__)


# ========== Repository Interfaces ==========

class ITicketRepository(ABC):
    """Interface for ticket data access. Every mutation is a single-row overwrite."""

    @abstractmethod
    async def create(self, title: str, description: str, created_by: str) -> Ticket:
        """Create a ticket with status TODO."""

    @abstractmethod
    async def get_by_id(self, ticket_id: str) -> Optional[Ticket]:
        """Get ticket by id; None for unknown or malformed ids."""

    @abstractmethod
    async def list(
        self,
        created_by: Optional[str] = None,
        status: Optional[str] = None
    ) -> List[Ticket]:
        """List tickets, newest first."""

    @abstractmethod
    async def update_status(self, ticket_id: str, status: str) -> Optional[Ticket]:
        """Overwrite the status."""

    @abstractmethod
    async def apply_triage(
        self,
        ticket_id: str,
        priority: str,
        helpful_notes: str,
        related_skills: List[str],
        status: str
    ) -> Optional[Ticket]:
        """Overwrite the triage-derived fields and the status."""

    @abstractmethod
    async def assign(self, ticket_id: str, user_id: Optional[str]) -> Optional[Ticket]:
        """Overwrite the assignee."""

    @abstractmethod
    async def delete(self, ticket_id: str) -> bool:
        """Delete a ticket. Returns False if it did not exist."""

    @abstractmethod
    async def commit(self) -> None:
        """Make pending writes durable and visible to other sessions."""


# ========== Application Services ==========

class TicketService:
    """
    Ticket operations for the API layer.

    Creation persists a TODO ticket and publishes ``ticket/created``; triage
    and assignment happen in the intake pipeline.
    """

    def __init__(
        self,
        tickets: ITicketRepository,
        users: IUserRepository,
        events: Optional[EventBus] = None
    ):
        self._tickets = tickets
        self._users = users
        self._events = events

    async def create_ticket(self, actor: User, title: str, description: str) -> Ticket:
        ticket = await self._tickets.create(title=title, description=description, created_by=actor.id)
        await self._tickets.commit()
        logger.info("Ticket created", extra={"ticket_id": ticket.id, "created_by": actor.id})

        if self._events is not None:
            try:
                await self._events.publish(
                    EventName.TICKET_CREATED,
                    {"ticketId": ticket.id},
                    key=ticket.id
                )
            except Exception as e:
                # The ticket is persisted; a later re-run of the pipeline can enrich it
                logger.error(
                    "Ticket event failed",
                    extra={"ticket_id": ticket.id, "error": str(e)}
                )
        return ticket

    async def list_tickets(self, actor: User, status: Optional[str] = None) -> List[Ticket]:
        if actor.is_staff:
            return await self._tickets.list(status=status)
        return await self._tickets.list(created_by=actor.id, status=status)

    async def get_ticket(self, actor: User, ticket_id: str) -> Ticket:
        """
        Raises:
            ResourceNotFoundException: If the ticket does not exist or belongs
                to someone else and the actor is a plain user
        """
        ticket = await self._tickets.get_by_id(ticket_id)
        if ticket is None or not (actor.is_staff or ticket.is_owned_by(actor.id)):
            raise ResourceNotFoundException("Ticket")
        return ticket

    async def delete_ticket(self, actor: User, ticket_id: str) -> None:
        ticket = await self.get_ticket(actor, ticket_id)
        if not await self._tickets.delete(ticket.id):
            raise ResourceNotFoundException("Ticket")
        logger.info("Ticket deleted", extra={"ticket_id": ticket.id, "actor_id": actor.id})

    async def to_views(self, actor: User, tickets: Iterable[Ticket]) -> List[TicketView]:
        """Render tickets for the actor's role, resolving assignees once per user."""
        tickets = list(tickets)
        if not actor.is_staff:
            return [TicketSummary.from_domain(t) for t in tickets]

        assignees: Dict[str, Optional[User]] = {}
        for ticket in tickets:
            if ticket.assigned_to and ticket.assigned_to not in assignees:
                assignees[ticket.assigned_to] = await self._users.get_by_id(ticket.assigned_to)

        return [
            TicketDetail.from_domain(t, assignees.get(t.assigned_to) if t.assigned_to else None)
            for t in tickets
        ]

    async def to_view(self, actor: User, ticket: Ticket) -> TicketView:
        views = await self.to_views(actor, [ticket])
        return views[0]
