"""
Tickets Application Layer
=========================

Contains:
- Services: TicketService (role-scoped ticket operations)
- DTOs: Request/response models
- Repository interface: ITicketRepository
"""

from ticket_ai.tickets.application.dto import (
    CreateTicketRequest,
    AssigneeInfo,
    TicketSummary,
    TicketDetail,
    TicketView,
    TicketCreatedResponse,
    TicketDeletedResponse,
)
from ticket_ai.tickets.application.services import (
    TicketService,
    ITicketRepository,
)

__all__ = [
    # DTOs
    "CreateTicketRequest",
    "AssigneeInfo",
    "TicketSummary",
    "TicketDetail",
    "TicketView",
    "TicketCreatedResponse",
    "TicketDeletedResponse",
    # Services
    "TicketService",
    # Repository Interfaces
    "ITicketRepository",
]
