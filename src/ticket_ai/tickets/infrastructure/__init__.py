"""
Tickets Infrastructure Layer
============================

Contains:
- Models: SQLAlchemy ORM models
- Repositories: Data access implementations
"""

from ticket_ai.tickets.infrastructure.models import TicketModel
from ticket_ai.tickets.infrastructure.repositories import SQLAlchemyTicketRepository

__all__ = [
    "TicketModel",
    "SQLAlchemyTicketRepository",
]
