"""
Tickets Domain Layer
====================

Contains:
- Entities: Ticket
"""

from ticket_ai.tickets.domain.entities import Ticket, STATUS_ORDER

__all__ = [
    "Ticket",
    "STATUS_ORDER",
]
