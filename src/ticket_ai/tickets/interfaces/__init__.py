"""
Tickets Interfaces Layer
========================

FastAPI routes for tickets.
"""

from ticket_ai.tickets.interfaces.controllers import tickets_router, get_ticket_repository

__all__ = ["tickets_router", "get_ticket_repository"]
