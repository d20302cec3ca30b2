"""
Store Scopes
============

Workflow steps open a fresh store scope per step, so each step's writes
commit on their own and every step reads the latest state.
"""

from dataclasses import dataclass
from typing import AsyncContextManager, Callable

from ticket_ai.tickets.application import ITicketRepository
from ticket_ai.users.application import IUserRepository


@dataclass
class Stores:
    """Repositories sharing one unit of work."""
    tickets: ITicketRepository
    users: IUserRepository


# Zero-argument factory returning ``async with provider() as stores: ...``
StoreProvider = Callable[[], AsyncContextManager[Stores]]
