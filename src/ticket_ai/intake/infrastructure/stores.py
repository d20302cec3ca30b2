"""
SQLAlchemy Store Scopes
=======================

Opens one database session per workflow step; the session commits when
the step's ``async with`` block exits cleanly and rolls back otherwise.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from ticket_ai.infrastructure.database import get_session_context
from ticket_ai.intake.application.stores import Stores
from ticket_ai.tickets.infrastructure import SQLAlchemyTicketRepository
from ticket_ai.users.infrastructure import SQLAlchemyUserRepository


@asynccontextmanager
async def sqlalchemy_stores() -> AsyncGenerator[Stores, None]:
    async with get_session_context() as session:
        yield Stores(
            tickets=SQLAlchemyTicketRepository(session),
            users=SQLAlchemyUserRepository(session)
        )
