"""
Tickets Infrastructure Repositories
===================================

SQLAlchemy implementation of the ticket repository.
"""

from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ticket_ai.config import TicketStatus
from ticket_ai.tickets.application import ITicketRepository
from ticket_ai.tickets.domain import Ticket
from ticket_ai.tickets.infrastructure.models import TicketModel


def _parse_uuid(value: Optional[str]) -> Optional[UUID]:
    if value is None:
        return None
    try:
        return UUID(str(value))
    except ValueError:
        return None


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite drops the offset
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_entity(model: TicketModel) -> Ticket:
    return Ticket(
        id=str(model.id),
        title=model.title,
        description=model.description,
        created_by=str(model.created_by),
        status=model.status,
        assigned_to=str(model.assigned_to) if model.assigned_to else None,
        priority=model.priority,
        helpful_notes=model.helpful_notes or "",
        related_skills=list(model.related_skills or []),
        created_at=_aware(model.created_at),
        updated_at=_aware(model.updated_at)
    )


class SQLAlchemyTicketRepository(ITicketRepository):
    """SQLAlchemy implementation for tickets."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def _get_model(self, ticket_id: str) -> Optional[TicketModel]:
        ticket_uuid = _parse_uuid(ticket_id)
        if ticket_uuid is None:
            return None
        return await self._session.get(TicketModel, ticket_uuid)

    async def _touch(self, model: TicketModel) -> Ticket:
        model.updated_at = datetime.now(timezone.utc)
        await self._session.flush()
        return to_entity(model)

    async def create(self, title: str, description: str, created_by: str) -> Ticket:
        model = TicketModel(
            id=uuid4(),
            title=title,
            description=description,
            status=TicketStatus.TODO,
            created_by=UUID(str(created_by)),
            helpful_notes="",
            related_skills=[],
            created_at=datetime.now(timezone.utc)
        )

        self._session.add(model)
        await self._session.flush()

        return to_entity(model)

    async def get_by_id(self, ticket_id: str) -> Optional[Ticket]:
        model = await self._get_model(ticket_id)
        return to_entity(model) if model else None

    async def list(
        self,
        created_by: Optional[str] = None,
        status: Optional[str] = None
    ) -> List[Ticket]:
        stmt = select(TicketModel)

        if created_by is not None:
            creator_uuid = _parse_uuid(created_by)
            if creator_uuid is None:
                return []
            stmt = stmt.where(TicketModel.created_by == creator_uuid)
        if status is not None:
            stmt = stmt.where(TicketModel.status == status)

        stmt = stmt.order_by(TicketModel.created_at.desc())
        result = await self._session.execute(stmt)
        return [to_entity(m) for m in result.scalars().all()]

    async def update_status(self, ticket_id: str, status: str) -> Optional[Ticket]:
        model = await self._get_model(ticket_id)
        if model is None:
            return None
        model.status = status
        return await self._touch(model)

    async def apply_triage(
        self,
        ticket_id: str,
        priority: str,
        helpful_notes: str,
        related_skills: List[str],
        status: str
    ) -> Optional[Ticket]:
        model = await self._get_model(ticket_id)
        if model is None:
            return None
        model.priority = priority
        model.helpful_notes = helpful_notes
        model.related_skills = list(related_skills)
        model.status = status
        return await self._touch(model)

    async def assign(self, ticket_id: str, user_id: Optional[str]) -> Optional[Ticket]:
        model = await self._get_model(ticket_id)
        if model is None:
            return None
        model.assigned_to = _parse_uuid(user_id)
        return await self._touch(model)

    async def delete(self, ticket_id: str) -> bool:
        model = await self._get_model(ticket_id)
        if model is None:
            return False
        await self._session.delete(model)
        await self._session.flush()
        return True

    async def commit(self) -> None:
        await self._session.commit()
