"""
Users Infrastructure Repositories
=================================

SQLAlchemy implementation of the user repository.
"""

from datetime import timezone
from typing import List, Optional
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ticket_ai.config import Role
from ticket_ai.core import ConflictException
from ticket_ai.users.application import IUserRepository
from ticket_ai.users.domain import User
from ticket_ai.users.infrastructure.models import UserModel


def _parse_uuid(value: str) -> Optional[UUID]:
    try:
        return UUID(str(value))
    except ValueError:
        return None


def to_entity(model: UserModel) -> User:
    created_at = model.created_at
    if created_at is not None and created_at.tzinfo is None:
        # SQLite drops the offset
        created_at = created_at.replace(tzinfo=timezone.utc)
    return User(
        id=str(model.id),
        email=model.email,
        password_hash=model.password_hash,
        role=model.role,
        skills=list(model.skills or []),
        created_at=created_at
    )


class SQLAlchemyUserRepository(IUserRepository):
    """SQLAlchemy implementation for users."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def _get_model(self, user_id: str) -> Optional[UserModel]:
        user_uuid = _parse_uuid(user_id)
        if user_uuid is None:
            return None
        return await self._session.get(UserModel, user_uuid)

    async def create(
        self,
        email: str,
        password_hash: str,
        role: str = Role.USER,
        skills: Optional[List[str]] = None
    ) -> User:
        model = UserModel(
            id=uuid4(),
            email=email.lower(),
            password_hash=password_hash,
            role=role,
            skills=list(skills or [])
        )

        self._session.add(model)
        try:
            await self._session.flush()
        except IntegrityError:
            await self._session.rollback()
            raise ConflictException("User with this email already exists")

        return to_entity(model)

    async def get_by_id(self, user_id: str) -> Optional[User]:
        model = await self._get_model(user_id)
        return to_entity(model) if model else None

    async def get_by_email(self, email: str) -> Optional[User]:
        stmt = select(UserModel).where(UserModel.email == email.lower())
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return to_entity(model) if model else None

    async def list_all(self) -> List[User]:
        stmt = select(UserModel).order_by(UserModel.created_at)
        result = await self._session.execute(stmt)
        return [to_entity(m) for m in result.scalars().all()]

    async def list_by_role(self, role: str) -> List[User]:
        stmt = select(UserModel).where(UserModel.role == role).order_by(UserModel.created_at)
        result = await self._session.execute(stmt)
        return [to_entity(m) for m in result.scalars().all()]

    async def update(
        self,
        user_id: str,
        role: Optional[str] = None,
        skills: Optional[List[str]] = None
    ) -> Optional[User]:
        model = await self._get_model(user_id)
        if model is None:
            return None

        if role is not None:
            model.role = role
        if skills is not None:
            # Reassign so the JSON column is marked dirty
            model.skills = list(skills)

        await self._session.flush()
        return to_entity(model)

    async def commit(self) -> None:
        await self._session.commit()
