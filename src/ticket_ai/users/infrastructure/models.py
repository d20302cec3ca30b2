"""
Users Infrastructure Models
===========================

SQLAlchemy ORM models for the users module.
"""

from datetime import datetime, timezone
from typing import List
from uuid import UUID, uuid4

from sqlalchemy import JSON, DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from ticket_ai.config import Role
from ticket_ai.infrastructure.database import Base


class UserModel(Base):
    """Database model for the User entity."""
    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    # Stored lower-cased; uniqueness enforced by the index
    email: Mapped[str] = mapped_column(String(320), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    role: Mapped[str] = mapped_column(String(20), nullable=False, default=Role.USER, index=True)
    skills: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc)
    )
