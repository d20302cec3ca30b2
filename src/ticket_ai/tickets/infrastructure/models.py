"""
Tickets Infrastructure Models
=============================

SQLAlchemy ORM models for the tickets module.
"""

from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID, uuid4

from sqlalchemy import JSON, DateTime, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from ticket_ai.config import TicketStatus
from ticket_ai.infrastructure.database import Base


class TicketModel(Base):
    """Database model for the Ticket entity."""
    __tablename__ = "tickets"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    # Content owned by the creating user
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default=TicketStatus.TODO, index=True)

    created_by: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id"),
        nullable=False,
        index=True
    )
    assigned_to: Mapped[Optional[UUID]] = mapped_column(
        Uuid,
        ForeignKey("users.id"),
        nullable=True,
        index=True
    )

    # Triage results
    priority: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    helpful_notes: Mapped[str] = mapped_column(Text, nullable=False, default="")
    related_skills: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
