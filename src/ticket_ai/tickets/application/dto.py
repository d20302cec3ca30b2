"""
Tickets Application DTOs
========================

Pydantic models for request/response validation.

Plain users get ``TicketSummary`` views of their own tickets; moderators and
admins get ``TicketDetail`` views including triage fields and the assignee.
"""

from datetime import datetime
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

from ticket_ai.tickets.domain import Ticket
from ticket_ai.users.domain import User


# ========== Type Aliases for Literals ==========
TicketStatusStr = Literal["TODO", "IN_PROGRESS", "DONE"]
PriorityStr = Literal["low", "medium", "high"]


# ========== Request DTOs ==========

class CreateTicketRequest(BaseModel):
    """Request model for ticket creation."""
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)

    @field_validator("title", "description")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("description")
    @classmethod
    def validate_description_length(cls, v: str) -> str:
        """Ensure description is not too long for the triage model."""
        if len(v) > 10000:
            raise ValueError("Description too long (max 10000 characters)")
        return v


# ========== Response DTOs ==========

class AssigneeInfo(BaseModel):
    id: str
    email: str


class TicketSummary(BaseModel):
    """Ticket fields visible to the creating user."""
    id: str
    title: str
    description: str
    status: TicketStatusStr
    created_at: datetime

    @classmethod
    def from_domain(cls, ticket: Ticket) -> "TicketSummary":
        return cls(
            id=ticket.id,
            title=ticket.title,
            description=ticket.description,
            status=ticket.status,
            created_at=ticket.created_at
        )


class TicketDetail(BaseModel):
    """Full ticket view for moderators and admins."""
    id: str
    title: str
    description: str
    status: TicketStatusStr
    created_by: str
    assigned_to: Optional[AssigneeInfo] = None
    priority: Optional[PriorityStr] = None
    helpful_notes: str = ""
    related_skills: List[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, ticket: Ticket, assignee: Optional[User] = None) -> "TicketDetail":
        return cls(
            id=ticket.id,
            title=ticket.title,
            description=ticket.description,
            status=ticket.status,
            created_by=ticket.created_by,
            assigned_to=AssigneeInfo(id=assignee.id, email=assignee.email) if assignee else None,
            priority=ticket.priority,
            helpful_notes=ticket.helpful_notes,
            related_skills=list(ticket.related_skills),
            created_at=ticket.created_at,
            updated_at=ticket.updated_at
        )


TicketView = Union[TicketDetail, TicketSummary]


class TicketCreatedResponse(BaseModel):
    """Response for ticket creation; triage continues in the background."""
    message: str
    ticket: TicketView


class TicketDeletedResponse(BaseModel):
    message: str
    id: str
