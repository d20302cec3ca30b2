"""
Ticket Domain Entities
======================

Pure Python business objects for support tickets.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from ticket_ai.config import TicketStatus


# Status order; the intake pipeline only ever moves a ticket forward
STATUS_ORDER = {
    TicketStatus.TODO: 0,
    TicketStatus.IN_PROGRESS: 1,
    TicketStatus.DONE: 2,
}


@dataclass
class Ticket:
    """
    Support ticket entity.

    ``created_by`` is immutable. Priority, helpful notes, related skills,
    status and assignee are written by the intake pipeline only.
    """
    id: str
    title: str
    description: str
    created_by: str
    status: str = TicketStatus.TODO
    assigned_to: Optional[str] = None
    priority: Optional[str] = None
    helpful_notes: str = ""
    related_skills: List[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = None

    def is_owned_by(self, user_id: str) -> bool:
        return self.created_by == user_id

    def can_advance_to(self, status: str) -> bool:
        """True when moving to ``status`` would not regress the ticket."""
        return STATUS_ORDER.get(status, 0) >= STATUS_ORDER.get(self.status, 0)
