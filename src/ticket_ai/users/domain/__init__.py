"""
Users Domain Layer
==================

Contains:
- Entities: User
- Helpers: skill normalisation
"""

from ticket_ai.users.domain.entities import User, normalize_skills

__all__ = [
    "User",
    "normalize_skills",
]
