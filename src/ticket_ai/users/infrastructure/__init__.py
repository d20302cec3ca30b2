"""
Users Infrastructure Layer
==========================

Contains:
- Models: SQLAlchemy ORM models
- Repositories: Data access implementations
"""

from ticket_ai.users.infrastructure.models import UserModel
from ticket_ai.users.infrastructure.repositories import SQLAlchemyUserRepository

__all__ = [
    "UserModel",
    "SQLAlchemyUserRepository",
]
