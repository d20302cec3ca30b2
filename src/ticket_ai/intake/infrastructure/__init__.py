"""
Intake Infrastructure Layer
===========================

Contains:
- Stores: SQLAlchemy-backed store scopes for workflow steps
"""

from ticket_ai.intake.infrastructure.stores import sqlalchemy_stores

__all__ = ["sqlalchemy_stores"]
