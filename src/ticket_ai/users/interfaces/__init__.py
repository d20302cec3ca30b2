"""
Users Interfaces Layer
======================

FastAPI routes and request-scoped dependencies.
"""

from ticket_ai.users.interfaces.controllers import users_router
from ticket_ai.users.interfaces.dependencies import get_current_user

__all__ = ["users_router", "get_current_user"]
