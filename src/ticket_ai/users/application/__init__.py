"""
Users Application Layer
=======================

Contains:
- Services: AuthService (credentials), UserAdminService (role/skill management)
- DTOs: Request/response models
- Repository interface: IUserRepository
"""

from ticket_ai.users.application.dto import (
    SignupRequest,
    LoginRequest,
    UpdateUserRequest,
    UserResponse,
    AuthResponse,
    UpdateUserResponse,
    MessageResponse,
)
from ticket_ai.users.application.services import (
    AuthService,
    UserAdminService,
    IUserRepository,
)

__all__ = [
    # DTOs
    "SignupRequest",
    "LoginRequest",
    "UpdateUserRequest",
    "UserResponse",
    "AuthResponse",
    "UpdateUserResponse",
    "MessageResponse",
    # Services
    "AuthService",
    "UserAdminService",
    # Repository Interfaces
    "IUserRepository",
]
