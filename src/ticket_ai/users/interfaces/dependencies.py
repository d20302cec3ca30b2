"""
Users Dependencies
==================

FastAPI dependency providers for repositories, credential services and the
authenticated caller. Tests override the repository providers.
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from ticket_ai.config import settings
from ticket_ai.core import UnauthorizedException
from ticket_ai.infrastructure.database import get_session
from ticket_ai.infrastructure.events import EventBus
from ticket_ai.infrastructure.security import PasswordHasher, TokenService
from ticket_ai.users.application import AuthService, IUserRepository, UserAdminService
from ticket_ai.users.domain import User
from ticket_ai.users.infrastructure import SQLAlchemyUserRepository

bearer_scheme = HTTPBearer(auto_error=False)


def get_user_repository(session: AsyncSession = Depends(get_session)) -> IUserRepository:
    return SQLAlchemyUserRepository(session)


def get_event_bus(request: Request) -> Optional[EventBus]:
    """Event bus created at startup; absent when the app runs without lifespan."""
    return getattr(request.app.state, "event_bus", None)


def get_token_service() -> TokenService:
    return TokenService.from_settings(settings)


def get_password_hasher() -> PasswordHasher:
    return PasswordHasher(settings.bcrypt_rounds)


def get_auth_service(
    users: IUserRepository = Depends(get_user_repository),
    hasher: PasswordHasher = Depends(get_password_hasher),
    tokens: TokenService = Depends(get_token_service),
    events: Optional[EventBus] = Depends(get_event_bus)
) -> AuthService:
    return AuthService(users, hasher, tokens, events)


def get_user_admin_service(
    users: IUserRepository = Depends(get_user_repository)
) -> UserAdminService:
    return UserAdminService(users)


def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> str:
    """
    Extract the bearer token.

    Raises:
        UnauthorizedException: If the Authorization header is missing
    """
    if credentials is None or not credentials.credentials:
        raise UnauthorizedException("No token provided")
    return credentials.credentials


async def get_current_user(
    token: str = Depends(get_bearer_token),
    auth: AuthService = Depends(get_auth_service)
) -> User:
    """Resolve and authorize the caller on every request."""
    return await auth.authenticate(token)
