"""
Users Application Services
==========================

Credential operations (signup, login, token verification, logout) and the
admin-only user management operations.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Tuple, Union

from ticket_ai.config import EventName, Role, VALID_ROLES
from ticket_ai.core import (
    ConflictException,
    ForbiddenException,
    ResourceNotFoundException,
    UnauthorizedException,
    ValidationException,
)
from ticket_ai.infrastructure.events import EventBus
from ticket_ai.infrastructure.security import PasswordHasher, TokenClaims, TokenService
from ticket_ai.shared.infrastructure.logging import get_logger
from ticket_ai.users.domain import User, normalize_skills

logger = get_logger(__name__)


# ========== Repository Interfaces ==========

class IUserRepository(ABC):
    """Interface for user data access."""

    @abstractmethod
    async def create(
        self,
        email: str,
        password_hash: str,
        role: str = Role.USER,
        skills: Optional[List[str]] = None
    ) -> User:
        """
        Create a user.

        Raises:
            ConflictException: If the email is already registered
        """

    @abstractmethod
    async def get_by_id(self, user_id: str) -> Optional[User]:
        """Get user by id."""

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email (case-insensitive)."""

    @abstractmethod
    async def list_all(self) -> List[User]:
        """List every user, oldest first."""

    @abstractmethod
    async def list_by_role(self, role: str) -> List[User]:
        """List users with the given role, oldest first."""

    @abstractmethod
    async def update(
        self,
        user_id: str,
        role: Optional[str] = None,
        skills: Optional[List[str]] = None
    ) -> Optional[User]:
        """Overwrite role and/or skills. Returns None for an unknown id."""

    @abstractmethod
    async def commit(self) -> None:
        """Make pending writes durable and visible to other sessions."""


# ========== Application Services ==========

class AuthService:
    """
    Credential service.

    Passwords are stored as bcrypt hashes; identities are carried by
    short-lived stateless tokens.
    """

    def __init__(
        self,
        users: IUserRepository,
        hasher: PasswordHasher,
        tokens: TokenService,
        events: Optional[EventBus] = None
    ):
        self._users = users
        self._hasher = hasher
        self._tokens = tokens
        self._events = events

    async def signup(
        self,
        email: str,
        password: str,
        skills: Optional[List[str]] = None
    ) -> Tuple[User, str]:
        """
        Register a new user with role ``user``.

        Raises:
            ConflictException: If the email is already registered
        """
        email = email.strip().lower()
        if await self._users.get_by_email(email) is not None:
            raise ConflictException("User with this email already exists")

        user = await self._users.create(
            email=email,
            password_hash=self._hasher.hash(password),
            role=Role.USER,
            skills=normalize_skills(skills)
        )
        await self._users.commit()
        logger.info("User signed up", extra={"user_id": user.id})

        await self._publish_signup(user)
        return user, self._tokens.issue(user.id, user.role)

    async def _publish_signup(self, user: User) -> None:
        if self._events is None:
            return
        try:
            await self._events.publish(EventName.USER_SIGNUP, {"email": user.email}, key=user.id)
        except Exception as e:
            # The account exists either way; the welcome email is optional
            logger.error(
                "Signup event failed",
                extra={"user_id": user.id, "error": str(e)}
            )

    async def login(self, email: str, password: str) -> Tuple[User, str]:
        """
        Authenticate with email and password.

        Raises:
            ResourceNotFoundException: If no account exists for the email
            UnauthorizedException: If the password does not match
        """
        user = await self._users.get_by_email(email.strip().lower())
        if user is None:
            raise ResourceNotFoundException("Account")

        if not self._hasher.verify(password, user.password_hash):
            logger.info("Login rejected", extra={"user_id": user.id})
            raise UnauthorizedException("Incorrect password")

        return user, self._tokens.issue(user.id, user.role)

    def verify(self, token: str) -> TokenClaims:
        """
        Validate a token's signature and expiry.

        Raises:
            UnauthorizedException: On any invalid or expired token
        """
        return self._tokens.verify(token)

    async def authenticate(self, token: str) -> User:
        """
        Resolve the caller of a request.

        The role is read from the store, not from the token, so role changes
        apply on the next request.

        Raises:
            UnauthorizedException: If the token is invalid or the user is gone
        """
        claims = self.verify(token)
        user = await self._users.get_by_id(claims.user_id)
        if user is None:
            raise UnauthorizedException("Invalid token")
        return user

    def logout(self, token: str) -> None:
        """
        Best-effort logout: tokens are stateless, the client discards them.

        Raises:
            UnauthorizedException: If the token is not valid
        """
        self.verify(token)


class UserAdminService:
    """Admin-only user management."""

    def __init__(self, users: IUserRepository):
        self._users = users

    @staticmethod
    def _require_admin(actor: User) -> None:
        if not actor.is_admin:
            raise ForbiddenException("Admin role required")

    async def list_users(self, actor: User) -> List[User]:
        """
        List every user.

        Raises:
            ForbiddenException: If the actor is not an admin
        """
        self._require_admin(actor)
        return await self._users.list_all()

    async def update_user(
        self,
        actor: User,
        email: str,
        role: Optional[str] = None,
        skills: Union[List[str], str, None] = None
    ) -> User:
        """
        Persist a role and/or skills change.

        Raises:
            ForbiddenException: If the actor is not an admin
            ValidationException: If the role is unknown
            ResourceNotFoundException: If no user has the email
        """
        self._require_admin(actor)

        if role is not None and role not in VALID_ROLES:
            raise ValidationException(f"Unknown role '{role}'")

        user = await self._users.get_by_email(email.strip().lower())
        if user is None:
            raise ResourceNotFoundException("User")

        updated = await self._users.update(
            user.id,
            role=role,
            skills=normalize_skills(skills) if skills is not None else None
        )
        if updated is None:
            raise ResourceNotFoundException("User", user.id)
        await self._users.commit()

        logger.info(
            "User updated",
            extra={"user_id": updated.id, "role": updated.role, "actor_id": actor.id}
        )
        return updated
