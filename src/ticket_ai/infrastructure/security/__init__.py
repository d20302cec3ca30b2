"""
Security Infrastructure
=======================

Password hashing (bcrypt) and stateless bearer tokens (PyJWT).
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt

from ticket_ai.config import Settings, settings as default_settings
from ticket_ai.core import UnauthorizedException, ValidationException

# bcrypt only reads the first 72 bytes of a password
MAX_PASSWORD_BYTES = 72


class PasswordHasher:
    """Salted, deliberately slow password hashing."""

    def __init__(self, rounds: Optional[int] = None):
        self._rounds = rounds or default_settings.bcrypt_rounds

    def hash(self, password: str) -> str:
        """
        Raises:
            ValidationException: If the UTF-8 password exceeds 72 bytes
        """
        encoded = password.encode("utf-8")
        if len(encoded) > MAX_PASSWORD_BYTES:
            raise ValidationException(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(encoded, salt).decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        encoded = password.encode("utf-8")
        if len(encoded) > MAX_PASSWORD_BYTES:
            return False
        try:
            return bcrypt.checkpw(encoded, password_hash.encode("utf-8"))
        except ValueError:
            # Stored value is not a bcrypt hash
            return False


@dataclass(frozen=True)
class TokenClaims:
    """Identity carried by an access token."""
    user_id: str
    role: str
    expires_at: datetime


class TokenService:
    """
    Issues and validates HS256 access tokens.

    Tokens carry the user id (``sub``) and role and expire after
    ``jwt_expiry_minutes``. There is no server-side session store.
    """

    def __init__(
        self,
        secret: Optional[str] = None,
        algorithm: Optional[str] = None,
        expiry_minutes: Optional[int] = None
    ):
        self._secret = secret or default_settings.jwt_secret
        self._algorithm = algorithm or default_settings.jwt_algorithm
        self._expiry = timedelta(minutes=expiry_minutes or default_settings.jwt_expiry_minutes)

    @classmethod
    def from_settings(cls, config: Settings) -> "TokenService":
        return cls(config.jwt_secret, config.jwt_algorithm, config.jwt_expiry_minutes)

    def issue(self, user_id: str, role: str, now: Optional[datetime] = None) -> str:
        issued_at = now or datetime.now(timezone.utc)
        payload = {
            "sub": user_id,
            "role": role,
            "iat": issued_at,
            "exp": issued_at + self._expiry,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> TokenClaims:
        """
        Decode a token and check its signature and expiry.

        Raises:
            UnauthorizedException: If the token is invalid, expired or incomplete
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["sub", "exp"]}
            )
        except jwt.ExpiredSignatureError:
            raise UnauthorizedException("Token expired")
        except jwt.InvalidTokenError:
            raise UnauthorizedException("Invalid token")

        role = payload.get("role")
        if not isinstance(role, str):
            raise UnauthorizedException("Invalid token")

        return TokenClaims(
            user_id=str(payload["sub"]),
            role=role,
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
        )
