"""
Users Application DTOs
======================

Pydantic models for request/response validation.
"""

from datetime import datetime
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from ticket_ai.infrastructure.security import MAX_PASSWORD_BYTES
from ticket_ai.users.domain import User, normalize_skills


RoleStr = Literal["user", "moderator", "admin"]


# ========== Request DTOs ==========

class SignupRequest(BaseModel):
    """Request model for account creation."""
    email: EmailStr
    password: str = Field(..., min_length=6, description="At most 72 bytes once UTF-8 encoded")
    skills: List[str] = Field(default_factory=list)

    @field_validator("password")
    @classmethod
    def check_password_bytes(cls, v: str) -> str:
        if len(v.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
        return v

    @field_validator("skills")
    @classmethod
    def clean_skills(cls, v: List[str]) -> List[str]:
        return normalize_skills(v)


class LoginRequest(BaseModel):
    """Request model for login."""
    email: EmailStr
    password: str = Field(..., min_length=1)


class UpdateUserRequest(BaseModel):
    """
    Admin update of a user's role and/or skills.

    Skills may be a list or a comma-separated string.
    """
    email: EmailStr
    role: Optional[RoleStr] = None
    skills: Optional[Union[List[str], str]] = None


# ========== Response DTOs ==========

class UserResponse(BaseModel):
    """Public view of a user (never includes the password hash)."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    role: RoleStr
    skills: List[str]
    created_at: datetime

    @classmethod
    def from_domain(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            email=user.email,
            role=user.role,
            skills=list(user.skills),
            created_at=user.created_at
        )


class AuthResponse(BaseModel):
    """Response for signup and login."""
    user: UserResponse
    token: str


class UpdateUserResponse(BaseModel):
    """Response for an admin user update."""
    message: str
    user: UserResponse


class MessageResponse(BaseModel):
    message: str
