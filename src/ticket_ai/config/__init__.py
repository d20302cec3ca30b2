"""
Configuration Module
====================

Application settings and configuration management using Pydantic.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator, model_validator
from functools import lru_cache
from typing import List, Optional


DEFAULT_JWT_SECRET = "change-me-in-production"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses Pydantic for validation and type safety.
    """

    # ========== Application ==========
    app_name: str = Field(default="ticket-ai", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root log level")

    # ========== Server ==========
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port", ge=1, le=65535)

    # ========== Database ==========
    database_url: str = Field(
        default="postgresql+asyncpg://localhost:5432/tickets",
        description="Database connection URL (async driver)"
    )
    db_pool_size: int = Field(default=5, description="Database connection pool size", ge=1)
    db_max_overflow: int = Field(default=10, description="Max overflow connections", ge=0)

    # ========== Auth ==========
    jwt_secret: str = Field(
        default=DEFAULT_JWT_SECRET,
        description="HMAC secret used to sign access tokens"
    )
    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    jwt_expiry_minutes: int = Field(
        default=60,
        description="Access token lifetime in minutes",
        ge=1,
        le=24 * 60
    )
    bcrypt_rounds: int = Field(
        default=10,
        description="bcrypt cost factor for password hashing",
        ge=4,
        le=16
    )

    # ========== LLM (triage model) ==========
    llm_provider: str = Field(
        default="openai",
        description="Triage model provider: openai (any OpenAI-compatible API) or zai"
    )
    openai_api_key: Optional[str] = Field(
        default=None,
        description="API key for the OpenAI-compatible endpoint"
    )
    zai_api_key: Optional[str] = Field(
        default=None,
        description="Z.AI API key for GLM models"
    )
    llm_base_url: Optional[str] = Field(
        default=None,
        description="Base URL of an OpenAI-compatible endpoint (Gemini, Groq, ...)"
    )
    llm_model: str = Field(
        default="gpt-4o-mini",
        description="Model used for ticket triage"
    )
    llm_temperature: float = Field(
        default=0.3,
        description="Default temperature for LLM",
        ge=0.0,
        le=1.0
    )
    llm_max_tokens: int = Field(
        default=800,
        description="Default max tokens for LLM generation",
        ge=1,
        le=8000
    )
    mock_llm: bool = Field(
        default=False,
        description="Use mock LLM responses for testing (no API calls)"
    )

    # ========== SMTP ==========
    smtp_host: Optional[str] = Field(default=None, description="SMTP server host")
    smtp_port: int = Field(default=587, description="SMTP server port", ge=1, le=65535)
    smtp_username: Optional[str] = Field(default=None, description="SMTP username")
    smtp_password: Optional[str] = Field(default=None, description="SMTP password")
    smtp_sender: Optional[str] = Field(
        default=None,
        description="Sender address (defaults to the SMTP username)"
    )
    smtp_start_tls: bool = Field(default=True, description="Upgrade the connection with STARTTLS")
    smtp_timeout_seconds: float = Field(
        default=10.0,
        description="Timeout for SMTP operations",
        ge=0.1,
        le=120
    )

    # ========== Events / intake pipeline ==========
    event_delivery: str = Field(
        default="background",
        description="background (APScheduler jobs) or inline (await handlers in the publisher)"
    )
    step_max_attempts: int = Field(
        default=3,
        description="Attempts per pipeline step before the step fails",
        ge=1,
        le=10
    )
    step_backoff_seconds: float = Field(
        default=1.0,
        description="Base delay for exponential backoff between step attempts",
        ge=0.0
    )
    signup_event_retries: int = Field(default=2, description="Run-level retries for user/signup", ge=0)
    ticket_event_retries: int = Field(default=0, description="Run-level retries for ticket/created", ge=0)

    # ========== CORS ==========
    cors_origins: List[str] = Field(
        default=["http://localhost:5173", "http://localhost:3000"],
        description="Allowed CORS origins"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is one of allowed values."""
        allowed = {"development", "staging", "production"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v

    @field_validator("llm_provider")
    @classmethod
    def validate_llm_provider(cls, v: str) -> str:
        allowed = {"openai", "zai"}
        if v not in allowed:
            raise ValueError(f"llm_provider must be one of {allowed}")
        return v

    @field_validator("event_delivery")
    @classmethod
    def validate_event_delivery(cls, v: str) -> str:
        allowed = {"background", "inline"}
        if v not in allowed:
            raise ValueError(f"event_delivery must be one of {allowed}")
        return v

    @model_validator(mode="after")
    def validate_jwt_secret(self) -> "Settings":
        """Refuse the placeholder signing secret outside development."""
        if self.environment != "development" and self.jwt_secret == DEFAULT_JWT_SECRET:
            raise ValueError("jwt_secret must be set outside development")
        return self

    @property
    def smtp_configured(self) -> bool:
        return bool(self.smtp_host and self.smtp_username and self.smtp_password)


@lru_cache()
def get_settings() -> Settings:
    """Returns cached Settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


# ========== Constants ==========

class Role(str):
    """User roles."""
    USER = "user"
    MODERATOR = "moderator"
    ADMIN = "admin"


class TicketStatus(str):
    """Ticket lifecycle statuses."""
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"


class Priority(str):
    """Ticket priority levels assigned by triage."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class EventName(str):
    """Events published by the API layer."""
    USER_SIGNUP = "user/signup"
    TICKET_CREATED = "ticket/created"


# ========== Lists for validation ==========

VALID_ROLES = [Role.USER, Role.MODERATOR, Role.ADMIN]
STAFF_ROLES = [Role.MODERATOR, Role.ADMIN]
VALID_PRIORITIES = [Priority.LOW, Priority.MEDIUM, Priority.HIGH]
