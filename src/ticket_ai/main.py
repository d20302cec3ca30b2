"""
Ticket AI - Main Application
============================

Support ticket tracker with LLM triage and skill-based assignment.

Modules:
- Users: Signup, login, token verification, admin user management
- Tickets: Role-scoped ticket CRUD
- Triage: LLM assessment of priority, notes and required skills
- Intake: Background pipeline (triage, assignment, email) and welcome email

Clean Architecture Layers:
- Interfaces: FastAPI controllers, event handlers
- Application: Services and DTOs
- Domain: Entities and business rules
- Infrastructure: Database, LLM, mail, security, event delivery
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

# Configuration and Core
from ticket_ai.config import settings
from ticket_ai.core import ApplicationException

# Infrastructure
from ticket_ai.infrastructure.database import close_database, create_tables, init_database
from ticket_ai.infrastructure.events import EventBus
from ticket_ai.infrastructure.llm import create_llm_client
from ticket_ai.infrastructure.mail import SMTPEmailSender

# Intake workflows
from ticket_ai.intake.application import (
    RetryPolicy,
    SignupWelcomeService,
    TicketIntakeService,
)
from ticket_ai.intake.infrastructure import sqlalchemy_stores
from ticket_ai.intake.interfaces import register_event_handlers
from ticket_ai.triage.application import TriageService

# Module Routers
from ticket_ai.tickets.interfaces import tickets_router
from ticket_ai.users.interfaces import users_router

# Middleware and Logging
from ticket_ai.shared.api.middleware import (
    CorrelationIDMiddleware,
    LoggingMiddleware,
    application_exception_handler,
    global_exception_handler,
)
from ticket_ai.shared.infrastructure.logging import get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager.

    STARTUP:
    1. Setup structured logging
    2. Initialize database and create tables
    3. Initialize LLM client and triage service
    4. Build the intake workflows and register event handlers
    5. Start background event delivery

    SHUTDOWN:
    1. Stop event delivery (in-flight runs finish first)
    2. Close database connections
    """
    # === STARTUP ===
    setup_logging(settings.log_level, settings.environment)
    logger.info("Starting Ticket AI", extra={
        "version": settings.app_version,
        "environment": settings.environment
    })

    logger.info("Initializing database")
    init_database()

    # Tables are created on startup; the API runs degraded if the database is down
    try:
        await create_tables()
    except Exception as e:
        logger.warning(f"Database not available - running in degraded mode: {e}")

    logger.info("Initializing LLM client", extra={"provider": settings.llm_provider})
    try:
        triage_service = TriageService(create_llm_client(settings))
    except Exception as e:
        logger.warning(f"LLM client initialization failed, triage will use fallback: {e}")
        triage_service = None

    mailer = SMTPEmailSender(settings)
    if not settings.smtp_configured:
        logger.warning("SMTP not configured - emails will not be sent")

    policy = RetryPolicy.from_settings(settings)
    intake_service = TicketIntakeService(sqlalchemy_stores, triage_service, mailer, policy)
    welcome_service = SignupWelcomeService(sqlalchemy_stores, mailer, policy)

    event_bus = EventBus(retry_backoff_seconds=settings.step_backoff_seconds)
    register_event_handlers(event_bus, intake_service, welcome_service, settings)
    if settings.event_delivery == "background":
        await event_bus.start()

    # Store services in app state for dependency injection
    app.state.event_bus = event_bus
    app.state.triage_service = triage_service

    logger.info("Ticket AI started successfully")

    yield  # Application runs here

    # === SHUTDOWN ===
    logger.info("Shutting down Ticket AI")

    await event_bus.stop()
    await close_database()

    logger.info("Ticket AI shutdown complete")


def create_app() -> FastAPI:
    """Build the FastAPI application."""
    app = FastAPI(
        title="Ticket AI API",
        description="""
    ## Support Ticket Tracker with AI Triage

    Users file tickets; a background pipeline asks an LLM for priority,
    helpful notes and required skills, then assigns the ticket to a
    moderator whose skills match (or an admin) and emails the assignee.

    ### Auth (`/api/auth`)
    - `POST /signup`, `POST /login`, `POST /logout`
    - `GET /users`, `POST /update-user` (admin only)

    ### Tickets (`/api/tickets`)
    - `POST /` - create (status `TODO`, processing starts in the background)
    - `GET /` - list (own tickets for users, all for moderators and admins)
    - `GET /{id}`, `DELETE /{id}`

    All ticket routes require `Authorization: Bearer <token>`.
    """,
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )

    # === CORS Middleware ===
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # === Custom Middleware (from shared) ===
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(CorrelationIDMiddleware)
    app.add_exception_handler(ApplicationException, application_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    # === Include Module Routers ===
    app.include_router(users_router)
    app.include_router(tickets_router)

    @app.get("/health", tags=["Health"])
    async def health_check(request: Request):
        """
        Health check endpoint for load balancers and orchestrators.

        Reports event delivery mode and triage model availability.
        """
        event_bus = getattr(request.app.state, "event_bus", None)
        triage_service = getattr(request.app.state, "triage_service", None)
        checks = {
            "event_bus": "running" if event_bus and event_bus.is_running else "inline",
            "llm_client": "available" if triage_service else "not_configured",
            "smtp": "configured" if settings.smtp_configured else "not_configured"
        }
        return {
            "status": "healthy",
            "version": settings.app_version,
            "environment": settings.environment,
            "checks": checks
        }

    @app.get("/", tags=["Root"])
    async def root():
        """Root endpoint with API information."""
        return {
            "service": "Ticket AI",
            "version": settings.app_version,
            "architecture": "Clean Architecture / Modular Monolith",
            "docs": "/docs",
            "health": "/health",
            "modules": {
                "auth": {"prefix": "/api/auth"},
                "tickets": {"prefix": "/api/tickets"}
            }
        }

    return app


app = create_app()


# === Development Entry Point ===

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "ticket_ai.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development",
        log_level="info"
    )
