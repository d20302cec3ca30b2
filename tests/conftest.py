"""
Shared fixtures: in-memory repositories, a scripted LLM, a recording mailer
and a FastAPI test client wired to them.
"""

import os

# Fast hashing and a fixed secret for the whole test session
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("ENVIRONMENT", "development")

import copy
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from ticket_ai.config import Role
from ticket_ai.core import ConflictException, LLMException, NotificationException
from ticket_ai.infrastructure.events import EventBus
from ticket_ai.infrastructure.llm import ChatCompletionResult, ILLMClient
from ticket_ai.infrastructure.mail import IEmailSender, OutgoingEmail
from ticket_ai.infrastructure.security import PasswordHasher, TokenService
from ticket_ai.intake.application import (
    RetryPolicy,
    SignupWelcomeService,
    Stores,
    TicketIntakeService,
)
from ticket_ai.intake.interfaces import register_event_handlers
from ticket_ai.tickets.application import ITicketRepository
from ticket_ai.tickets.domain import Ticket
from ticket_ai.triage.application import TriageService
from ticket_ai.users.application import IUserRepository
from ticket_ai.users.domain import User


# ========== In-memory repositories ==========

class InMemoryUserRepository(IUserRepository):
    """Hands out copies, like rows loaded by a database session."""

    def __init__(self):
        self.users: Dict[str, User] = {}
        self.commits = 0

    async def create(self, email, password_hash, role=Role.USER, skills=None) -> User:
        email = email.lower()
        if any(u.email == email for u in self.users.values()):
            raise ConflictException("User with this email already exists")
        user = User(
            id=str(uuid.uuid4()),
            email=email,
            password_hash=password_hash,
            role=role,
            skills=list(skills or [])
        )
        self.users[user.id] = user
        return copy.deepcopy(user)

    async def get_by_id(self, user_id) -> Optional[User]:
        return copy.deepcopy(self.users.get(user_id))

    async def get_by_email(self, email) -> Optional[User]:
        email = email.lower()
        return copy.deepcopy(next((u for u in self.users.values() if u.email == email), None))

    async def list_all(self) -> List[User]:
        return copy.deepcopy(list(self.users.values()))

    async def list_by_role(self, role) -> List[User]:
        return copy.deepcopy([u for u in self.users.values() if u.role == role])

    async def update(self, user_id, role=None, skills=None) -> Optional[User]:
        user = self.users.get(user_id)
        if user is None:
            return None
        if role is not None:
            user.role = role
        if skills is not None:
            user.skills = list(skills)
        return copy.deepcopy(user)

    async def commit(self) -> None:
        self.commits += 1


class InMemoryTicketRepository(ITicketRepository):
    def __init__(self):
        self.tickets: Dict[str, Ticket] = {}
        self.writes: List[str] = []
        self.commits = 0

    async def create(self, title, description, created_by) -> Ticket:
        ticket = Ticket(id=str(uuid.uuid4()), title=title, description=description, created_by=created_by)
        self.tickets[ticket.id] = ticket
        return copy.deepcopy(ticket)

    async def get_by_id(self, ticket_id) -> Optional[Ticket]:
        return copy.deepcopy(self.tickets.get(ticket_id))

    async def list(self, created_by=None, status=None) -> List[Ticket]:
        tickets = [
            t for t in self.tickets.values()
            if (created_by is None or t.created_by == created_by)
            and (status is None or t.status == status)
        ]
        return copy.deepcopy(list(reversed(tickets)))

    def _touch(self, ticket: Ticket, operation: str) -> Ticket:
        ticket.updated_at = datetime.now(timezone.utc)
        self.writes.append(operation)
        return copy.deepcopy(ticket)

    async def update_status(self, ticket_id, status) -> Optional[Ticket]:
        ticket = self.tickets.get(ticket_id)
        if ticket is None:
            return None
        ticket.status = status
        return self._touch(ticket, "update_status")

    async def apply_triage(self, ticket_id, priority, helpful_notes, related_skills, status) -> Optional[Ticket]:
        ticket = self.tickets.get(ticket_id)
        if ticket is None:
            return None
        ticket.priority = priority
        ticket.helpful_notes = helpful_notes
        ticket.related_skills = list(related_skills)
        ticket.status = status
        return self._touch(ticket, "apply_triage")

    async def assign(self, ticket_id, user_id) -> Optional[Ticket]:
        ticket = self.tickets.get(ticket_id)
        if ticket is None:
            return None
        ticket.assigned_to = user_id
        return self._touch(ticket, "assign")

    async def delete(self, ticket_id) -> bool:
        return self.tickets.pop(ticket_id, None) is not None

    async def commit(self) -> None:
        self.commits += 1


# ========== Test doubles ==========

class ScriptedLLMClient(ILLMClient):
    """Returns queued answers; an Exception in the queue is raised instead."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = 0

    async def chat_completion(self, messages, temperature=0.3, max_tokens=800, operation="chat_completion"):
        self.calls += 1
        response = self.responses.pop(0) if self.responses else LLMException("no scripted response")
        if isinstance(response, Exception):
            raise response
        return ChatCompletionResult(
            content=response,
            model="scripted",
            prompt_tokens=10,
            completion_tokens=10,
            latency_ms=1
        )


class RecordingMailer(IEmailSender):
    def __init__(self, fail_times: int = 0):
        self.sent: List[OutgoingEmail] = []
        self.fail_times = fail_times
        self.attempts = 0

    async def send(self, message: OutgoingEmail) -> bool:
        self.attempts += 1
        if self.attempts <= self.fail_times:
            raise NotificationException("SMTP connection failed")
        self.sent.append(message)
        return True


VPN_ANSWER = """Here is my assessment:
```json
{"summary": "VPN down", "priority": "high",
 "helpfulNotes": "Check the VPN client certificate.",
 "relatedSkills": ["networking", "vpn"]}
```"""


# ========== Fixtures ==========

@pytest.fixture
def user_repo() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture
def ticket_repo() -> InMemoryTicketRepository:
    return InMemoryTicketRepository()


@pytest.fixture
def stores(user_repo, ticket_repo):
    @asynccontextmanager
    async def provider():
        yield Stores(tickets=ticket_repo, users=user_repo)
    return provider


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def no_backoff() -> RetryPolicy:
    return RetryPolicy(max_attempts=3, backoff_seconds=0)


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


@pytest.fixture
def tokens() -> TokenService:
    return TokenService(secret="test-secret", algorithm="HS256", expiry_minutes=60)


@pytest.fixture
def make_user(user_repo, hasher):
    async def _make(email: str, role: str = Role.USER, skills=None, password: str = "secret123") -> User:
        return await user_repo.create(email, hasher.hash(password), role=role, skills=skills or [])
    return _make


@pytest.fixture
def make_ticket(ticket_repo):
    async def _make(created_by: str, title: str = "VPN fails", description: str = "Cannot connect to corporate VPN") -> Ticket:
        return await ticket_repo.create(title, description, created_by)
    return _make


@pytest.fixture
def app_client(user_repo, ticket_repo, stores, mailer, no_backoff):
    """
    Test client over in-memory stores with inline event delivery, so the
    intake pipeline finishes before the create request returns.
    """
    from ticket_ai.main import app
    from ticket_ai.tickets.interfaces import get_ticket_repository
    from ticket_ai.users.interfaces.dependencies import get_user_repository

    triage = TriageService(ScriptedLLMClient(*[VPN_ANSWER] * 20), temperature=0.3, max_tokens=800)
    bus = EventBus(retry_backoff_seconds=0)
    register_event_handlers(
        bus,
        TicketIntakeService(stores, triage, mailer, no_backoff),
        SignupWelcomeService(stores, mailer, no_backoff)
    )

    app.dependency_overrides[get_user_repository] = lambda: user_repo
    app.dependency_overrides[get_ticket_repository] = lambda: ticket_repo
    app.state.event_bus = bus

    yield TestClient(app)

    app.dependency_overrides.clear()
    app.state.event_bus = None


@pytest.fixture
def scripted_llm():
    return ScriptedLLMClient


@pytest.fixture
def vpn_answer() -> str:
    return VPN_ANSWER


@pytest.fixture
def make_mailer():
    return RecordingMailer
