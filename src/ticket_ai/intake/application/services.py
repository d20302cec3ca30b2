"""
Intake Application Services
===========================

Background workflows triggered by events:

- TicketIntakeService (``ticket/created``): fetch, mark started, triage,
  assign, notify.
- SignupWelcomeService (``user/signup``): look up the user, send the
  welcome email.

Both tolerate at-least-once delivery: every step re-reads current state and
every write is an overwrite.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from ticket_ai.config import Role, TicketStatus
from ticket_ai.core import ApplicationException, ResourceNotFoundException
from ticket_ai.infrastructure.mail import IEmailSender, ticket_assigned_email, welcome_email
from ticket_ai.intake.application.runner import RetryPolicy, StepRunner
from ticket_ai.intake.application.stores import StoreProvider
from ticket_ai.shared.infrastructure.logging import get_logger, log_latency
from ticket_ai.tickets.domain import Ticket
from ticket_ai.triage.application import TriageService
from ticket_ai.triage.domain import TriageAssessment
from ticket_ai.users.domain import User

logger = get_logger(__name__)


@dataclass
class IntakeResult:
    """Outcome of one intake run."""
    success: bool
    ticket_id: str
    assignee_id: Optional[str] = None
    used_fallback: bool = False
    notified: bool = False
    error: Optional[str] = None
    completed_steps: List[str] = field(default_factory=list)


@dataclass
class WelcomeResult:
    """Outcome of one signup workflow run."""
    email: str
    sent: bool


def select_assignee(
    moderators: Sequence[User],
    admins: Sequence[User],
    related_skills: Sequence[str]
) -> Optional[User]:
    """
    Pick who handles a ticket.

    1. The first moderator (in store order) sharing a skill with the ticket
    2. Otherwise the first admin
    3. Otherwise nobody
    """
    if related_skills:
        for moderator in moderators:
            if moderator.has_any_skill(related_skills):
                return moderator
    return admins[0] if admins else None


class TicketIntakeService:
    """
    Turns a new TODO ticket into a triaged, assigned, notified ticket.

    Triage and email failures never abort the run: triage falls back to
    ``TriageAssessment.fallback()`` and email delivery is best-effort. Only a
    missing ticket (or a store failing past its retries) fails the run.
    """

    def __init__(
        self,
        stores: StoreProvider,
        triage: Optional[TriageService],
        mailer: IEmailSender,
        policy: Optional[RetryPolicy] = None
    ):
        self._stores = stores
        self._triage = triage
        self._mailer = mailer
        self._policy = policy or RetryPolicy()

    async def process(self, ticket_id: str) -> IntakeResult:
        """
        Run the intake pipeline for one ticket.

        Never raises; failures are reported in the result.
        """
        runner = StepRunner("ticket-intake", ticket_id, self._policy)
        used_fallback = False
        assignee: Optional[User] = None

        try:
            ticket = await runner.run("fetch-ticket", lambda: self._fetch_ticket(ticket_id))
            await runner.run("update-ticket-status", lambda: self._mark_started(ticket_id))

            used_fallback = await runner.run("ai-processing", lambda: self._triage_ticket(ticket))

            assignee = await runner.run("assign-moderator", lambda: self._assign(ticket_id))
        except Exception as e:
            message = e.message if isinstance(e, ApplicationException) else str(e)
            logger.error("Ticket intake failed", extra={"ticket_id": ticket_id, "error": message})
            return IntakeResult(
                success=False,
                ticket_id=ticket_id,
                used_fallback=used_fallback,
                error=message,
                completed_steps=list(runner.completed_steps)
            )

        notified = False
        if assignee is not None:
            notified = await self._notify(runner, ticket_id, assignee)

        logger.info(
            "Ticket intake finished",
            extra={
                "ticket_id": ticket_id,
                "assignee_id": assignee.id if assignee else None,
                "used_fallback": used_fallback,
                "notified": notified
            }
        )
        return IntakeResult(
            success=True,
            ticket_id=ticket_id,
            assignee_id=assignee.id if assignee else None,
            used_fallback=used_fallback,
            notified=notified,
            completed_steps=list(runner.completed_steps)
        )

    # ========== Steps ==========

    async def _fetch_ticket(self, ticket_id: str) -> Ticket:
        async with self._stores() as stores:
            ticket = await stores.tickets.get_by_id(ticket_id)
        if ticket is None:
            raise ResourceNotFoundException("Ticket", ticket_id)
        return ticket

    async def _mark_started(self, ticket_id: str) -> None:
        async with self._stores() as stores:
            ticket = await stores.tickets.get_by_id(ticket_id)
            if ticket is None:
                raise ResourceNotFoundException("Ticket", ticket_id)
            if ticket.status != TicketStatus.TODO:
                # A previous run already advanced it
                logger.debug(
                    "Intake start skipped",
                    extra={"ticket_id": ticket_id, "status": ticket.status}
                )
                return
            await stores.tickets.update_status(ticket_id, TicketStatus.TODO)

    async def _assess(self, ticket: Ticket) -> Tuple[TriageAssessment, bool]:
        """Triage the ticket; any failure yields the fallback assessment."""
        if self._triage is None:
            logger.warning("Triage model not configured, using fallback", extra={"ticket_id": ticket.id})
            return TriageAssessment.fallback(), True

        try:
            with log_latency(logger, "triage", ticket_id=ticket.id):
                assessment = await self._triage.assess(ticket.title, ticket.description)
            return assessment, False
        except Exception as e:
            logger.warning(
                "Triage failed, using fallback",
                extra={"ticket_id": ticket.id, "error": str(e), "error_type": type(e).__name__}
            )
            return TriageAssessment.fallback(), True

    async def _triage_ticket(self, ticket: Ticket) -> bool:
        """Assess the ticket and persist the outcome. Returns True if the fallback was used."""
        assessment, used_fallback = await self._assess(ticket)
        await self._save_triage(ticket.id, assessment)
        return used_fallback

    async def _save_triage(self, ticket_id: str, assessment: TriageAssessment) -> Ticket:
        async with self._stores() as stores:
            ticket = await stores.tickets.get_by_id(ticket_id)
            if ticket is None:
                raise ResourceNotFoundException("Ticket", ticket_id)

            status = TicketStatus.IN_PROGRESS
            if not ticket.can_advance_to(status):
                status = ticket.status

            updated = await stores.tickets.apply_triage(
                ticket_id,
                priority=assessment.priority,
                helpful_notes=assessment.helpful_notes,
                related_skills=list(assessment.related_skills),
                status=status
            )
        if updated is None:
            raise ResourceNotFoundException("Ticket", ticket_id)
        return updated

    async def _assign(self, ticket_id: str) -> Optional[User]:
        async with self._stores() as stores:
            ticket = await stores.tickets.get_by_id(ticket_id)
            if ticket is None:
                raise ResourceNotFoundException("Ticket", ticket_id)

            moderators = await stores.users.list_by_role(Role.MODERATOR)
            admins = await stores.users.list_by_role(Role.ADMIN)
            assignee = select_assignee(moderators, admins, ticket.related_skills)

            if assignee is None:
                logger.warning("No moderator or admin available", extra={"ticket_id": ticket_id})
                return None

            await stores.tickets.assign(ticket_id, assignee.id)

        logger.info(
            "Ticket assigned",
            extra={"ticket_id": ticket_id, "assignee_id": assignee.id, "assignee_role": assignee.role}
        )
        return assignee

    async def _notify(self, runner: StepRunner, ticket_id: str, assignee: User) -> bool:
        """Best-effort assignment email; failures are logged, never raised."""
        try:
            return await runner.run(
                "send-email-notification",
                lambda: self._send_assignment_email(ticket_id, assignee)
            )
        except Exception as e:
            logger.error(
                "Assignment email not delivered",
                extra={"ticket_id": ticket_id, "assignee_id": assignee.id, "error": str(e)}
            )
            return False

    async def _send_assignment_email(self, ticket_id: str, assignee: User) -> bool:
        ticket = await self._fetch_ticket(ticket_id)
        message = ticket_assigned_email(
            to=assignee.email,
            title=ticket.title,
            description=ticket.description,
            priority=ticket.priority,
            status=ticket.status
        )
        return await self._mailer.send(message)


class SignupWelcomeService:
    """
    Sends the welcome email for a new account.

    Errors propagate so the event bus can re-run the workflow.
    """

    def __init__(
        self,
        stores: StoreProvider,
        mailer: IEmailSender,
        policy: Optional[RetryPolicy] = None
    ):
        self._stores = stores
        self._mailer = mailer
        self._policy = policy or RetryPolicy()

    async def process(self, email: str) -> WelcomeResult:
        """
        Raises:
            ResourceNotFoundException: If no user has the email
            NotificationException: If the email could not be delivered
        """
        runner = StepRunner("user-signup", email, self._policy)

        user = await runner.run("get-user-email", lambda: self._get_user(email))
        sent = await runner.run("send-welcome-email", lambda: self._mailer.send(welcome_email(user.email)))

        return WelcomeResult(email=user.email, sent=sent)

    async def _get_user(self, email: str) -> User:
        async with self._stores() as stores:
            user = await stores.users.get_by_email(email)
        if user is None:
            raise ResourceNotFoundException("User")
        return user
