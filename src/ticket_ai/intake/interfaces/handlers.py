"""
Event Handlers
==============

Binds the intake workflows to event names on the event bus.
"""

from typing import Any, Dict, Optional

from ticket_ai.config import EventName, Settings, settings
from ticket_ai.core import ValidationException
from ticket_ai.infrastructure.events import EventBus
from ticket_ai.intake.application import (
    IntakeResult,
    SignupWelcomeService,
    TicketIntakeService,
    WelcomeResult,
)


def register_event_handlers(
    bus: EventBus,
    intake: TicketIntakeService,
    welcome: SignupWelcomeService,
    config: Optional[Settings] = None
) -> None:
    """Register the ``ticket/created`` and ``user/signup`` handlers."""
    config = config or settings

    async def on_ticket_created(data: Dict[str, Any]) -> IntakeResult:
        ticket_id = data.get("ticketId")
        if not ticket_id:
            raise ValidationException("ticket/created event without ticketId")
        return await intake.process(str(ticket_id))

    async def on_user_signup(data: Dict[str, Any]) -> WelcomeResult:
        email = data.get("email")
        if not email:
            raise ValidationException("user/signup event without email")
        return await welcome.process(str(email))

    bus.register(EventName.TICKET_CREATED, on_ticket_created, retries=config.ticket_event_retries)
    bus.register(EventName.USER_SIGNUP, on_user_signup, retries=config.signup_event_retries)
