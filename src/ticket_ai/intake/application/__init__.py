"""
Intake Application Layer
========================

Contains:
- Runner: StepRunner and RetryPolicy
- Stores: per-step repository scopes
- Services: TicketIntakeService, SignupWelcomeService
"""

from ticket_ai.intake.application.runner import NON_RETRYABLE, RetryPolicy, StepRunner
from ticket_ai.intake.application.stores import StoreProvider, Stores
from ticket_ai.intake.application.services import (
    IntakeResult,
    SignupWelcomeService,
    TicketIntakeService,
    WelcomeResult,
    select_assignee,
)

__all__ = [
    "NON_RETRYABLE",
    "RetryPolicy",
    "StepRunner",
    "StoreProvider",
    "Stores",
    "IntakeResult",
    "SignupWelcomeService",
    "TicketIntakeService",
    "WelcomeResult",
    "select_assignee",
]
