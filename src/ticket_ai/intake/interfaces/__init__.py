"""
Intake Interfaces Layer
=======================

Event handlers connecting the event bus to the intake workflows.
"""

from ticket_ai.intake.interfaces.handlers import register_event_handlers

__all__ = ["register_event_handlers"]
