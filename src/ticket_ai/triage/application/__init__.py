"""
Triage Application Layer
========================

Contains:
- Services: TriageService
"""

from ticket_ai.triage.application.services import TriageService

__all__ = ["TriageService"]
