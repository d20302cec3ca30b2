"""
Triage Domain Layer
===================

Contains:
- TriageAssessment: strict schema for the model's answer, with fallback
- parse_triage_response: raw text to assessment
- TriagePromptBuilder: prompt text
"""

from ticket_ai.triage.domain.entities import (
    TriageAssessment,
    TriagePromptBuilder,
    parse_triage_response,
    FALLBACK_NOTES,
)

__all__ = [
    "TriageAssessment",
    "TriagePromptBuilder",
    "parse_triage_response",
    "FALLBACK_NOTES",
]
