"""
Triage Domain Entities
======================

The triage assessment schema, its parser and the prompt builder.

Model output is never trusted: ``parse_triage_response`` either yields a
valid ``TriageAssessment`` (with every field coerced into range) or raises,
in which case callers substitute ``TriageAssessment.fallback()``.
"""

import json
import re
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ticket_ai.config import Priority, VALID_PRIORITIES
from ticket_ai.core import TriageParseException
from ticket_ai.users.domain import normalize_skills


FALLBACK_NOTES = "AI analysis failed. Please review manually."

_FENCED_JSON = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)


class TriageAssessment(BaseModel):
    """
    Structured triage result.

    Field names follow the model's JSON (camelCase aliases) while Python code
    uses snake_case.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    priority: str = Field(default=Priority.MEDIUM)
    helpful_notes: str = Field(default="", alias="helpfulNotes")
    related_skills: List[str] = Field(default_factory=list, alias="relatedSkills")
    summary: Optional[str] = None

    @field_validator("priority", mode="before")
    @classmethod
    def coerce_priority(cls, v: Any) -> str:
        if isinstance(v, str) and v.strip().lower() in VALID_PRIORITIES:
            return v.strip().lower()
        return Priority.MEDIUM

    @field_validator("helpful_notes", mode="before")
    @classmethod
    def coerce_notes(cls, v: Any) -> str:
        return v.strip() if isinstance(v, str) else ""

    @field_validator("related_skills", mode="before")
    @classmethod
    def coerce_skills(cls, v: Any) -> List[str]:
        return normalize_skills(v) if isinstance(v, list) else []

    @field_validator("summary", mode="before")
    @classmethod
    def coerce_summary(cls, v: Any) -> Optional[str]:
        return v.strip() if isinstance(v, str) and v.strip() else None

    @classmethod
    def fallback(cls) -> "TriageAssessment":
        """Assessment used whenever the model cannot be reached or understood."""
        return cls(priority=Priority.MEDIUM, helpful_notes=FALLBACK_NOTES, related_skills=[])


def parse_triage_response(text: str) -> TriageAssessment:
    """
    Parse raw model output into an assessment.

    A fenced code block is preferred; otherwise the whole text must be JSON.

    Raises:
        TriageParseException: If no JSON object can be extracted
    """
    if not text or not text.strip():
        raise TriageParseException("Empty triage response")

    candidates = []
    match = _FENCED_JSON.search(text)
    if match:
        candidates.append(match.group(1).strip())
    candidates.append(text.strip())

    for candidate in candidates:
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(data, dict):
            return TriageAssessment.model_validate(data)
        raise TriageParseException(
            "Triage response is not a JSON object",
            {"type": type(data).__name__}
        )

    raise TriageParseException("Failed to parse triage response", {"preview": text[:200]})


class TriagePromptBuilder:
    """
    Builds prompts for ticket triage.

    All prompt text lives here.
    """

    SYSTEM_PROMPT = """You are an expert AI assistant that processes technical support tickets.

Your job is to analyze a ticket and decide:
1. How urgent it is
2. What a support engineer should know before picking it up
3. Which technical skills are needed to resolve it

PRIORITY LEVELS:
- high: Outage, security issue, or the user is fully blocked
- medium: Broken feature with a workaround, or degraded service
- low: Questions, documentation requests, cosmetic issues

Respond ONLY with a JSON object:
{
    "summary": "Brief summary of the issue",
    "priority": "low" | "medium" | "high",
    "helpfulNotes": "Technical explanation and useful resources",
    "relatedSkills": ["skill1", "skill2"]
}"""

    @classmethod
    def build_prompt(cls, title: str, description: str) -> str:
        """Build triage prompt from ticket content."""
        return f"""Analyze this support ticket.

Title: {title}

Description:
{description}

Return ONLY a JSON object with the fields summary, priority, helpfulNotes and relatedSkills."""

    @classmethod
    def get_system_prompt(cls) -> str:
        return cls.SYSTEM_PROMPT
