"""
Triage Application Services
===========================

Orchestrates the triage model call and response validation.
"""

from typing import Optional

from ticket_ai.config import settings
from ticket_ai.core import LLMException
from ticket_ai.infrastructure.llm import ILLMClient
from ticket_ai.shared.infrastructure.logging import get_logger
from ticket_ai.triage.domain import (
    TriageAssessment,
    TriagePromptBuilder,
    parse_triage_response,
)

logger = get_logger(__name__)


class TriageService:
    """
    Service for ticket triage using an LLM.

    ``assess`` raises on any failure; the intake pipeline decides how to
    recover (see ``TriageAssessment.fallback``).
    """

    def __init__(
        self,
        llm_client: ILLMClient,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None
    ):
        self._llm = llm_client
        self._temperature = temperature if temperature is not None else settings.llm_temperature
        self._max_tokens = max_tokens or settings.llm_max_tokens

    async def assess(self, title: str, description: str) -> TriageAssessment:
        """
        Triage a ticket.

        Raises:
            LLMException: If the model call fails
            TriageParseException: If the answer is not a usable JSON object
        """
        messages = [
            {"role": "system", "content": TriagePromptBuilder.get_system_prompt()},
            {"role": "user", "content": TriagePromptBuilder.build_prompt(title, description)}
        ]

        try:
            response = await self._llm.chat_completion(
                messages=messages,
                temperature=self._temperature,
                max_tokens=self._max_tokens,
                operation="triage"
            )
        except LLMException:
            raise
        except Exception as e:
            raise LLMException(f"Triage failed: {e}")

        assessment = parse_triage_response(response.content)

        logger.info(
            "Ticket triaged",
            extra={
                "priority": assessment.priority,
                "skills_count": len(assessment.related_skills),
                "model": response.model,
                "latency_ms": response.latency_ms
            }
        )
        return assessment
