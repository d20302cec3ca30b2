"""
LLM Client Infrastructure
==========================

Wrapper for LLM providers (OpenAI-compatible APIs, Z.AI) providing a clean
interface for chat completions.

This module abstracts the LLM client implementation following the
Dependency Inversion Principle - the triage service depends on ILLMClient,
not on a concrete SDK.
"""

import asyncio
import json
import time
from abc import ABC, abstractmethod
from typing import List, Optional

from openai import AsyncOpenAI
from zai import ZaiClient

from ticket_ai.config import Settings, settings as default_settings
from ticket_ai.core import ConfigurationException, LLMException
from ticket_ai.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class ChatCompletionResult:
    """Result of a chat completion."""

    def __init__(
        self,
        content: str,
        model: str,
        prompt_tokens: int,
        completion_tokens: int,
        latency_ms: int
    ):
        self.content = content
        self.model = model
        self.prompt_tokens = prompt_tokens
        self.completion_tokens = completion_tokens
        self.total_tokens = prompt_tokens + completion_tokens
        self.latency_ms = latency_ms


class ILLMClient(ABC):
    """
    Interface for LLM client operations.

    Following Interface Segregation Principle - only methods
    actually needed by the application are defined.
    """

    @abstractmethod
    async def chat_completion(
        self,
        messages: List[dict],
        temperature: float = 0.3,
        max_tokens: int = 800,
        operation: str = "chat_completion"
    ) -> ChatCompletionResult:
        """Generate chat completion."""


class OpenAILLMClient(ILLMClient):
    """
    Client for OpenAI and OpenAI-compatible endpoints.

    Setting ``llm_base_url`` points the same SDK at Gemini's or Groq's
    OpenAI-compatible APIs.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None
    ):
        self._api_key = api_key or default_settings.openai_api_key
        if not self._api_key:
            raise ConfigurationException("OpenAI API key not configured")

        self._client = AsyncOpenAI(
            api_key=self._api_key,
            base_url=base_url or default_settings.llm_base_url
        )
        self._model = model or default_settings.llm_model

    async def chat_completion(
        self,
        messages: List[dict],
        temperature: float = 0.3,
        max_tokens: int = 800,
        operation: str = "chat_completion"
    ) -> ChatCompletionResult:
        """
        Generate chat completion.

        Raises:
            LLMException: If the request fails or returns no content
        """
        start_time = time.perf_counter()

        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens
            )
        except Exception as e:
            raise LLMException(f"Chat completion failed: {e}")

        latency_ms = int((time.perf_counter() - start_time) * 1000)
        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise LLMException("Chat completion returned no content")

        usage = response.usage
        result = ChatCompletionResult(
            content=content,
            model=self._model,
            prompt_tokens=usage.prompt_tokens if usage else 0,
            completion_tokens=usage.completion_tokens if usage else 0,
            latency_ms=latency_ms
        )

        logger.info(
            "LLM completion finished",
            extra={
                "operation": operation,
                "model": self._model,
                "latency_ms": latency_ms,
                "tokens_used": result.total_tokens
            }
        )
        return result


class ZAIILLMClient(ILLMClient):
    """
    Z.AI SDK client implementation for GLM models.

    The SDK is synchronous, so calls run in a worker thread.
    """

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        self._api_key = api_key or default_settings.zai_api_key
        if not self._api_key:
            raise ConfigurationException("Z.AI API key not configured")

        self._client = ZaiClient(api_key=self._api_key)
        self._model = model or default_settings.llm_model

    async def chat_completion(
        self,
        messages: List[dict],
        temperature: float = 0.3,
        max_tokens: int = 800,
        operation: str = "chat_completion"
    ) -> ChatCompletionResult:
        """
        Generate chat completion using a GLM model.

        Raises:
            LLMException: If completion fails
        """
        start_time = time.perf_counter()

        try:
            response = await asyncio.to_thread(
                self._client.chat.completions.create,
                model=self._model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens
            )
            content = response.choices[0].message.content
        except Exception as e:
            raise LLMException(f"Chat completion failed: {e}")

        if not content:
            raise LLMException("Chat completion returned no content")

        latency_ms = int((time.perf_counter() - start_time) * 1000)

        logger.info(
            "LLM completion finished",
            extra={"operation": operation, "model": self._model, "latency_ms": latency_ms}
        )

        # Z.AI doesn't return token usage, so we estimate
        return ChatCompletionResult(
            content=content,
            model=self._model,
            prompt_tokens=len(str(messages)),
            completion_tokens=len(content),
            latency_ms=latency_ms
        )


class MockLLMClient(ILLMClient):
    """
    Mock LLM client for local runs and tests.

    Returns a fenced JSON triage assessment without calling external APIs.
    Skills are guessed from a few keywords in the prompt.
    """

    KEYWORD_SKILLS = {
        "vpn": ["networking", "vpn"],
        "network": ["networking"],
        "database": ["databases", "sql"],
        "login": ["authentication"],
        "password": ["authentication"],
        "email": ["email"],
        "react": ["react", "javascript"],
    }

    async def chat_completion(
        self,
        messages: List[dict],
        temperature: float = 0.3,
        max_tokens: int = 800,
        operation: str = "chat_completion"
    ) -> ChatCompletionResult:
        """Return a mock triage response based on the last message."""
        user_content = str(messages[-1].get("content", "")).lower() if messages else ""

        skills: List[str] = []
        for keyword, keyword_skills in self.KEYWORD_SKILLS.items():
            if keyword in user_content:
                skills.extend(s for s in keyword_skills if s not in skills)

        mock_response = {
            "summary": "Mock: automated triage",
            "priority": "high" if "urgent" in user_content or "down" in user_content else "medium",
            "helpfulNotes": "Mock: check recent configuration changes and service logs.",
            "relatedSkills": skills,
        }
        content = f"```json\n{json.dumps(mock_response, indent=2)}\n```"

        return ChatCompletionResult(
            content=content,
            model="mock-model",
            prompt_tokens=100,
            completion_tokens=len(content.split()),
            latency_ms=0
        )


def create_llm_client(config: Optional[Settings] = None) -> ILLMClient:
    """
    Build the LLM client selected by configuration.

    Raises:
        ConfigurationException: If the selected provider has no API key
    """
    config = config or default_settings

    if config.mock_llm:
        return MockLLMClient()
    if config.llm_provider == "zai":
        return ZAIILLMClient(config.zai_api_key, model=config.llm_model)
    return OpenAILLMClient(
        config.openai_api_key,
        model=config.llm_model,
        base_url=config.llm_base_url
    )
