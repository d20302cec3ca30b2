"""
Step Runner
===========

Runs the named steps of a workflow one at a time, each with its own retry
policy and failure boundary, and logs every attempt.

A step is a zero-argument coroutine function. Steps must re-read whatever
state they need instead of relying on values from an earlier attempt, so a
retried step (or a re-run of the whole workflow) converges.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Tuple, Type, TypeVar

from ticket_ai.config import Settings
from ticket_ai.core import ResourceNotFoundException
from ticket_ai.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

# No retry can fix a missing record
NON_RETRYABLE: Tuple[Type[Exception], ...] = (ResourceNotFoundException,)


@dataclass(frozen=True)
class RetryPolicy:
    """Attempts per step and exponential backoff between them."""
    max_attempts: int = 3
    backoff_seconds: float = 1.0

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    def delay_for(self, attempt: int) -> float:
        """Delay after the given failed attempt (1-based)."""
        return self.backoff_seconds * 2 ** (attempt - 1)

    @classmethod
    def from_settings(cls, config: Settings) -> "RetryPolicy":
        return cls(max_attempts=config.step_max_attempts, backoff_seconds=config.step_backoff_seconds)


class StepRunner:
    """
    Executes the steps of one workflow run in call order.

    Usage:
        runner = StepRunner("ticket-intake", ticket_id, policy)
        ticket = await runner.run("fetch-ticket", lambda: fetch(ticket_id))
    """

    def __init__(
        self,
        workflow: str,
        run_key: str,
        policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        self.workflow = workflow
        self.run_key = run_key
        self._policy = policy or RetryPolicy()
        self._sleep = sleep
        self.completed_steps: List[str] = []

    def _context(self, step: str, attempt: int) -> dict:
        return {"workflow": self.workflow, "run_key": self.run_key, "step": step, "attempt": attempt}

    async def run(
        self,
        step: str,
        func: Callable[[], Awaitable[T]],
        policy: Optional[RetryPolicy] = None
    ) -> T:
        """
        Run one step, retrying failures per the policy.

        Raises:
            Exception: The step's last error, immediately for NON_RETRYABLE
                errors and after the final attempt otherwise
        """
        policy = policy or self._policy

        for attempt in range(1, policy.max_attempts + 1):
            start = time.perf_counter()
            try:
                result = await func()
            except NON_RETRYABLE as e:
                logger.error("Step failed", extra={**self._context(step, attempt), "error": str(e), "retryable": False})
                raise
            except Exception as e:
                if attempt == policy.max_attempts:
                    logger.error("Step failed", extra={**self._context(step, attempt), "error": str(e), "retryable": True})
                    raise
                delay = policy.delay_for(attempt)
                logger.warning(
                    "Step attempt failed",
                    extra={**self._context(step, attempt), "error": str(e), "retry_in_seconds": delay}
                )
                await self._sleep(delay)
            else:
                logger.info(
                    "Step completed",
                    extra={
                        **self._context(step, attempt),
                        "latency_ms": round((time.perf_counter() - start) * 1000, 2)
                    }
                )
                self.completed_steps.append(step)
                return result

        # range() is never empty: max_attempts >= 1
        raise RuntimeError("unreachable")
