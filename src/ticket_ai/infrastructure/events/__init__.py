"""
Event Delivery
==============

In-process event bus for the background workflows (signup welcome email,
ticket intake pipeline).

Handlers are registered by event name with a run-level retry count. In
background mode each published event becomes a one-off APScheduler job on
the running AsyncIOScheduler; in inline mode the publisher awaits the
handler directly.
"""

import asyncio
import uuid
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Set

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from ticket_ai.core import ValidationException
from ticket_ai.shared.infrastructure.logging import correlation_id_var, get_logger

logger = get_logger(__name__)

EventHandler = Callable[[Dict[str, Any]], Awaitable[Any]]


@dataclass
class HandlerRegistration:
    """A handler bound to an event name."""
    name: str
    handler: EventHandler
    retries: int = 0


class EventBus:
    """
    Dispatches named events to registered handlers.

    A failed run (handler raised) is re-invoked in full from its first step,
    up to ``retries`` more times, with exponential backoff in between.
    """

    def __init__(self, retry_backoff_seconds: float = 1.0):
        self._handlers: Dict[str, HandlerRegistration] = {}
        self._scheduler: Optional[AsyncIOScheduler] = None
        self._retry_backoff_seconds = retry_backoff_seconds
        self._in_flight: Set[asyncio.Task] = set()

    def register(self, name: str, handler: EventHandler, retries: int = 0) -> None:
        """Register the handler for an event name, replacing any previous one."""
        self._handlers[name] = HandlerRegistration(name=name, handler=handler, retries=retries)
        logger.debug("Event handler registered", extra={"event_name": name, "retries": retries})

    async def start(self) -> None:
        """Start background delivery."""
        if self.is_running:
            logger.warning("Event bus already running")
            return

        self._scheduler = AsyncIOScheduler()
        self._scheduler.start()
        logger.info("Event bus started", extra={"handlers": sorted(self._handlers)})

    async def stop(self) -> None:
        """
        Stop background delivery.

        Runs already in progress are awaited to completion first.
        """
        if not self.is_running:
            return

        while self._in_flight:
            logger.info("Waiting for in-flight events", extra={"count": len(self._in_flight)})
            await asyncio.gather(*list(self._in_flight), return_exceptions=True)

        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("Event bus stopped")

    @property
    def is_running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    async def publish(self, name: str, data: Dict[str, Any], key: Optional[str] = None) -> None:
        """
        Publish an event.

        Args:
            name: Registered event name
            data: Event payload
            key: Idempotency key; pending deliveries with the same name and key
                are coalesced into one job

        Raises:
            ValidationException: If no handler is registered for the name
        """
        if name not in self._handlers:
            raise ValidationException(f"No handler registered for event '{name}'")

        if not self.is_running:
            await self.dispatch(name, data)
            return

        job_id = f"{name}:{key or uuid.uuid4()}"
        self._scheduler.add_job(
            self._run_job,
            "date",
            args=[name, data],
            id=job_id,
            name=name,
            misfire_grace_time=60,
            replace_existing=True
        )
        logger.info("Event scheduled", extra={"event_name": name, "job_id": job_id})

    async def _run_job(self, name: str, data: Dict[str, Any]) -> Any:
        """Scheduler entry point; the dispatch is shielded and tracked until done."""
        task = asyncio.ensure_future(self.dispatch(name, data))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        return await asyncio.shield(task)

    async def dispatch(self, name: str, data: Dict[str, Any]) -> Any:
        """
        Run the handler for an event with run-level retries.

        Raises:
            ValidationException: If no handler is registered for the name
            Exception: The handler's last error once retries are exhausted
        """
        registration = self._handlers.get(name)
        if registration is None:
            raise ValidationException(f"No handler registered for event '{name}'")

        run_id = str(uuid.uuid4())
        token = correlation_id_var.set(correlation_id_var.get() or run_id)
        try:
            attempts = registration.retries + 1
            for attempt in range(1, attempts + 1):
                try:
                    result = await registration.handler(data)
                except Exception as e:
                    logger.warning(
                        "Event handler failed",
                        extra={
                            "event_name": name,
                            "run_id": run_id,
                            "attempt": attempt,
                            "error": str(e)
                        }
                    )
                    if attempt == attempts:
                        logger.error(
                            "Event handler exhausted retries",
                            extra={"event_name": name, "run_id": run_id}
                        )
                        raise
                    await asyncio.sleep(self._retry_backoff_seconds * 2 ** (attempt - 1))
                else:
                    logger.info(
                        "Event handled",
                        extra={"event_name": name, "run_id": run_id, "attempt": attempt}
                    )
                    return result
        finally:
            correlation_id_var.reset(token)
