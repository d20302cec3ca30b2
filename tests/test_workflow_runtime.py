import asyncio

import pytest

from ticket_ai.core import ResourceNotFoundException, ValidationException
from ticket_ai.infrastructure.events import EventBus
from ticket_ai.intake.application import RetryPolicy, StepRunner


class Flaky:
    """Fails ``failures`` times, then returns ``value``."""

    def __init__(self, failures, value="ok", error=RuntimeError):
        self.failures = failures
        self.value = value
        self.error = error
        self.calls = 0

    async def __call__(self, *args):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error("boom")
        return self.value


async def _no_sleep(delay):
    return None


# ========== StepRunner ==========

def test_backoff_doubles_per_attempt():
    policy = RetryPolicy(max_attempts=4, backoff_seconds=0.5)

    assert [policy.delay_for(n) for n in (1, 2, 3)] == [0.5, 1.0, 2.0]


def test_policy_needs_at_least_one_attempt():
    with pytest.raises(ValueError):
        RetryPolicy(max_attempts=0)


@pytest.mark.asyncio
async def test_step_is_retried_until_it_succeeds():
    delays = []

    async def record_sleep(delay):
        delays.append(delay)

    runner = StepRunner("wf", "key", RetryPolicy(max_attempts=3, backoff_seconds=1.0), sleep=record_sleep)
    step = Flaky(failures=2)

    assert await runner.run("flaky", step) == "ok"
    assert step.calls == 3
    assert delays == [1.0, 2.0]
    assert runner.completed_steps == ["flaky"]


@pytest.mark.asyncio
async def test_step_failure_propagates_after_last_attempt():
    runner = StepRunner("wf", "key", RetryPolicy(max_attempts=2, backoff_seconds=0), sleep=_no_sleep)
    step = Flaky(failures=5)

    with pytest.raises(RuntimeError):
        await runner.run("flaky", step)

    assert step.calls == 2
    assert runner.completed_steps == []


@pytest.mark.asyncio
async def test_missing_record_is_not_retried():
    runner = StepRunner("wf", "key", RetryPolicy(max_attempts=3, backoff_seconds=0), sleep=_no_sleep)

    async def missing():
        raise ResourceNotFoundException("Ticket", "t-1")

    with pytest.raises(ResourceNotFoundException):
        await runner.run("fetch-ticket", missing)


@pytest.mark.asyncio
async def test_per_step_policy_overrides_default():
    runner = StepRunner("wf", "key", RetryPolicy(max_attempts=3, backoff_seconds=0), sleep=_no_sleep)
    step = Flaky(failures=5)

    with pytest.raises(RuntimeError):
        await runner.run("once", step, policy=RetryPolicy(max_attempts=1))

    assert step.calls == 1


# ========== EventBus ==========

@pytest.mark.asyncio
async def test_publish_without_scheduler_dispatches_inline():
    bus = EventBus(retry_backoff_seconds=0)
    received = []

    async def handler(data):
        received.append(data)

    bus.register("ticket/created", handler)
    await bus.publish("ticket/created", {"ticketId": "t-1"}, key="t-1")

    assert not bus.is_running
    assert received == [{"ticketId": "t-1"}]


@pytest.mark.asyncio
async def test_unknown_event_is_rejected():
    bus = EventBus(retry_backoff_seconds=0)

    with pytest.raises(ValidationException):
        await bus.publish("user/deleted", {})


@pytest.mark.asyncio
async def test_failed_run_is_retried_from_the_start():
    bus = EventBus(retry_backoff_seconds=0)
    handler = Flaky(failures=2, value="done")
    bus.register("user/signup", handler, retries=2)

    assert await bus.dispatch("user/signup", {"email": "jane@example.com"}) == "done"
    assert handler.calls == 3


@pytest.mark.asyncio
async def test_run_failure_propagates_after_retries():
    bus = EventBus(retry_backoff_seconds=0)
    handler = Flaky(failures=10)
    bus.register("user/signup", handler, retries=1)

    with pytest.raises(RuntimeError):
        await bus.dispatch("user/signup", {"email": "jane@example.com"})

    assert handler.calls == 2


@pytest.mark.asyncio
async def test_bus_start_and_stop():
    bus = EventBus(retry_backoff_seconds=0)

    await bus.start()
    assert bus.is_running

    await bus.stop()
    assert not bus.is_running


@pytest.mark.asyncio
async def test_stop_lets_running_handler_finish():
    bus = EventBus(retry_backoff_seconds=0)
    started = asyncio.Event()
    finished = []

    async def slow(data):
        started.set()
        await asyncio.sleep(0.2)
        finished.append(data["ticketId"])

    bus.register("ticket/created", slow)
    await bus.start()
    await bus.publish("ticket/created", {"ticketId": "t-1"}, key="t-1")
    await asyncio.wait_for(started.wait(), timeout=2)

    await bus.stop()

    assert finished == ["t-1"]
    assert not bus.is_running
