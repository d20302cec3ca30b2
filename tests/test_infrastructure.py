import json
import logging

import pytest

from ticket_ai.config import Settings
from ticket_ai.infrastructure.llm import MockLLMClient, create_llm_client
from ticket_ai.infrastructure.mail import SMTPEmailSender, ticket_assigned_email, welcome_email
from ticket_ai.shared.infrastructure.logging import CustomJsonFormatter, correlation_id_var
from ticket_ai.triage.application import TriageService


# ========== Mail ==========

def test_assignment_email_lists_ticket_fields():
    message = ticket_assigned_email("mod@example.com", "VPN fails", "No tunnel", "high", "IN_PROGRESS")

    assert message.to == "mod@example.com"
    assert message.subject == "Ticket Assigned"
    for fragment in ("Title: VPN fails", "Description: No tunnel", "Priority: high", "Status: IN_PROGRESS"):
        assert fragment in message.text


def test_welcome_email_repeats_address():
    message = welcome_email("jane@example.com")

    assert message.subject == "Welcome to Ticket AI System"
    assert "jane@example.com" in message.text


@pytest.mark.asyncio
async def test_unconfigured_smtp_skips_delivery():
    sender = SMTPEmailSender(Settings(smtp_host=None, smtp_username=None, smtp_password=None))

    assert await sender.send(welcome_email("jane@example.com")) is False


# ========== LLM ==========

def test_mock_provider_is_selected_by_settings():
    assert isinstance(create_llm_client(Settings(mock_llm=True)), MockLLMClient)


@pytest.mark.asyncio
async def test_mock_model_triages_vpn_ticket():
    service = TriageService(MockLLMClient(), temperature=0.3, max_tokens=800)

    assessment = await service.assess("VPN down", "Urgent: cannot connect to corporate VPN")

    assert assessment.priority == "high"
    assert assessment.related_skills == ["networking", "vpn"]


# ========== Logging ==========

def _format(**extra):
    formatter = CustomJsonFormatter("%(name)s %(levelname)s %(message)s", environment="test")
    record = logging.LogRecord("ticket_ai", logging.INFO, __file__, 1, "hello", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return json.loads(formatter.format(record))


def test_log_records_carry_environment_and_correlation_id():
    token = correlation_id_var.set("corr-1")
    try:
        payload = _format()
    finally:
        correlation_id_var.reset(token)

    assert payload["message"] == "hello"
    assert payload["environment"] == "test"
    assert payload["correlation_id"] == "corr-1"
    assert "timestamp" in payload


def test_credentials_are_redacted():
    payload = _format(password="hunter2", access_token="abc", tokens_used=12)

    assert payload["password"] == "***REDACTED***"
    assert payload["access_token"] == "***REDACTED***"
    assert payload["tokens_used"] == 12
