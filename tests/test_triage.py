import pytest

from ticket_ai.core import LLMException, TriageParseException
from ticket_ai.triage.application import TriageService
from ticket_ai.triage.domain import FALLBACK_NOTES, TriageAssessment, parse_triage_response


def test_parse_fenced_json_with_surrounding_prose(vpn_answer):
    assessment = parse_triage_response(vpn_answer)

    assert assessment.priority == "high"
    assert assessment.helpful_notes == "Check the VPN client certificate."
    assert assessment.related_skills == ["networking", "vpn"]
    assert assessment.summary == "VPN down"


def test_parse_bare_json():
    assessment = parse_triage_response('{"priority": "low", "helpfulNotes": "n", "relatedSkills": []}')

    assert assessment.priority == "low"
    assert assessment.related_skills == []


def test_out_of_range_fields_are_coerced():
    assessment = parse_triage_response(
        '{"priority": "CRITICAL", "helpfulNotes": 42, "relatedSkills": "vpn"}'
    )

    assert assessment.priority == "medium"
    assert assessment.helpful_notes == ""
    assert assessment.related_skills == []


def test_priority_is_case_insensitive():
    assert parse_triage_response('{"priority": " High "}').priority == "high"


def test_skills_are_trimmed_and_deduplicated():
    assessment = parse_triage_response('{"relatedSkills": [" VPN ", "vpn", "", 3, "networking"]}')

    assert assessment.related_skills == ["VPN", "networking"]


@pytest.mark.parametrize("text", ["", "   ", "I think it is urgent", "```json\nnot json\n```"])
def test_unparseable_answers_raise(text):
    with pytest.raises(TriageParseException):
        parse_triage_response(text)


def test_json_array_is_rejected():
    with pytest.raises(TriageParseException):
        parse_triage_response('["networking"]')


def test_fallback_assessment():
    fallback = TriageAssessment.fallback()

    assert fallback.priority == "medium"
    assert fallback.helpful_notes == FALLBACK_NOTES
    assert fallback.related_skills == []


@pytest.mark.asyncio
async def test_assess_calls_model_and_parses(scripted_llm, vpn_answer):
    llm = scripted_llm(vpn_answer)
    service = TriageService(llm, temperature=0.3, max_tokens=800)

    assessment = await service.assess("VPN fails", "Cannot connect to corporate VPN")

    assert llm.calls == 1
    assert assessment.priority == "high"


@pytest.mark.asyncio
async def test_assess_wraps_unexpected_client_errors(scripted_llm):
    service = TriageService(scripted_llm(RuntimeError("socket closed")), temperature=0.3, max_tokens=800)

    with pytest.raises(LLMException):
        await service.assess("t", "d")


@pytest.mark.asyncio
async def test_assess_propagates_parse_errors(scripted_llm):
    service = TriageService(scripted_llm("no idea, sorry"), temperature=0.3, max_tokens=800)

    with pytest.raises(TriageParseException):
        await service.assess("t", "d")
