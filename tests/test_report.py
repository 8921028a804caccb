"""Tests for roundtable/report.py."""

import json
import logging
from unittest.mock import AsyncMock

import pytest

from roundtable.errors import ReportGenerationError
from roundtable.ids import IdGenerator
from roundtable.models import STATUS_COMPLETED, Turn, VotingOption, VotingPrompt
from roundtable.providers.base import FunctionClass, ProviderError
from roundtable.report import (
    FALLBACK_KEY_POINTS,
    FALLBACK_RECOMMENDATIONS,
    FALLBACK_SUMMARY,
    format_full_transcript,
    generate_report,
    parse_report,
)

from tests.conftest import T0, FakeClock, MockProvider, make_message

GOOD_REPORT = json.dumps(
    {
        "summary": "The roles agreed on a phased entry.",
        "keyPoints": ["Start small", "Watch cash flow"],
        "recommendations": ["Pilot in Berlin"],
    }
)


def test_transcript_format(bare_session):
    text = format_full_transcript(bare_session)
    assert text.startswith("Turn 1 (introduction):")
    assert "CEO: Germany is our biggest opportunity this decade." in text
    assert "CFO: The numbers need to add up before we commit." in text


def test_transcript_marks_interventions_and_polls(bare_session):
    poll = VotingPrompt(
        id="poll-1",
        question="Who is right?",
        topic="Berlin",
        turn_number=1,
        options=[VotingOption("for", "For", 2), VotingOption("against", "Against", 0)],
    )
    bare_session.turns[0].messages[0].voting_prompt = poll
    bare_session.turns.append(
        Turn(
            id="turn-2",
            turn_number=2,
            phase="problem_analysis",
            is_intervention=True,
            messages=[make_message("u1", "user", "What about hiring locally?", user_name="Sam")],
        )
    )
    text = format_full_transcript(bare_session)
    assert "[Poll] Who is right? (for=2, against=0)" in text
    assert "\n\n---\n\nTurn 2 (intervention):" in text
    assert "User (Sam): What about hiring locally?" in text


def test_parse_report_valid():
    assert parse_report(GOOD_REPORT) == (
        "The roles agreed on a phased entry.",
        ["Start small", "Watch cash flow"],
        ["Pilot in Berlin"],
    )


def test_parse_report_with_surrounding_prose():
    parsed = parse_report(f"Here is the report:\n```json\n{GOOD_REPORT}\n```")
    assert parsed is not None
    assert parsed[0] == "The roles agreed on a phased entry."


@pytest.mark.parametrize(
    "text",
    [
        "no json here",
        "{not valid json}",
        json.dumps({"keyPoints": [], "recommendations": []}),
        json.dumps({"summary": "ok", "keyPoints": "not a list", "recommendations": []}),
    ],
)
def test_parse_report_malformed(text):
    assert parse_report(text) is None


async def test_generate_report_success(bare_session):
    provider = MockProvider(response_content=GOOD_REPORT)
    report = await generate_report(
        bare_session, provider, ids=IdGenerator(random_suffix=False), clock=FakeClock()
    )
    assert report.id == "report-00001"
    assert report.session_id == bare_session.id
    assert report.summary == "The roles agreed on a phased entry."
    assert report.key_points == ["Start small", "Watch cash flow"]
    assert report.recommendations == ["Pilot in Berlin"]
    assert report.full_transcript == format_full_transcript(bare_session)
    assert report.generated_at == T0
    assert bare_session.status == STATUS_COMPLETED
    assert provider.generate.await_args.args[1] == FunctionClass.ANALYSIS_GENERATION


async def test_generate_report_malformed_falls_back(bare_session, caplog):
    provider = MockProvider(response_content="Sorry, I cannot do JSON today.")
    with caplog.at_level(logging.WARNING, logger="roundtable.report"):
        report = await generate_report(bare_session, provider)
    assert report.summary == FALLBACK_SUMMARY
    assert report.key_points == FALLBACK_KEY_POINTS
    assert report.recommendations == FALLBACK_RECOMMENDATIONS
    assert report.full_transcript == format_full_transcript(bare_session)
    assert "malformed" in caplog.text


async def test_generate_report_gateway_failure_raises(bare_session):
    provider = MockProvider()
    provider.generate = AsyncMock(side_effect=ProviderError("mock", "503"))
    with pytest.raises(ReportGenerationError) as exc_info:
        await generate_report(bare_session, provider)
    assert isinstance(exc_info.value.__cause__, ProviderError)
