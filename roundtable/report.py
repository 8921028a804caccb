"""Final report: deterministic transcript plus one summarising generation call."""

import json
import logging
import re
from collections.abc import Callable
from datetime import datetime, timezone

from roundtable.errors import ReportGenerationError
from roundtable.ids import IdGenerator
from roundtable.models import STATUS_COMPLETED, Report, Session
from roundtable.prompts import PromptsConfig, author_name, compose_report_prompt
from roundtable.providers.base import DEFAULT_TIER, AIProvider, FunctionClass

logger = logging.getLogger(__name__)

FALLBACK_SUMMARY = (
    "The roles discussed the selected topic from their different organisational perspectives."
)
FALLBACK_KEY_POINTS = [
    "Different perspectives were discussed",
    "Strategic considerations were analysed",
    "Concrete recommendations were formulated",
]
FALLBACK_RECOMMENDATIONS = [
    "Decide on follow-up actions based on the discussion",
    "Inform stakeholders about the findings",
    "Draw up an implementation plan",
]

_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


def format_full_transcript(session: Session) -> str:
    """Format every turn of the session, interventions included."""
    blocks: list[str] = []
    for turn in session.turns:
        label = "intervention" if turn.is_intervention else turn.phase
        lines = [f"Turn {turn.turn_number} ({label}):"]
        for message in turn.messages:
            lines.append(f"{author_name(message, session.roles)}: {message.content}")
            if message.voting_prompt is not None:
                vp = message.voting_prompt
                tallies = ", ".join(f"{o.id}={o.votes}" for o in vp.options)
                lines.append(f"[Poll] {vp.question} ({tallies})")
        blocks.append("\n\n".join(lines))
    return "\n\n---\n\n".join(blocks)


def _string_list(value: object) -> list[str] | None:
    if not isinstance(value, list):
        return None
    return [str(v) for v in value if str(v).strip()]


def parse_report(text: str) -> tuple[str, list[str], list[str]] | None:
    """(summary, key points, recommendations) from a model response, or None if malformed."""
    match = _JSON_OBJECT_RE.search(text)
    if not match:
        return None
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict):
        return None

    summary = data.get("summary")
    key_points = _string_list(data.get("keyPoints", []))
    recommendations = _string_list(data.get("recommendations", []))
    if not isinstance(summary, str) or not summary.strip() or key_points is None or recommendations is None:
        return None
    return summary.strip(), key_points, recommendations


async def generate_report(
    session: Session,
    gateway: AIProvider,
    prompts: PromptsConfig | None = None,
    tier: str = DEFAULT_TIER,
    ids: IdGenerator | None = None,
    clock: Callable[[], datetime] | None = None,
) -> Report:
    """Freeze the session and summarise it.

    Raises:
        ReportGenerationError: if the gateway call fails. Malformed output does not
            raise; it yields the fixed fallback report.
    """
    prompts = prompts or PromptsConfig()
    ids = ids or IdGenerator()
    now = clock or (lambda: datetime.now(timezone.utc))

    session.status = STATUS_COMPLETED
    transcript = format_full_transcript(session)
    prompt = compose_report_prompt(prompts, session, transcript)

    logger.info("Generating report for session %s (%d turns)", session.id, len(session.turns))
    try:
        result = await gateway.generate(prompt, FunctionClass.ANALYSIS_GENERATION, tier)
    except Exception as exc:
        raise ReportGenerationError(f"Failed to generate discussion report: {exc}") from exc

    parsed = parse_report(result.text)
    if parsed is None:
        logger.warning("Report response for session %s was malformed, using fallback report", session.id)
        summary, key_points, recommendations = FALLBACK_SUMMARY, list(FALLBACK_KEY_POINTS), list(FALLBACK_RECOMMENDATIONS)
    else:
        summary, key_points, recommendations = parsed

    return Report(
        id=ids.next_id("report"),
        session_id=session.id,
        summary=summary,
        key_points=key_points,
        recommendations=recommendations,
        full_transcript=transcript,
        generated_at=now(),
    )
