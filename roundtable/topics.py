"""Discussion topic suggestions generated from free-form content."""

import json
import logging
import re

from roundtable.errors import TopicGenerationError
from roundtable.models import Topic
from roundtable.prompts import PromptsConfig, compose_topics_prompt
from roundtable.providers.base import DEFAULT_TIER, AIProvider, FunctionClass

logger = logging.getLogger(__name__)

FALLBACK_TOPICS = (
    Topic(
        id="fallback-1",
        title="Strategic priorities",
        description="Discussion about the most important strategic priorities for the organisation",
    ),
    Topic(
        id="fallback-2",
        title="Innovation and growth",
        description="Exploration of innovation opportunities and growth strategies",
    ),
    Topic(
        id="fallback-3",
        title="Operational efficiency",
        description="Analysis of operational processes and opportunities for improvement",
    ),
)

_FENCE_RE = re.compile(r"```(?:json)?\n?")
_ARRAY_RE = re.compile(r"\[[\s\S]*\]")


# Double-quoted strings are matched first so nothing inside them is rewritten.
_REPAIR_RE = re.compile(
    r'"(?:[^"\\]|\\.)*"'
    r"|(?<=[\[{,:])(?P<sq_pad>\s*)'(?P<sq>(?:[^'\\]|\\.|'(?!\s*[,:}\]]))*)'(?=\s*[,:}\]])"
    r"|(?<=[{,])(?P<key_pad>\s*)(?P<key>[A-Za-z_]\w*)(?=\s*:)"
    r"|(?P<trailing>,)(?=\s*[}\]])"
)


def _repair_token(match: re.Match) -> str:
    if match.group("sq") is not None:
        inner = match.group("sq").replace("\\'", "'").replace('"', '\\"')
        return f'{match.group("sq_pad")}"{inner}"'
    if match.group("key") is not None:
        return f'{match.group("key_pad")}"{match.group("key")}"'
    if match.group("trailing") is not None:
        return ""
    return match.group(0)


def _repair_json(text: str) -> str:
    """Fix the usual model slips: unquoted keys, single-quoted strings, trailing commas.

    Apostrophes inside strings are left alone.
    """
    return _REPAIR_RE.sub(_repair_token, text)


def _normalise(items: list) -> list[Topic]:
    topics: list[Topic] = []
    for index, item in enumerate(items, start=1):
        item = item if isinstance(item, dict) else {}
        topics.append(
            Topic(
                id=str(item.get("id") or f"topic-{index}"),
                title=str(item.get("title") or item.get("name") or f"Discussion topic {index}"),
                description=str(item.get("description") or item.get("desc") or "No description available"),
            )
        )
    return topics


def parse_topics(text: str) -> list[Topic]:
    """Parse a JSON array of topics, tolerating fences and sloppy JSON.

    Falls back to a fixed set of generic topics when nothing usable is found.
    """
    candidates = [text.strip()]
    cleaned = _FENCE_RE.sub("", text.strip())
    match = _ARRAY_RE.search(cleaned)
    if match:
        candidates += [match.group(0), _repair_json(match.group(0))]

    for candidate in candidates:
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(data, list) and data:
            return _normalise(data)

    logger.warning("Could not parse topics from response, using fallback topics: %r", text[:200])
    return list(FALLBACK_TOPICS)


async def generate_topics(
    gateway: AIProvider,
    content: str,
    language: str = "nl",
    tier: str = DEFAULT_TIER,
    prompts: PromptsConfig | None = None,
) -> list[Topic]:
    """Suggest discussion topics grounded in ``content``.

    Raises:
        ValueError: if content is empty.
        TopicGenerationError: if the gateway call fails.
    """
    if not content or not content.strip():
        raise ValueError("No content provided for topic generation")

    prompt = compose_topics_prompt(prompts or PromptsConfig(), content, language)
    try:
        result = await gateway.generate(prompt, FunctionClass.ANALYSIS_GENERATION, tier)
    except Exception as exc:
        raise TopicGenerationError(f"Failed to generate discussion topics: {exc}") from exc

    topics = parse_topics(result.text)
    logger.info("Generated %d discussion topics", len(topics))
    return topics
