"""Discussion dynamics: activity, controversy, unanswered questions, temperature.

Everything here is a pure function of the transcript. The keyword lists and
thresholds are part of the observable behaviour; change them deliberately.
"""

import logging
import re

from roundtable.models import (
    USER_AUTHOR,
    ControversialTopic,
    DiscussionDynamics,
    Message,
    Role,
    RoleActivity,
    Session,
    UnansweredPoint,
)

logger = logging.getLogger(__name__)

DISAGREEMENT_TERMS: tuple[str, ...] = (
    "oneens",
    "niet eens",
    "niet mee eens",
    "daarentegen",
    "echter",
    "bezwaar",
    "betwijfel",
    "twijfel",
    "niet overtuigd",
    "disagree",
    "however",
    "on the contrary",
    "i doubt",
    "not convinced",
    "object to",
)

QUESTION_TERMS: tuple[str, ...] = ("?", "waarom", "hoe", "wat als", "why", "how", "what if")

ENGAGEMENT_TERMS: tuple[str, ...] = (
    "!",
    "cruciaal",
    "essentieel",
    "belangrijk",
    "absoluut",
    "urgent",
    "crucial",
    "essential",
    "important",
    "absolutely",
    "strongly",
    "definitely",
)

RECENT_WINDOW = 6            # messages counted as "recent" activity
CONTROVERSY_WINDOW = 12      # trailing messages scanned for disagreeing pairs
ANSWER_LOOKAHEAD = 3         # later messages from other roles that may answer a question
MIN_SHARED_WORDS = 2
MIN_CONTENT_WORD_LEN = 4     # content words are longer than 3 characters
MAX_UNANSWERED = 5
WORDS_PER_LENGTH_POINT = 50
MAX_TEMPERATURE = 10.0

_WORD_RE = re.compile(r"\w+", re.UNICODE)
_SENTENCE_RE = re.compile(r"(?<=[.!?])\s+")


def _term_pattern(term: str) -> re.Pattern[str]:
    if not term[0].isalnum():
        return re.compile(re.escape(term))
    return re.compile(r"\b" + re.escape(term) + r"\b", re.IGNORECASE)


_DISAGREEMENT_PATTERNS = [(t, _term_pattern(t)) for t in DISAGREEMENT_TERMS]
_QUESTION_PATTERNS = [(t, _term_pattern(t)) for t in QUESTION_TERMS]
_ENGAGEMENT_PATTERNS = [(t, _term_pattern(t)) for t in ENGAGEMENT_TERMS]


def content_words(text: str) -> set[str]:
    """Lower-cased words longer than three characters."""
    return {w for w in _WORD_RE.findall(text.lower()) if len(w) >= MIN_CONTENT_WORD_LEN}


def relevance_score(focus_area: str, text: str) -> float:
    """Fraction of the focus-area content words that appear in ``text``."""
    focus = content_words(focus_area)
    if not focus:
        return 0.0
    return len(focus & content_words(text)) / len(focus)


def matched_terms(text: str, patterns: list[tuple[str, re.Pattern[str]]]) -> list[str]:
    return [term for term, pattern in patterns if pattern.search(text)]


def _sentences(text: str) -> list[str]:
    return [s for s in _SENTENCE_RE.split(text.strip()) if s]


def _truncate(text: str, limit: int) -> str:
    text = " ".join(text.split())
    if len(text) <= limit:
        return text
    return text[: limit - 3].rstrip() + "..."


def _author_name(message: Message, roles_by_id: dict[str, Role]) -> str:
    if message.role == USER_AUTHOR:
        return message.user_name or USER_AUTHOR
    role = roles_by_id.get(message.role)
    return role.name if role else message.role


def _role_activity(messages: list[Message], roles: list[Role]) -> dict[str, RoleActivity]:
    recent = messages[-RECENT_WINDOW:]
    return {
        role.id: RoleActivity(
            role_id=role.id,
            total_messages=sum(1 for m in messages if m.role == role.id),
            recent_messages=sum(1 for m in recent if m.role == role.id),
        )
        for role in roles
    }


def _controversial_topics(
    messages: list[Message],
    roles_by_id: dict[str, Role],
    current_turn_number: int,
) -> list[ControversialTopic]:
    topics: list[ControversialTopic] = []
    start = max(1, len(messages) - CONTROVERSY_WINDOW + 1)
    for i in range(start, len(messages)):
        prior, later = messages[i - 1], messages[i]
        if USER_AUTHOR in (prior.role, later.role) or prior.role == later.role:
            continue
        found = matched_terms(later.content, _DISAGREEMENT_PATTERNS)
        if not found:
            continue

        prior_sentences = _sentences(prior.content) or [prior.content]
        disagreement = next(
            (s for s in _sentences(later.content) if matched_terms(s, _DISAGREEMENT_PATTERNS)),
            later.content,
        )
        topics.append(
            ControversialTopic(
                topic=_truncate(prior_sentences[0], 80),
                disagreement=_truncate(disagreement, 160),
                participants=[
                    _author_name(prior, roles_by_id),
                    _author_name(later, roles_by_id),
                ],
                turn_number=current_turn_number,
                controversy_level=min(5, max(1, len(found))),
                message_id=later.id,
            )
        )
    return topics


def _question_text(content: str) -> str:
    for sentence in _sentences(content):
        if "?" in sentence:
            return _truncate(sentence, 160)
    return _truncate(content, 160)


def _unanswered_points(
    messages: list[Message],
    roles_by_id: dict[str, Role],
) -> list[UnansweredPoint]:
    points: list[UnansweredPoint] = []
    for i, message in enumerate(messages):
        if message.role == USER_AUTHOR:
            continue
        if not matched_terms(message.content, _QUESTION_PATTERNS):
            continue

        asked_words = content_words(message.content)
        replies = [m for m in messages[i + 1:] if m.role != message.role][:ANSWER_LOOKAHEAD]
        answered = any(
            len(asked_words & content_words(reply.content)) >= MIN_SHARED_WORDS
            for reply in replies
        )
        if not answered:
            points.append(
                UnansweredPoint(
                    question=_question_text(message.content),
                    asked_by=_author_name(message, roles_by_id),
                    message_id=message.id,
                )
            )
    return points[-MAX_UNANSWERED:]


def _temperature(messages: list[Message]) -> float:
    if not messages:
        return 0.0
    total = 0.0
    for message in messages:
        words = len(message.content.split())
        total += words / WORDS_PER_LENGTH_POINT
        total += 2 * len(matched_terms(message.content, _ENGAGEMENT_PATTERNS))
    return round(min(MAX_TEMPERATURE, total / len(messages)), 2)


def analyze_messages(
    messages: list[Message],
    roles: list[Role],
    current_turn_number: int,
) -> DiscussionDynamics:
    """Analyse a flat, ordered transcript."""
    roles_by_id = {r.id: r for r in roles}
    dynamics = DiscussionDynamics(
        role_activity=_role_activity(messages, roles),
        controversial_topics=_controversial_topics(messages, roles_by_id, current_turn_number),
        unanswered_points=_unanswered_points(messages, roles_by_id),
        temperature=_temperature(messages),
    )
    logger.debug(
        "Dynamics at turn %d: %d controversies, %d unanswered, temperature %.2f",
        current_turn_number,
        len(dynamics.controversial_topics),
        len(dynamics.unanswered_points),
        dynamics.temperature,
    )
    return dynamics


def all_messages(session: Session) -> list[Message]:
    return [m for turn in session.turns for m in turn.messages]


def analyze(session: Session, current_turn_number: int) -> DiscussionDynamics:
    """Analyse the session's full transcript as of ``current_turn_number``."""
    return analyze_messages(all_messages(session), session.roles, current_turn_number)
