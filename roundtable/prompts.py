"""Role prompt composition: per-role discussion context and prompt templates."""

import logging
import random
from dataclasses import dataclass

from roundtable.dynamics import relevance_score
from roundtable.models import (
    USER_AUTHOR,
    DiscussionDynamics,
    Message,
    Role,
    RoleContext,
    Session,
    VotingPrompt,
)
from roundtable.styles import style_instructions

logger = logging.getLogger(__name__)

RESPOND_CANDIDATES = 4           # most recent other-role messages considered
RESPOND_LIMIT = 2
CONTROVERSY_RELEVANCE = 0.3
EXPERTISE_RELEVANCE = 0.4
LOW_TEMPERATURE = 3.0
CHALLENGE_PROBABILITY_LOW_TEMP = 0.7
CHALLENGE_PROBABILITY = 0.3

_LANGUAGE_INSTRUCTIONS: dict[str, tuple[str, str]] = {
    "en": (
        "You are participating in a strategic AI discussion with multiple organisational roles.",
        "Respond in English with a professional and constructive tone.",
    ),
    "de": (
        "Du nimmst an einer strategischen KI-Diskussion mit mehreren Organisationsrollen teil.",
        "Antworte auf Deutsch mit einem professionellen und konstruktiven Ton.",
    ),
    "fr": (
        "Vous participez à une discussion stratégique IA avec plusieurs rôles organisationnels.",
        "Répondez en français avec un ton professionnel et constructif.",
    ),
    "nl": (
        "Je neemt deel aan een strategische AI discussie met meerdere organisatierollen.",
        "Reageer in het Nederlands met een professionele en constructieve toon.",
    ),
}

_OPENING = """{system_prompt}

You are the {role_name} ({role_description}) in a structured discussion.

Topic: {topic_title}
Description: {topic_description}
Discussion goal: {goal_name} - {goal_description}
Your focus area: {focus_area}

Introduction: give your first impression of the topic from your role as {role_name}.
Take an initial stance: what stands out, what excites or worries you? Speak directly
in your role; do not write "my name is".

{style_block}

Write 100-200 words that are specific to your role and contribute to the goal "{goal_name}".

{response_instructions}"""

_PHASE_TURN = """{system_prompt}

You are the {role_name} ({role_description}) in an ongoing discussion.

Topic: {topic_title}
Description: {topic_description}
Discussion goal: {goal_name} - {goal_description}
Your focus area: {focus_area}

Current phase: {phase_name}
Phase instructions: {phase_instructions}

Discussion so far:
{previous_discussion}
{context_block}
Rules for this turn:
- You already introduced yourself. Do not introduce yourself again.
- Take a clear, substantive position on the phase question.
- Build on earlier points instead of starting over; ask "why" to test assumptions.
- Be constructive, but do not shy away from healthy criticism.

{style_block}

Write 100-200 words that are specific to your role and contribute to the goal "{goal_name}".

{response_instructions}"""

_INTERVENTION = """{system_prompt}

You are the {role_name} ({role_description}) in a discussion about "{topic_title}".
Discussion goal: {goal_name} - {goal_description}
Your focus area: {focus_area}

Recent discussion:
{previous_discussion}

{user_name} interrupts the discussion with this question or remark:
"{question}"

First judge whether it is relevant to the topic "{topic_title}".
- If it is relevant: answer it directly from your expertise and link it to the discussion.
- If it is not relevant: say so politely in one sentence and steer back to the topic
  without answering it.

{style_block}

Write 60-150 words.

{response_instructions}"""

_VOTE = """{system_prompt}

You are the {role_name} (focus area: {focus_area}) in a discussion about "{topic_title}".

A poll was opened on a disputed point:
{question}

Options:
{options_block}

Recent discussion:
{previous_discussion}

{style_block}

Choose the option that matches your stance. Reply with the option id alone on the
first line, followed by at most one sentence of reasoning."""

_REPORT = """{system_prompt}

Analyse the following AI discussion and write a report.

Discussion details:
- Topic: {topic_title}
- Description: {topic_description}
- Goal: {goal_name} - {goal_description}
- Participants: {participants}
- Number of turns: {turn_count}

Full discussion:
{transcript}

Return the report as JSON in exactly this shape:
{{
  "summary": "Short summary of the discussion (2-3 sentences)",
  "keyPoints": ["Key point 1", "Key point 2", "Key point 3"],
  "recommendations": ["Recommendation 1", "Recommendation 2", "Recommendation 3"]
}}

Output only valid JSON, without any extra text.

{response_instructions}"""

_TOPICS = """{system_prompt}

Analyse the content below and generate exactly 10 discussion topics that are DIRECTLY
based on it. Every topic must refer to concrete points from the content, suit a
discussion between organisational roles (CEO, CTO, CFO, CMO, COO) and be concrete
enough for a structured discussion with actionable outcomes.

Content:
{content}

Return the topics as a JSON array:
[
  {{"id": "unique-id-1", "title": "Short, catchy title", "description": "Why this is worth discussing"}}
]

Output only valid JSON, without any extra text.

{response_instructions}"""


@dataclass
class PromptsConfig:
    """Prompt templates; each is a str.format template over named fields."""

    opening: str = _OPENING
    phase_turn: str = _PHASE_TURN
    intervention: str = _INTERVENTION
    vote: str = _VOTE
    report: str = _REPORT
    topics: str = _TOPICS


def language_instructions(language: str) -> tuple[str, str]:
    """(system prompt, response instructions) for a language; Dutch by default."""
    return _LANGUAGE_INSTRUCTIONS.get(language.lower(), _LANGUAGE_INSTRUCTIONS["nl"])


def author_name(message: Message, roles: list[Role]) -> str:
    if message.role == USER_AUTHOR:
        return f"User ({message.user_name})" if message.user_name else "User"
    for role in roles:
        if role.id == message.role:
            return role.name
    return message.role


def format_messages(messages: list[Message], roles: list[Role]) -> str:
    if not messages:
        return "(no messages yet)"
    return "\n\n".join(f"{author_name(m, roles)}: {m.content}" for m in messages)


def build_role_context(
    role: Role,
    prior_messages: list[Message],
    dynamics: DiscussionDynamics,
    rng: random.Random,
) -> RoleContext:
    """Derive what this role should pay attention to in its next contribution."""
    others = [m for m in prior_messages if m.role not in (role.id, USER_AUTHOR)]
    candidates = others[-RESPOND_CANDIDATES:]
    ranked = sorted(
        enumerate(candidates),
        key=lambda pair: (-relevance_score(role.focus_area, pair[1].content), -pair[0]),
    )
    messages_to_respond = [m for _, m in ranked[:RESPOND_LIMIT]]

    activity = dynamics.role_activity
    is_under_active = False
    if activity and role.id in activity:
        mean = sum(a.total_messages for a in activity.values()) / len(activity)
        is_under_active = activity[role.id].total_messages < mean

    relevant_controversies = [
        t for t in dynamics.controversial_topics
        if relevance_score(role.focus_area, f"{t.topic} {t.disagreement}") > CONTROVERSY_RELEVANCE
    ]

    probability = (
        CHALLENGE_PROBABILITY_LOW_TEMP if dynamics.temperature < LOW_TEMPERATURE
        else CHALLENGE_PROBABILITY
    )
    should_challenge = rng.random() < probability

    expertise_needed = [
        p for p in dynamics.unanswered_points
        if p.asked_by != role.name and relevance_score(role.focus_area, p.question) > EXPERTISE_RELEVANCE
    ]

    return RoleContext(
        messages_to_respond=messages_to_respond,
        is_under_active=is_under_active,
        relevant_controversies=relevant_controversies,
        should_challenge=should_challenge,
        expertise_needed=expertise_needed,
    )


def _context_block(context: RoleContext, roles: list[Role]) -> str:
    parts: list[str] = []
    if context.messages_to_respond:
        lines = [
            f'- {author_name(m, roles)}: "{m.content[:200]}"'
            for m in context.messages_to_respond
        ]
        parts.append(
            "Respond explicitly to these contributions (name the speaker):\n" + "\n".join(lines)
        )
    if context.is_under_active:
        parts.append("You have said less than the others so far; make a clear, outspoken contribution.")
    if context.relevant_controversies:
        lines = [
            f"- {t.topic} ({' vs. '.join(t.participants)}): {t.disagreement}"
            for t in context.relevant_controversies
        ]
        parts.append("Disputed points that touch your expertise; take a side:\n" + "\n".join(lines))
    if context.should_challenge:
        parts.append("Challenge at least one assumption made by another participant.")
    if context.expertise_needed:
        lines = [f"- {p.asked_by} asked: {p.question}" for p in context.expertise_needed]
        parts.append("Open questions that need your expertise; answer them:\n" + "\n".join(lines))
    if not parts:
        return ""
    return "\n" + "\n\n".join(parts) + "\n"


def _base_fields(role: Role, session: Session) -> dict[str, str]:
    system_prompt, response_instructions = language_instructions(session.language)
    return {
        "system_prompt": system_prompt,
        "response_instructions": response_instructions,
        "role_name": role.name,
        "role_description": role.description,
        "focus_area": role.focus_area,
        "topic_title": session.topic.title,
        "topic_description": session.topic.description,
        "goal_name": session.goal.name,
        "goal_description": session.goal.description,
        "style_block": style_instructions(role, session.style_config),
    }


def compose_opening_prompt(prompts: PromptsConfig, role: Role, session: Session) -> str:
    return prompts.opening.format(**_base_fields(role, session))


def compose_phase_prompt(
    prompts: PromptsConfig,
    role: Role,
    session: Session,
    prior_messages: list[Message],
    phase: str,
    phase_text: str,
    context: RoleContext,
) -> str:
    return prompts.phase_turn.format(
        **_base_fields(role, session),
        phase_name=phase.replace("_", " "),
        phase_instructions=phase_text,
        previous_discussion=format_messages(prior_messages, session.roles),
        context_block=_context_block(context, session.roles),
    )


def compose_intervention_prompt(
    prompts: PromptsConfig,
    role: Role,
    session: Session,
    prior_messages: list[Message],
    user_message: Message,
) -> str:
    return prompts.intervention.format(
        **_base_fields(role, session),
        previous_discussion=format_messages(prior_messages[-8:], session.roles),
        user_name=user_message.user_name or "The user",
        question=user_message.content,
    )


def compose_vote_prompt(
    prompts: PromptsConfig,
    role: Role,
    session: Session,
    prior_messages: list[Message],
    voting_prompt: VotingPrompt,
) -> str:
    options_block = "\n".join(f"- {o.id}: {o.text}" for o in voting_prompt.options)
    return prompts.vote.format(
        **_base_fields(role, session),
        question=voting_prompt.question,
        options_block=options_block,
        previous_discussion=format_messages(prior_messages[-6:], session.roles),
    )


def compose_report_prompt(prompts: PromptsConfig, session: Session, transcript: str) -> str:
    system_prompt, response_instructions = language_instructions(session.language)
    return prompts.report.format(
        system_prompt=system_prompt,
        response_instructions=response_instructions,
        topic_title=session.topic.title,
        topic_description=session.topic.description,
        goal_name=session.goal.name,
        goal_description=session.goal.description,
        participants=", ".join(r.name for r in session.roles),
        turn_count=len(session.turns),
        transcript=transcript,
    )


def compose_topics_prompt(prompts: PromptsConfig, content: str, language: str) -> str:
    system_prompt, response_instructions = language_instructions(language)
    return prompts.topics.format(
        system_prompt=system_prompt,
        response_instructions=response_instructions,
        content=content,
    )
