"""Turn sequencing: the introduction turn and the phase-advancing turns.

Roles are generated strictly one after another; each role's prompt sees the
messages produced earlier in the same turn.
"""

import logging
import random
from collections.abc import Callable
from datetime import datetime

from roundtable.dynamics import all_messages, analyze, analyze_messages
from roundtable.ids import IdGenerator
from roundtable.models import Message, Role, Session, Turn
from roundtable.phases import phase_for, phase_instructions
from roundtable.prompts import (
    PromptsConfig,
    build_role_context,
    compose_opening_prompt,
    compose_phase_prompt,
)
from roundtable.providers.base import DEFAULT_TIER, AIProvider, FunctionClass
from roundtable.voting import build_voting_prompt, collect_votes, pick_topic, should_attach_poll

logger = logging.getLogger(__name__)


async def _generate_role_message(
    gateway: AIProvider,
    prompt: str,
    role: Role,
    fallback: str,
    ids: IdGenerator,
    clock: Callable[[], datetime],
    tier: str,
) -> tuple[Message, bool]:
    """Generate one role's message. Never raises; returns (message, generated_ok)."""
    try:
        result = await gateway.generate(prompt, FunctionClass.EXPERT_CHAT, tier)
        content, ok = result.text, True
    except Exception as exc:
        logger.warning("Generation for role %s failed, using fallback: %s", role.id, exc)
        content, ok = fallback, False

    if ok and not content.strip():
        logger.warning("Role %s returned empty content, using fallback", role.id)
        content, ok = fallback, False

    message = Message(id=ids.next_id("msg"), role=role.id, content=content.strip(), timestamp=clock())
    return message, ok


async def run_introduction_turn(
    session: Session,
    gateway: AIProvider,
    prompts: PromptsConfig,
    ids: IdGenerator,
    clock: Callable[[], datetime],
    tier: str = DEFAULT_TIER,
) -> Turn:
    """Every role speaks once to introduce its stance."""
    messages: list[Message] = []
    succeeded = 0
    logger.info("Starting introduction turn with %d roles", len(session.roles))

    for role in session.roles:
        fallback = f"As {role.name} I would like to contribute to this discussion about {session.topic.title}."
        message, ok = await _generate_role_message(
            gateway,
            compose_opening_prompt(prompts, role, session),
            role,
            fallback,
            ids,
            clock,
            tier,
        )
        messages.append(message)
        succeeded += ok

    logger.info("Introduction turn complete: %d/%d roles generated", succeeded, len(session.roles))
    return Turn(
        id=ids.next_id("turn"),
        turn_number=len(session.turns) + 1,
        phase=phase_for(1),
        messages=messages,
        timestamp=clock(),
    )


async def run_phase_turn(
    session: Session,
    phase_position: int,
    gateway: AIProvider,
    prompts: PromptsConfig,
    ids: IdGenerator,
    clock: Callable[[], datetime],
    rng: random.Random,
    tier: str = DEFAULT_TIER,
    voting_enabled: bool = True,
) -> Turn:
    """One phase-advancing round: one message per role in role order, plus an optional poll.

    ``phase_position`` is the 1-based position in the phase table.
    """
    phase = phase_for(phase_position)
    phase_text = phase_instructions(phase, session.topic)
    prior = all_messages(session)
    dynamics = analyze(session, session.actual_turn_number)

    logger.info(
        "Starting turn %d (%s) with %d roles, temperature %.2f",
        session.actual_turn_number,
        phase,
        len(session.roles),
        dynamics.temperature,
    )

    messages: list[Message] = []
    succeeded = 0
    for role in session.roles:
        history = prior + messages
        context = build_role_context(role, history, dynamics, rng)
        logger.debug(
            "Context for %s: respond_to=%d under_active=%s controversies=%d challenge=%s expertise=%d",
            role.id,
            len(context.messages_to_respond),
            context.is_under_active,
            len(context.relevant_controversies),
            context.should_challenge,
            len(context.expertise_needed),
        )
        prompt = compose_phase_prompt(prompts, role, session, history, phase, phase_text, context)
        fallback = f"As {role.name} I would like to contribute to phase {phase_position}: {phase}."
        message, ok = await _generate_role_message(gateway, prompt, role, fallback, ids, clock, tier)
        messages.append(message)
        succeeded += ok

    if voting_enabled and messages:
        await _attach_poll(session, prior, messages, gateway, prompts, ids, tier)

    logger.info(
        "Turn %d (%s) complete: %d/%d roles generated",
        session.actual_turn_number,
        phase,
        succeeded,
        len(session.roles),
    )
    return Turn(
        id=ids.next_id("turn"),
        turn_number=len(session.turns) + 1,
        phase=phase,
        messages=messages,
        timestamp=clock(),
    )


async def _attach_poll(
    session: Session,
    prior: list[Message],
    messages: list[Message],
    gateway: AIProvider,
    prompts: PromptsConfig,
    ids: IdGenerator,
    tier: str,
) -> None:
    """Open a poll on the first role's message when this turn raised a disagreement."""
    transcript = prior + messages
    dynamics = analyze_messages(transcript, session.roles, session.actual_turn_number)
    new_ids = {m.id for m in messages}
    dynamics.controversial_topics = [
        t for t in dynamics.controversial_topics if t.message_id in new_ids
    ]
    if not should_attach_poll(dynamics):
        return

    topic = pick_topic(dynamics.controversial_topics)
    voting_prompt = build_voting_prompt(topic, session.actual_turn_number, ids)
    logger.info("Attaching poll %s on '%s'", voting_prompt.id, topic.topic)

    votes = await collect_votes(gateway, prompts, session, transcript, voting_prompt, tier)
    messages[0].voting_prompt = voting_prompt
    messages[0].votes = votes
