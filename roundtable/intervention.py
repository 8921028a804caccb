"""User interventions: validation and out-of-band role responses."""

import logging
import re
from collections.abc import Callable
from datetime import datetime

from roundtable.dynamics import all_messages
from roundtable.errors import InvalidInterventionLength, NoTargetRoles, UnsafeInput
from roundtable.ids import IdGenerator
from roundtable.models import USER_AUTHOR, Message, Role, Session, Turn
from roundtable.phases import phase_for
from roundtable.prompts import PromptsConfig, compose_intervention_prompt
from roundtable.providers.base import DEFAULT_TIER, AIProvider, FunctionClass

logger = logging.getLogger(__name__)

ALL_ROLES = "all"
MIN_INTERVENTION_CHARS = 20
MAX_INTERVENTION_CHARS = 250

_UNSAFE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"<\s*script", re.IGNORECASE),
    re.compile(r"javascript\s*:", re.IGNORECASE),
    re.compile(r"\bon\w+\s*=", re.IGNORECASE),
    re.compile(r"\beval\s*\(", re.IGNORECASE),
    re.compile(r"\bdocument\s*\.", re.IGNORECASE),
    re.compile(r"\bwindow\s*\.", re.IGNORECASE),
)


def resolve_targets(session: Session, target_roles: list[str]) -> list[Role]:
    """Roles addressed by the intervention, in session order."""
    if ALL_ROLES in target_roles:
        return list(session.roles)
    wanted = set(target_roles)
    resolved = [r for r in session.roles if r.id in wanted]
    unknown = wanted - {r.id for r in resolved}
    if unknown:
        logger.warning("Ignoring intervention targets not in session: %s", ", ".join(sorted(unknown)))
    return resolved


def validate_intervention(session: Session, content: str, target_roles: list[str]) -> tuple[str, list[Role]]:
    """Check an intervention before anything is generated.

    Returns:
        (trimmed content, resolved target roles)

    Raises:
        InvalidInterventionLength, NoTargetRoles, UnsafeInput
    """
    text = content.strip()
    if not MIN_INTERVENTION_CHARS <= len(text) <= MAX_INTERVENTION_CHARS:
        raise InvalidInterventionLength(len(text), MIN_INTERVENTION_CHARS, MAX_INTERVENTION_CHARS)

    targets = resolve_targets(session, target_roles) if target_roles else []
    if not targets:
        raise NoTargetRoles()

    for pattern in _UNSAFE_PATTERNS:
        if pattern.search(text):
            raise UnsafeInput(pattern.pattern)

    return text, targets


async def handle_intervention(
    session: Session,
    content: str,
    targets: list[Role],
    gateway: AIProvider,
    prompts: PromptsConfig,
    ids: IdGenerator,
    clock: Callable[[], datetime],
    tier: str = DEFAULT_TIER,
    user_name: str | None = None,
) -> Turn:
    """Build the intervention turn: the user message, then each target role's answer.

    Roles answer in session order. A role whose generation fails is left out.
    """
    prior = all_messages(session)
    user_message = Message(
        id=ids.next_id("msg"),
        role=USER_AUTHOR,
        content=content,
        timestamp=clock(),
        is_user_intervention=True,
        target_roles=[r.id for r in targets],
        user_name=user_name,
    )
    messages = [user_message]

    for role in targets:
        prompt = compose_intervention_prompt(prompts, role, session, prior, user_message)
        try:
            result = await gateway.generate(prompt, FunctionClass.EXPERT_CHAT, tier)
        except Exception as exc:
            logger.warning("Intervention response from %s dropped: %s", role.id, exc)
            continue
        if not result.text.strip():
            logger.warning("Intervention response from %s was empty, dropped", role.id)
            continue
        messages.append(
            Message(id=ids.next_id("msg"), role=role.id, content=result.text.strip(), timestamp=clock())
        )

    logger.info(
        "Intervention handled: %d/%d target roles responded",
        len(messages) - 1,
        len(targets),
    )
    return Turn(
        id=ids.next_id("turn"),
        turn_number=len(session.turns) + 1,
        phase=phase_for(session.actual_turn_number + 1),
        messages=messages,
        timestamp=clock(),
        is_intervention=True,
    )
