"""Session lifecycle: creation, phase turns, interventions, finalisation.

The engine assumes a single writer per session; callers serialise calls on the
same Session object.
"""

import logging
import random
from collections.abc import Callable
from datetime import datetime, timezone

from roundtable.dynamics import analyze
from roundtable.errors import (
    InterventionBudgetExhausted,
    InvalidEnthusiasmLevel,
    InvalidRoleCount,
    NotAwaitingInput,
    SessionNotActive,
    TurnBudgetExhausted,
    UnknownRole,
)
from roundtable.ids import IdGenerator
from roundtable.intervention import handle_intervention, validate_intervention
from roundtable.models import (
    STATUS_ACTIVE,
    STATUS_AWAITING_INPUT,
    STATUS_COMPLETED,
    Goal,
    Role,
    Session,
    StyleConfiguration,
    Topic,
    Turn,
)
from roundtable.prompts import PromptsConfig
from roundtable.providers.base import DEFAULT_TIER, AIProvider
from roundtable.styles import validate_styles
from roundtable.turns import run_introduction_turn, run_phase_turn
from roundtable.voting import voting_result

logger = logging.getLogger(__name__)

MIN_ROLES = 2
MAX_ROLES = 4
MAX_TURNS = 10
MAX_INTERVENTIONS = 5


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DiscussionEngine:
    """Drives sessions through their lifecycle against a generation gateway."""

    def __init__(
        self,
        gateway: AIProvider,
        prompts: PromptsConfig | None = None,
        tier: str = DEFAULT_TIER,
        ids: IdGenerator | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = _utcnow,
        voting_enabled: bool = True,
    ) -> None:
        self._gateway = gateway
        self._prompts = prompts or PromptsConfig()
        self._tier = tier
        self._ids = ids or IdGenerator()
        self._rng = rng or random.Random()
        self._clock = clock
        self._voting_enabled = voting_enabled

    async def create_session(
        self,
        topic: Topic,
        goal: Goal,
        roles: list[Role],
        style_config: StyleConfiguration | None = None,
        language: str = "nl",
    ) -> Session:
        """Create a session and run its introduction turn.

        The introduction does not count against the turn budget.

        Raises:
            InvalidRoleCount: unless 2 <= len(roles) <= 4.
        """
        if not MIN_ROLES <= len(roles) <= MAX_ROLES:
            raise InvalidRoleCount(len(roles), MIN_ROLES, MAX_ROLES)

        session = Session(
            id=self._ids.next_id("session"),
            topic=topic,
            goal=goal,
            roles=list(roles),
            created_at=self._clock(),
            language=language,
            style_config=style_config or StyleConfiguration(),
        )
        logger.info(
            "Session %s created: '%s', goal %s, roles %s",
            session.id,
            topic.title,
            goal.id,
            ", ".join(r.id for r in roles),
        )

        intro = await run_introduction_turn(session, self._gateway, self._prompts, self._ids, self._clock, self._tier)
        session.turns.append(intro)
        session.status = STATUS_AWAITING_INPUT
        return session

    async def advance(self, session: Session) -> Turn:
        """Run the next phase turn.

        The turn budget unit is consumed before generation starts, so a turn that
        fails part way still counts.

        Raises:
            TurnBudgetExhausted: if all turns are used; the session is completed first.
            SessionNotActive: if the session was finalised early.
        """
        if session.actual_turn_number >= MAX_TURNS:
            session.status = STATUS_COMPLETED
            raise TurnBudgetExhausted(MAX_TURNS)
        if session.status not in (STATUS_ACTIVE, STATUS_AWAITING_INPUT):
            raise SessionNotActive(session.status)

        session.actual_turn_number += 1
        session.status = STATUS_ACTIVE
        try:
            turn = await run_phase_turn(
                session,
                session.actual_turn_number + 1,
                self._gateway,
                self._prompts,
                self._ids,
                self._clock,
                self._rng,
                self._tier,
                self._voting_enabled,
            )
        except Exception:
            session.status = STATUS_AWAITING_INPUT
            raise

        session.turns.append(turn)
        self._record_dynamics(session, turn)

        if session.actual_turn_number >= MAX_TURNS:
            session.status = STATUS_COMPLETED
            logger.info("Session %s completed after %d turns", session.id, session.actual_turn_number)
        else:
            session.status = STATUS_AWAITING_INPUT
        return turn

    async def intervene(
        self,
        session: Session,
        content: str,
        target_roles: list[str],
        user_name: str | None = None,
    ) -> Turn:
        """Inject a user message and collect answers from the targeted roles.

        Does not touch the turn budget.

        Raises:
            InvalidInterventionLength, NoTargetRoles, UnsafeInput: on bad input.
            NotAwaitingInput: unless the session is awaiting user input.
            InterventionBudgetExhausted: after five interventions.
        """
        text, targets = validate_intervention(session, content, target_roles)
        if session.status != STATUS_AWAITING_INPUT:
            raise NotAwaitingInput(session.status)
        if session.user_intervention_count >= MAX_INTERVENTIONS:
            raise InterventionBudgetExhausted(MAX_INTERVENTIONS)

        session.user_intervention_count += 1
        session.status = STATUS_ACTIVE
        try:
            turn = await handle_intervention(
                session,
                text,
                targets,
                self._gateway,
                self._prompts,
                self._ids,
                self._clock,
                self._tier,
                user_name,
            )
            session.turns.append(turn)
        finally:
            session.status = STATUS_AWAITING_INPUT
        return turn

    def finalize(self, session: Session) -> Session:
        if session.status != STATUS_COMPLETED:
            logger.info("Session %s finalised at turn %d", session.id, session.actual_turn_number)
        session.status = STATUS_COMPLETED
        return session

    def update_role(
        self,
        session: Session,
        role_id: str,
        enthusiasm_level: int | None = None,
        selected_styles: list[str] | None = None,
    ) -> Role:
        """Live-update a role's enthusiasm or style selection; applies to later turns.

        Nothing changes unless every given value is valid.

        Raises:
            UnknownRole, InvalidEnthusiasmLevel, UnknownStyle, ConflictingStyles
        """
        role = next((r for r in session.roles if r.id == role_id), None)
        if role is None:
            raise UnknownRole(role_id)

        if enthusiasm_level is not None and not 1 <= enthusiasm_level <= 5:
            raise InvalidEnthusiasmLevel(enthusiasm_level)
        if selected_styles is not None:
            validate_styles(selected_styles)

        if enthusiasm_level is not None:
            role.enthusiasm_level = enthusiasm_level
        if selected_styles is not None:
            role.selected_styles = list(selected_styles)
            session.style_config.role_styles[role.id] = list(selected_styles)

        logger.info(
            "Role %s updated: enthusiasm %d, styles %s",
            role.id,
            role.enthusiasm_level,
            role.selected_styles,
        )
        return role

    def _record_dynamics(self, session: Session, turn: Turn) -> None:
        """Accumulate new controversies and poll results on the session."""
        known = {t.message_id for t in session.controversial_topics}
        for topic in analyze(session, session.actual_turn_number).controversial_topics:
            if topic.message_id not in known:
                session.controversial_topics.append(topic)
                known.add(topic.message_id)

        for message in turn.messages:
            if message.voting_prompt is not None:
                session.voting_results.append(voting_result(message.voting_prompt))
