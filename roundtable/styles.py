"""Discussion style catalog and the style configuration engine."""

import logging

from roundtable.errors import ConflictingStyles, UnknownStyle
from roundtable.models import DiscussionStyleOption, Role, StyleConfiguration

logger = logging.getLogger(__name__)

STYLE_CATEGORIES = ("communication_tone", "interaction_pattern", "depth_focus")

DISCUSSION_STYLE_OPTIONS: tuple[DiscussionStyleOption, ...] = (
    # communication_tone
    DiscussionStyleOption(
        id="formal",
        category="communication_tone",
        name="Formal",
        description="Businesslike and precise language",
        instruction="Use formal, businesslike language and precise wording.",
    ),
    DiscussionStyleOption(
        id="informal",
        category="communication_tone",
        name="Informal",
        description="Relaxed, conversational language",
        instruction="Speak in a relaxed, conversational way, as you would with close colleagues.",
    ),
    DiscussionStyleOption(
        id="direct",
        category="communication_tone",
        name="Direct",
        description="Straight to the point, no hedging",
        instruction="Be direct and to the point. State your view plainly without hedging.",
    ),
    DiscussionStyleOption(
        id="diplomatic",
        category="communication_tone",
        name="Diplomatic",
        description="Tactful and considerate of other views",
        instruction="Be tactful. Phrase criticism carefully and acknowledge the other side first.",
    ),
    # interaction_pattern
    DiscussionStyleOption(
        id="challenger",
        category="interaction_pattern",
        name="Devil's advocate",
        description="Deliberately challenges the prevailing view",
        instruction="Act as devil's advocate: challenge the prevailing opinion and test its assumptions.",
    ),
    DiscussionStyleOption(
        id="collaborative",
        category="interaction_pattern",
        name="Collaborative",
        description="Builds on the ideas of others",
        instruction="Build explicitly on the ideas of other participants and look for combinations.",
    ),
    DiscussionStyleOption(
        id="questioning",
        category="interaction_pattern",
        name="Socratic",
        description="Drives the discussion with probing questions",
        instruction="Lead with probing questions that make the others sharpen their reasoning.",
    ),
    DiscussionStyleOption(
        id="mediator",
        category="interaction_pattern",
        name="Mediator",
        description="Bridges opposing positions",
        instruction="Look for common ground between opposing positions and propose a middle way.",
    ),
    # depth_focus
    DiscussionStyleOption(
        id="strategic",
        category="depth_focus",
        name="Big picture",
        description="Long-term, strategic level",
        instruction="Keep the big picture in view: long-term consequences and strategic fit.",
    ),
    DiscussionStyleOption(
        id="detail_oriented",
        category="depth_focus",
        name="Detail oriented",
        description="Goes into specifics and edge cases",
        instruction="Go into specifics: details, edge cases and exact requirements.",
    ),
    DiscussionStyleOption(
        id="data_driven",
        category="depth_focus",
        name="Data driven",
        description="Argues from numbers and evidence",
        instruction="Support your points with numbers, evidence or concrete measurements wherever possible.",
    ),
    DiscussionStyleOption(
        id="practical",
        category="depth_focus",
        name="Practical",
        description="Focused on what can be done tomorrow",
        instruction="Focus on practical, feasible actions that can be started right away.",
    ),
)

_STYLES_BY_ID: dict[str, DiscussionStyleOption] = {s.id: s for s in DISCUSSION_STYLE_OPTIONS}

DEFAULT_STYLES_BY_CATEGORY: dict[str, list[str]] = {
    "leiding_strategie": ["formal", "mediator", "strategic"],
    "product_markt": ["direct", "collaborative", "practical"],
    "technologie": ["direct", "questioning", "detail_oriented"],
    "operaties": ["formal", "collaborative", "practical"],
    "externe_stakeholders": ["diplomatic", "questioning", "strategic"],
    "marketing": ["informal", "challenger", "data_driven"],
}

# Tone profile per enthusiasm level, 1..5
ENTHUSIASM_PROFILES: dict[int, tuple[str, str]] = {
    1: (
        "pessimistic",
        "Be sceptical and cautious. Name weaknesses, risks and reasons this may fail "
        "before you acknowledge any merits.",
    ),
    2: (
        "neutral",
        "Stay neutral and matter-of-fact. Weigh pros and cons evenly without showing much emotion.",
    ),
    3: (
        "constructive",
        "Be constructive. Acknowledge good points and build on them, and raise concerns where needed.",
    ),
    4: (
        "enthusiastic",
        "Be enthusiastic and positive. Highlight opportunities and energise the discussion "
        "while staying realistic.",
    ),
    5: (
        "highly enthusiastic",
        "Be highly enthusiastic and energetic. Champion bold ideas and push the group "
        "towards ambitious outcomes.",
    ),
}


def get_style(style_id: str) -> DiscussionStyleOption | None:
    return _STYLES_BY_ID.get(style_id)


def styles_for_category(category: str) -> list[DiscussionStyleOption]:
    return [s for s in DISCUSSION_STYLE_OPTIONS if s.category == category]


def validate_styles(style_ids: list[str]) -> None:
    """Reject unknown ids and more than one style from the same category."""
    unknown = [s for s in style_ids if s not in _STYLES_BY_ID]
    if unknown:
        raise UnknownStyle(unknown)
    by_category: dict[str, list[str]] = {}
    for style_id in dict.fromkeys(style_ids):
        by_category.setdefault(_STYLES_BY_ID[style_id].category, []).append(style_id)
    for category, ids in by_category.items():
        if len(ids) > 1:
            raise ConflictingStyles(category, ids)


def resolve_style_ids(role: Role, style_config: StyleConfiguration | None) -> list[str]:
    """Selected styles for a role.

    An explicit entry in the session configuration wins (an empty list means no
    styles); otherwise the role's own selection, otherwise its category defaults.
    """
    if style_config is not None and role.id in style_config.role_styles:
        return list(style_config.role_styles[role.id])
    if role.selected_styles:
        return list(role.selected_styles)
    return list(DEFAULT_STYLES_BY_CATEGORY.get(role.category, []))


def enthusiasm_instruction(level: int) -> str:
    clamped = min(max(level, 1), 5)
    label, text = ENTHUSIASM_PROFILES[clamped]
    return f"Enthusiasm level {clamped}/5 ({label}): {text}"


def style_instructions(role: Role, style_config: StyleConfiguration | None = None) -> str:
    """Instruction block combining the role's style fragments and enthusiasm tone."""
    lines: list[str] = []
    for style_id in resolve_style_ids(role, style_config):
        style = _STYLES_BY_ID.get(style_id)
        if style is None:
            logger.warning("Unknown style '%s' for role %s, ignoring", style_id, role.id)
            continue
        lines.append(f"- {style.instruction}")
    lines.append(f"- {enthusiasm_instruction(role.enthusiasm_level)}")
    return "Discussion style:\n" + "\n".join(lines)


def toggle_style(style_config: StyleConfiguration, role: Role, style_id: str) -> list[str]:
    """Select or deselect a style for a role; at most one style per category.

    Returns the role's new selection.
    """
    style = _STYLES_BY_ID.get(style_id)
    if style is None:
        raise UnknownStyle([style_id])

    current = resolve_style_ids(role, style_config)
    if style_id in current:
        updated = [s for s in current if s != style_id]
    else:
        updated = [
            s for s in current
            if s in _STYLES_BY_ID and _STYLES_BY_ID[s].category != style.category
        ]
        updated.append(style_id)

    style_config.role_styles[role.id] = updated
    return updated
