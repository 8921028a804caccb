"""Session <-> plain record conversion for external storage.

Records contain only JSON-friendly values; datetimes are ISO 8601 strings and
messages reference roles by id.
"""

from dataclasses import asdict
from datetime import datetime
from typing import Any

from roundtable.models import (
    ControversialTopic,
    Goal,
    Message,
    Role,
    Session,
    StyleConfiguration,
    Topic,
    Turn,
    Vote,
    VotingOption,
    VotingPrompt,
    VotingResult,
)


def _encode(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _encode(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_encode(v) for v in value]
    return value


def _parse_dt(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def session_to_dict(session: Session) -> dict[str, Any]:
    return _encode(asdict(session))


def _voting_prompt(raw: dict | None) -> VotingPrompt | None:
    if raw is None:
        return None
    return VotingPrompt(
        id=raw["id"],
        question=raw["question"],
        topic=raw["topic"],
        turn_number=raw["turn_number"],
        options=[VotingOption(**o) for o in raw.get("options", [])],
    )


def _message(raw: dict) -> Message:
    return Message(
        id=raw["id"],
        role=raw["role"],
        content=raw["content"],
        timestamp=_parse_dt(raw["timestamp"]),
        is_user_intervention=raw.get("is_user_intervention", False),
        target_roles=raw.get("target_roles"),
        user_name=raw.get("user_name"),
        voting_prompt=_voting_prompt(raw.get("voting_prompt")),
        votes=[Vote(**v) for v in raw.get("votes", [])],
    )


def _turn(raw: dict) -> Turn:
    return Turn(
        id=raw["id"],
        turn_number=raw["turn_number"],
        phase=raw["phase"],
        messages=[_message(m) for m in raw.get("messages", [])],
        timestamp=_parse_dt(raw.get("timestamp")),
        is_intervention=raw.get("is_intervention", False),
    )


def session_from_dict(data: dict[str, Any]) -> Session:
    return Session(
        id=data["id"],
        topic=Topic(**data["topic"]),
        goal=Goal(**data["goal"]),
        roles=[Role(**r) for r in data["roles"]],
        created_at=_parse_dt(data["created_at"]),
        language=data.get("language", "nl"),
        style_config=StyleConfiguration(**data.get("style_config", {})),
        turns=[_turn(t) for t in data.get("turns", [])],
        status=data["status"],
        actual_turn_number=data["actual_turn_number"],
        user_intervention_count=data["user_intervention_count"],
        controversial_topics=[ControversialTopic(**t) for t in data.get("controversial_topics", [])],
        voting_results=[VotingResult(**r) for r in data.get("voting_results", [])],
    )
