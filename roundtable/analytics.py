"""Aggregate metrics over a session's transcript. Pure, no generation calls."""

from roundtable.dynamics import all_messages
from roundtable.models import DiscussionAnalytics, RoleActivityMetrics, Session


def get_analytics(session: Session) -> DiscussionAnalytics:
    messages = all_messages(session)
    role_ids = {r.id for r in session.roles}
    role_messages = [m for m in messages if m.role in role_ids]

    role_metrics: list[RoleActivityMetrics] = []
    for role in session.roles:
        own = [m for m in role_messages if m.role == role.id]
        role_metrics.append(
            RoleActivityMetrics(
                role_id=role.id,
                role_name=role.name,
                message_count=len(own),
                average_length=round(sum(len(m.content) for m in own) / len(own), 1) if own else 0.0,
                share=round(len(own) / len(role_messages), 3) if role_messages else 0.0,
            )
        )

    most_active: str | None = None
    if role_messages:
        # max() keeps the first role in session order on ties
        most_active = max(role_metrics, key=lambda m: m.message_count).role_id

    duration = 0.0
    if messages:
        duration = max(0.0, (messages[-1].timestamp - session.created_at).total_seconds())

    return DiscussionAnalytics(
        session_id=session.id,
        total_turns=len(session.turns),
        total_messages=len(messages),
        average_message_length=round(sum(len(m.content) for m in messages) / len(messages), 1) if messages else 0.0,
        user_interventions=sum(1 for m in messages if m.is_user_intervention),
        most_active_role=most_active,
        duration_sec=duration,
        role_metrics=role_metrics,
        controversial_topics=list(session.controversial_topics),
        voting_results=list(session.voting_results),
    )
