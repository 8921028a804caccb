"""Pure dataclasses for the roundtable discussion engine. No logic, no deps."""

from dataclasses import dataclass, field
from datetime import datetime

# Session status values
STATUS_ACTIVE = "active"
STATUS_AWAITING_INPUT = "awaiting_user_input"
STATUS_COMPLETED = "completed"

USER_AUTHOR = "user"


@dataclass(frozen=True)
class Topic:
    id: str
    title: str
    description: str


@dataclass(frozen=True)
class Goal:
    id: str
    name: str
    description: str
    category: str = ""


@dataclass
class Role:
    id: str
    name: str
    description: str
    focus_area: str
    category: str
    enthusiasm_level: int = 3      # 1 (pessimistic) .. 5 (highly enthusiastic)
    selected_styles: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class DiscussionStyleOption:
    id: str
    category: str          # "communication_tone", "interaction_pattern", "depth_focus"
    name: str
    description: str
    instruction: str


@dataclass
class StyleConfiguration:
    role_styles: dict[str, list[str]] = field(default_factory=dict)


@dataclass
class VotingOption:
    id: str
    text: str
    votes: int = 0


@dataclass
class VotingPrompt:
    id: str
    question: str
    topic: str
    turn_number: int
    options: list[VotingOption] = field(default_factory=list)


@dataclass
class Vote:
    prompt_id: str
    role_id: str
    option_id: str


@dataclass
class Message:
    id: str
    role: str              # role id, or "user"
    content: str
    timestamp: datetime
    is_user_intervention: bool = False
    target_roles: list[str] | None = None
    user_name: str | None = None
    voting_prompt: VotingPrompt | None = None
    votes: list[Vote] = field(default_factory=list)


@dataclass
class Turn:
    id: str
    turn_number: int       # position in Session.turns, 1-indexed
    phase: str
    messages: list[Message] = field(default_factory=list)
    timestamp: datetime | None = None
    is_intervention: bool = False


@dataclass
class ControversialTopic:
    topic: str
    disagreement: str
    participants: list[str]        # two role names
    turn_number: int
    controversy_level: int = 1     # 1..5
    message_id: str = ""           # the disagreeing message


@dataclass
class UnansweredPoint:
    question: str
    asked_by: str                  # role name
    message_id: str


@dataclass
class RoleActivity:
    role_id: str
    total_messages: int
    recent_messages: int


@dataclass
class DiscussionDynamics:
    role_activity: dict[str, RoleActivity]
    controversial_topics: list[ControversialTopic]
    unanswered_points: list[UnansweredPoint]
    temperature: float             # 0..10


@dataclass
class RoleContext:
    """Per-role view of the dynamics, consumed by the prompt composer."""

    messages_to_respond: list[Message] = field(default_factory=list)
    is_under_active: bool = False
    relevant_controversies: list[ControversialTopic] = field(default_factory=list)
    should_challenge: bool = False
    expertise_needed: list[UnansweredPoint] = field(default_factory=list)


@dataclass
class VotingResult:
    prompt_id: str
    question: str
    turn_number: int
    tallies: dict[str, int]        # option id -> votes
    total_votes: int


@dataclass
class Session:
    id: str
    topic: Topic
    goal: Goal
    roles: list[Role]
    created_at: datetime
    language: str = "nl"
    style_config: StyleConfiguration = field(default_factory=StyleConfiguration)
    turns: list[Turn] = field(default_factory=list)
    status: str = STATUS_ACTIVE
    actual_turn_number: int = 0
    user_intervention_count: int = 0
    controversial_topics: list[ControversialTopic] = field(default_factory=list)
    voting_results: list[VotingResult] = field(default_factory=list)


@dataclass(frozen=True)
class Report:
    id: str
    session_id: str
    summary: str
    key_points: list[str]
    recommendations: list[str]
    full_transcript: str
    generated_at: datetime


@dataclass
class RoleActivityMetrics:
    role_id: str
    role_name: str
    message_count: int
    average_length: float
    share: float                   # fraction of all role messages


@dataclass
class DiscussionAnalytics:
    session_id: str
    total_turns: int
    total_messages: int
    average_message_length: float
    user_interventions: int
    most_active_role: str | None
    duration_sec: float
    role_metrics: list[RoleActivityMetrics] = field(default_factory=list)
    controversial_topics: list[ControversialTopic] = field(default_factory=list)
    voting_results: list[VotingResult] = field(default_factory=list)
