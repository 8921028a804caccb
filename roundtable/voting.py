"""Polls on controversial points: eligibility, prompt building, vote collection."""

import asyncio
import logging
import re

from roundtable.ids import IdGenerator
from roundtable.models import (
    ControversialTopic,
    DiscussionDynamics,
    Message,
    Role,
    Session,
    Vote,
    VotingOption,
    VotingPrompt,
    VotingResult,
)
from roundtable.prompts import PromptsConfig, compose_vote_prompt
from roundtable.providers.base import DEFAULT_TIER, AIProvider, FunctionClass

logger = logging.getLogger(__name__)

OPTION_FOR = "for"
OPTION_AGAINST = "against"
OPTION_UNDECIDED = "undecided"


def should_attach_poll(dynamics: DiscussionDynamics) -> bool:
    """A turn carries a poll only when there is something to vote on."""
    return bool(dynamics.controversial_topics)


def pick_topic(topics: list[ControversialTopic]) -> ControversialTopic:
    """Most heated topic; the most recent one wins ties."""
    best_index = max(range(len(topics)), key=lambda i: (topics[i].controversy_level, i))
    return topics[best_index]


def build_voting_prompt(topic: ControversialTopic, turn_number: int, ids: IdGenerator) -> VotingPrompt:
    first, second = (topic.participants + ["the others", "the others"])[:2]
    return VotingPrompt(
        id=ids.next_id("poll"),
        question=(
            f'{first} and {second} disagree about: "{topic.topic}". '
            f"{second} objects: {topic.disagreement}"
        ),
        topic=topic.topic,
        turn_number=turn_number,
        options=[
            VotingOption(id=OPTION_FOR, text=f"Support the position of {first}"),
            VotingOption(id=OPTION_AGAINST, text=f"Side with the objection of {second}"),
            VotingOption(id=OPTION_UNDECIDED, text="Undecided, more information is needed"),
        ],
    )


def parse_vote(text: str, voting_prompt: VotingPrompt) -> str | None:
    """Option id named on the first non-empty line, or None."""
    first_line = next((line for line in text.splitlines() if line.strip()), "")
    first_line = first_line.lower()
    best: tuple[int, str] | None = None
    for option in voting_prompt.options:
        match = re.search(r"\b" + re.escape(option.id.lower()) + r"\b", first_line)
        if match and (best is None or match.start() < best[0]):
            best = (match.start(), option.id)
    return best[1] if best else None


async def _cast_vote(
    gateway: AIProvider,
    prompt: str,
    role: Role,
    voting_prompt: VotingPrompt,
    tier: str,
) -> Vote | None:
    """Ask one role for its vote. Never raises; unusable votes come back as None."""
    try:
        result = await gateway.generate(prompt, FunctionClass.EXPERT_CHAT, tier)
    except Exception as exc:
        logger.warning("Vote from %s on poll %s failed: %s", role.id, voting_prompt.id, exc)
        return None

    option_id = parse_vote(result.text, voting_prompt)
    if option_id is None:
        logger.warning("Vote from %s on poll %s was not usable: %r", role.id, voting_prompt.id, result.text[:80])
        return None
    return Vote(prompt_id=voting_prompt.id, role_id=role.id, option_id=option_id)


async def collect_votes(
    gateway: AIProvider,
    prompts: PromptsConfig,
    session: Session,
    prior_messages: list[Message],
    voting_prompt: VotingPrompt,
    tier: str = DEFAULT_TIER,
) -> list[Vote]:
    """Collect one vote per role concurrently and update the option counts."""
    tasks = [
        _cast_vote(
            gateway,
            compose_vote_prompt(prompts, role, session, prior_messages, voting_prompt),
            role,
            voting_prompt,
            tier,
        )
        for role in session.roles
    ]
    results = await asyncio.gather(*tasks)

    votes: list[Vote] = []
    options = {o.id: o for o in voting_prompt.options}
    for vote in results:
        if vote is None:
            continue
        options[vote.option_id].votes += 1
        votes.append(vote)

    logger.info(
        "Poll %s: %d/%d votes collected",
        voting_prompt.id,
        len(votes),
        len(session.roles),
    )
    return votes


def voting_result(voting_prompt: VotingPrompt) -> VotingResult:
    tallies = {o.id: o.votes for o in voting_prompt.options}
    return VotingResult(
        prompt_id=voting_prompt.id,
        question=voting_prompt.question,
        turn_number=voting_prompt.turn_number,
        tallies=tallies,
        total_votes=sum(tallies.values()),
    )
