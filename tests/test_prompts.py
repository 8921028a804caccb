"""Tests for roundtable/prompts.py."""

from roundtable.models import (
    ControversialTopic,
    DiscussionDynamics,
    RoleActivity,
    RoleContext,
    UnansweredPoint,
)
from roundtable.prompts import (
    PromptsConfig,
    author_name,
    build_role_context,
    compose_intervention_prompt,
    compose_opening_prompt,
    compose_phase_prompt,
    compose_report_prompt,
    compose_topics_prompt,
    format_messages,
    language_instructions,
)

from tests.conftest import make_message


class FixedRandom:
    def __init__(self, value: float) -> None:
        self._value = value

    def random(self) -> float:
        return self._value


def _dynamics(**kwargs) -> DiscussionDynamics:
    defaults = dict(role_activity={}, controversial_topics=[], unanswered_points=[], temperature=5.0)
    defaults.update(kwargs)
    return DiscussionDynamics(**defaults)


def test_language_instructions_known_languages():
    assert language_instructions("en")[1] == "Respond in English with a professional and constructive tone."
    assert "Deutsch" in language_instructions("de")[1]
    assert "français" in language_instructions("fr")[1]


def test_language_instructions_default_to_dutch():
    assert language_instructions("xx") == language_instructions("nl")


def test_language_instructions_case_insensitive():
    assert language_instructions("EN") == language_instructions("en")


def test_author_name(roles):
    assert author_name(make_message("m1", "cfo", "x"), roles) == "CFO"
    assert author_name(make_message("m2", "user", "x", user_name="Sam"), roles) == "User (Sam)"
    assert author_name(make_message("m3", "user", "x"), roles) == "User"
    assert author_name(make_message("m4", "ghost", "x"), roles) == "ghost"


def test_format_messages_empty(roles):
    assert format_messages([], roles) == "(no messages yet)"


def test_messages_to_respond_ranked_by_relevance(cfo, roles):
    prior = [
        make_message("m1", "ceo", "We need more marketing reach."),
        make_message("m2", "user", "Think about the budget and financial risks.", is_user_intervention=True),
        make_message("m3", "ceo", "Our budget and financial risks are manageable."),
        make_message("m4", "hr", "Hiring is hard."),
        make_message("m5", "cfo", "My own budget point."),
    ]
    context = build_role_context(cfo, prior, _dynamics(), FixedRandom(0.9))
    assert [m.id for m in context.messages_to_respond] == ["m3", "m4"]


def test_messages_to_respond_only_last_four_candidates(cfo):
    prior = [make_message("m0", "ceo", "Budget, financial risks and scalability.")]
    prior += [make_message(f"m{i}", "ceo", "Something else.") for i in range(1, 5)]
    context = build_role_context(cfo, prior, _dynamics(), FixedRandom(0.9))
    assert "m0" not in [m.id for m in context.messages_to_respond]


def test_under_active_relative_to_mean(cfo):
    dynamics = _dynamics(
        role_activity={
            "ceo": RoleActivity("ceo", total_messages=3, recent_messages=2),
            "cfo": RoleActivity("cfo", total_messages=1, recent_messages=1),
        }
    )
    assert build_role_context(cfo, [], dynamics, FixedRandom(0.9)).is_under_active is True


def test_not_under_active_when_equal(cfo):
    dynamics = _dynamics(
        role_activity={
            "ceo": RoleActivity("ceo", total_messages=2, recent_messages=2),
            "cfo": RoleActivity("cfo", total_messages=2, recent_messages=2),
        }
    )
    assert build_role_context(cfo, [], dynamics, FixedRandom(0.9)).is_under_active is False


def test_should_challenge_biased_by_temperature(cfo):
    assert build_role_context(cfo, [], _dynamics(temperature=2.0), FixedRandom(0.5)).should_challenge is True
    assert build_role_context(cfo, [], _dynamics(temperature=5.0), FixedRandom(0.5)).should_challenge is False


def test_relevant_controversies_filtered(cfo):
    relevant = ControversialTopic("Budget cuts", "financial risks are too high", ["CEO", "CTO"], 1)
    irrelevant = ControversialTopic("Office colours", "blue is nicer", ["CEO", "CTO"], 1)
    dynamics = _dynamics(controversial_topics=[relevant, irrelevant])
    context = build_role_context(cfo, [], dynamics, FixedRandom(0.9))
    assert context.relevant_controversies == [relevant]


def test_expertise_needed_for_relevant_unanswered_points(cfo):
    other = UnansweredPoint("What is the budget and financial risk?", "CEO", "m1")
    own = UnansweredPoint("What is the budget and financial risk?", "CFO", "m2")
    unrelated = UnansweredPoint("Which colour should the logo be?", "CEO", "m3")
    dynamics = _dynamics(unanswered_points=[other, own, unrelated])
    context = build_role_context(cfo, [], dynamics, FixedRandom(0.9))
    assert context.expertise_needed == [other]


def test_opening_prompt_contents(ceo, bare_session):
    prompt = compose_opening_prompt(PromptsConfig(), ceo, bare_session)
    assert prompt.startswith(language_instructions("en")[0])
    assert prompt.rstrip().endswith(language_instructions("en")[1])
    assert "CEO" in prompt
    assert bare_session.topic.title in prompt
    assert bare_session.goal.name in prompt
    assert "Discussion style:" in prompt


def test_phase_prompt_forbids_reintroduction(cfo, bare_session):
    prior = [m for t in bare_session.turns for m in t.messages]
    context = RoleContext(messages_to_respond=[prior[0]], should_challenge=True)
    prompt = compose_phase_prompt(
        PromptsConfig(), cfo, bare_session, prior, "problem_analysis", "Analyse the problem.", context
    )
    assert "Do not introduce yourself again" in prompt
    assert "Current phase: problem analysis" in prompt
    assert "Analyse the problem." in prompt
    assert "Respond explicitly to these contributions" in prompt
    assert prior[0].content in prompt
    assert "Challenge at least one assumption" in prompt


def test_phase_prompt_without_context_has_no_context_block(cfo, bare_session):
    prompt = compose_phase_prompt(
        PromptsConfig(), cfo, bare_session, [], "root_cause", "Why?", RoleContext()
    )
    assert "Respond explicitly" not in prompt
    assert "(no messages yet)" in prompt


def test_intervention_prompt_checks_relevance(ceo, bare_session):
    user_message = make_message("u1", "user", "What about the Polish market instead?", user_name="Sam")
    prompt = compose_intervention_prompt(PromptsConfig(), ceo, bare_session, [], user_message)
    assert "What about the Polish market instead?" in prompt
    assert "Sam interrupts" in prompt
    assert "not relevant" in prompt
    assert "Discussion style:" in prompt


def test_report_prompt_lists_participants(bare_session):
    prompt = compose_report_prompt(PromptsConfig(), bare_session, "TRANSCRIPT")
    assert "Participants: CEO, CFO" in prompt
    assert "TRANSCRIPT" in prompt
    assert '"keyPoints"' in prompt


def test_topics_prompt_language():
    prompt = compose_topics_prompt(PromptsConfig(), "Quarterly results were weak.", "de")
    assert "Quarterly results were weak." in prompt
    assert language_instructions("de")[1] in prompt


def test_custom_template(ceo, bare_session):
    prompts = PromptsConfig(opening="{role_name} on {topic_title}")
    assert compose_opening_prompt(prompts, ceo, bare_session) == "CEO on Expansion to Germany"
