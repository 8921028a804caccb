"""Shared pytest fixtures."""

import random
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from config.config_loader import AppConfig, DefaultsConfig, ModelConfig, RoutingConfig
from roundtable.ids import IdGenerator
from roundtable.models import STATUS_AWAITING_INPUT, Goal, Message, Role, Session, Topic, Turn
from roundtable.prompts import PromptsConfig
from roundtable.providers.base import DEFAULT_TIER, AIProvider, FunctionClass, GenerationResult
from roundtable.session import DiscussionEngine

T0 = datetime(2025, 3, 1, 9, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Returns T0, T0+1s, T0+2s, ... on successive calls."""

    def __init__(self, start: datetime = T0) -> None:
        self._now = start

    def __call__(self) -> datetime:
        current = self._now
        self._now += timedelta(seconds=1)
        return current


class MockProvider(AIProvider):
    """Test double AIProvider."""

    def __init__(self, provider_name: str = "mock", response_content: str = "Mock response") -> None:
        self._name = provider_name
        self._response_content = response_content
        # Shadow the class method with an AsyncMock at the instance level.
        # ABC check passes because generate is defined in the class body below.
        self.generate = AsyncMock(  # type: ignore[assignment]
            return_value=GenerationResult(
                text=response_content,
                provider=provider_name,
                model="mock-model",
                latency_sec=0.1,
                input_tokens=12,
                output_tokens=8,
            )
        )

    def name(self) -> str:
        return self._name

    def model_string(self) -> str:
        return "mock-model"

    async def generate(
        self,
        prompt: str,
        function_class: FunctionClass = FunctionClass.EXPERT_CHAT,
        tier: str = DEFAULT_TIER,
    ) -> GenerationResult:
        """Default implementation; replaced by AsyncMock in __init__."""
        return GenerationResult(text=self._response_content, provider=self._name, model="mock-model")


def result(text: str, provider: str = "mock") -> GenerationResult:
    return GenerationResult(text=text, provider=provider, model="mock-model")


def make_message(message_id: str, role: str, content: str, offset_sec: int = 0, **kwargs) -> Message:
    return Message(
        id=message_id,
        role=role,
        content=content,
        timestamp=T0 + timedelta(seconds=offset_sec),
        **kwargs,
    )


@pytest.fixture
def sample_model_config() -> ModelConfig:
    return ModelConfig(
        name="test_model",
        sdk="openai",
        model="test-model-1",
        api_key_env="TEST_API_KEY",
        timeout_sec=30,
        max_tokens=1024,
        base_url=None,
    )


@pytest.fixture
def sample_app_config(tmp_path: Path) -> AppConfig:
    model_cfg = ModelConfig(
        name="claude",
        sdk="anthropic",
        model="claude-sonnet-4-5",
        api_key_env="ANTHROPIC_API_KEY",
        timeout_sec=60,
        max_tokens=2048,
    )
    return AppConfig(
        defaults=DefaultsConfig(output_dir=tmp_path / "output"),
        models={"claude": model_cfg},
        routing=RoutingConfig(routes={"expert_chat": ["claude"], "analysis_generation": ["claude"]}),
        available_providers={"claude"},
    )


@pytest.fixture
def topic() -> Topic:
    return Topic(
        id="topic-1",
        title="Expansion to Germany",
        description="Should we open a sales office in Berlin next year?",
    )


@pytest.fixture
def goal() -> Goal:
    return Goal(
        id="g1",
        name="Validate the Core Hypothesis",
        description="What has to be true for this idea to succeed?",
        category="vision",
    )


@pytest.fixture
def ceo() -> Role:
    return Role(
        id="ceo",
        name="CEO",
        description="Chief Executive Officer",
        focus_area="Strategy, vision, leadership and growth",
        category="leiding_strategie",
    )


@pytest.fixture
def cfo() -> Role:
    return Role(
        id="cfo",
        name="CFO",
        description="Chief Financial Officer",
        focus_area="Budget, ROI, financial risks and scalability",
        category="leiding_strategie",
    )


@pytest.fixture
def roles(ceo: Role, cfo: Role) -> list[Role]:
    return [ceo, cfo]


@pytest.fixture
def bare_session(topic: Topic, goal: Goal, roles: list[Role]) -> Session:
    """A session with only an introduction turn, built without an engine."""
    return Session(
        id="session-1",
        topic=topic,
        goal=goal,
        roles=roles,
        created_at=T0,
        language="en",
        status=STATUS_AWAITING_INPUT,
        turns=[
            Turn(
                id="turn-1",
                turn_number=1,
                phase="introduction",
                messages=[
                    make_message("m1", "ceo", "Germany is our biggest opportunity this decade.", 1),
                    make_message("m2", "cfo", "The numbers need to add up before we commit.", 2),
                ],
                timestamp=T0 + timedelta(seconds=3),
            )
        ],
    )


@pytest.fixture
def mock_provider() -> MockProvider:
    return MockProvider()


def make_engine(provider: AIProvider, **kwargs) -> DiscussionEngine:
    """Engine with deterministic ids, randomness and clock."""
    return DiscussionEngine(
        provider,
        PromptsConfig(),
        ids=IdGenerator(random_suffix=False),
        rng=random.Random(0),
        clock=FakeClock(),
        **kwargs,
    )


@pytest.fixture
def engine(mock_provider: MockProvider) -> DiscussionEngine:
    return make_engine(mock_provider)


@pytest.fixture
async def session(engine: DiscussionEngine, topic: Topic, goal: Goal, roles: list[Role]) -> Session:
    return await engine.create_session(topic, goal, roles, language="en")
