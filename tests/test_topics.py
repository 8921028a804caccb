"""Tests for roundtable/topics.py."""

import json
import logging
from unittest.mock import AsyncMock

import pytest

from roundtable.errors import TopicGenerationError
from roundtable.providers.base import ProviderError
from roundtable.topics import FALLBACK_TOPICS, generate_topics, parse_topics

from tests.conftest import MockProvider

TOPICS = [
    {"id": "pricing", "title": "Pricing model", "description": "Subscription or licence?"},
    {"id": "hiring", "title": "Hiring plan", "description": "Who do we hire first?"},
]


def test_parse_plain_json():
    topics = parse_topics(json.dumps(TOPICS))
    assert [t.id for t in topics] == ["pricing", "hiring"]
    assert topics[0].title == "Pricing model"


def test_parse_fenced_json_with_prose():
    text = "Sure! Here you go:\n```json\n" + json.dumps(TOPICS) + "\n```\nGood luck."
    assert [t.id for t in parse_topics(text)] == ["pricing", "hiring"]


def test_parse_repairs_sloppy_json():
    text = "[{id: 'a', title: 'Alpha', description: 'First',}, {id: 'b', title: 'Beta', description: 'Second'},]"
    topics = parse_topics(text)
    assert [(t.id, t.title) for t in topics] == [("a", "Alpha"), ("b", "Beta")]


def test_parse_repair_keeps_apostrophes_in_double_quoted_strings():
    text = '[{"id": "a", "title": "The company\'s roadmap", "description": "It\'s time, really",},]'
    topics = parse_topics(text)
    assert topics[0].title == "The company's roadmap"
    assert topics[0].description == "It's time, really"


def test_parse_repair_single_quoted_value_with_apostrophe():
    text = "[{id: 'a', title: 'Our customers' wishes', description: 'Say \"why\"'}]"
    topics = parse_topics(text)
    assert topics[0].title == "Our customers' wishes"
    assert topics[0].description == 'Say "why"'


def test_parse_fills_missing_fields():
    topics = parse_topics(json.dumps([{"name": "Only a name"}, {}]))
    assert topics[0].id == "topic-1"
    assert topics[0].title == "Only a name"
    assert topics[0].description == "No description available"
    assert topics[1].title == "Discussion topic 2"


def test_parse_garbage_returns_fallback(caplog):
    with caplog.at_level(logging.WARNING, logger="roundtable.topics"):
        topics = parse_topics("I cannot help with that.")
    assert topics == list(FALLBACK_TOPICS)
    assert len(topics) == 3
    assert "fallback" in caplog.text


def test_parse_empty_array_returns_fallback():
    assert parse_topics("[]") == list(FALLBACK_TOPICS)


async def test_generate_topics():
    provider = MockProvider(response_content=json.dumps(TOPICS))
    topics = await generate_topics(provider, "Our quarterly results were weak.", language="en")
    assert len(topics) == 2
    prompt = provider.generate.await_args.args[0]
    assert "Our quarterly results were weak." in prompt


@pytest.mark.parametrize("content", ["", "   "])
async def test_generate_topics_requires_content(content):
    provider = MockProvider()
    with pytest.raises(ValueError):
        await generate_topics(provider, content)
    provider.generate.assert_not_awaited()


async def test_generate_topics_gateway_failure():
    provider = MockProvider()
    provider.generate = AsyncMock(side_effect=ProviderError("mock", "down"))
    with pytest.raises(TopicGenerationError):
        await generate_topics(provider, "Some content")
