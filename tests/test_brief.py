"""Tests for roundtable/brief.py."""

from pathlib import Path

from roundtable.brief import parse_brief


def test_parse_brief_with_frontmatter(tmp_path: Path):
    path = tmp_path / "germany.md"
    path.write_text(
        "---\ntitle: Launch in Germany\ngoal: a4\nroles: [ceo, cfo]\nlanguage: en\n---\n"
        "We are considering a launch next spring.\n",
        encoding="utf-8",
    )
    brief = parse_brief(path)
    assert brief.title == "Launch in Germany"
    assert brief.description == "We are considering a launch next spring."
    assert brief.goal == "a4"
    assert brief.roles == ["ceo", "cfo"]
    assert brief.language == "en"


def test_parse_brief_roles_as_string(tmp_path: Path):
    path = tmp_path / "b.md"
    path.write_text("---\nroles: ceo, cfo ,cpo\n---\nBody\n", encoding="utf-8")
    assert parse_brief(path).roles == ["ceo", "cfo", "cpo"]


def test_parse_brief_without_frontmatter(tmp_path: Path):
    path = tmp_path / "hybrid_work-policy.md"
    path.write_text("Should we require three office days?\n", encoding="utf-8")
    brief = parse_brief(path)
    assert brief.title == "hybrid work policy"
    assert brief.description == "Should we require three office days?"
    assert brief.goal is None
    assert brief.roles == []
    assert brief.language is None
