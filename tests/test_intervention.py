"""Tests for roundtable/intervention.py."""

import pytest

from roundtable.errors import InvalidInterventionLength, NoTargetRoles, UnsafeInput
from roundtable.intervention import ALL_ROLES, resolve_targets, validate_intervention

VALID = "What about the costs?"   # 21 characters


def test_too_short_rejected(bare_session):
    with pytest.raises(InvalidInterventionLength):
        validate_intervention(bare_session, "a", ["ceo"])


def test_length_measured_after_trim(bare_session):
    with pytest.raises(InvalidInterventionLength):
        validate_intervention(bare_session, "   " + "x" * 19 + "   ", ["ceo"])
    text, _ = validate_intervention(bare_session, "   " + "x" * 20 + "   ", ["ceo"])
    assert text == "x" * 20


def test_length_upper_bound(bare_session):
    validate_intervention(bare_session, "x" * 250, ["ceo"])
    with pytest.raises(InvalidInterventionLength):
        validate_intervention(bare_session, "x" * 251, ["ceo"])


def test_no_targets_rejected(bare_session):
    with pytest.raises(NoTargetRoles):
        validate_intervention(bare_session, VALID, [])


def test_only_unknown_targets_rejected(bare_session):
    with pytest.raises(NoTargetRoles):
        validate_intervention(bare_session, VALID, ["cto"])


@pytest.mark.parametrize(
    "content",
    [
        "<script>alert('x')</script> is my question",
        "Please open javascript:alert(1) for me now",
        "An <img onerror=alert(1)> question for you",
        "What does eval(costs) give us in the end?",
        "Read document.cookie and tell me the result",
        "Check window.location for the answer please",
    ],
)
def test_unsafe_content_rejected(bare_session, content):
    with pytest.raises(UnsafeInput):
        validate_intervention(bare_session, content, ["ceo"])


def test_length_checked_before_unsafe_patterns(bare_session):
    with pytest.raises(InvalidInterventionLength):
        validate_intervention(bare_session, "<script>", ["ceo"])


def test_all_sentinel_targets_every_role(bare_session):
    _, targets = validate_intervention(bare_session, VALID, [ALL_ROLES])
    assert [r.id for r in targets] == ["ceo", "cfo"]


def test_targets_follow_session_order(bare_session):
    assert [r.id for r in resolve_targets(bare_session, ["cfo", "ceo"])] == ["ceo", "cfo"]


def test_unknown_targets_ignored(bare_session, caplog):
    targets = resolve_targets(bare_session, ["cfo", "cto"])
    assert [r.id for r in targets] == ["cfo"]
    assert "cto" in caplog.text
