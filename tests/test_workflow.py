from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from objectives.engine import TRANSITIONS, apply_transition
from objectives.exceptions import ValidationError, WorkflowViolation

STATES = ["draft", "pending_review", "approved", "active", "paused", "stopped", "archived"]
NOW = datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc)


def objective(status="draft"):
    return SimpleNamespace(approval_status=status, approved_by=None, approved_at=None)


def test_approve_from_draft_is_a_workflow_violation():
    obj = objective("draft")
    with pytest.raises(WorkflowViolation) as excinfo:
        apply_transition(obj, "approve", actor_id=2)
    assert excinfo.value.current_state == "draft"
    assert excinfo.value.expected_states == ["pending_review"]
    assert obj.approval_status == "draft"
    assert obj.approved_by is None


def test_approve_from_pending_review_stamps_approver():
    obj = objective("pending_review")
    result = apply_transition(obj, "approve", actor_id=2, now=NOW)
    assert obj.approval_status == "approved"
    assert obj.approved_by == 2
    assert obj.approved_at == NOW
    assert result.history_action == "approved"
    assert result.previous_status == "pending_review"


def test_reject_requires_a_comment():
    obj = objective("pending_review")
    for comment in (None, "", "   "):
        with pytest.raises(ValidationError):
            apply_transition(obj, "reject", actor_id=2, comment=comment)
    assert obj.approval_status == "pending_review"


def test_reject_checks_state_before_comment():
    with pytest.raises(WorkflowViolation):
        apply_transition(objective("draft"), "reject", actor_id=2)


def test_reject_with_comment_returns_to_draft():
    obj = objective("pending_review")
    result = apply_transition(obj, "reject", actor_id=2, comment="  Needs a measurable target ")
    assert obj.approval_status == "draft"
    assert result.history_action == "rejected"
    assert result.comment == "Needs a measurable target"


def test_full_lifecycle():
    obj = objective()
    path = ["submit_for_review", "approve", "activate", "pause", "resume", "stop", "reopen", "pause", "stop", "archive"]
    for action in path:
        apply_transition(obj, action, actor_id=2)
    assert obj.approval_status == "archived"


@pytest.mark.parametrize("action", sorted(TRANSITIONS))
def test_archived_is_terminal(action):
    with pytest.raises(WorkflowViolation):
        apply_transition(objective("archived"), action, actor_id=2, comment="x")


@pytest.mark.parametrize(
    "action,state",
    [(a, s) for a, t in sorted(TRANSITIONS.items()) for s in STATES if s not in t.sources],
)
def test_actions_outside_their_source_states_fail(action, state):
    obj = objective(state)
    with pytest.raises(WorkflowViolation):
        apply_transition(obj, action, actor_id=2, comment="x")
    assert obj.approval_status == state


def test_revert_to_draft_from_approved():
    obj = objective("approved")
    result = apply_transition(obj, "revert_to_draft", actor_id=1)
    assert obj.approval_status == "draft"
    assert result.history_action == "reverted_to_draft"


def test_unknown_action_is_a_validation_error():
    with pytest.raises(ValidationError):
        apply_transition(objective(), "publish", actor_id=1)
