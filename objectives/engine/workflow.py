"""
Approval workflow state machine.

Only the transitions listed in ``TRANSITIONS`` exist; ``archived`` has no
outgoing edge. ``apply_transition`` mutates the objective in memory and
leaves persistence and the audit trail to the caller.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet, Optional

from ..choices import ApprovalAction, ApprovalStatus, WorkflowAction
from ..exceptions import ValidationError, WorkflowViolation


@dataclass(frozen=True)
class Transition:
    action: str
    sources: FrozenSet[str]
    target: str
    history_action: str
    comment_required: bool = False


TRANSITIONS: Dict[str, Transition] = {
    t.action: t
    for t in (
        Transition(
            WorkflowAction.SUBMIT_FOR_REVIEW,
            frozenset({ApprovalStatus.DRAFT}),
            ApprovalStatus.PENDING_REVIEW,
            ApprovalAction.SUBMITTED,
        ),
        Transition(
            WorkflowAction.APPROVE,
            frozenset({ApprovalStatus.PENDING_REVIEW}),
            ApprovalStatus.APPROVED,
            ApprovalAction.APPROVED,
        ),
        Transition(
            WorkflowAction.REJECT,
            frozenset({ApprovalStatus.PENDING_REVIEW}),
            ApprovalStatus.DRAFT,
            ApprovalAction.REJECTED,
            comment_required=True,
        ),
        Transition(
            WorkflowAction.ACTIVATE,
            frozenset({ApprovalStatus.APPROVED}),
            ApprovalStatus.ACTIVE,
            ApprovalAction.ACTIVATED,
        ),
        Transition(
            WorkflowAction.PAUSE,
            frozenset({ApprovalStatus.ACTIVE}),
            ApprovalStatus.PAUSED,
            ApprovalAction.PAUSED,
        ),
        Transition(
            WorkflowAction.RESUME,
            frozenset({ApprovalStatus.PAUSED}),
            ApprovalStatus.ACTIVE,
            ApprovalAction.RESUMED,
        ),
        Transition(
            WorkflowAction.STOP,
            frozenset({ApprovalStatus.ACTIVE, ApprovalStatus.PAUSED}),
            ApprovalStatus.STOPPED,
            ApprovalAction.STOPPED,
        ),
        Transition(
            WorkflowAction.REOPEN,
            frozenset({ApprovalStatus.STOPPED}),
            ApprovalStatus.ACTIVE,
            ApprovalAction.REOPENED,
        ),
        Transition(
            WorkflowAction.ARCHIVE,
            frozenset({ApprovalStatus.STOPPED}),
            ApprovalStatus.ARCHIVED,
            ApprovalAction.ARCHIVED,
        ),
        Transition(
            WorkflowAction.REVERT_TO_DRAFT,
            frozenset({ApprovalStatus.PENDING_REVIEW, ApprovalStatus.APPROVED}),
            ApprovalStatus.DRAFT,
            ApprovalAction.REVERTED_TO_DRAFT,
        ),
    )
}


@dataclass(frozen=True)
class TransitionResult:
    action: str
    previous_status: str
    new_status: str
    history_action: str
    comment: Optional[str] = None


def get_transition(action: str) -> Transition:
    try:
        return TRANSITIONS[action]
    except KeyError:
        raise ValidationError(f"Unknown workflow action: {action}", field="action") from None


def ensure_transition_allowed(current_status: str, action: str) -> Transition:
    transition = get_transition(action)
    if current_status not in transition.sources:
        raise WorkflowViolation(action, current_status, [str(s) for s in transition.sources])
    return transition


def apply_transition(
    objective: Any,
    action: str,
    actor_id: int,
    comment: Optional[str] = None,
    now: Optional[datetime] = None,
) -> TransitionResult:
    """
    Move ``objective.approval_status`` along ``action``.

    The state guard runs before the comment requirement, so rejecting an
    objective that is not pending review reports the workflow violation.
    On approve, ``approved_by`` and ``approved_at`` are stamped.

    Raises:
        ValidationError: unknown action, or a blank comment where one is required
        WorkflowViolation: the current status is not a source of the action
    """
    previous_status = str(objective.approval_status)
    transition = ensure_transition_allowed(previous_status, action)

    comment = (comment or "").strip() or None
    if transition.comment_required and not comment:
        raise ValidationError(f"A comment is required to {action}", field="comment")

    objective.approval_status = transition.target.value
    if transition.action == WorkflowAction.APPROVE:
        objective.approved_by = actor_id
        objective.approved_at = now or datetime.now(timezone.utc)

    return TransitionResult(
        action=transition.action.value,
        previous_status=previous_status,
        new_status=transition.target.value,
        history_action=transition.history_action.value,
        comment=comment,
    )
