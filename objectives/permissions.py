"""
Who may drive which change on an objective.

Transition rights come from ``TRANSITION_GATES``; data mutations require the
caller to be a participant (owner, contributor or elevated role).
"""
from accounts.identity import Caller

from .choices import WorkflowAction
from .exceptions import NotAuthorized

ELEVATED = "elevated"
PARTICIPANT = "participant"

TRANSITION_GATES = {
    WorkflowAction.SUBMIT_FOR_REVIEW: PARTICIPANT,
    WorkflowAction.APPROVE: ELEVATED,
    WorkflowAction.REJECT: ELEVATED,
    WorkflowAction.ACTIVATE: ELEVATED,
    WorkflowAction.PAUSE: ELEVATED,
    WorkflowAction.RESUME: ELEVATED,
    WorkflowAction.STOP: ELEVATED,
    WorkflowAction.REOPEN: ELEVATED,
    WorkflowAction.ARCHIVE: PARTICIPANT,
    WorkflowAction.REVERT_TO_DRAFT: PARTICIPANT,
}


def is_owner(caller: Caller, objective) -> bool:
    return objective.owner_id == caller.id


def is_contributor(caller: Caller, objective) -> bool:
    return objective.contributors.filter(user_id=caller.id).exists()


def is_participant(caller: Caller, objective) -> bool:
    return caller.is_elevated or is_owner(caller, objective) or is_contributor(caller, objective)


def can_transition(caller: Caller, objective, action: str) -> bool:
    gate = TRANSITION_GATES[action]
    if gate == ELEVATED:
        return caller.is_elevated
    return is_participant(caller, objective)


def authorize_transition(caller: Caller, objective, action: str) -> None:
    if not can_transition(caller, objective, action):
        raise NotAuthorized(f"You are not allowed to {action.replace('_', ' ')} this objective")


def authorize_edit(caller: Caller, objective) -> None:
    if not is_participant(caller, objective):
        raise NotAuthorized("Only the owner, a contributor or an admin can modify this objective")


def authorize_delete(caller: Caller, objective) -> None:
    if not (caller.is_elevated or is_owner(caller, objective)):
        raise NotAuthorized("Only the owner or an admin can delete this objective")
