"""
Lifecycle orchestration for objectives.

Each public operation of ``ObjectiveLifecycle`` is one unit of work: it runs
inside ``transaction.atomic()``, locks the objective row before checking any
state, applies the change, recomputes progress and health from a single read
of the key results, appends the audit rows and schedules the matching fact
for delivery after commit. Any error rolls the whole unit back.
"""
import enum
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.utils import timezone

from accounts.identity import Caller
from subscriptions.limits import KEY_RESULT, OBJECTIVE, check_creation_limit

from .choices import ApprovalStatus, Confidence, ContributorRole, Level, MetricType, ObjectiveStatus
from .engine import apply_transition, check_parent_level, classify_health, compute_progress
from .engine.health import HealthReport
from .engine.workflow import get_transition
from .events import emit_event
from .exceptions import LimitExceeded, NotFound, ValidationError, WorkflowViolation
from .models import ApprovalHistoryEntry, Contributor, KeyResult, Objective, ProgressHistoryEntry
from .permissions import authorize_delete, authorize_edit, authorize_transition

logger = logging.getLogger(__name__)

# Fields that define what an objective is; editable only while in draft
DEFINITION_FIELDS = ("title", "description", "level", "period", "due_date", "parent_id", "team_id", "owner_id")
KEY_RESULT_FIELDS = (
    "description", "metric_type", "start_value", "target_value",
    "current_value", "unit", "status", "confidence",
)
DELETABLE_STATES = (ApprovalStatus.DRAFT, ApprovalStatus.ARCHIVED)

# DecimalField(max_digits=15, decimal_places=2)
MAX_DECIMAL = Decimal("9999999999999.99")
CENTS = Decimal("0.01")


def _require_text(data: Dict[str, Any], name: str) -> str:
    value = data.get(name)
    if value is None or not str(value).strip():
        raise ValidationError(f"{name} is required", field=name)
    return str(value).strip()


def _check_choice(value: Any, choices, name: str) -> str:
    if value not in choices.values:
        raise ValidationError(f"Invalid {name}: {value}", field=name)
    return str(value)


def _to_decimal(value: Any, name: str) -> Decimal:
    try:
        number = Decimal(str(value)).quantize(CENTS)
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError(f"{name} must be a number", field=name)
    if abs(number) > MAX_DECIMAL:
        raise ValidationError(f"{name} is out of range", field=name)
    return number


def _to_date(value: Any, name: str) -> Optional[date]:
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(f"{name} must be an ISO date (YYYY-MM-DD)", field=name)


def _to_int(value: Any, name: str, allow_none: bool = True) -> Optional[int]:
    if value in (None, ""):
        if allow_none:
            return None
        raise ValidationError(f"{name} is required", field=name)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be an integer", field=name)


def clean_objective_fields(data: Dict[str, Any], partial: bool = False) -> Dict[str, Any]:
    """Validate and normalize objective definition fields present in ``data``."""
    cleaned: Dict[str, Any] = {}
    if not partial or "title" in data:
        cleaned["title"] = _require_text(data, "title")
        if len(cleaned["title"]) > 255:
            raise ValidationError("title must be at most 255 characters", field="title")
    if not partial or "level" in data:
        cleaned["level"] = _check_choice(data.get("level"), Level, "level")
    if not partial or "period" in data:
        cleaned["period"] = _require_text(data, "period")
    if "description" in data:
        cleaned["description"] = data.get("description") or ""
    if "due_date" in data:
        cleaned["due_date"] = _to_date(data.get("due_date"), "due_date")
    if "parent_id" in data:
        cleaned["parent_id"] = data.get("parent_id") or None
    if "team_id" in data:
        cleaned["team_id"] = _to_int(data.get("team_id"), "team_id")
    if "owner_id" in data:
        cleaned["owner_id"] = _to_int(data.get("owner_id"), "owner_id", allow_none=not partial)
    return cleaned


def clean_key_result_fields(data: Dict[str, Any], partial: bool = False) -> Dict[str, Any]:
    """Validate and normalize key result fields; fills creation defaults unless ``partial``."""
    cleaned: Dict[str, Any] = {}
    if not partial or "description" in data:
        cleaned["description"] = _require_text(data, "description")
    if "metric_type" in data or not partial:
        cleaned["metric_type"] = _check_choice(data.get("metric_type") or MetricType.NUMBER, MetricType, "metric_type")
    if "start_value" in data or not partial:
        start = data.get("start_value")
        cleaned["start_value"] = _to_decimal(0 if start is None else start, "start_value")
    if "target_value" in data or not partial:
        if data.get("target_value") is None:
            raise ValidationError("target_value is required", field="target_value")
        cleaned["target_value"] = _to_decimal(data["target_value"], "target_value")
    if "current_value" in data:
        if data["current_value"] is None:
            raise ValidationError("current_value cannot be null", field="current_value")
        cleaned["current_value"] = _to_decimal(data["current_value"], "current_value")
    elif not partial:
        cleaned["current_value"] = cleaned["start_value"]
    if "unit" in data or not partial:
        cleaned["unit"] = data.get("unit") or ""
    if "status" in data or not partial:
        cleaned["status"] = _check_choice(data.get("status") or ObjectiveStatus.DRAFT, ObjectiveStatus, "status")
    if "confidence" in data or not partial:
        cleaned["confidence"] = _check_choice(data.get("confidence") or Confidence.MEDIUM, Confidence, "confidence")
    return cleaned


def validate_parent(child_level: str, parent_id: Any, company_id: int) -> Objective:
    """
    Resolve a prospective parent and check that its level sits strictly above ``child_level``.

    Raises:
        NotFound: the parent does not exist in the caller's company
        LevelMismatchError: the parent level is not broader than the child level
    """
    try:
        parent = Objective.objects.get(pk=parent_id, company_id=company_id)
    except (Objective.DoesNotExist, DjangoValidationError, ValueError):
        raise NotFound("Parent objective not found")
    check_parent_level(child_level, parent.level)
    return parent


class MutationKind(str, enum.Enum):
    CREATE_OBJECTIVE = "create_objective"
    UPDATE_OBJECTIVE = "update_objective"
    DELETE_OBJECTIVE = "delete_objective"
    ADD_KEY_RESULT = "add_key_result"
    UPDATE_KEY_RESULT = "update_key_result"
    DELETE_KEY_RESULT = "delete_key_result"
    TRANSITION = "transition"
    ADD_CONTRIBUTOR = "add_contributor"
    UPDATE_CONTRIBUTOR_ROLE = "update_contributor_role"
    REMOVE_CONTRIBUTOR = "remove_contributor"


@dataclass(frozen=True)
class ObjectiveMutation:
    kind: MutationKind
    objective_id: Any = None
    key_result_id: Any = None
    contributor_id: Optional[int] = None
    action: Optional[str] = None
    comment: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)


class ObjectiveLifecycle:
    """
    Sequences authorization, invariants, persistence, recomputation and audit
    for every change to an objective or its key results.

    Args:
        limit_checker: Subscription limit check, signature of ``check_creation_limit``
        emit: Fact emitter, signature of ``emit_event``
        clock: Returns the current aware datetime
    """

    def __init__(
        self,
        limit_checker: Callable = check_creation_limit,
        emit: Callable = emit_event,
        clock: Callable[[], datetime] = timezone.now,
    ):
        self.limit_checker = limit_checker
        self.emit = emit
        self.clock = clock

    # Helpers

    def _lock_objective(self, caller: Caller, objective_id: Any) -> Objective:
        try:
            return Objective.objects.select_for_update().get(pk=objective_id, company_id=caller.company_id)
        except (Objective.DoesNotExist, DjangoValidationError, ValueError):
            raise NotFound("Objective not found")

    def _enforce_limit(self, caller: Caller, kind: str, objective_id: Any = None) -> None:
        decision = self.limit_checker(caller.company_id, caller.id, caller.role, kind, objective_id=objective_id)
        if not decision.allowed:
            logger.warning(f"Creation of {kind} denied for user {caller.id} in company {caller.company_id}")
            raise LimitExceeded(
                decision.reason or "Subscription limit reached",
                usage=decision.usage,
                limits=decision.limits,
            )

    def _create_key_result(self, objective: Objective, data: Dict[str, Any]) -> KeyResult:
        fields = clean_key_result_fields(data)
        return KeyResult.objects.create(objective=objective, **fields)

    def recompute(self, objective: Objective) -> HealthReport:
        """
        Recompute progress and status of ``objective`` from one read of its key results.

        Writes only when a derived value changed, so repeated calls are no-ops.
        """
        key_results = list(KeyResult.objects.filter(objective=objective))
        progress = compute_progress(key_results)
        report = classify_health(progress, objective.due_date, objective.created_at, key_results, now=self.clock())
        if progress != objective.progress or report.status != objective.status:
            objective.progress = progress
            objective.status = report.status
            objective.save(update_fields=["progress", "status", "updated_at"])
        return report

    # Objectives

    def create_objective(self, caller: Caller, data: Dict[str, Any]) -> Objective:
        data = dict(data)
        key_results = data.pop("key_results", None) or []
        fields = clean_objective_fields(data)
        fields["owner_id"] = fields.get("owner_id") or caller.id
        parent_id = fields.pop("parent_id", None)

        with transaction.atomic():
            self._enforce_limit(caller, OBJECTIVE)
            parent = validate_parent(fields["level"], parent_id, caller.company_id) if parent_id else None

            objective = Objective.objects.create(company_id=caller.company_id, parent=parent, **fields)
            for kr_data in key_results:
                self._enforce_limit(caller, KEY_RESULT, objective_id=objective.pk)
                self._create_key_result(objective, kr_data)

            self.recompute(objective)
            self.emit("objective.created", objective, caller.id)

        logger.info(f"Objective {objective.pk} created by user {caller.id} with {len(key_results)} key result(s)")
        return objective

    def update_objective(self, caller: Caller, objective_id: Any, data: Dict[str, Any]) -> Objective:
        changes = {name: data[name] for name in DEFINITION_FIELDS if name in data}

        with transaction.atomic():
            objective = self._lock_objective(caller, objective_id)
            authorize_edit(caller, objective)
            if changes and objective.approval_status != ApprovalStatus.DRAFT:
                raise WorkflowViolation("update", objective.approval_status, [ApprovalStatus.DRAFT.value])

            cleaned = clean_objective_fields(changes, partial=True)
            new_level = cleaned.get("level", objective.level)

            if "parent_id" in cleaned:
                if cleaned["parent_id"] is not None:
                    validate_parent(new_level, cleaned["parent_id"], caller.company_id)
            elif "level" in cleaned and objective.parent_id:
                validate_parent(new_level, objective.parent_id, caller.company_id)

            if "level" in cleaned and new_level != objective.level:
                for child_level in objective.children.values_list("level", flat=True):
                    check_parent_level(child_level, new_level)

            new_owner = cleaned.get("owner_id")
            if new_owner is not None and objective.contributors.filter(user_id=new_owner).exists():
                raise ValidationError(
                    "The new owner is a contributor; remove the contributor link first", field="owner_id"
                )

            for name, value in cleaned.items():
                setattr(objective, name, value)
            objective.save()

            self.recompute(objective)
            self.emit("objective.updated", objective, caller.id, fields=sorted(cleaned))

        logger.info(f"Objective {objective.pk} updated by user {caller.id}: {', '.join(sorted(cleaned)) or 'no changes'}")
        return objective

    def delete_objective(self, caller: Caller, objective_id: Any) -> None:
        with transaction.atomic():
            objective = self._lock_objective(caller, objective_id)
            authorize_delete(caller, objective)
            if objective.approval_status not in DELETABLE_STATES:
                raise WorkflowViolation("delete", objective.approval_status, [s.value for s in DELETABLE_STATES])

            self.emit("objective.deleted", objective, caller.id)
            objective.delete()

        logger.info(f"Objective {objective_id} deleted by user {caller.id}")

    # Key results

    def _locate_key_result(self, caller: Caller, key_result_id: Any):
        """Lock the owning objective first, then read the key result under that lock."""
        try:
            objective_id = (
                KeyResult.objects.filter(pk=key_result_id, objective__company_id=caller.company_id)
                .values_list("objective_id", flat=True)
                .first()
            )
        except (DjangoValidationError, ValueError):
            objective_id = None
        if objective_id is None:
            raise NotFound("Key result not found")
        objective = self._lock_objective(caller, objective_id)
        try:
            return objective, objective.key_results.get(pk=key_result_id)
        except KeyResult.DoesNotExist:
            raise NotFound("Key result not found")

    def add_key_result(self, caller: Caller, objective_id: Any, data: Dict[str, Any]) -> KeyResult:
        with transaction.atomic():
            objective = self._lock_objective(caller, objective_id)
            authorize_edit(caller, objective)
            self._enforce_limit(caller, KEY_RESULT, objective_id=objective.pk)

            key_result = self._create_key_result(objective, data)
            self.recompute(objective)
            self.emit("key_result.created", objective, caller.id, key_result_id=str(key_result.pk))

        logger.info(f"Key result {key_result.pk} added to objective {objective.pk} by user {caller.id}")
        return key_result

    def update_key_result(self, caller: Caller, key_result_id: Any, data: Dict[str, Any]) -> KeyResult:
        with transaction.atomic():
            objective, key_result = self._locate_key_result(caller, key_result_id)
            authorize_edit(caller, objective)

            cleaned = clean_key_result_fields({k: data[k] for k in KEY_RESULT_FIELDS if k in data}, partial=True)
            previous_value = key_result.current_value
            for name, value in cleaned.items():
                setattr(key_result, name, value)
            key_result.save()

            if "current_value" in cleaned and cleaned["current_value"] != previous_value:
                ProgressHistoryEntry.objects.create(
                    objective=objective,
                    key_result=key_result,
                    previous_value=previous_value,
                    new_value=cleaned["current_value"],
                    changed_by=caller.id,
                )

            self.recompute(objective)
            self.emit(
                "key_result.updated",
                objective,
                caller.id,
                key_result_id=str(key_result.pk),
                progress=objective.progress,
                status=objective.status,
            )

        logger.info(f"Key result {key_result.pk} updated by user {caller.id}; objective progress {objective.progress}")
        return key_result

    def delete_key_result(self, caller: Caller, key_result_id: Any) -> Objective:
        with transaction.atomic():
            objective, key_result = self._locate_key_result(caller, key_result_id)
            authorize_edit(caller, objective)

            key_result.delete()
            self.recompute(objective)
            self.emit("key_result.deleted", objective, caller.id, key_result_id=str(key_result_id))

        logger.info(f"Key result {key_result_id} deleted by user {caller.id}")
        return objective

    # Workflow

    def transition(self, caller: Caller, objective_id: Any, action: str, comment: Optional[str] = None) -> Objective:
        with transaction.atomic():
            objective = self._lock_objective(caller, objective_id)
            get_transition(action)
            authorize_transition(caller, objective, action)

            result = apply_transition(objective, action, caller.id, comment=comment, now=self.clock())
            objective.save(update_fields=["approval_status", "approved_by", "approved_at", "updated_at"])
            ApprovalHistoryEntry.objects.create(
                objective=objective,
                action=result.history_action,
                from_status=result.previous_status,
                to_status=result.new_status,
                actor_id=caller.id,
                comment=result.comment or "",
            )
            self.emit(
                f"objective.{result.action}",
                objective,
                caller.id,
                from_status=result.previous_status,
                to_status=result.new_status,
                comment=result.comment,
            )

        logger.info(
            f"Objective {objective.pk} {result.history_action} by user {caller.id} "
            f"({result.previous_status} -> {result.new_status})"
        )
        return objective

    # Contributors

    def add_contributor(
        self, caller: Caller, objective_id: Any, user_id: Any, role: str = ContributorRole.CONTRIBUTOR
    ) -> Contributor:
        user_id = _to_int(user_id, "user_id", allow_none=False)
        role = _check_choice(role or ContributorRole.CONTRIBUTOR, ContributorRole, "role")

        with transaction.atomic():
            objective = self._lock_objective(caller, objective_id)
            authorize_edit(caller, objective)
            if user_id == objective.owner_id:
                raise ValidationError("The owner of an objective cannot be added as a contributor", field="user_id")
            if objective.contributors.filter(user_id=user_id).exists():
                raise ValidationError("This user is already a contributor", field="user_id")

            contributor = Contributor.objects.create(objective=objective, user_id=user_id, role=role)
            self.emit("objective.contributor_added", objective, caller.id, user_id=user_id, role=role)

        logger.info(f"User {user_id} added as {role} on objective {objective.pk} by user {caller.id}")
        return contributor

    def _get_contributor(self, objective: Objective, contributor_id: Any) -> Contributor:
        try:
            return objective.contributors.get(pk=contributor_id)
        except (Contributor.DoesNotExist, ValueError):
            raise NotFound("Contributor not found")

    def update_contributor_role(self, caller: Caller, objective_id: Any, contributor_id: Any, role: str) -> Contributor:
        role = _check_choice(role, ContributorRole, "role")

        with transaction.atomic():
            objective = self._lock_objective(caller, objective_id)
            authorize_edit(caller, objective)
            contributor = self._get_contributor(objective, contributor_id)
            contributor.role = role
            contributor.save()

        logger.info(f"Contributor {contributor.pk} on objective {objective.pk} is now {role}")
        return contributor

    def remove_contributor(self, caller: Caller, objective_id: Any, contributor_id: Any) -> None:
        with transaction.atomic():
            objective = self._lock_objective(caller, objective_id)
            authorize_edit(caller, objective)
            contributor = self._get_contributor(objective, contributor_id)
            self.emit("objective.contributor_removed", objective, caller.id, user_id=contributor.user_id)
            contributor.delete()

        logger.info(f"Contributor {contributor_id} removed from objective {objective.pk} by user {caller.id}")

    # Generic entry point

    def mutate(self, caller: Caller, mutation: ObjectiveMutation) -> Optional[Objective]:
        """
        Apply ``mutation`` and return the refreshed objective (None after deleting it).
        """
        kind = MutationKind(mutation.kind)
        data = mutation.data

        if kind is MutationKind.CREATE_OBJECTIVE:
            return self.create_objective(caller, data)
        if kind is MutationKind.UPDATE_OBJECTIVE:
            return self.update_objective(caller, mutation.objective_id, data)
        if kind is MutationKind.DELETE_OBJECTIVE:
            self.delete_objective(caller, mutation.objective_id)
            return None
        if kind is MutationKind.ADD_KEY_RESULT:
            key_result = self.add_key_result(caller, mutation.objective_id, data)
            return Objective.objects.get(pk=key_result.objective_id)
        if kind is MutationKind.UPDATE_KEY_RESULT:
            key_result = self.update_key_result(caller, mutation.key_result_id, data)
            return Objective.objects.get(pk=key_result.objective_id)
        if kind is MutationKind.DELETE_KEY_RESULT:
            return self.delete_key_result(caller, mutation.key_result_id)
        if kind is MutationKind.TRANSITION:
            return self.transition(caller, mutation.objective_id, mutation.action, comment=mutation.comment)
        if kind is MutationKind.ADD_CONTRIBUTOR:
            self.add_contributor(caller, mutation.objective_id, data.get("user_id"), data.get("role"))
        elif kind is MutationKind.UPDATE_CONTRIBUTOR_ROLE:
            self.update_contributor_role(caller, mutation.objective_id, mutation.contributor_id, data.get("role"))
        elif kind is MutationKind.REMOVE_CONTRIBUTOR:
            self.remove_contributor(caller, mutation.objective_id, mutation.contributor_id)
        return Objective.objects.get(pk=mutation.objective_id)
