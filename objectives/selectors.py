"""
Read-side queries for objectives. Everything is scoped to the caller's company.
"""
import uuid
from typing import Any, Dict, List, Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db.models import Avg, Count, Prefetch, Q, QuerySet

from accounts.identity import Caller

from .choices import ApprovalStatus, ObjectiveStatus
from .engine.hierarchy import allowed_parent_levels
from .engine.progress import round_half_up
from .exceptions import NotFound, ValidationError
from .models import ApprovalHistoryEntry, Contributor, KeyResult, Objective, ProgressHistoryEntry

PROGRESS_HISTORY_LIMIT = 50

FILTERS = {
    "owner_id": "owner_id",
    "level": "level",
    "period": "period",
    "status": "status",
    "approval_status": "approval_status",
    "parent_id": "parent_id",
}

# Query parameters that must parse before they reach the ORM
FILTER_PARSERS = {
    "owner_id": int,
    "parent_id": uuid.UUID,
}


def parse_filter(param: str, value: Any) -> Any:
    parser = FILTER_PARSERS.get(param)
    if parser is None:
        return value
    try:
        return parser(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid value for '{param}': {value}", field=param)


def objectives_for_company(company_id: int) -> QuerySet:
    return (
        Objective.objects.filter(company_id=company_id)
        .select_related("parent")
        .annotate(children_count=Count("children", distinct=True))
        .prefetch_related(
            Prefetch("key_results", queryset=KeyResult.objects.order_by("created_at")),
            "contributors",
        )
    )


def list_objectives(caller: Caller, filters: Optional[Dict[str, Any]] = None) -> QuerySet:
    """
    Objectives visible to ``caller``, newest first.

    Elevated callers see the whole company; everyone else only sees the
    objectives they own.
    """
    queryset = objectives_for_company(caller.company_id)
    if not caller.is_elevated:
        queryset = queryset.filter(owner_id=caller.id)
    for param, lookup in FILTERS.items():
        value = (filters or {}).get(param)
        if value not in (None, ""):
            queryset = queryset.filter(**{lookup: parse_filter(param, value)})
    return queryset.order_by("-created_at")


def get_objective(caller: Caller, objective_id: Any) -> Objective:
    try:
        return objectives_for_company(caller.company_id).get(pk=objective_id)
    except (Objective.DoesNotExist, DjangoValidationError, ValueError):
        raise NotFound("Objective not found")


def get_children(caller: Caller, objective_id: Any) -> QuerySet:
    parent = get_objective(caller, objective_id)
    return objectives_for_company(caller.company_id).filter(parent=parent).order_by("level", "created_at")


def get_ancestors(caller: Caller, objective_id: Any) -> List[Objective]:
    """Breadcrumb from the root down to, but excluding, the objective itself."""
    objective = get_objective(caller, objective_id)
    ancestors = []
    seen = {objective.pk}
    parent_id = objective.parent_id
    while parent_id is not None and parent_id not in seen:
        parent = Objective.objects.filter(pk=parent_id, company_id=caller.company_id).first()
        if parent is None:
            break
        ancestors.append(parent)
        seen.add(parent.pk)
        parent_id = parent.parent_id
    ancestors.reverse()
    return ancestors


def get_hierarchy(caller: Caller, period: Optional[str] = None) -> List[Dict[str, Any]]:
    """
    Objectives arranged as a forest of ``{"objective", "children"}`` nodes.

    An objective whose parent falls outside the selection becomes a root.
    """
    queryset = objectives_for_company(caller.company_id)
    if period:
        queryset = queryset.filter(period=period)
    objectives = list(queryset.order_by("level", "created_at"))

    nodes = {obj.pk: {"objective": obj, "children": []} for obj in objectives}
    roots = []
    for obj in objectives:
        node = nodes[obj.pk]
        if obj.parent_id is not None and obj.parent_id in nodes:
            nodes[obj.parent_id]["children"].append(node)
        else:
            roots.append(node)
    return roots


def get_available_parents(caller: Caller, level: str, exclude_id: Any = None) -> QuerySet:
    queryset = Objective.objects.filter(company_id=caller.company_id, level__in=allowed_parent_levels(level))
    if exclude_id:
        try:
            queryset = queryset.exclude(pk=exclude_id)
        except (DjangoValidationError, ValueError):
            pass
    return queryset.order_by("level", "title")


def get_pending_approvals(caller: Caller) -> QuerySet:
    queryset = objectives_for_company(caller.company_id).filter(approval_status=ApprovalStatus.PENDING_REVIEW)
    if not caller.is_elevated:
        queryset = queryset.filter(owner_id=caller.id)
    return queryset.order_by("updated_at")


def get_stats(caller: Caller) -> Dict[str, int]:
    queryset = Objective.objects.filter(company_id=caller.company_id)
    if not caller.is_elevated:
        queryset = queryset.filter(owner_id=caller.id)
    stats = queryset.aggregate(
        total=Count("id"),
        avg_progress=Avg("progress"),
        at_risk=Count("id", filter=Q(status__in=[ObjectiveStatus.AT_RISK, ObjectiveStatus.OFF_TRACK])),
        completed=Count("id", filter=Q(status=ObjectiveStatus.COMPLETED)),
    )
    avg = stats["avg_progress"]
    return {
        "total_objectives": stats["total"] or 0,
        "avg_progress": round_half_up(float(avg)) if avg is not None else 0,
        "at_risk_count": stats["at_risk"] or 0,
        "completed_count": stats["completed"] or 0,
    }


def get_progress_history(caller: Caller, objective_id: Any) -> QuerySet:
    objective = get_objective(caller, objective_id)
    return (
        ProgressHistoryEntry.objects.filter(objective=objective)
        .select_related("key_result")
        .order_by("-created_at", "-id")[:PROGRESS_HISTORY_LIMIT]
    )


def get_approval_history(caller: Caller, objective_id: Any) -> QuerySet:
    objective = get_objective(caller, objective_id)
    return ApprovalHistoryEntry.objects.filter(objective=objective).order_by("-created_at", "-id")


def get_contributors(caller: Caller, objective_id: Any) -> QuerySet:
    objective = get_objective(caller, objective_id)
    return Contributor.objects.filter(objective=objective).order_by("created_at")


def get_my_contributions(caller: Caller) -> QuerySet:
    return (
        objectives_for_company(caller.company_id)
        .filter(contributors__user_id=caller.id)
        .order_by("-created_at")
    )
