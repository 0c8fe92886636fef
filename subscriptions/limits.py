"""
Free vs premium creation limits.

Premium companies are unlimited. Free companies may own a fixed number of
objectives per user (by role) and a fixed number of key results per objective.
"""
import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from django.conf import settings

from objectives.models import KeyResult, Objective

from .models import CompanySubscription, Tier

logger = logging.getLogger(__name__)

FREE_LIMITS: Dict[str, Any] = {
    "okrs_per_role": {
        "admin": 1,
        "lead": 1,
        "user": 1,
    },
    "krs_per_okr": 2,
}
DEFAULT_OKRS_PER_ROLE = 1

OBJECTIVE = "objective"
KEY_RESULT = "key_result"


@dataclass(frozen=True)
class LimitDecision:
    allowed: bool
    reason: Optional[str] = None
    usage: Optional[Dict[str, Any]] = None
    limits: Optional[Dict[str, Any]] = None

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def get_tier(company_id: int) -> str:
    tier = (
        CompanySubscription.objects.filter(company_id=company_id)
        .values_list("tier", flat=True)
        .first()
    )
    return tier or getattr(settings, "OKR_DEFAULT_SUBSCRIPTION_TIER", Tier.FREE)


def is_premium(company_id: int) -> bool:
    return get_tier(company_id) == Tier.PREMIUM


def get_company_usage(company_id: int) -> Dict[str, Any]:
    return {
        "okrs": Objective.objects.filter(company_id=company_id).count(),
        "key_results": KeyResult.objects.filter(objective__company_id=company_id).count(),
    }


def get_subscription_info(company_id: int) -> Dict[str, Any]:
    premium = is_premium(company_id)
    return {
        "tier": Tier.PREMIUM.value if premium else Tier.FREE.value,
        "usage": get_company_usage(company_id),
        "limits": None if premium else FREE_LIMITS,
    }


def check_creation_limit(
    company_id: int,
    actor_id: int,
    actor_role: str,
    kind: str,
    objective_id: Any = None,
) -> LimitDecision:
    """
    Decide whether ``actor_id`` may create one more objective or key result.

    Args:
        company_id: Company whose subscription applies
        actor_id: User creating the record
        actor_role: Role of that user
        kind: "objective" or "key_result"
        objective_id: Target objective when kind is "key_result"

    Returns:
        LimitDecision; ``allowed`` is False with a reason when the free tier is exhausted
    """
    if is_premium(company_id):
        return LimitDecision(allowed=True)

    if kind == OBJECTIVE:
        count = Objective.objects.filter(company_id=company_id, owner_id=actor_id).count()
        limit = FREE_LIMITS["okrs_per_role"].get(actor_role, DEFAULT_OKRS_PER_ROLE)
        usage = {"okrs": count}
        if count >= limit:
            logger.info(f"Objective limit reached for user {actor_id} in company {company_id} ({count}/{limit})")
            return LimitDecision(
                allowed=False,
                reason=(
                    f"You have reached the limit of {limit} OKR for your role ({actor_role}) "
                    "on the Free plan. Upgrade to Premium to create more OKRs."
                ),
                usage=usage,
                limits=FREE_LIMITS,
            )
        return LimitDecision(allowed=True, usage=usage, limits=FREE_LIMITS)

    if kind == KEY_RESULT:
        count = KeyResult.objects.filter(objective_id=objective_id).count()
        limit = FREE_LIMITS["krs_per_okr"]
        usage = {"key_results": count}
        if count >= limit:
            logger.info(f"Key result limit reached for objective {objective_id} ({count}/{limit})")
            return LimitDecision(
                allowed=False,
                reason=(
                    f"You have reached the limit of {limit} Key Results per OKR on the Free plan. "
                    "Upgrade to Premium to add more Key Results."
                ),
                usage=usage,
                limits=FREE_LIMITS,
            )
        return LimitDecision(allowed=True, usage=usage, limits=FREE_LIMITS)

    raise ValueError(f"Unknown limit kind: {kind}")
