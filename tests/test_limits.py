import pytest

from objectives.models import KeyResult, Objective
from subscriptions.limits import (
    FREE_LIMITS,
    check_creation_limit,
    get_subscription_info,
    get_tier,
)
from subscriptions.models import CompanySubscription

pytestmark = pytest.mark.django_db

COMPANY = 7


def add_objective(owner_id=1, key_results=0):
    objective = Objective.objects.create(company_id=COMPANY, owner_id=owner_id, title="Goal", level="team", period="Q1")
    for i in range(key_results):
        KeyResult.objects.create(objective=objective, description=f"KR {i}", target_value=10)
    return objective


def test_default_tier_comes_from_settings(settings):
    settings.OKR_DEFAULT_SUBSCRIPTION_TIER = "free"
    assert get_tier(COMPANY) == "free"
    CompanySubscription.objects.create(company_id=COMPANY, tier="premium")
    assert get_tier(COMPANY) == "premium"


def test_premium_is_unlimited():
    CompanySubscription.objects.create(company_id=COMPANY, tier="premium")
    add_objective()
    decision = check_creation_limit(COMPANY, 1, "user", "objective")
    assert decision.allowed is True
    assert decision.reason is None


def test_free_objective_limit_is_per_owner():
    CompanySubscription.objects.create(company_id=COMPANY, tier="free")
    add_objective(owner_id=1)

    denied = check_creation_limit(COMPANY, 1, "lead", "objective")
    assert denied.allowed is False
    assert "Premium" in denied.reason
    assert denied.usage == {"okrs": 1}
    assert denied.limits == FREE_LIMITS

    assert check_creation_limit(COMPANY, 2, "user", "objective").allowed is True


def test_free_key_result_limit():
    CompanySubscription.objects.create(company_id=COMPANY, tier="free")
    objective = add_objective(key_results=1)
    assert check_creation_limit(COMPANY, 1, "user", "key_result", objective_id=objective.pk).allowed is True

    KeyResult.objects.create(objective=objective, description="Second", target_value=5)
    decision = check_creation_limit(COMPANY, 1, "user", "key_result", objective_id=objective.pk)
    assert decision.allowed is False
    assert decision.usage == {"key_results": 2}


def test_unknown_role_uses_default_limit():
    CompanySubscription.objects.create(company_id=COMPANY, tier="free")
    add_objective(owner_id=5)
    assert check_creation_limit(COMPANY, 5, "superadmin", "objective").allowed is False


def test_unknown_kind():
    CompanySubscription.objects.create(company_id=COMPANY, tier="free")
    with pytest.raises(ValueError):
        check_creation_limit(COMPANY, 1, "user", "team")


def test_subscription_info():
    CompanySubscription.objects.create(company_id=COMPANY, tier="free")
    add_objective(key_results=2)
    info = get_subscription_info(COMPANY)
    assert info["tier"] == "free"
    assert info["usage"] == {"okrs": 1, "key_results": 2}
    assert info["limits"]["krs_per_okr"] == 2

    CompanySubscription.objects.filter(company_id=COMPANY).update(tier="premium")
    assert get_subscription_info(COMPANY)["limits"] is None
