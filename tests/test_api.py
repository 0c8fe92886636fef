import pytest
from rest_framework.test import APIClient

from subscriptions.models import CompanySubscription

pytestmark = pytest.mark.django_db

BASE = "/api/okr"


def create(client, **data):
    payload = {"title": "Grow revenue", "level": "company", "period": "Q1 2026"}
    payload.update(data)
    response = client.post(f"{BASE}/objectives/", payload, format="json")
    assert response.status_code == 201, response.data
    return response.data["data"]


def test_anonymous_requests_are_rejected():
    response = APIClient().get(f"{BASE}/objectives/")
    assert response.status_code == 401
    assert response.data["status"] == 401
    assert "message" in response.data


def test_me_reflects_token_claims(client_for, admin):
    response = client_for(admin).get("/api/auth/me/")
    assert response.status_code == 200
    assert response.data["data"] == {"id": 2, "role": "admin", "company_id": 10, "is_elevated": True}


def test_create_and_read_objective(client_for, owner):
    client = client_for(owner)
    created = create(
        client,
        key_results=[
            {"description": "Close deals", "start_value": "0", "target_value": "10", "current_value": "5"},
        ],
    )
    assert created["owner_id"] == owner.id
    assert created["progress"] == 50
    assert created["approval_status"] == "draft"
    assert created["key_results"][0]["current_value"] == "5.00"
    assert created["key_results"][0]["progress"] == 50

    response = client.get(f"{BASE}/objectives/{created['id']}/")
    assert response.status_code == 200
    detail = response.data["data"]
    assert detail["children_count"] == 0
    assert set(detail["health_metrics"]) >= {"pace_ratio", "expected_progress", "risk_level", "recommendation"}

    listing = client.get(f"{BASE}/objectives/", {"level": "company"})
    assert [o["id"] for o in listing.data["data"]] == [created["id"]]


def test_regular_users_only_list_their_own_objectives(client_for, owner, colleague, admin):
    create(client_for(owner))
    create(client_for(colleague), title="Hire")
    assert len(client_for(owner).get(f"{BASE}/objectives/").data["data"]) == 1
    assert len(client_for(admin).get(f"{BASE}/objectives/").data["data"]) == 2


def test_invalid_payload_is_rejected(client_for, owner):
    response = client_for(owner).post(f"{BASE}/objectives/", {"level": "galaxy"}, format="json")
    assert response.status_code == 400
    assert response.data["message"] == "Invalid request data"
    assert "title" in response.data["errors"]


def test_level_mismatch(client_for, owner):
    client = client_for(owner)
    parent = create(client)
    response = client.post(
        f"{BASE}/objectives/",
        {"title": "Another", "level": "company", "period": "Q1 2026", "parent_id": parent["id"]},
        format="json",
    )
    assert response.status_code == 400
    assert response.data["error"] == "level_mismatch"


def test_malformed_filters_are_rejected(client_for, admin):
    client = client_for(admin)
    create(client)
    for param in ("owner_id", "parent_id"):
        response = client.get(f"{BASE}/objectives/", {param: "abc"})
        assert response.status_code == 400
        assert response.data["error"] == "validation_error"
        assert response.data["field"] == param

    assert len(client.get(f"{BASE}/objectives/", {"owner_id": admin.id}).data["data"]) == 1


def test_unknown_objective_is_not_found(client_for, owner):
    response = client_for(owner).get(f"{BASE}/objectives/3fa85f64-5717-4562-b3fc-2c963f66afa6/")
    assert response.status_code == 404
    assert response.data["error"] == "not_found"


def test_other_company_cannot_see_objective(client_for, owner, outsider):
    created = create(client_for(owner))
    response = client_for(outsider).get(f"{BASE}/objectives/{created['id']}/")
    assert response.status_code == 404


def test_approval_workflow(client_for, owner, admin):
    owner_client = client_for(owner)
    admin_client = client_for(admin)
    created = create(owner_client)
    url = f"{BASE}/objectives/{created['id']}"

    response = admin_client.post(f"{url}/approve/", format="json")
    assert response.status_code == 409
    assert response.data["error"] == "workflow_violation"
    assert response.data["expected_states"] == ["pending_review"]

    response = owner_client.post(f"{url}/submit-for-review/", format="json")
    assert response.status_code == 200
    assert response.data["data"]["approval_status"] == "pending_review"

    pending = admin_client.get(f"{BASE}/pending-approvals/").data["data"]
    assert [o["id"] for o in pending] == [created["id"]]

    response = owner_client.post(f"{url}/approve/", format="json")
    assert response.status_code == 403
    assert response.data["error"] == "not_authorized"

    response = admin_client.post(f"{url}/reject/", {"comment": "  "}, format="json")
    assert response.status_code == 400
    assert response.data["error"] == "validation_error"

    response = admin_client.post(f"{url}/approve/", format="json")
    assert response.status_code == 200
    assert response.data["data"]["approval_status"] == "approved"
    assert response.data["data"]["approved_by"] == admin.id

    history = owner_client.get(f"{url}/approval-history/").data["data"]
    assert [entry["action"] for entry in history] == ["approved", "submitted"]


def test_definition_is_frozen_after_submission(client_for, owner):
    client = client_for(owner)
    created = create(client)
    url = f"{BASE}/objectives/{created['id']}/"
    client.post(f"{BASE}/objectives/{created['id']}/submit-for-review/", format="json")

    response = client.patch(url, {"title": "Renamed"}, format="json")
    assert response.status_code == 409

    response = client.delete(url)
    assert response.status_code == 409


def test_update_and_delete_draft(client_for, owner):
    client = client_for(owner)
    created = create(client)
    url = f"{BASE}/objectives/{created['id']}/"

    response = client.patch(url, {"title": "Renamed"}, format="json")
    assert response.status_code == 200
    assert response.data["data"]["title"] == "Renamed"

    response = client.delete(url)
    assert response.status_code == 204
    assert client.get(url).status_code == 404


def test_key_result_update_recomputes_and_records_history(client_for, owner):
    client = client_for(owner)
    created = create(client)
    url = f"{BASE}/objectives/{created['id']}"

    response = client.post(f"{url}/key-results/", {"description": "Ship", "target_value": "100"}, format="json")
    assert response.status_code == 201
    key_result_id = response.data["data"]["id"]

    response = client.patch(f"{BASE}/key-results/{key_result_id}/", {"current_value": "50"}, format="json")
    assert response.status_code == 200
    assert response.data["data"]["objective_progress"] == 50
    assert response.data["data"]["objective_status"] == "on-track"

    history = client.get(f"{url}/history/").data["data"]
    assert len(history) == 1
    assert history[0]["previous_value"] == "0.00"
    assert history[0]["new_value"] == "50.00"
    assert history[0]["key_result_description"] == "Ship"

    response = client.delete(f"{BASE}/key-results/{key_result_id}/")
    assert response.status_code == 204
    assert client.get(f"{url}/key-results/").data["data"] == []


def test_hierarchy_endpoints(client_for, owner):
    client = client_for(owner)
    company = create(client)
    team = create(client, title="Team goal", level="team", parent_id=company["id"])

    children = client.get(f"{BASE}/objectives/{company['id']}/children/").data["data"]
    assert [c["id"] for c in children] == [team["id"]]

    ancestors = client.get(f"{BASE}/objectives/{team['id']}/ancestors/").data["data"]
    assert [a["id"] for a in ancestors] == [company["id"]]

    tree = client.get(f"{BASE}/hierarchy/", {"period": "Q1 2026"}).data["data"]
    assert len(tree) == 1
    assert tree[0]["children"][0]["id"] == team["id"]

    parents = client.get(f"{BASE}/available-parents/", {"level": "individual"}).data["data"]
    assert {p["id"] for p in parents} == {company["id"], team["id"]}

    parents = client.get(f"{BASE}/available-parents/", {"level": "company"}).data["data"]
    assert parents == []

    response = client.get(f"{BASE}/available-parents/", {"level": "galaxy"})
    assert response.status_code == 400
    assert response.data["field"] == "level"


def test_stats(client_for, owner):
    client = client_for(owner)
    create(client, key_results=[{"description": "A", "target_value": "10", "current_value": "10"}])
    create(client, title="Second")
    stats = client.get(f"{BASE}/stats/").data["data"]
    assert stats == {"total_objectives": 2, "avg_progress": 50, "at_risk_count": 0, "completed_count": 1}


def test_contributors(client_for, owner, colleague):
    owner_client = client_for(owner)
    created = create(owner_client)
    url = f"{BASE}/objectives/{created['id']}/contributors/"

    response = owner_client.post(url, {"user_id": colleague.id}, format="json")
    assert response.status_code == 201
    contributor_id = response.data["data"]["id"]
    assert response.data["data"]["role"] == "contributor"

    response = owner_client.post(url, {"user_id": owner.id}, format="json")
    assert response.status_code == 400

    response = owner_client.patch(f"{url}{contributor_id}/", {"role": "reviewer"}, format="json")
    assert response.status_code == 200
    assert response.data["data"]["role"] == "reviewer"

    mine = client_for(colleague).get(f"{BASE}/my-contributions/").data["data"]
    assert [o["id"] for o in mine] == [created["id"]]

    assert owner_client.delete(f"{url}{contributor_id}/").status_code == 204
    assert owner_client.get(url).data["data"] == []


def test_subscription_endpoints(client_for, owner):
    CompanySubscription.objects.create(company_id=owner.company_id, tier="free")
    client = client_for(owner)

    info = client.get("/api/subscription/").data["data"]
    assert info["tier"] == "free"
    assert info["usage"] == {"okrs": 0, "key_results": 0}

    assert client.get("/api/subscription/can-create-okr/").data["data"]["allowed"] is True
    create(client)
    decision = client.get("/api/subscription/can-create-okr/").data["data"]
    assert decision["allowed"] is False

    response = client.post(
        f"{BASE}/objectives/", {"title": "Second", "level": "team", "period": "Q1 2026"}, format="json"
    )
    assert response.status_code == 403
    assert response.data["error"] == "limit_exceeded"
