import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from accounts.identity import Caller
from objectives.notifications import InMemoryNotificationBackend
from objectives.services import ObjectiveLifecycle

COMPANY_ID = 10


def make_token(caller: Caller) -> str:
    token = AccessToken()
    token["user_id"] = caller.id
    token["role"] = caller.role
    token["company_id"] = caller.company_id
    return str(token)


@pytest.fixture
def owner():
    return Caller(id=1, role="user", company_id=COMPANY_ID)


@pytest.fixture
def admin():
    return Caller(id=2, role="admin", company_id=COMPANY_ID)


@pytest.fixture
def colleague():
    return Caller(id=3, role="user", company_id=COMPANY_ID)


@pytest.fixture
def outsider():
    return Caller(id=4, role="admin", company_id=99)


@pytest.fixture
def emitted():
    return []


@pytest.fixture
def lifecycle(emitted):
    def emit(fact, objective, actor_id, **payload):
        emitted.append({"fact": fact, "objective_id": objective.pk, "actor_id": actor_id, **payload})

    return ObjectiveLifecycle(emit=emit)


@pytest.fixture
def make_objective(lifecycle, owner):
    def factory(caller=None, **data):
        payload = {"title": "Grow revenue", "level": "company", "period": "Q1 2026"}
        payload.update(data)
        return lifecycle.create_objective(caller or owner, payload)

    return factory


@pytest.fixture
def client_for():
    def factory(caller: Caller) -> APIClient:
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {make_token(caller)}")
        return client

    return factory


@pytest.fixture(autouse=True)
def clear_outbox():
    InMemoryNotificationBackend.outbox.clear()
    yield
    InMemoryNotificationBackend.outbox.clear()
