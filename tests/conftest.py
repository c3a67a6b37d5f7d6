from __future__ import annotations

import pytest

from certdesk.models.user_model import Actor
from certdesk.services.lifecycle_engine import LifecycleEngine
from certdesk.services.query_service import QueryService
from fakes import (
    FakeSigningClient,
    InMemoryRequestStore,
    InMemorySettingsStore,
    InMemoryTemplateStore,
    InMemoryUserStore,
)


# ─── Fixtures ─────────────────────────────────────────────────────────────────


@pytest.fixture
def request_store() -> InMemoryRequestStore:
    return InMemoryRequestStore()


@pytest.fixture
def user_store() -> InMemoryUserStore:
    store = InMemoryUserStore()
    store.admin_ids.add("admin-1")
    return store


@pytest.fixture
def settings_store() -> InMemorySettingsStore:
    return InMemorySettingsStore()


@pytest.fixture
def template_store() -> InMemoryTemplateStore:
    return InMemoryTemplateStore()


@pytest.fixture
def signer() -> FakeSigningClient:
    return FakeSigningClient()


@pytest.fixture
def engine(
    request_store, user_store, settings_store, signer, template_store,
) -> LifecycleEngine:
    return LifecycleEngine(request_store, user_store, settings_store, signer, template_store)


@pytest.fixture
def queries(request_store, user_store, settings_store, template_store) -> QueryService:
    return QueryService(request_store, user_store, settings_store, template_store)


@pytest.fixture
def student() -> Actor:
    return Actor(user_id="student-1", email="ana@uni.example", name="ana popescu")


@pytest.fixture
def other_student() -> Actor:
    return Actor(user_id="student-2", email="ion@uni.example", name="Ion Ionescu")


@pytest.fixture
def admin() -> Actor:
    return Actor(
        user_id="admin-1", email="secretariat@uni.example", name="maria ADMIN", is_admin=True
    )
