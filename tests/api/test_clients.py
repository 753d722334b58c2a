"""API tests for client endpoints."""

from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient

from invoicekit.api.dependencies import get_cli_store, get_limits
from invoicekit.api.main import app
from invoicekit.core.entities import Client, SubscriptionPlan, User
from invoicekit.core.services import SubscriptionLimitService


@pytest.fixture
def client_store():
    store = AsyncMock()
    store.create.side_effect = lambda c: c.model_copy(update={"id": 11})
    store.get.return_value = Client(id=11, user_id=1, name="Ada Lovelace")
    store.count_clients.return_value = 0
    store.list_clients.return_value = []
    return store


@pytest.fixture
def user_store():
    store = AsyncMock()
    store.get_user.return_value = User(id=1, email="owner@test", plan=SubscriptionPlan.FREE)
    return store


@pytest.fixture
def client(api, client_store, user_store):
    limits = SubscriptionLimitService(
        user_store=user_store,
        invoice_store=AsyncMock(),
        client_store=client_store,
        estimate_store=AsyncMock(),
        reminder_store=AsyncMock(),
    )
    app.dependency_overrides[get_cli_store] = lambda: client_store
    app.dependency_overrides[get_limits] = lambda: limits
    return api


class TestClientsAPI:
    async def test_create_within_limit(self, client: AsyncClient):
        response = await client.post(
            "/api/clients", json={"name": "Ada Lovelace", "email": "ada@example.com"}
        )

        assert response.status_code == 201
        assert response.json()["id"] == 11

    async def test_free_plan_allows_one_client(self, client: AsyncClient, client_store):
        client_store.count_clients.return_value = 1

        response = await client.post("/api/clients", json={"name": "Grace Hopper"})

        assert response.status_code == 403
        body = response.json()
        assert body["error_code"] == "LIMIT_EXCEEDED"
        client_store.create.assert_not_awaited()

    async def test_monthly_plan_is_unlimited(
        self, client: AsyncClient, client_store, user_store
    ):
        client_store.count_clients.return_value = 40
        user_store.get_user.return_value = User(
            id=1, email="owner@test", plan=SubscriptionPlan.MONTHLY
        )

        response = await client.post("/api/clients", json={"name": "Grace Hopper"})

        assert response.status_code == 201

    async def test_other_users_client_is_hidden(self, client: AsyncClient):
        response = await client.get("/api/clients/11", headers={"X-User-Id": "3"})

        assert response.status_code == 404
        assert response.json()["error_code"] == "CLIENT_NOT_FOUND"

    async def test_empty_name_rejected(self, client: AsyncClient):
        response = await client.post("/api/clients", json={"name": ""})

        assert response.status_code == 422
