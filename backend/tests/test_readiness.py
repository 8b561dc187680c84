"""
Akademi Backend — Readiness Gate and Probe Tests
==================================================

What we test:
    ✅ Gated routes answer 503 with Retry-After while the store is down
    ✅ The handler never runs while the store is down
    ✅ The next request after a failure retries and succeeds
    ✅ /health and /diag answer without connecting
    ✅ CORS headers are present on 503 responses and preflights
"""

from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient
from pymongo.errors import ServerSelectionTimeoutError

from akademi.exceptions import StoreUnavailableError
from akademi.main import create_app
from akademi.services.payment_service import PaymentService

from conftest import TEST_MONGODB_URI, make_test_settings

ALLOWED_ORIGIN = "http://localhost:5173"


class TestReadinessGate:

    @pytest.mark.asyncio
    async def test_unreachable_store_returns_503(self, test_client, mongo_client, scholarships):
        mongo_client.admin.command = AsyncMock(side_effect=ServerSelectionTimeoutError("no servers"))

        response = await test_client.get("/all-data")

        assert response.status_code == 503
        assert response.headers["Retry-After"] == "5"
        body = response.json()
        assert body["error"] == "service_unavailable"
        assert body["details"]["retryable"] is True
        scholarships.find.assert_not_called()

    @pytest.mark.asyncio
    async def test_payment_route_is_gated_too(self, test_client, mongo_client, stripe_client):
        mongo_client.admin.command = AsyncMock(side_effect=ServerSelectionTimeoutError("no servers"))

        response = await test_client.post("/create-payment-intent", json={"price": 10})

        assert response.status_code == 503
        stripe_client.payment_intents.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_next_request_retries_connection(self, test_client, mongo_client, client_factory):
        mongo_client.admin.command = AsyncMock(
            side_effect=[ServerSelectionTimeoutError("no servers"), {"ok": 1}]
        )

        first = await test_client.get("/all-data")
        second = await test_client.get("/all-data")

        assert first.status_code == 503
        assert second.status_code == 200
        assert client_factory.call_count == 2

    @pytest.mark.asyncio
    async def test_connection_is_reused_across_requests(self, test_client, client_factory):
        for _ in range(3):
            response = await test_client.get("/all-data")
            assert response.status_code == 200

        client_factory.assert_called_once()

    @pytest.mark.asyncio
    async def test_unconfigured_store_returns_503(self, client_factory, stripe_client):
        app = create_app(
            config=make_test_settings(mongodb_uri=None, db_user=None, db_pass=None),
            client_factory=client_factory,
            payment_service=PaymentService("sk_test_not_real", client=stripe_client),
        )
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.get("/")

        assert response.status_code == 503
        assert "not configured" in response.json()["message"]
        client_factory.assert_not_called()

    @pytest.mark.asyncio
    async def test_503_carries_cors_headers(self, test_client, mongo_client):
        mongo_client.admin.command = AsyncMock(side_effect=ServerSelectionTimeoutError("no servers"))

        response = await test_client.get("/all-data", headers={"Origin": ALLOWED_ORIGIN})

        assert response.status_code == 503
        assert response.headers["access-control-allow-origin"] == ALLOWED_ORIGIN

    @pytest.mark.asyncio
    async def test_preflight_is_not_gated(self, test_client, client_factory):
        response = await test_client.options(
            "/create-payment-intent",
            headers={"Origin": ALLOWED_ORIGIN, "Access-Control-Request-Method": "POST"},
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == ALLOWED_ORIGIN
        client_factory.assert_not_called()


class TestProbes:

    @pytest.mark.asyncio
    async def test_health_does_not_connect(self, test_client, client_factory):
        response = await test_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "Operational"
        assert body["database"] == "Connecting"
        assert body["version"] == "1.0.0"
        client_factory.assert_not_called()

    @pytest.mark.asyncio
    async def test_health_reports_online_after_connect(self, test_client):
        await test_client.get("/all-data")

        response = await test_client.get("/health")

        assert response.json()["database"] == "Online"

    @pytest.mark.asyncio
    async def test_health_answers_while_store_is_down(self, test_client, mongo_client):
        mongo_client.admin.command = AsyncMock(side_effect=ServerSelectionTimeoutError("no servers"))
        await test_client.get("/all-data")

        response = await test_client.get("/health")

        assert response.status_code == 200
        assert response.json()["database"] == "Connecting"

    @pytest.mark.asyncio
    async def test_diag_reports_last_error_without_secrets(self, test_client, mongo_client):
        mongo_client.admin.command = AsyncMock(side_effect=ServerSelectionTimeoutError("no servers"))
        await test_client.get("/all-data")

        response = await test_client.get("/diag")

        assert response.status_code == 200
        body = response.json()
        assert body["environment"] == "test"
        assert body["database"]["connected"] is False
        assert body["database"]["connection_source"] == "uri"
        assert "ServerSelectionTimeoutError" in body["database"]["last_error"]
        assert body["payments"]["configured"] is True
        assert ALLOWED_ORIGIN in body["cors_origins"]
        assert TEST_MONGODB_URI not in response.text
        assert "sk_test_not_real" not in response.text

    @pytest.mark.asyncio
    async def test_responses_carry_request_id(self, test_client):
        response = await test_client.get("/health", headers={"X-Request-ID": "abc12345"})
        assert response.headers["X-Request-ID"] == "abc12345"


class TestLifespan:

    @pytest.mark.asyncio
    async def test_startup_connects_and_shutdown_closes(self, app, mongo_client):
        async with app.router.lifespan_context(app):
            assert app.state.store.is_connected is True

        mongo_client.close.assert_awaited_once()
        assert app.state.store.is_connected is False

    @pytest.mark.asyncio
    async def test_startup_tolerates_unreachable_store(self, app, mongo_client):
        mongo_client.admin.command = AsyncMock(side_effect=ServerSelectionTimeoutError("no servers"))

        async with app.router.lifespan_context(app):
            assert app.state.store.is_connected is False

    @pytest.mark.asyncio
    async def test_required_store_aborts_startup(self, client_factory, mongo_client, stripe_client):
        mongo_client.admin.command = AsyncMock(side_effect=ServerSelectionTimeoutError("no servers"))
        app = create_app(
            config=make_test_settings(require_db_on_startup=True),
            client_factory=client_factory,
            payment_service=PaymentService("sk_test_not_real", client=stripe_client),
        )

        with pytest.raises(StoreUnavailableError):
            async with app.router.lifespan_context(app):
                pass
