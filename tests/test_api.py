"""Tests for the HTTP surface: auth, routes and gateway error mapping."""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from app.infra import auth
from app.infra.auth import require_tenant_access, verify_api_key
from app.infra.error_handler import (
    ApplicationError,
    AuthError,
    ConfigError,
    EncryptionError,
    MalformedResponseError,
    QueryNotFound,
    TransportError,
)
from app.main import ERROR_STATUS_CODES, app, status_code_for

MASTER_KEY = "m" * 32

DASHBOARD = {
    "clients": {"total": 10, "recent": 1, "normal": 8, "blocked": 1, "observation": 1, "online": 4, "offline": 6},
    "invoices": {"pending": 2, "overdue": 1},
    "client_invoices": {"pending": 3, "overdue": 0},
    "requests": {"urgente": 0, "alta": 1, "normal": 2, "baixa": 0, "total": 3},
    "requests_summary": {"today": 1, "overdue": 0, "ongoing": 1, "completed": 1},
}


@pytest.fixture
def client():
    app.dependency_overrides[verify_api_key] = lambda: "tenant-1"
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestHealth:
    def test_health(self):
        response = TestClient(app).get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert response.json()["catalog_queries"] > 0

    def test_metrics(self):
        response = TestClient(app).get("/metrics")
        assert response.status_code == 200
        assert "agent_requests_total" in response.text


class TestAgentRoutes:
    def test_ping(self, client):
        with patch("app.api.routers.agent.agent_gateway") as gateway:
            gateway.ping = AsyncMock(return_value=True)
            response = client.post("/tenants/tenant-1/agent/ping")

        assert response.status_code == 200
        assert response.json()["online"] is True
        gateway.ping.assert_awaited_once_with("tenant-1")

    def test_dashboard(self, client):
        with patch("app.api.routers.agent.dashboard_service") as service:
            service.stats = AsyncMock(return_value=DASHBOARD)
            response = client.get("/tenants/tenant-1/dashboard")

        assert response.status_code == 200
        assert response.json()["clients"]["offline"] == 6

    def test_other_tenant_is_forbidden(self, client):
        response = client.get("/tenants/tenant-2/dashboard")
        assert response.status_code == 403

    @pytest.mark.parametrize("error,status_code", [
        (ConfigError("Agent not configured for this tenant", tenant_id="tenant-1"), 409),
        (TransportError("Tenant agent is offline", kind=TransportError.OFFLINE), 503),
        (AuthError("Invalid signature"), 502),
        (ApplicationError("Unknown column"), 422),
        (MalformedResponseError("Agent returned a malformed response"), 502),
        (EncryptionError("Failed to encrypt payload"), 500),
    ])
    def test_gateway_errors_map_to_status_codes(self, client, error, status_code):
        with patch("app.api.routers.agent.dashboard_service") as service:
            service.stats = AsyncMock(side_effect=error)
            response = client.get("/tenants/tenant-1/dashboard")

        assert response.status_code == status_code
        assert response.json()["detail"] == error.message
        assert response.json()["category"] == error.category.value

    def test_query_not_found_status(self):
        assert status_code_for(QueryNotFound("nope")) == 404

    def test_encryption_error_is_explicitly_mapped(self):
        assert status_code_for(EncryptionError("Failed to encrypt payload")) == 500
        assert EncryptionError in dict(ERROR_STATUS_CODES)


class TestAuth:
    @pytest.mark.asyncio
    async def test_missing_key(self):
        with pytest.raises(HTTPException) as exc_info:
            await verify_api_key(None)
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_master_key(self):
        with patch.object(auth.config, "MASTER_API_KEY", MASTER_KEY):
            assert await verify_api_key(MASTER_KEY) == "master"

    @pytest.mark.asyncio
    async def test_tenant_key(self):
        with patch.object(auth.config, "MASTER_API_KEY", MASTER_KEY), \
                patch("app.infra.auth.lookup_tenant_for_key", return_value="tenant-1"):
            assert await verify_api_key("t" * 40) == "tenant-1"

    @pytest.mark.asyncio
    async def test_unknown_key(self):
        with patch.object(auth.config, "MASTER_API_KEY", MASTER_KEY), \
                patch("app.infra.auth.lookup_tenant_for_key", return_value=None):
            with pytest.raises(HTTPException) as exc_info:
                await verify_api_key("t" * 40)
        assert exc_info.value.status_code == 401

    def test_key_hash_check(self):
        import bcrypt

        key_hash = bcrypt.hashpw(b"t" * 40, bcrypt.gensalt(rounds=4)).decode()
        assert auth.check_key_hash("t" * 40, key_hash)
        assert not auth.check_key_hash("u" * 40, key_hash)

    def test_require_tenant_access(self):
        require_tenant_access("tenant-1", "master")
        require_tenant_access("tenant-1", "tenant-1")
        with pytest.raises(HTTPException) as exc_info:
            require_tenant_access("tenant-1", "tenant-2")
        assert exc_info.value.status_code == 403
