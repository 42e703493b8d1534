"""Tests for the gateway facade and dashboard fan-out."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from app.infra.error_handler import ApplicationError, ConfigError, QueryNotFound, TransportError
from app.models.agent import AgentAction, AgentResult
from app.services.agent_gateway import AgentGateway
from app.services.dashboard_service import DashboardService, build_dashboard_stats
from app.services.queries import query_catalog


@pytest.fixture
def provider(agent_config):
    provider = MagicMock()
    provider.get.return_value = agent_config
    return provider


@pytest.fixture
def client():
    client = MagicMock()
    client.send = AsyncMock(return_value=AgentResult(success=True, data=[{"id": 1}], count=1))
    client.ping = AsyncMock(return_value=AgentResult(success=True))
    return client


@pytest.fixture
def gateway(provider, client):
    return AgentGateway(config_provider=provider, client=client, catalog=query_catalog)


class TestExecute:
    @pytest.mark.asyncio
    async def test_execute_resolves_and_sends(self, gateway, client, agent_config):
        result = await gateway.execute("tenant-1", "client_by_login", "abc123")

        assert isinstance(result, AgentResult)
        assert result.data == [{"id": 1}]
        call_args = client.send.call_args
        assert call_args[0][0] is agent_config
        assert call_args[0][1] == AgentAction.EXECUTE_QUERY
        assert "login = :login" in call_args[0][2]
        assert call_args[0][3] == {"login": "abc123"}

    @pytest.mark.asyncio
    async def test_unknown_query_never_reaches_transport(self, gateway, client, provider):
        with pytest.raises(QueryNotFound):
            await gateway.execute("tenant-1", "does_not_exist")

        client.send.assert_not_called()
        provider.get.assert_not_called()

    @pytest.mark.asyncio
    async def test_config_is_read_on_every_call(self, gateway, provider):
        await gateway.execute("tenant-1", "active_plans")
        await gateway.execute("tenant-1", "active_plans")

        assert provider.get.call_count == 2

    @pytest.mark.asyncio
    async def test_transform_is_applied(self, gateway, client):
        client.send.return_value = AgentResult(success=True, data=[
            {"radacctid": 5, "acctstarttime": "2024-03-01 08:00:00", "acctstoptime": "2024-03-01 09:00:00"},
        ])

        entries = await gateway.execute("tenant-1", "connection_history", "abc123")

        assert entries[0]["id"] == "5"
        assert entries[0]["duration"] == "1h"

    @pytest.mark.asyncio
    async def test_config_error_propagates(self, gateway, provider, client):
        provider.get.side_effect = ConfigError("Tenant tenant-x not found", tenant_id="tenant-x")

        with pytest.raises(ConfigError):
            await gateway.execute("tenant-x", "active_plans")

        client.send.assert_not_called()

    @pytest.mark.asyncio
    async def test_execute_custom_validates_placeholders(self, gateway, client):
        with pytest.raises(ValueError):
            await gateway.execute_custom("tenant-1", "SELECT * FROM x WHERE id = :id")

        client.send.assert_not_called()


class TestSelectAndWrite:
    @pytest.mark.asyncio
    async def test_select_one_and_list(self, gateway):
        assert await gateway.select_one("tenant-1", "client_by_id", 1) == {"id": 1}
        assert await gateway.select_list("tenant-1", "active_plans") == [{"id": 1}]

    @pytest.mark.asyncio
    async def test_select_page(self, gateway, client):
        client.send.return_value = AgentResult(success=True, data=[{"id": 1}], count=120)

        page = await gateway.select_page("tenant-1", "invoices_page", "abc", page=2, limit=50)

        assert page.total == 120
        assert page.pages == 3
        assert client.send.call_args[0][3] == {"login": "abc", "limit": 50, "offset": 50}

    @pytest.mark.asyncio
    async def test_insert_fetches_created_row_with_same_config(self, gateway, client, provider):
        client.send.side_effect = [
            AgentResult(success=True, insert_id=10, affected_rows=1),
            AgentResult(success=True, data=[{"id": 10, "nome": "Plano"}]),
        ]

        outcome = await gateway.insert(
            "tenant-1", "INSERT INTO sis_plano (nome) VALUES (:nome)", {"nome": "Plano"}, "sis_plano",
        )

        assert outcome.record == {"id": 10, "nome": "Plano"}
        assert client.send.call_count == 2
        assert provider.get.call_count == 1
        assert client.send.call_args_list[1][0][3] == {"id": 10}

    @pytest.mark.asyncio
    async def test_insert_and_follow_up_select_each_get_full_timeout(self, gateway, client):
        timeouts = []
        results = iter([
            AgentResult(success=True, insert_id=10, affected_rows=1),
            AgentResult(success=True, data=[{"id": 10}]),
        ])

        async def send(agent_config, action, sql, params):
            timeouts.append(agent_config.timeout_ms)
            return next(results)

        client.send.side_effect = send

        await gateway.insert("tenant-1", "INSERT INTO sis_plano (nome) VALUES (:nome)", {"nome": "P"}, "sis_plano")

        assert timeouts == [15000, 15000]

    @pytest.mark.asyncio
    async def test_invalid_table_is_rejected_before_insert_is_sent(self, gateway, client, provider):
        with pytest.raises(ValueError):
            await gateway.insert(
                "tenant-1", "INSERT INTO sis_cliente (login) VALUES (:login)", {"login": "x"}, "sis cliente; DROP",
            )

        client.send.assert_not_called()
        provider.get.assert_not_called()

    @pytest.mark.asyncio
    async def test_invalid_id_field_is_rejected_before_update_is_sent(self, gateway, client):
        with pytest.raises(ValueError):
            await gateway.update(
                "tenant-1", "UPDATE sis_cliente SET bloqueado = 'sim' WHERE id = :id", {"id": 3},
                "sis_cliente", "id = 1 OR 1", 3,
            )

        client.send.assert_not_called()

    @pytest.mark.asyncio
    async def test_update_without_changes_makes_one_call(self, gateway, client):
        client.send.return_value = AgentResult(success=True, affected_rows=0)

        outcome = await gateway.update(
            "tenant-1", "UPDATE sis_cliente SET bloqueado = 'sim' WHERE id = :id", {"id": 3},
            "sis_cliente", "id", 3,
        )

        assert outcome.record is None
        assert client.send.call_count == 1

    @pytest.mark.asyncio
    async def test_delete(self, gateway, client):
        client.send.return_value = AgentResult(success=True, affected_rows=1)

        outcome = await gateway.delete("tenant-1", "DELETE FROM sis_lanc WHERE id = :id", {"id": 3})

        assert outcome.deleted is True

    @pytest.mark.asyncio
    async def test_failed_select_raises(self, gateway, client):
        client.send.side_effect = ApplicationError("Unknown column")

        with pytest.raises(ApplicationError):
            await gateway.select_list("tenant-1", "active_plans")


class TestPing:
    @pytest.mark.asyncio
    async def test_ping_success(self, gateway):
        assert await gateway.ping("tenant-1") is True

    @pytest.mark.asyncio
    async def test_ping_swallows_gateway_errors(self, gateway, client):
        client.ping.side_effect = TransportError("offline", kind=TransportError.OFFLINE)
        assert await gateway.ping("tenant-1") is False

    @pytest.mark.asyncio
    async def test_ping_unconfigured_tenant(self, gateway, provider):
        provider.get.side_effect = ConfigError("Agent not configured")
        assert await gateway.ping("tenant-1") is False


class TestDashboard:
    def test_build_dashboard_stats(self):
        stats = build_dashboard_stats(
            {"total": 100, "bloqueados": 10, "observacao": 5, "recentes": 3, "online": 60},
            {"pending": 7, "overdue": "4", "tit_abertos": "12", "tit_vencidos": None},
            {"total": 9, "urgente": 1, "today": 2, "completed": "5"},
        )

        assert stats["clients"] == {
            "total": 100, "recent": 3, "normal": 85, "blocked": 10,
            "observation": 5, "online": 60, "offline": 40,
        }
        assert stats["invoices"] == {"pending": 7, "overdue": 4}
        assert stats["client_invoices"] == {"pending": 12, "overdue": 0}
        assert stats["requests"]["urgente"] == 1
        assert stats["requests"]["alta"] == 0
        assert stats["requests_summary"]["completed"] == 5

    @pytest.mark.asyncio
    async def test_stats_fans_out_three_queries(self):
        gateway = MagicMock()
        gateway.select_list = AsyncMock(side_effect=[
            [{"total": 10, "online": 4}],
            [{"pending": 1}],
            [],
        ])

        stats = await DashboardService(gateway).stats("tenant-1")

        assert gateway.select_list.await_count == 3
        called = [call[0][1] for call in gateway.select_list.call_args_list]
        assert called == ["dashboard_client_stats", "dashboard_invoice_stats", "dashboard_request_stats"]
        assert stats["clients"]["offline"] == 6
        assert stats["requests"]["total"] == 0

    @pytest.mark.asyncio
    async def test_any_failure_fails_the_dashboard(self):
        gateway = MagicMock()
        gateway.select_list = AsyncMock(side_effect=[
            [{"total": 10}],
            TransportError("timeout", kind=TransportError.TIMEOUT),
            [],
        ])

        with pytest.raises(TransportError):
            await DashboardService(gateway).stats("tenant-1")
