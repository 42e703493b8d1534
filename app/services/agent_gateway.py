"""Upward interface of the remote query gateway.

Business code calls named catalog queries (or ad-hoc parameterized SQL) by
tenant id; the gateway loads the tenant's current agent config, sends the
statement through the agent transport and adapts the normalized result.
"""

import logging
from typing import Any, Dict, List, Optional

from app.adapters.agent_client import AgentClient, agent_client
from app.infra.error_handler import GatewayError, QueryNotFound
from app.infra.metrics import catalog_queries_total
from app.models.agent import AgentAction, AgentResult
from app.models.query import BoundQuery, DeleteOutcome, InsertOutcome, PagedResult, ResolvedQuery, UpdateOutcome
from app.models.tenant import TenantAgentConfig
from app.services import result_adapter
from app.services.queries import query_catalog as default_catalog
from app.services.query_catalog import QueryCatalog
from app.services.tenant_agent_config_service import (
    TenantAgentConfigProvider,
    tenant_agent_config_provider,
)

logger = logging.getLogger(__name__)


class AgentGateway:
    """Executes catalog and ad-hoc queries against a tenant's agent."""

    def __init__(
        self,
        config_provider: Optional[TenantAgentConfigProvider] = None,
        client: Optional[AgentClient] = None,
        catalog: Optional[QueryCatalog] = None,
    ):
        self.config_provider = config_provider or tenant_agent_config_provider
        self.client = client or agent_client
        self.catalog = catalog if catalog is not None else default_catalog

    def _agent_config(self, tenant_id: str) -> TenantAgentConfig:
        # Read on every call: no caching of tenant agent settings
        return self.config_provider.get(tenant_id)

    def _resolve(self, query_name: str, *args: Any, **kwargs: Any) -> ResolvedQuery:
        try:
            return self.catalog.resolve(query_name, *args, **kwargs)
        except QueryNotFound:
            catalog_queries_total.labels(query_name=query_name, status="not_found").inc()
            logger.warning("Unknown catalog query", extra={"query_name": query_name})
            raise

    async def _send(self, agent_config: TenantAgentConfig, sql: str, params: Dict[str, Any]) -> AgentResult:
        return await self.client.send(agent_config, AgentAction.EXECUTE_QUERY, sql, params)

    async def _run_named(
        self, tenant_id: str, query_name: str, *args: Any, **kwargs: Any
    ) -> tuple:
        resolved = self._resolve(query_name, *args, **kwargs)
        agent_config = self._agent_config(tenant_id)
        try:
            result = await self._send(agent_config, resolved.sql, resolved.params)
        except GatewayError as e:
            catalog_queries_total.labels(query_name=query_name, status=e.category.value).inc()
            raise
        catalog_queries_total.labels(query_name=query_name, status="success").inc()
        return resolved, result

    async def execute(self, tenant_id: str, query_name: str, *args: Any, **kwargs: Any) -> Any:
        """
        Run a named catalog query for a tenant.

        This is the low-level form: without a transform the caller gets the
        normalized AgentResult envelope (``success``, ``data``, ``count``,
        ``insert_id``, ``affected_rows``). Use ``select_list``, ``select_one``
        or ``select_page`` for adapted results.

        Returns:
            The transformed rows when the definition has a transform,
            otherwise the normalized AgentResult

        Raises:
            QueryNotFound: Before any transport activity
            GatewayError: Any typed transport/agent failure
        """
        resolved, result = await self._run_named(tenant_id, query_name, *args, **kwargs)
        if resolved.transform is not None:
            return resolved.transform(result_adapter.adapt_list(result))
        return result

    async def execute_custom(
        self, tenant_id: str, sql: str, params: Optional[Dict[str, Any]] = None
    ) -> AgentResult:
        """Run an ad-hoc parameterized statement; placeholders must all be bound."""
        bound = BoundQuery(sql=sql, params=params or {})
        return await self._send(self._agent_config(tenant_id), bound.sql, bound.params_dict())

    async def select_list(self, tenant_id: str, query_name: str, *args: Any, **kwargs: Any) -> Any:
        resolved, result = await self._run_named(tenant_id, query_name, *args, **kwargs)
        rows = result_adapter.adapt_list(result)
        return resolved.transform(rows) if resolved.transform is not None else rows

    async def select_one(
        self, tenant_id: str, query_name: str, *args: Any, **kwargs: Any
    ) -> Optional[Dict[str, Any]]:
        _, result = await self._run_named(tenant_id, query_name, *args, **kwargs)
        return result_adapter.adapt_one(result)

    async def select_page(
        self, tenant_id: str, query_name: str, *args: Any, page: int = 1, limit: int = 50, **kwargs: Any
    ) -> PagedResult:
        _, result = await self._run_named(tenant_id, query_name, *args, page=page, limit=limit, **kwargs)
        return result_adapter.adapt_page(result, page=page, limit=limit)

    async def insert(
        self,
        tenant_id: str,
        sql: str,
        params: Optional[Dict[str, Any]],
        table: str,
        id_field: str = "id",
    ) -> InsertOutcome:
        """INSERT, then fetch the created row by ``insert_id`` with the same config."""
        # Validated before the write is sent
        result_adapter.validate_identifier(table, "table name")
        result_adapter.validate_identifier(id_field, "id field")
        agent_config = self._agent_config(tenant_id)
        bound = BoundQuery(sql=sql, params=params or {})
        result = await self._send(agent_config, bound.sql, bound.params_dict())

        async def fetch(select_sql: str, select_params: Dict[str, Any]) -> AgentResult:
            return await self._send(agent_config, select_sql, select_params)

        return await result_adapter.adapt_insert(result, fetch, table, id_field)

    async def update(
        self,
        tenant_id: str,
        sql: str,
        params: Optional[Dict[str, Any]],
        table: str,
        id_field: str,
        id_value: Any,
    ) -> UpdateOutcome:
        result_adapter.validate_identifier(table, "table name")
        result_adapter.validate_identifier(id_field, "id field")
        agent_config = self._agent_config(tenant_id)
        bound = BoundQuery(sql=sql, params=params or {})
        result = await self._send(agent_config, bound.sql, bound.params_dict())

        async def fetch(select_sql: str, select_params: Dict[str, Any]) -> AgentResult:
            return await self._send(agent_config, select_sql, select_params)

        return await result_adapter.adapt_update(result, fetch, table, id_field, id_value)

    async def delete(
        self, tenant_id: str, sql: str, params: Optional[Dict[str, Any]] = None
    ) -> DeleteOutcome:
        return result_adapter.adapt_delete(await self.execute_custom(tenant_id, sql, params))

    async def ping(self, tenant_id: str) -> bool:
        """True when the agent answers a signed ping with success. Never raises for gateway errors."""
        try:
            agent_config = self._agent_config(tenant_id)
            result = await self.client.ping(agent_config)
        except GatewayError as e:
            logger.info(
                "Agent ping failed",
                extra={"tenant_id": tenant_id, "category": e.category.value, "error": e.message},
            )
            return False
        return result.success

    def query_names(self) -> List[str]:
        return self.catalog.names()


agent_gateway = AgentGateway()
