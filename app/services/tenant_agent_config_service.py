"""Load TenantAgentConfig from the tenant store.

Configuration is read on every call with no caching, so a rotated token or
moved agent URL takes effect on the next request.
"""

import logging
from typing import Optional, Protocol

from sqlalchemy import text

from app.infra.config import config
from app.infra.database import get_db_session
from app.infra.error_handler import ConfigError
from app.infra.secrets import get_secret, is_secret_reference
from app.models.tenant import DEFAULT_QUERY_TIMEOUT_MS, TenantAgentConfig

logger = logging.getLogger(__name__)


class TenantAgentConfigProvider(Protocol):
    """Anything that can produce the current agent config for a tenant."""

    def get(self, tenant_id: str) -> TenantAgentConfig:
        ...


def _resolve(value: Optional[str], tenant_id: str, field: str) -> Optional[str]:
    if not is_secret_reference(value):
        return value
    resolved = get_secret(value)
    if resolved is None:
        logger.error(
            "Tenant agent secret reference did not resolve",
            extra={"tenant_id": tenant_id, "field": field},
        )
    return resolved


class DatabaseTenantAgentConfigProvider:
    """Reads the ``tenant_agents`` table joined with ``tenants``."""

    def get(self, tenant_id: str) -> TenantAgentConfig:
        """
        Load the agent config for ``tenant_id``.

        Raises:
            ConfigError: If the tenant does not exist
        """
        with get_db_session() as session:
            row = session.execute(
                text("""
                    SELECT t.id AS tenant_id, t.name AS tenant_name,
                           a.endpoint, a.shared_secret, a.encryption_key,
                           COALESCE(a.encrypt_queries, FALSE) AS encrypt_queries,
                           a.timeout_ms, a.max_retries,
                           COALESCE(a.retry_enabled, TRUE) AS retry_enabled
                    FROM tenants t
                    LEFT JOIN tenant_agents a ON a.tenant_id = t.id
                    WHERE t.id = :tenant_id
                """),
                {"tenant_id": tenant_id}
            ).fetchone()

        if not row:
            raise ConfigError(f"Tenant {tenant_id} not found", tenant_id=tenant_id)

        return TenantAgentConfig(
            tenant_id=str(row.tenant_id),
            tenant_name=row.tenant_name,
            endpoint=row.endpoint,
            shared_secret=_resolve(row.shared_secret, tenant_id, "shared_secret"),
            encrypt_enabled=bool(row.encrypt_queries),
            encryption_key=_resolve(row.encryption_key, tenant_id, "encryption_key") or config.AGENT_ENCRYPTION_KEY,
            timeout_ms=row.timeout_ms or config.AGENT_QUERY_TIMEOUT_MS or DEFAULT_QUERY_TIMEOUT_MS,
            max_retries=row.max_retries if row.max_retries is not None else config.AGENT_MAX_RETRIES,
            retry_enabled=bool(row.retry_enabled),
        )


tenant_agent_config_provider = DatabaseTenantAgentConfigProvider()
