"""HTTP transport for signed requests to tenant agents.

Each call builds a fresh AgentRequest, optionally encrypts the SQL, signs the
body and POSTs it to the tenant's agent. Only network-level failures
(connection refused/reset, timeout) are retried; anything the agent actually
answered is final.
"""

import logging
import re
import time
from typing import Any, Dict, Optional

import httpx

from app.infra import cipher, signing
from app.infra.config import config as app_config
from app.infra.error_handler import (
    ApplicationError,
    AuthError,
    ConfigError,
    GatewayError,
    MalformedResponseError,
    TransportError,
    redact,
    retry_on_network_error,
)
from app.infra.metrics import (
    agent_auth_failures_total,
    agent_request_duration,
    agent_requests_total,
    agent_retries_total,
)
from app.models.agent import AgentAction, AgentRequest, AgentResult
from app.models.tenant import TenantAgentConfig
from app.services.response_normalizer import is_malformed, normalize

logger = logging.getLogger(__name__)

SQL_LOG_LIMIT = 200

# Agents report signature problems as success:false with one of these messages
_AUTH_ERROR_PATTERN = re.compile(
    r"signature|assinatura|unauthori[sz]ed|forbidden|invalid token|token inv|expired timestamp",
    re.IGNORECASE,
)


def _now_ms() -> int:
    return int(time.time() * 1000)


def _upstream_error(response: httpx.Response) -> Optional[str]:
    """Best-effort ``error`` field from a response body."""
    result = normalize(response.text)
    if result.error and not is_malformed(result):
        return result.error
    return None


class AgentClient:
    """Client for tenant agent query execution over HTTP."""

    def __init__(
        self,
        retry_delay: Optional[float] = None,
        ping_timeout_ms: Optional[int] = None,
        user_agent: Optional[str] = None,
    ):
        self.retry_delay = app_config.AGENT_RETRY_DELAY_SECONDS if retry_delay is None else retry_delay
        self.ping_timeout_ms = ping_timeout_ms or app_config.AGENT_PING_TIMEOUT_MS
        self.user_agent = user_agent or app_config.AGENT_USER_AGENT

    def build_request(
        self,
        agent_config: TenantAgentConfig,
        action: AgentAction,
        sql: Optional[str] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> AgentRequest:
        """
        Build and sign a request.

        Raises:
            EncryptionError: If encryption is enabled and fails (no plaintext fallback)
        """
        if action == AgentAction.PING:
            request = AgentRequest(action=action, timestamp=_now_ms())
        else:
            encrypted = agent_config.encryption_applies
            payload_sql = cipher.encrypt(sql, agent_config.cipher_key) if encrypted else sql
            request = AgentRequest(
                action=action,
                timestamp=_now_ms(),
                sql=payload_sql,
                encrypted=encrypted,
                params=dict(params) if isinstance(params, dict) else {},
            )
        request.signature = signing.sign(request.unsigned_body(), agent_config.shared_secret)
        return request

    async def send(
        self,
        agent_config: TenantAgentConfig,
        action: AgentAction,
        sql: Optional[str] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> AgentResult:
        """
        Execute one logical request against the tenant's agent.

        Args:
            agent_config: Current agent settings for the tenant
            action: Agent action
            sql: Plaintext SQL (required for execute_query)
            params: Named parameters bound by the agent

        Returns:
            AgentResult with success=True

        Raises:
            ConfigError: Tenant has no agent endpoint or secret
            TransportError: Agent unreachable after retries, or bad HTTP status
            AuthError: Agent rejected the signature
            ApplicationError: Agent reported success=false
            MalformedResponseError: Agent answered with an unreadable body
            EncryptionError: SQL could not be encrypted
        """
        self._require_configured(agent_config, action)
        if action == AgentAction.EXECUTE_QUERY and not sql:
            raise ValueError("execute_query requires SQL")

        timeout_ms = agent_config.timeout_ms if action == AgentAction.EXECUTE_QUERY else self.ping_timeout_ms

        def on_retry(error: GatewayError, retry_number: int) -> None:
            agent_retries_total.labels(action=action.value, kind=getattr(error, "kind", "unknown")).inc()
            logger.warning(
                "Retrying agent request after network failure",
                extra={
                    "tenant_id": agent_config.tenant_id,
                    "tenant": agent_config.display_name,
                    "retry": retry_number,
                    "max_retries": agent_config.effective_retries,
                    "error": error.message,
                },
            )

        async def attempt() -> AgentResult:
            # Fresh timestamp and signature on every attempt
            request = self.build_request(agent_config, action, sql, params)
            return await self._post(agent_config, request, timeout_ms, sql)

        try:
            return await retry_on_network_error(
                attempt,
                max_retries=agent_config.effective_retries,
                delay=self.retry_delay,
                on_retry=on_retry,
            )
        except GatewayError as e:
            e.tenant_id = e.tenant_id or agent_config.tenant_id
            self._log_failure(agent_config, action, sql, e)
            raise

    async def ping(self, agent_config: TenantAgentConfig) -> AgentResult:
        """Send a ping; raises the same typed errors as ``send``."""
        self._require_configured(agent_config, AgentAction.PING)
        request = self.build_request(agent_config, AgentAction.PING)
        try:
            return await self._post(agent_config, request, self.ping_timeout_ms, None)
        except GatewayError as e:
            e.tenant_id = e.tenant_id or agent_config.tenant_id
            self._log_failure(agent_config, AgentAction.PING, None, e)
            raise

    def _require_configured(self, agent_config: TenantAgentConfig, action: AgentAction) -> None:
        if not agent_config.is_configured:
            agent_requests_total.labels(action=action.value, outcome="config").inc()
            logger.error(
                "Agent not configured for tenant",
                extra={
                    "tenant_id": agent_config.tenant_id,
                    "tenant": agent_config.display_name,
                    "has_endpoint": bool(agent_config.endpoint),
                    "has_secret": bool(agent_config.shared_secret),
                },
            )
            raise ConfigError(
                "Agent not configured for this tenant",
                tenant_id=agent_config.tenant_id,
            )

    async def _post(
        self,
        agent_config: TenantAgentConfig,
        request: AgentRequest,
        timeout_ms: int,
        sql: Optional[str],
    ) -> AgentResult:
        """One HTTP attempt, classified into a result or a typed error."""
        action = request.action.value
        headers = {
            "Content-Type": "application/json",
            "User-Agent": self.user_agent,
        }

        start_time = time.time()
        try:
            async with httpx.AsyncClient(timeout=timeout_ms / 1000) as client:
                try:
                    response = await client.post(
                        agent_config.endpoint,
                        json=request.wire_body(),
                        headers=headers,
                    )
                except httpx.TimeoutException as e:
                    raise TransportError(
                        "Timeout while querying the tenant agent",
                        kind=TransportError.TIMEOUT,
                        details={"timeout_ms": timeout_ms, "error": str(e)},
                    ) from e
                except httpx.NetworkError as e:
                    raise TransportError(
                        "Tenant agent is offline",
                        kind=TransportError.OFFLINE,
                        details={"error": str(e)},
                    ) from e
                except httpx.HTTPError as e:
                    raise TransportError(
                        f"Agent HTTP request failed: {e}",
                        kind=TransportError.PROTOCOL,
                    ) from e

            result = self._interpret(response)
        except GatewayError as e:
            agent_requests_total.labels(action=action, outcome=e.category.value).inc()
            raise
        finally:
            agent_request_duration.labels(action=action).observe(time.time() - start_time)

        agent_requests_total.labels(action=action, outcome="success").inc()
        if result.count == 0 and not result.data and not response.text.strip():
            logger.warning(
                "Agent returned an empty body; treating as zero rows",
                extra={
                    "tenant_id": agent_config.tenant_id,
                    "tenant": agent_config.display_name,
                    "sql": (sql or "")[:SQL_LOG_LIMIT],
                },
            )
        return result

    def _interpret(self, response: httpx.Response) -> AgentResult:
        """Map an HTTP response onto AgentResult or a typed error."""
        status_code = response.status_code

        if status_code in (401, 403):
            agent_auth_failures_total.inc()
            raise AuthError(
                _upstream_error(response) or f"Agent rejected the request (status {status_code})",
                details={"status_code": status_code},
            )

        if not 200 <= status_code < 300:
            raise TransportError(
                _upstream_error(response) or f"Error communicating with the agent (status {status_code})",
                kind=TransportError.HTTP_STATUS,
                status_code=status_code,
            )

        result = normalize(response.text)
        if result.success:
            return result

        if is_malformed(result):
            raise MalformedResponseError(
                "Agent returned a malformed response",
                details={"status_code": status_code},
            )

        message = result.error or "Query failed on the agent"
        if _AUTH_ERROR_PATTERN.search(message):
            agent_auth_failures_total.inc()
            raise AuthError(message)
        raise ApplicationError(message)

    def _log_failure(
        self,
        agent_config: TenantAgentConfig,
        action: AgentAction,
        sql: Optional[str],
        error: GatewayError,
    ) -> None:
        # Secrets, keys and signatures are never part of the log record
        extra = {
            "tenant_id": agent_config.tenant_id,
            "tenant": agent_config.display_name,
            "action": action.value,
            "category": error.category.value,
            "error": error.message,
            "sql": (sql or "")[:SQL_LOG_LIMIT],
        }
        if error.details:
            extra["details"] = redact(error.details)
        if isinstance(error, TransportError):
            extra["kind"] = error.kind
            extra["status_code"] = error.status_code
        if isinstance(error, AuthError):
            # Usually secret rotation or clock skew on the agent host
            logger.critical("Agent rejected request signature", extra=extra)
        elif isinstance(error, ApplicationError):
            logger.error("Query failed on agent", extra=extra)
        else:
            logger.error("Error calling agent", extra=extra)


agent_client = AgentClient()
