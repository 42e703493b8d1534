"""Gateway error taxonomy, secret redaction and the network retry loop."""

import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

logger = logging.getLogger(__name__)


class ErrorCategory(str, Enum):
    """Categories of gateway failures."""
    CONFIG = "config"  # Tenant has no usable agent configuration
    NETWORK = "network"  # Agent offline, timed out or answered with a bad status
    AUTH_ERROR = "auth_error"  # Agent rejected the signature
    APPLICATION = "application"  # Agent ran the query and reported a failure
    MALFORMED = "malformed"  # Agent answered with an unexpected body
    ENCRYPTION = "encryption"  # Payload could not be encrypted/decrypted
    QUERY_NOT_FOUND = "query_not_found"  # Caller asked for an unknown catalog entry


class GatewayError(Exception):
    """Base exception for every failure surfaced by the gateway."""

    category: ErrorCategory = ErrorCategory.APPLICATION

    def __init__(
        self,
        message: str,
        tenant_id: Optional[str] = None,
        retryable: bool = False,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.tenant_id = tenant_id
        self.retryable = retryable
        self.details = details or {}
        super().__init__(message)


class ConfigError(GatewayError):
    """Agent not configured for the tenant. Never retried."""
    category = ErrorCategory.CONFIG


class TransportError(GatewayError):
    """Network-level failure talking to the agent.

    ``kind`` is ``offline``, ``timeout``, ``http_status`` or ``protocol``. Only
    the first two are retryable: a status code means the request reached the
    agent, and a protocol violation will not fix itself on a second attempt.
    """
    category = ErrorCategory.NETWORK

    OFFLINE = "offline"
    TIMEOUT = "timeout"
    HTTP_STATUS = "http_status"
    PROTOCOL = "protocol"

    def __init__(
        self,
        message: str,
        kind: str,
        tenant_id: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.kind = kind
        self.status_code = status_code
        super().__init__(
            message,
            tenant_id=tenant_id,
            retryable=kind in (self.OFFLINE, self.TIMEOUT),
            details=details,
        )


class AuthError(GatewayError):
    """Agent rejected the request signature (secret or clock skew)."""
    category = ErrorCategory.AUTH_ERROR


class ApplicationError(GatewayError):
    """The remote query itself failed; message comes from the agent."""
    category = ErrorCategory.APPLICATION


class MalformedResponseError(GatewayError):
    """Agent answered with a body the gateway cannot interpret."""
    category = ErrorCategory.MALFORMED


class EncryptionError(GatewayError):
    """Payload cipher failure. The gateway never falls back to plaintext."""
    category = ErrorCategory.ENCRYPTION


class QueryNotFound(GatewayError):
    """Unregistered catalog name. A caller error, not a transport failure."""
    category = ErrorCategory.QUERY_NOT_FOUND

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Query not found: {name}")


SENSITIVE_KEYS = frozenset({
    "shared_secret",
    "secret",
    "token",
    "encryption_key",
    "signature",
    "password",
    "api_key",
})

REDACTED = "***"


def redact(values: Mapping[str, Any]) -> Dict[str, Any]:
    """Copy ``values`` with secret-bearing keys masked, recursing into dicts."""
    redacted: Dict[str, Any] = {}
    for key, value in values.items():
        if key.lower() in SENSITIVE_KEYS:
            redacted[key] = REDACTED if value else value
        elif isinstance(value, Mapping):
            redacted[key] = redact(value)
        else:
            redacted[key] = value
    return redacted


async def retry_on_network_error(
    func: Callable[[], Awaitable[Any]],
    max_retries: int,
    delay: float = 0.0,
    on_retry: Optional[Callable[[GatewayError, int], None]] = None,
) -> Any:
    """
    Run ``func`` and retry it only on retryable gateway errors.

    Args:
        func: Zero-argument coroutine function performing one attempt
        max_retries: Extra attempts after the first one (0 disables retrying)
        delay: Fixed pause between attempts in seconds
        on_retry: Optional callback called before each retry (error, retry_number)

    Returns:
        Result of the first successful attempt

    Raises:
        The last error once retries are exhausted, or the first
        non-retryable error immediately
    """
    attempt = 0
    while True:
        try:
            return await func()
        except GatewayError as e:
            if not e.retryable or attempt >= max_retries:
                raise
            attempt += 1
            if on_retry:
                on_retry(e, attempt)
            if delay > 0:
                await asyncio.sleep(delay)
