"""Tenant agent configuration model."""

from dataclasses import dataclass
from typing import Optional

DEFAULT_QUERY_TIMEOUT_MS = 15000
DEFAULT_PING_TIMEOUT_MS = 5000
DEFAULT_MAX_RETRIES = 2


@dataclass(frozen=True)
class TenantAgentConfig:
    """Per-call snapshot of a tenant's agent settings. Read-only to the gateway."""
    tenant_id: str
    endpoint: Optional[str]  # full agent URL, e.g. https://isp.example/addons/agent/api.php
    shared_secret: Optional[str]  # HMAC key, also cipher key material
    tenant_name: Optional[str] = None
    encrypt_enabled: bool = False
    encryption_key: Optional[str] = None  # overrides shared_secret as cipher key material
    timeout_ms: int = DEFAULT_QUERY_TIMEOUT_MS
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_enabled: bool = True

    @property
    def is_configured(self) -> bool:
        """False for "agentless" tenants, which must never be sent a request."""
        return bool(self.endpoint) and bool(self.shared_secret)

    @property
    def cipher_key(self) -> Optional[str]:
        return self.encryption_key or self.shared_secret

    @property
    def encryption_applies(self) -> bool:
        return self.encrypt_enabled and bool(self.cipher_key)

    @property
    def effective_retries(self) -> int:
        return max(self.max_retries, 0) if self.retry_enabled else 0

    @property
    def display_name(self) -> str:
        return self.tenant_name or self.tenant_id
