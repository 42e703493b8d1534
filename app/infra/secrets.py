"""Secret reference resolution for application and tenant agent secrets.

Tenant agent records may store the shared secret either directly or as a
reference, so rotating a secret in Vault takes effect on the next call.

Supported forms:
- ``vault://secret/path/key`` - HashiCorp Vault KV v2 (requires the ``vault`` extra)
- ``env://VAR_NAME`` - environment variable
- anything else - the literal value
"""

import logging
import os
from typing import Optional

logger = logging.getLogger(__name__)

REFERENCE_PREFIXES = ("vault://", "env://")


class SecretsManager:
    """Resolves secret references against the configured backends."""

    def __init__(self):
        self._vault_client = None
        self._vault_checked = False

    def _get_vault_client(self):
        """Create the Vault client on first use, if Vault is configured."""
        if self._vault_checked:
            return self._vault_client
        self._vault_checked = True

        vault_url = os.getenv("VAULT_ADDR")
        vault_token = os.getenv("VAULT_TOKEN")
        if not (vault_url and vault_token):
            return None

        try:
            import hvac
        except ImportError:
            logger.warning("VAULT_ADDR is set but hvac is not installed; vault:// references will not resolve")
            return None

        client = hvac.Client(url=vault_url, token=vault_token)
        if not client.is_authenticated():
            logger.warning("Vault client failed to authenticate", extra={"vault_addr": vault_url})
            return None
        self._vault_client = client
        return client

    def get_secret(self, secret_ref: str) -> Optional[str]:
        """
        Resolve a secret reference or return a direct value unchanged.

        Args:
            secret_ref: Secret reference (vault://, env://) or direct value

        Returns:
            Secret value, or None if the reference cannot be resolved
        """
        if not secret_ref:
            return None

        if not secret_ref.startswith(REFERENCE_PREFIXES):
            return secret_ref

        if secret_ref.startswith("env://"):
            return os.getenv(secret_ref[len("env://"):])

        return self._get_vault_secret(secret_ref[len("vault://"):])

    def _get_vault_secret(self, path: str) -> Optional[str]:
        """Read ``path`` (``mount/path/key``) from Vault KV v2."""
        client = self._get_vault_client()
        if client is None:
            return None

        secret_path, _, key = path.rpartition("/")
        if not secret_path or not key:
            logger.warning("Malformed vault reference", extra={"path": path})
            return None

        try:
            response = client.secrets.kv.v2.read_secret_version(path=secret_path)
        except Exception as e:
            # Never log the secret itself, only where it was looked up
            logger.error(
                "Vault secret lookup failed",
                extra={"secret_path": secret_path, "error": str(e)},
            )
            return None
        return response.get("data", {}).get("data", {}).get(key)


# Global secrets manager instance
secrets_manager = SecretsManager()


def is_secret_reference(value: Optional[str]) -> bool:
    """Whether ``value`` points at a secret store rather than holding the secret."""
    return bool(value) and value.startswith(REFERENCE_PREFIXES)


def get_secret(secret_ref: str, fallback: Optional[str] = None) -> Optional[str]:
    """
    Convenience function to get a secret.

    Args:
        secret_ref: Secret reference (vault://, env://) or direct value
        fallback: Fallback value if secret not found

    Returns:
        Secret value or fallback
    """
    value = secrets_manager.get_secret(secret_ref)
    return value if value is not None else fallback
