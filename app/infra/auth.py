"""API key authentication for the gateway's operational routes."""

import hmac
import logging
from typing import Optional

import bcrypt
from fastapi import HTTPException, Security, status
from fastapi.security import APIKeyHeader
from sqlalchemy import text

from app.infra.config import config
from app.infra.database import get_db_session

logger = logging.getLogger(__name__)

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)

MASTER = "master"
KEY_PREFIX_LENGTH = 8
MIN_KEY_LENGTH = 16


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "ApiKey"},
    )


def check_key_hash(api_key: str, key_hash: str) -> bool:
    try:
        return bcrypt.checkpw(api_key.encode("utf-8"), key_hash.encode("utf-8"))
    except ValueError:
        return False


def lookup_tenant_for_key(api_key: str) -> Optional[str]:
    """Tenant owning an active bcrypt-hashed key, filtered by its prefix first."""
    with get_db_session() as session:
        rows = session.execute(
            text("""
                SELECT tenant_id, key_hash
                FROM api_keys
                WHERE key_prefix = :key_prefix
                  AND is_active = TRUE
                  AND (expires_at IS NULL OR expires_at > NOW())
            """),
            {"key_prefix": api_key[:KEY_PREFIX_LENGTH]}
        ).fetchall()

    for row in rows:
        if check_key_hash(api_key, row.key_hash):
            return str(row.tenant_id)
    return None


async def verify_api_key(api_key: Optional[str] = Security(api_key_header)) -> str:
    """
    Resolve the caller of a request.

    Returns:
        ``"master"`` for the master key, otherwise the key's tenant_id

    Raises:
        HTTPException: 401 if the key is missing or unknown
    """
    if not api_key:
        raise _unauthorized("API key required. Provide the X-API-Key header.")
    if len(api_key) < MIN_KEY_LENGTH:
        raise _unauthorized("Invalid API key format")

    if config.MASTER_API_KEY and hmac.compare_digest(api_key, config.MASTER_API_KEY):
        return MASTER

    tenant_id = lookup_tenant_for_key(api_key)
    if tenant_id is None:
        logger.warning("Rejected API key", extra={"key_prefix": api_key[:KEY_PREFIX_LENGTH]})
        raise _unauthorized("Invalid API key")
    return tenant_id


def require_tenant_access(tenant_id: str, api_tenant_id: str) -> None:
    """Raise 403 unless the caller holds the master key or a key for ``tenant_id``."""
    if api_tenant_id == MASTER:
        return
    if api_tenant_id != tenant_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied: API key does not have access to this tenant",
        )
