"""Pytest configuration and fixtures."""

import json
import os
from unittest.mock import AsyncMock, MagicMock

import pytest
from dotenv import load_dotenv

# Load test environment variables
load_dotenv()

# Set test environment
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DEBUG", "true")

from app.models.tenant import TenantAgentConfig  # noqa: E402

SECRET = "s" * 32


def http_response(body=None, status_code=200, text=None):
    """Fake httpx.Response exposing what the agent client reads."""
    response = MagicMock()
    response.status_code = status_code
    if text is None:
        text = "" if body is None else json.dumps(body)
    response.text = text
    return response


def install_http_client(mock_client_class, post):
    """Wire a patched ``httpx.AsyncClient`` class to an AsyncMock ``post``."""
    mock_client = AsyncMock()
    mock_client.post = post
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=None)
    mock_client_class.return_value = mock_client
    return mock_client


@pytest.fixture
def agent_config():
    """Plaintext tenant agent config."""
    return TenantAgentConfig(
        tenant_id="tenant-1",
        tenant_name="Provedor Teste",
        endpoint="https://x/api.php",
        shared_secret=SECRET,
        encrypt_enabled=False,
        timeout_ms=15000,
        max_retries=2,
        retry_enabled=True,
    )


@pytest.fixture
def encrypted_agent_config(agent_config):
    return TenantAgentConfig(
        tenant_id=agent_config.tenant_id,
        endpoint=agent_config.endpoint,
        shared_secret=SECRET,
        encrypt_enabled=True,
    )


@pytest.fixture
def agentless_config():
    """Tenant with no agent configured."""
    return TenantAgentConfig(tenant_id="tenant-2", endpoint=None, shared_secret=None)
