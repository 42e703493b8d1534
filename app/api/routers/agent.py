"""Tenant agent API endpoints."""

import time

from fastapi import APIRouter, Security

from app.api.models import AgentPingResponse, DashboardStatsResponse, OnlineClientsResponse
from app.infra.auth import require_tenant_access, verify_api_key
from app.services.agent_gateway import agent_gateway
from app.services.dashboard_service import dashboard_service

router = APIRouter(prefix="/tenants/{tenant_id}", tags=["Agent"])


@router.post("/agent/ping", response_model=AgentPingResponse)
async def ping_agent(
    tenant_id: str,
    api_tenant_id: str = Security(verify_api_key),
):
    """
    Send a signed ping to the tenant's agent.

    Always answers 200; ``online`` is false when the agent is unreachable,
    misconfigured or rejects the signature.
    """
    require_tenant_access(tenant_id, api_tenant_id)
    start_time = time.time()
    online = await agent_gateway.ping(tenant_id)
    return AgentPingResponse(
        tenant_id=tenant_id,
        online=online,
        latency_ms=int((time.time() - start_time) * 1000),
    )


@router.get("/dashboard", response_model=DashboardStatsResponse)
async def get_dashboard(
    tenant_id: str,
    api_tenant_id: str = Security(verify_api_key),
):
    """Aggregated client, invoice and support request counters."""
    require_tenant_access(tenant_id, api_tenant_id)
    return await dashboard_service.stats(tenant_id)


@router.get("/dashboard/online", response_model=OnlineClientsResponse)
async def get_online_clients(
    tenant_id: str,
    api_tenant_id: str = Security(verify_api_key),
):
    require_tenant_access(tenant_id, api_tenant_id)
    return await dashboard_service.online_clients(tenant_id)
