"""API request/response models."""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


# ============================================================================
# Agent Models
# ============================================================================

class AgentPingResponse(BaseModel):
    """Response model for an agent ping."""
    tenant_id: str
    online: bool = Field(..., description="True when the agent answered a signed ping")
    latency_ms: int = Field(..., description="Round trip time in milliseconds")


class ErrorResponse(BaseModel):
    """Body returned for typed gateway failures."""
    detail: str
    category: str = Field(..., example="network")
    tenant_id: Optional[str] = None


# ============================================================================
# Dashboard Models
# ============================================================================

class ClientStats(BaseModel):
    total: int = 0
    recent: int = 0
    normal: int = 0
    blocked: int = 0
    observation: int = 0
    online: int = 0
    offline: int = 0


class PendingOverdue(BaseModel):
    pending: int = 0
    overdue: int = 0


class RequestStats(BaseModel):
    urgente: int = 0
    alta: int = 0
    normal: int = 0
    baixa: int = 0
    total: int = 0


class RequestSummary(BaseModel):
    today: int = 0
    overdue: int = 0
    ongoing: int = 0
    completed: int = 0


class DashboardStatsResponse(BaseModel):
    """Response model for tenant dashboard statistics."""
    clients: ClientStats
    invoices: PendingOverdue
    client_invoices: PendingOverdue
    requests: RequestStats
    requests_summary: RequestSummary


class OnlineClientsResponse(BaseModel):
    total: int
    clients: List[Dict[str, Any]]
