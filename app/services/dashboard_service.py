"""Dashboard statistics assembled from concurrent agent queries."""

import asyncio
import logging
from typing import Any, Dict, Optional

from app.services.agent_gateway import AgentGateway, agent_gateway

logger = logging.getLogger(__name__)

DASHBOARD_QUERIES = (
    "dashboard_client_stats",
    "dashboard_invoice_stats",
    "dashboard_request_stats",
)


def _int(value: Any) -> int:
    try:
        return int(float(value or 0))
    except (TypeError, ValueError):
        return 0


def _first_row(rows) -> Dict[str, Any]:
    return rows[0] if rows and isinstance(rows[0], dict) else {}


def build_dashboard_stats(
    clients: Dict[str, Any], invoices: Dict[str, Any], requests: Dict[str, Any]
) -> Dict[str, Any]:
    """Derive the dashboard payload from the three aggregate rows."""
    total = _int(clients.get("total"))
    blocked = _int(clients.get("bloqueados"))
    observation = _int(clients.get("observacao"))
    online = _int(clients.get("online"))

    return {
        "clients": {
            "total": total,
            "recent": _int(clients.get("recentes")),
            "normal": total - blocked - observation,
            "blocked": blocked,
            "observation": observation,
            "online": online,
            "offline": total - online,
        },
        "invoices": {
            "pending": _int(invoices.get("pending")),
            "overdue": _int(invoices.get("overdue")),
        },
        "client_invoices": {
            "pending": _int(invoices.get("tit_abertos")),
            "overdue": _int(invoices.get("tit_vencidos")),
        },
        "requests": {
            "urgente": _int(requests.get("urgente")),
            "alta": _int(requests.get("alta")),
            "normal": _int(requests.get("normal")),
            "baixa": _int(requests.get("baixa")),
            "total": _int(requests.get("total")),
        },
        "requests_summary": {
            "today": _int(requests.get("today")),
            "overdue": _int(requests.get("overdue")),
            "ongoing": _int(requests.get("ongoing")),
            "completed": _int(requests.get("completed")),
        },
    }


class DashboardService:
    def __init__(self, gateway: Optional[AgentGateway] = None):
        self.gateway = gateway or agent_gateway

    async def stats(self, tenant_id: str) -> Dict[str, Any]:
        """
        Fan out the three aggregate queries and join them.

        Any failing query fails the whole call; partial data is discarded.
        """
        clients, invoices, requests = await asyncio.gather(
            *(self.gateway.select_list(tenant_id, name) for name in DASHBOARD_QUERIES)
        )
        return build_dashboard_stats(_first_row(clients), _first_row(invoices), _first_row(requests))

    async def online_clients(self, tenant_id: str) -> Dict[str, Any]:
        rows = await self.gateway.select_list(tenant_id, "online_clients")
        logger.info("Online clients fetched", extra={"tenant_id": tenant_id, "count": len(rows)})
        return {"total": len(rows), "clients": rows}


dashboard_service = DashboardService()
