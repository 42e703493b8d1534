"""Health check API router."""

from fastapi import APIRouter

from app.infra.metrics import get_metrics_response
from app.services.queries import query_catalog

router = APIRouter()


@router.get("/health", tags=["Health"])
async def health_check():
    """Combined health check endpoint."""
    return {
        "status": "ok",
        "service": "agent-query-gateway",
        "version": "1.0.0",
        "catalog_queries": len(query_catalog),
    }


@router.get("/health/live", tags=["Health"])
async def liveness_probe():
    """Liveness probe - indicates if the process is running."""
    return {"status": "alive"}


@router.get("/metrics", tags=["Health"])
async def metrics():
    """Prometheus metrics endpoint."""
    return get_metrics_response()
