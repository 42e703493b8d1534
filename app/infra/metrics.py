"""Prometheus metrics export."""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Agent call metrics
agent_requests_total = Counter(
    "agent_requests_total",
    "Total requests sent to tenant agents (one per attempt)",
    ["action", "outcome"],  # outcome: success | config | network | auth_error | application | malformed | encryption
)

agent_request_duration = Histogram(
    "agent_request_duration_seconds",
    "Agent request duration in seconds, per attempt",
    ["action"],
)

agent_retries_total = Counter(
    "agent_retries_total",
    "Retries issued after network-level agent failures",
    ["action", "kind"],  # kind: offline | timeout
)

agent_auth_failures_total = Counter(
    "agent_auth_failures_total",
    "Signature rejections reported by tenant agents",
)

# Catalog metrics
catalog_queries_total = Counter(
    "catalog_queries_total",
    "Named catalog queries executed",
    ["query_name", "status"],
)


def get_metrics_response() -> Response:
    """Get Prometheus metrics response."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
