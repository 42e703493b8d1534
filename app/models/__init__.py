from .tenant import TenantAgentConfig
from .agent import AgentAction, AgentRequest, AgentResult
from .query import (
    BoundQuery,
    QueryDefinition,
    ResolvedQuery,
    InsertOutcome,
    UpdateOutcome,
    DeleteOutcome,
    PagedResult,
)

__all__ = [
    "TenantAgentConfig",
    "AgentAction",
    "AgentRequest",
    "AgentResult",
    "BoundQuery",
    "QueryDefinition",
    "ResolvedQuery",
    "InsertOutcome",
    "UpdateOutcome",
    "DeleteOutcome",
    "PagedResult",
]
