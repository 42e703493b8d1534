"""Wire request and normalized result models for agent calls."""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class AgentAction(str, Enum):
    """Actions understood by the remote agent."""
    EXECUTE_QUERY = "execute_query"
    PING = "ping"


class AgentRequest(BaseModel):
    """One signed request to an agent. Built fresh per call, never reused."""
    action: AgentAction = Field(..., description="'execute_query' | 'ping'")
    timestamp: int = Field(..., description="Epoch milliseconds at build time")
    sql: Optional[str] = Field(None, description="Plaintext SQL or 'ivHex:cipherHex'")
    encrypted: Optional[bool] = Field(None, description="Whether sql is encrypted")
    params: Optional[Dict[str, Any]] = Field(None, description="Bound parameters, {} when empty")
    signature: Optional[str] = Field(None, description="Hex HMAC-SHA256, computed last")

    def unsigned_body(self) -> Dict[str, Any]:
        """Fields covered by the signature.

        Query requests always carry ``sql``, ``encrypted`` and ``params`` (even
        ``{}``); pings carry none of them. Any divergence from what the agent
        serializes breaks authentication.
        """
        body: Dict[str, Any] = {
            "action": self.action.value,
            "timestamp": self.timestamp,
        }
        if self.action == AgentAction.EXECUTE_QUERY:
            body["sql"] = self.sql
            body["encrypted"] = bool(self.encrypted)
            body["params"] = self.params if self.params is not None else {}
        return body

    def wire_body(self) -> Dict[str, Any]:
        """The JSON object POSTed to the agent."""
        body = self.unsigned_body()
        body["signature"] = self.signature
        return body


class AgentResult(BaseModel):
    """Normalized agent response; the only shape callers above the gateway see."""
    success: bool = False
    data: List[Any] = Field(default_factory=list)
    count: int = 0
    error: Optional[str] = None
    insert_id: Optional[Any] = None
    affected_rows: Optional[int] = None

    @classmethod
    def empty_success(cls) -> "AgentResult":
        return cls(success=True, data=[], count=0)

    @classmethod
    def failure(cls, error: str) -> "AgentResult":
        return cls(success=False, error=error)
