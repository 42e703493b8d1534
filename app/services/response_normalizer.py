"""Normalize raw agent responses into AgentResult.

Agents in the field disagree on the response contract: some omit ``count``,
some answer a successful write with an empty body, some return a bare object
in ``data``. Everything above the gateway only ever sees ``AgentResult``.
"""

import json
import logging
from typing import Any, Optional, Union

from app.models.agent import AgentResult

logger = logging.getLogger(__name__)

MALFORMED_RESPONSE = "malformed response"

RawBody = Union[str, bytes, bytearray, dict, list, None]


def _parse_body(raw: RawBody) -> Any:
    """Decode text bodies; returns the sentinel ``""`` for empty/blank bodies."""
    if raw is None:
        return ""
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8")
    if isinstance(raw, str):
        if not raw.strip():
            return ""
        return json.loads(raw)
    return raw


def _as_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return None


def is_malformed(result: AgentResult) -> bool:
    """Whether ``result`` is the normalizer's stand-in for an unreadable body."""
    return not result.success and result.error == MALFORMED_RESPONSE


def normalize(raw: RawBody) -> AgentResult:
    """
    Convert whatever the agent returned into an AgentResult. Never raises.

    Args:
        raw: Response body as text/bytes, an already-decoded JSON value, or None

    Returns:
        AgentResult. Empty bodies are a zero-row success; bodies that are not
        a JSON object become ``success=False, error="malformed response"``.
    """
    try:
        body = _parse_body(raw)
    except (ValueError, UnicodeDecodeError, RecursionError):
        logger.warning("Agent returned a non-JSON body", extra={"body_preview": str(raw)[:200]})
        return AgentResult.failure(MALFORMED_RESPONSE)

    if body == "":
        return AgentResult.empty_success()

    if not isinstance(body, dict):
        logger.warning("Agent returned an unexpected JSON shape", extra={"body_type": type(body).__name__})
        return AgentResult.failure(MALFORMED_RESPONSE)

    data = body.get("data")
    if data is None:
        data = []
    elif isinstance(data, dict):
        data = [data]
    elif not isinstance(data, list):
        logger.warning("Agent returned a non-list data field", extra={"data_type": type(data).__name__})
        return AgentResult.failure(MALFORMED_RESPONSE)

    count = _as_int(body.get("count"))
    error = body.get("error")

    return AgentResult(
        success=body.get("success") is True,
        data=data,
        count=count if count is not None else len(data),
        error=str(error) if error is not None else None,
        insert_id=body.get("insert_id"),
        affected_rows=_as_int(body.get("affected_rows")),
    )
