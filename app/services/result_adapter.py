"""Map AgentResult into operation-shaped results.

Callers written against the previous backend expect a record, a list, or a
write outcome rather than the agent's ``{success, data}`` envelope. The agent
never echoes written rows, so inserts and updates re-select through the same
transport.
"""

import logging
import math
import re
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Tuple

from app.infra.error_handler import ApplicationError
from app.models.agent import AgentResult
from app.models.query import DeleteOutcome, InsertOutcome, PagedResult, UpdateOutcome

logger = logging.getLogger(__name__)

# (sql, params) -> AgentResult, bound to the same tenant and transport
FetchFn = Callable[[str, Dict[str, Any]], Awaitable[AgentResult]]

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


def validate_identifier(value: str, what: str) -> str:
    if not isinstance(value, str) or not _IDENTIFIER.match(value):
        raise ValueError(f"Invalid {what}: {value!r}")
    return value


def _require_success(result: Optional[AgentResult], default_error: str) -> AgentResult:
    if result is None or not result.success:
        message = (result.error if result else None) or default_error
        logger.error("Agent result is a failure", extra={"error": message})
        raise ApplicationError(message)
    return result


def adapt_list(result: AgentResult) -> List[Dict[str, Any]]:
    """Rows of a select, ``[]`` when there are none."""
    return list(_require_success(result, "Unknown error querying agent").data)


def adapt_one(result: AgentResult) -> Optional[Dict[str, Any]]:
    """First row of a select, or None."""
    rows = adapt_list(result)
    return rows[0] if rows else None


async def _select_by_key(
    fetch: FetchFn, table: str, id_field: str, id_value: Any
) -> Optional[Dict[str, Any]]:
    sql = f"SELECT * FROM {table} WHERE {id_field} = :{id_field.split('.')[-1]} LIMIT 1"
    result = await fetch(sql, {id_field.split(".")[-1]: id_value})
    return adapt_one(result)


async def adapt_insert(
    result: AgentResult,
    fetch: FetchFn,
    table: str,
    id_field: str = "id",
) -> InsertOutcome:
    """
    Fetch the row created by an INSERT.

    Raises:
        ApplicationError: If the insert failed or the agent returned no insert_id
    """
    table = validate_identifier(table, "table name")
    id_field = validate_identifier(id_field, "id field")
    result = _require_success(result, "Error inserting record")

    if result.insert_id is None or result.insert_id == "" or result.insert_id == 0:
        raise ApplicationError("Agent did not return insert_id")

    record = await _select_by_key(fetch, table, id_field, result.insert_id)
    return InsertOutcome(record=record)


async def adapt_update(
    result: AgentResult,
    fetch: FetchFn,
    table: str,
    id_field: str,
    id_value: Any,
) -> UpdateOutcome:
    """Re-select the updated row; no secondary call when nothing changed."""
    table = validate_identifier(table, "table name")
    id_field = validate_identifier(id_field, "id field")
    result = _require_success(result, "Error updating record")

    if result.affected_rows == 0:
        return UpdateOutcome(record=None)

    record = await _select_by_key(fetch, table, id_field, id_value)
    return UpdateOutcome(record=record)


def adapt_delete(result: AgentResult) -> DeleteOutcome:
    result = _require_success(result, "Error deleting record")
    count = result.affected_rows or 0
    return DeleteOutcome(deleted=count > 0, count=count)


def adapt_page(result: AgentResult, page: int = 1, limit: int = 50) -> PagedResult:
    """Rows plus pagination metadata; ``total`` prefers the agent's count."""
    items = adapt_list(result)
    page = max(int(page), 1)
    limit = max(int(limit), 1)
    total = result.count or len(items)
    return PagedResult(
        items=items,
        total=total,
        page=page,
        limit=limit,
        pages=math.ceil(total / limit),
    )


def aggregate_stats(responses: Iterable[Tuple[str, Optional[AgentResult]]]) -> Dict[str, Any]:
    """
    Collapse single-value queries into one dict.

    Each key takes the first column of the first row; failed or empty
    results count as 0.
    """
    stats: Dict[str, Any] = {}
    for key, result in responses:
        if result is not None and result.success and result.data and isinstance(result.data[0], dict):
            first_row = result.data[0]
            stats[key] = next(iter(first_row.values()), 0)
        else:
            stats[key] = 0
    return stats
