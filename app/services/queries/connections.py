"""RADIUS accounting (radacct) queries and their row transforms."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from app.models.query import BoundQuery
from app.services.query_catalog import query_catalog

OCTET_UNITS = ["Kb", "Mb", "Gb"]
BYTE_UNITS = ["B", "KB", "MB", "GB", "TB"]


def format_bytes(num_bytes) -> str:
    """Human readable size, e.g. ``1536 -> "1.5 KB"``."""
    value = float(num_bytes or 0)
    if value <= 0:
        return "0 B"
    index = 0
    while value >= 1024 and index < len(BYTE_UNITS) - 1:
        value /= 1024
        index += 1
    return f"{round(value, 2):g} {BYTE_UNITS[index]}"


def format_octets(value) -> Dict[str, Any]:
    """Octet counter as ``{"new_value": float, "unit": "Kb"|"Mb"|"Gb"}``."""
    try:
        amount = float(value or 0)
    except (TypeError, ValueError):
        amount = 0.0
    if not amount:
        return {"new_value": 0, "unit": "Kb"}

    amount /= 1024
    unit_index = 0
    while amount >= 1024 and unit_index < len(OCTET_UNITS) - 1:
        amount /= 1024
        unit_index += 1
    return {"new_value": round(amount, 2), "unit": OCTET_UNITS[unit_index]}


def _parse_timestamp(value) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    text = str(value)
    if text.startswith("0000-00-00"):
        return None
    return datetime.fromisoformat(text.replace("T", " ").replace("Z", ""))


def _duration(start: Optional[datetime], end: datetime) -> str:
    """Coarsest non-zero unit: days, then hours, then minutes."""
    if start is None:
        return "0m"
    seconds = max(int((end - start).total_seconds()), 0)
    days, remainder = divmod(seconds, 86400)
    hours, remainder = divmod(remainder, 3600)
    if days > 0:
        return f"{days}d"
    if hours > 0:
        return f"{hours}h"
    return f"{remainder // 60}m"


def connection_entry(row: Dict[str, Any], now: Optional[datetime] = None) -> Dict[str, Any]:
    """Shape one radacct row for the client app. Open sessions run until ``now``."""
    start = _parse_timestamp(row.get("acctstarttime"))
    end = _parse_timestamp(row.get("acctstoptime"))
    return {
        "id": str(row.get("radacctid") or ""),
        "start_date": start.strftime("%d/%m/%Y") if start else None,
        "start_time": start.strftime("%H:%M") if start else None,
        "end_date": end.strftime("%d/%m/%Y") if end else None,
        "end_time": end.strftime("%H:%M") if end else None,
        "duration": _duration(start, end or now or datetime.now()),
        "upload": format_octets(row.get("acctinputoctets")),
        "download": format_octets(row.get("acctoutputoctets")),
    }


def connection_history_transform(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    now = datetime.now()
    return [connection_entry(row, now) for row in rows]


@query_catalog.register("connection_history", transform=connection_history_transform)
def connection_history(login: str, limit: int = 50) -> BoundQuery:
    return BoundQuery(
        sql="""SELECT radacctid,
                      acctstarttime, acctstoptime,
                      framedipaddress, nasipaddress,
                      acctinputoctets, acctoutputoctets,
                      acctterminatecause
               FROM radacct
               WHERE username = :login
               ORDER BY acctstarttime DESC
               LIMIT :limit""",
        params={"login": login or "", "limit": max(1, min(int(limit), 500))},
    )


@query_catalog.register("last_connection")
def last_connection(login: str) -> BoundQuery:
    return BoundQuery(
        sql="""SELECT acctstarttime, acctstoptime
               FROM radacct
               WHERE username = :login
               ORDER BY acctstarttime DESC
               LIMIT 1""",
        params={"login": login or ""},
    )


@query_catalog.register("usage_current_month")
def usage_current_month(login: str) -> BoundQuery:
    return BoundQuery(
        sql="""SELECT SUM(acctinputoctets + acctoutputoctets) AS consumo_total
               FROM radacct
               WHERE username = :login
                 AND acctstarttime >= DATE_FORMAT(NOW(), '%Y-%m-01')""",
        params={"login": login or ""},
    )


@query_catalog.register("usage_by_period")
def usage_by_period(login: str, start: str, end: str) -> BoundQuery:
    """Daily download/upload totals between two timestamps (inclusive)."""
    return BoundQuery(
        sql="""SELECT username,
                      DATE(acctstarttime) AS data,
                      SUM(acctinputoctets) AS download,
                      SUM(acctoutputoctets) AS upload,
                      SUM(acctinputoctets + acctoutputoctets) AS total
               FROM radacct
               WHERE username = :login
                 AND acctstarttime BETWEEN :start AND :end
               GROUP BY username, DATE(acctstarttime)
               ORDER BY data ASC""",
        params={"login": login or "", "start": start, "end": end},
    )
