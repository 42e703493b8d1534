"""Business query catalog for MK-Auth agents.

Importing this package registers every definition on the process-wide
catalog and freezes it.
"""

from app.services.query_catalog import query_catalog
from app.services.queries import clients, connections, dashboard, invoices, plans  # noqa: F401

query_catalog.freeze()

__all__ = ["query_catalog"]
