#!/usr/bin/env python3
"""Check connectivity to a tenant's agent, or run a catalog query against it.

Usage:
    python scripts/ping_agent.py --tenant-id UUID
    python scripts/ping_agent.py --tenant-id UUID --query client_by_login --arg abc123
    python scripts/ping_agent.py --list-queries
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from app.infra.error_handler import GatewayError
from app.services.agent_gateway import agent_gateway


async def main():
    parser = argparse.ArgumentParser(description="Ping a tenant agent or run a catalog query")
    parser.add_argument("--tenant-id", type=str, default=None, help="Tenant ID")
    parser.add_argument("--query", type=str, default=None, help="Catalog query name to execute")
    parser.add_argument(
        "--arg",
        action="append",
        default=[],
        help="Positional argument for the query (repeatable)",
    )
    parser.add_argument("--list-queries", action="store_true", help="List catalog query names")

    args = parser.parse_args()

    if args.list_queries:
        for name in agent_gateway.query_names():
            print(name)
        return

    if not args.tenant_id:
        parser.error("--tenant-id is required")

    if not args.query:
        online = await agent_gateway.ping(args.tenant_id)
        print(f"Agent for tenant {args.tenant_id}: {'online' if online else 'offline'}")
        sys.exit(0 if online else 1)

    try:
        rows = await agent_gateway.select_list(args.tenant_id, args.query, *args.arg)
    except GatewayError as e:
        print(f"Error [{e.category.value}]: {e.message}", file=sys.stderr)
        sys.exit(1)
    print(json.dumps(rows, indent=2, default=str, ensure_ascii=False))


if __name__ == "__main__":
    asyncio.run(main())
