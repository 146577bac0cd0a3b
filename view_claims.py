#!/usr/bin/env python3
"""
View claim logs from a running claim log service.

Usage:
    python view_claims.py                          # Claim logs for the first configured org
    python view_claims.py --org org2.example.com   # Claim logs for a specific org
    python view_claims.py --health                 # Show which orgs are ledger-backed
    python view_claims.py --json                   # Raw JSON output
"""

import argparse
import json
import os
import sys
from typing import List, Optional

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import httpx
from rich import box
from rich.console import Console
from rich.table import Table

from src.utils.config import settings

console = Console()

COLUMNS = [
    ("Claim ID", "claimId"),
    ("Farmer", "farmerName"),
    ("Crop", "cropType"),
    ("Status", "status"),
    ("Timestamp", "timestamp"),
    ("Local ID", "id"),
]


def fetch_claim_logs(client: httpx.Client, org: str) -> List[dict]:
    """GET /api/claims-logs/{org}."""
    response = client.get(f"/api/claims-logs/{org}")
    response.raise_for_status()
    return response.json()


def fetch_health(client: httpx.Client) -> dict:
    """GET /health."""
    response = client.get("/health")
    response.raise_for_status()
    return response.json()


def build_claims_table(logs: List[dict], org: str) -> Table:
    """Table of claim logs, one row per record."""
    table = Table(
        title=f"Claim Logs ({org})",
        box=box.ROUNDED,
        show_lines=False,
    )
    for header, _ in COLUMNS:
        table.add_column(header, overflow="fold")

    for log in logs:
        table.add_row(*(str(log.get(key) or "-") for _, key in COLUMNS))

    return table


def build_health_table(health: dict) -> Table:
    """Table of per-organization ledger connectivity."""
    table = Table(title=f"Service Health ({health.get('status', '?')})", box=box.ROUNDED)
    table.add_column("Check", style="bold")
    table.add_column("Value")

    for key, value in health.items():
        if key.startswith("fabricConnected"):
            label = "[green]ledger[/green]" if value else "[yellow]local storage[/yellow]"
            table.add_row(key, label)
    table.add_row("timestamp", str(health.get("timestamp", "-")))
    return table


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="View claim logs from the claim log service")
    parser.add_argument("--org", default=settings.organizations[0], help="Organization to query")
    parser.add_argument(
        "--base-url",
        default=f"http://localhost:{settings.port}",
        help="Service base URL",
    )
    parser.add_argument("--health", action="store_true", help="Show service health instead")
    parser.add_argument("--json", action="store_true", help="Print raw JSON")
    args = parser.parse_args(argv)

    try:
        with httpx.Client(base_url=args.base_url, timeout=settings.query_timeout + 5) as client:
            data = fetch_health(client) if args.health else fetch_claim_logs(client, args.org)
    except httpx.HTTPStatusError as e:
        console.print(f"[red]Request failed ({e.response.status_code}):[/red] {e.response.text}")
        return 1
    except httpx.HTTPError as e:
        console.print(f"[red]Cannot reach {args.base_url}:[/red] {e}")
        return 1

    if args.json:
        print(json.dumps(data, indent=2))
    elif args.health:
        console.print(build_health_table(data))
    else:
        console.print(build_claims_table(data, args.org))
        console.print(f"Total: {len(data)} claim log(s)")

    return 0


if __name__ == "__main__":
    sys.exit(main())
