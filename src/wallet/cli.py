#!/usr/bin/env python3
"""
CLI for provisioning organization wallets.

Usage:
    python -m src.wallet.cli
    python -m src.wallet.cli --org org1.example.com --network-dir ../fabric-samples/test-network
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict

from rich import box
from rich.console import Console
from rich.table import Table

from ..utils.config import get_settings
from .provision import ProvisionResult, provision_all


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description='Create admin identities in the wallet for each organization',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Provision every configured organization
  python -m src.wallet.cli

  # Provision one organization from a custom test network location
  python -m src.wallet.cli --org org1.example.com --network-dir ~/fabric-samples/test-network

Existing wallets for the selected organizations are deleted first.
        """
    )

    parser.add_argument(
        '--org',
        dest='orgs',
        action='append',
        help='Organization to provision (repeatable, default: all configured)'
    )
    parser.add_argument(
        '--network-dir',
        type=Path,
        help='Fabric test-network directory (overrides NETWORK_DIR)'
    )
    parser.add_argument(
        '--wallet-dir',
        type=Path,
        help='Wallet root directory (overrides WALLET_DIR)'
    )
    parser.add_argument(
        '--verbose',
        '-v',
        action='store_true',
        help='Enable verbose logging'
    )

    return parser.parse_args(argv)


def render_summary(results: Dict[str, ProvisionResult], console: Console) -> None:
    """Print a table of provisioning results."""
    table = Table(title="Wallet Provisioning", box=box.ROUNDED)
    table.add_column("Organization", style="bold")
    table.add_column("Result")
    table.add_column("MSP ID")
    table.add_column("Details", overflow="fold")

    for org_name, result in results.items():
        if result.success:
            table.add_row(org_name, "[green]created[/green]", result.msp_id, str(result.identity_path))
        else:
            table.add_row(org_name, "[red]failed[/red]", "-", result.error or "")

    console.print(table)


def main(argv=None) -> int:
    """Main CLI entry point."""
    args = parse_args(argv)
    setup_logging(args.verbose)

    updates = {}
    if args.network_dir:
        updates["network_dir"] = args.network_dir
    if args.wallet_dir:
        updates["wallet_dir"] = args.wallet_dir
    settings = get_settings().model_copy(update=updates)

    results = provision_all(args.orgs, settings)
    render_summary(results, Console())

    return 0 if all(r.success for r in results.values()) else 1


if __name__ == '__main__':
    sys.exit(main())
