#!/usr/bin/env python3
"""
Run script for the claim log service.

Usage:
    python run_server.py

Make sure to:
1. Start the Fabric test network and deploy the logcc chaincode on mychannel
2. Run python setup_wallets.py to create the admin identities
3. Set NETWORK_DIR in .env if fabric-samples is not at ../fabric-samples

Without a reachable network the server still runs on in-memory storage.
"""

import logging
import os
import sys

# Configure logging VERY early, before any other imports that might use it
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("grpc").setLevel(logging.WARNING)
logging.getLogger("hfc").setLevel(logging.WARNING)

# Add src to path for imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def main():
    """Run the claim log server."""
    import uvicorn
    from src.utils.config import settings

    print("=" * 60)
    print("Claim Log Ledger Service")
    print("=" * 60)
    print(f"Server: http://{settings.host}:{settings.port}")
    print(f"Organizations: {', '.join(settings.organizations)}")
    print(f"Channel / Contract: {settings.channel_name} / {settings.contract_name}")
    print(f"Network dir: {settings.network_dir}")
    print(f"Wallet dir: {settings.wallet_dir}")
    print("=" * 60)
    print()
    print("Endpoints:")
    print(f"  - Health: GET http://{settings.host}:{settings.port}/health")
    print(f"  - Claim logs: GET/POST http://{settings.host}:{settings.port}/api/claims-logs/<org>")
    print()

    uvicorn.run(
        "src.api.app:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    main()
