#!/usr/bin/env python3
"""
Create wallet identities for every organization.

Usage:
    python setup_wallets.py
    python setup_wallets.py --org org1.example.com -v

Existing wallets for the selected organizations are removed first.
"""

import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from dotenv import load_dotenv

load_dotenv()

from src.wallet.cli import main


if __name__ == "__main__":
    sys.exit(main())
