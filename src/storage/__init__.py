"""
Storage module for claim logs.

Provides the in-memory fallback store used while an organization has no
ledger connection.
"""

from .claim_log_store import ClaimLogStore, InMemoryClaimLogStore, utc_now_iso

__all__ = [
    "ClaimLogStore",
    "InMemoryClaimLogStore",
    "utc_now_iso",
]
