"""
HTTP API for claim logs.

Routes every request to the Fabric ledger or the in-memory fallback store,
depending on whether the requesting organization is connected.
"""

from .app import app, create_app, main
from .facade import ClaimLogFacade

__all__ = ["app", "create_app", "main", "ClaimLogFacade"]
