"""
Ledger connection management.

Connects each organization to the Fabric network at boot and keeps the
resulting handles (or Unavailable markers) in a ConnectionRegistry.
"""

from ..utils.errors import (
    BackendError,
    ClaimLogServiceError,
    ConfigurationError,
    IdentityError,
    LedgerConnectionError,
)
from .gateway import (
    Contract,
    ContractHandle,
    Gateway,
    GatewayOptions,
    Live,
    OrgConnection,
    TransactionResult,
    Unavailable,
    connect_org,
)
from .profile import ConnectionProfile, apply_localhost_addressing, load_connection_profile
from .registry import ConnectionRegistry

__all__ = [
    # Errors
    "ClaimLogServiceError",
    "ConfigurationError",
    "IdentityError",
    "LedgerConnectionError",
    "BackendError",
    # Gateway
    "Contract",
    "ContractHandle",
    "Gateway",
    "GatewayOptions",
    "TransactionResult",
    "Live",
    "Unavailable",
    "OrgConnection",
    "connect_org",
    # Profile
    "ConnectionProfile",
    "load_connection_profile",
    "apply_localhost_addressing",
    # Registry
    "ConnectionRegistry",
]
