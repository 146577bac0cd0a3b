"""
Wallet module: file-system identity store and credential provisioning.
"""

from .identity_store import Credentials, Identity, IdentityStore
from .provision import ProvisionResult, load_admin_identity, provision_all, provision_org

__all__ = [
    "Credentials",
    "Identity",
    "IdentityStore",
    "ProvisionResult",
    "load_admin_identity",
    "provision_all",
    "provision_org",
]
