"""
Credential provisioning.

Reads each organization's admin certificate and private key from the
Fabric test-network crypto material and stores them as the "admin"
identity in the file-system identity store.

Layout read (per organization):
    <network_dir>/organizations/peerOrganizations/<org>/users/Admin@<org>/msp/
        signcerts/cert.pem
        keystore/<single key file>
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Optional

from ..utils.config import Settings, get_settings
from ..utils.errors import IdentityError
from .identity_store import Identity, IdentityStore

logger = logging.getLogger(__name__)

CERT_FILENAME = "cert.pem"


@dataclass
class ProvisionResult:
    """Outcome of provisioning one organization."""
    org_name: str
    success: bool
    msp_id: str = ""
    identity_path: Optional[Path] = None
    error: Optional[str] = None


def _read_text(path: Path, what: str) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise IdentityError(f"Cannot read {what} {path}: {e}") from e


def find_certificate(msp_dir: Path) -> Path:
    """
    Locate the admin certificate.

    Prefers signcerts/cert.pem; older test networks name it
    Admin@<org>-cert.pem, which is accepted when it is the only PEM file.
    """
    signcerts = msp_dir / "signcerts"
    cert_path = signcerts / CERT_FILENAME
    if cert_path.is_file():
        return cert_path

    candidates = sorted(signcerts.glob("*.pem")) if signcerts.is_dir() else []
    if len(candidates) == 1:
        return candidates[0]
    if not candidates:
        raise IdentityError(f"Certificate not found in {signcerts}")
    raise IdentityError(f"Ambiguous certificates in {signcerts}: {[p.name for p in candidates]}")


def find_private_key(msp_dir: Path) -> Path:
    """Locate the sole private key file in keystore/."""
    keystore = msp_dir / "keystore"
    if not keystore.is_dir():
        raise IdentityError(f"Keystore directory not found: {keystore}")

    keys = sorted(p for p in keystore.iterdir() if p.is_file())
    if not keys:
        raise IdentityError(f"No private key found in {keystore}")
    if len(keys) > 1:
        raise IdentityError(
            f"Expected exactly one private key in {keystore}, found {len(keys)}"
        )
    return keys[0]


def load_admin_identity(org_name: str, settings: Settings) -> Identity:
    """
    Build the admin identity for an organization from its crypto material.

    Raises:
        IdentityError: certificate or key missing, unreadable, or ambiguous
    """
    msp_dir = settings.admin_msp_dir(org_name)
    certificate = _read_text(find_certificate(msp_dir), "certificate")
    private_key = _read_text(find_private_key(msp_dir), "private key")

    if not certificate.strip() or not private_key.strip():
        raise IdentityError(f"Empty certificate or private key for {org_name}")

    return Identity.from_pem(
        certificate=certificate,
        private_key=private_key,
        msp_id=settings.msp_id_for(org_name),
    )


def provision_org(org_name: str, settings: Optional[Settings] = None) -> ProvisionResult:
    """
    Write the admin identity for one organization.

    Does not clear the store first; see provision_all().
    """
    settings = settings or get_settings()
    logger.info(f"Creating wallet for {org_name}...")

    try:
        identity = load_admin_identity(org_name, settings)
        store = IdentityStore(settings.wallet_path(org_name))
        path = store.put(settings.identity_label, identity)
    except (IdentityError, OSError) as e:
        logger.error(f"❌ Error creating wallet for {org_name}: {e}")
        return ProvisionResult(org_name=org_name, success=False, error=str(e))

    logger.info(
        f"✅ Successfully created wallet for {org_name} with {settings.identity_label} identity."
    )
    return ProvisionResult(
        org_name=org_name,
        success=True,
        msp_id=identity.msp_id,
        identity_path=path,
    )


def provision_all(
    organizations: Optional[Iterable[str]] = None,
    settings: Optional[Settings] = None,
) -> Dict[str, ProvisionResult]:
    """
    Reset and re-provision identity stores.

    Every targeted organization's store directory is removed before any
    identity is written, so stale credentials never survive a re-run.
    One organization failing does not stop the others.
    """
    settings = settings or get_settings()
    orgs = list(organizations or settings.organizations)

    for org_name in orgs:
        store = IdentityStore(settings.wallet_path(org_name))
        if store.path.exists():
            logger.info(f"Removing old wallet for {org_name}...")
            store.clear()

    return {org_name: provision_org(org_name, settings) for org_name in orgs}
