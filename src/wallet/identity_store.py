"""
File-system identity store (wallet).

Each organization gets its own directory; each identity is stored as
<label>.id using the same JSON layout as the fabric-network file-system
wallet, so wallets written here stay readable by the Node tooling.
"""

import logging
import shutil
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..utils.errors import IdentityError

logger = logging.getLogger(__name__)

IDENTITY_SUFFIX = ".id"


class Credentials(BaseModel):
    """PEM-encoded certificate and private key."""
    model_config = ConfigDict(populate_by_name=True)

    certificate: str = Field(min_length=1)
    private_key: str = Field(alias="privateKey", min_length=1)


class Identity(BaseModel):
    """An X.509 identity bound to an organization's MSP."""
    model_config = ConfigDict(populate_by_name=True)

    credentials: Credentials
    msp_id: str = Field(alias="mspId", min_length=1)
    type: str = "X.509"
    version: int = 1

    @classmethod
    def from_pem(cls, certificate: str, private_key: str, msp_id: str) -> "Identity":
        """Build an X.509 identity from PEM strings."""
        return cls(
            credentials=Credentials(certificate=certificate, private_key=private_key),
            msp_id=msp_id,
        )

    def to_json(self) -> str:
        """Serialize in wallet format (camelCase keys)."""
        return self.model_dump_json(by_alias=True, indent=2)


class IdentityStore:
    """
    Identity store for one organization.

    Usage:
        store = IdentityStore(Path("wallet/org1.example.com"))
        store.put("admin", identity)
        identity = store.get("admin")
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def _identity_path(self, label: str) -> Path:
        return self.path / f"{label}{IDENTITY_SUFFIX}"

    def put(self, label: str, identity: Identity) -> Path:
        """Write an identity, replacing any existing one with the same label."""
        self.path.mkdir(parents=True, exist_ok=True)
        target = self._identity_path(label)
        target.write_text(identity.to_json(), encoding="utf-8")
        logger.debug(f"Stored identity '{label}' ({identity.msp_id}) at {target}")
        return target

    def get(self, label: str) -> Optional[Identity]:
        """
        Read an identity.

        Returns:
            Identity or None if no identity is stored under this label

        Raises:
            IdentityError: the stored file exists but is not a valid identity
        """
        target = self._identity_path(label)
        if not target.is_file():
            return None

        try:
            return Identity.model_validate_json(target.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            raise IdentityError(f"Malformed identity '{label}' in {self.path}: {e}") from e

    def clear(self) -> None:
        """Remove the whole store directory tree."""
        if self.path.exists():
            shutil.rmtree(self.path)
