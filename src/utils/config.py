"""
Configuration management using pydantic-settings.

Loads settings from environment variables and .env files.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Server Configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=3002, description="Server port")
    debug: bool = Field(default=False, description="Enable debug mode")
    cors_origins: list[str] = Field(
        default_factory=lambda: ["*"],
        description="Origins allowed by the CORS middleware",
    )

    # Organizations
    organizations: list[str] = Field(
        default_factory=lambda: ["org1.example.com", "org2.example.com"],
        description="Organizations to connect at boot, one ledger session each",
    )
    msp_ids: dict[str, str] = Field(
        default_factory=lambda: {
            "org1.example.com": "Org1MSP",
            "org2.example.com": "Org2MSP",
        },
        description="Explicit organization -> MSP id mapping (others follow the OrgNMSP convention)",
    )

    # Filesystem layout
    network_dir: Path = Field(
        default=Path("../fabric-samples/test-network"),
        description="Fabric test-network directory holding organizations/peerOrganizations",
    )
    wallet_dir: Path = Field(
        default=Path("wallet"),
        description="Root of the file-system identity store",
    )

    # Fabric Configuration
    channel_name: str = Field(default="mychannel", description="Channel the contract lives on")
    contract_name: str = Field(default="logcc", description="Claim log chaincode name")
    identity_label: str = Field(default="admin", description="Wallet label used to connect")
    discovery_enabled: bool = Field(default=False, description="Use Fabric service discovery")
    as_localhost: bool = Field(
        default=True,
        description="Rewrite peer/orderer addresses to localhost (docker test network)",
    )

    # Timeouts (seconds)
    commit_timeout: float = Field(default=100, description="Max wait for a submit to commit")
    query_timeout: float = Field(default=60, description="Max wait for an evaluate")
    connect_timeout: float = Field(default=30, description="Max wait to open a gateway session")
    shutdown_timeout: float = Field(default=10, description="Max wait per gateway disconnect")

    def org_dir(self, org_name: str) -> Path:
        """Directory holding an organization's peer material in the test network."""
        return self.network_dir / "organizations" / "peerOrganizations" / org_name

    def connection_profile_path(self, org_name: str) -> Path:
        """Get the connection profile path, e.g. connection-org1.json."""
        short_name = org_name.split(".")[0]
        return self.org_dir(org_name) / f"connection-{short_name}.json"

    def admin_msp_dir(self, org_name: str) -> Path:
        """Get the admin user's MSP directory (signcerts/ and keystore/)."""
        return self.org_dir(org_name) / "users" / f"Admin@{org_name}" / "msp"

    def wallet_path(self, org_name: str) -> Path:
        """Get the identity store directory for an organization."""
        return self.wallet_dir / org_name

    def msp_id_for(self, org_name: str) -> str:
        """
        Resolve the MSP id for an organization.

        Falls back to the test-network convention: org3.example.com -> Org3MSP.
        """
        if org_name in self.msp_ids:
            return self.msp_ids[org_name]
        return f"{org_name.split('.')[0].capitalize()}MSP"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses LRU cache to avoid re-reading environment on every call.
    """
    return Settings()


# Convenience access
settings = get_settings()
