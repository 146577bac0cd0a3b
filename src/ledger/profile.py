"""
Connection profile (network topology) loading.

The profile is the JSON document generated by the Fabric test network
(connection-org1.json etc.) describing peers, CAs and organizations.
"""

import json
import logging
from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, List
from urllib.parse import urlsplit, urlunsplit

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..utils.errors import ConfigurationError

logger = logging.getLogger(__name__)


class ConnectionProfile(BaseModel):
    """Parsed connection profile. Unknown sections are kept as-is."""

    model_config = ConfigDict(extra="allow")

    name: str = ""
    version: str = ""
    organizations: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    peers: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    orderers: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    certificateAuthorities: Dict[str, Dict[str, Any]] = Field(default_factory=dict)

    def peers_for(self, org_name: str) -> List[str]:
        """Peer names belonging to an organization (all peers if not listed)."""
        org = self.organizations.get(org_name) or {}
        return list(org.get("peers") or self.peers.keys())

    def to_dict(self) -> dict:
        """Convert back to the JSON document shape."""
        return self.model_dump(mode="json")


def load_connection_profile(path: Path) -> ConnectionProfile:
    """
    Read and parse a connection profile.

    Raises:
        ConfigurationError: file missing, not JSON, or not a JSON object
    """
    if not path.is_file():
        raise ConfigurationError(f"Connection profile not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            document = json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Cannot parse connection profile {path}: {e}") from e

    if not isinstance(document, dict):
        raise ConfigurationError(f"Connection profile {path} is not a JSON object")

    try:
        profile = ConnectionProfile.model_validate(document)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid connection profile {path}: {e}") from e

    logger.debug(f"Loaded connection profile '{profile.name}' from {path}")
    return profile


def _localhost_url(url: str) -> str:
    parts = urlsplit(url)
    if not parts.hostname:
        return url
    netloc = "localhost" if parts.port is None else f"localhost:{parts.port}"
    return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))


def apply_localhost_addressing(profile: ConnectionProfile) -> ConnectionProfile:
    """
    Rewrite every endpoint URL to localhost.

    The docker test network publishes container ports on the host, so peers
    are reachable at localhost while their TLS certificates still carry the
    container hostname. The original hostname goes into
    ssl-target-name-override so TLS verification keeps working.
    """
    document = deepcopy(profile.to_dict())

    for section in ("peers", "orderers", "certificateAuthorities"):
        for name, node in (document.get(section) or {}).items():
            url = node.get("url")
            if not url:
                continue
            hostname = urlsplit(url).hostname
            node["url"] = _localhost_url(url)
            if hostname and hostname != "localhost":
                grpc_options = node.setdefault("grpcOptions", {})
                grpc_options.setdefault("ssl-target-name-override", hostname)
                grpc_options.setdefault("hostnameOverride", hostname)

    return ConnectionProfile.model_validate(document)
