"""
Hyperledger Fabric gateway backed by fabric-sdk-py (import name: hfc).

Install with: pip install -e ".[fabric]"

The SDK is imported when a gateway connects, so the service still boots
without it: the organization is simply reported as unavailable.
"""

import json
import logging
import tempfile
from pathlib import Path
from typing import List, Optional

from ..utils.errors import LedgerConnectionError
from ..wallet.identity_store import Identity
from .gateway import Contract, Gateway, GatewayOptions
from .profile import ConnectionProfile

logger = logging.getLogger(__name__)


class FabricContract(Contract):
    """Chaincode invoked through an hfc Client."""

    def __init__(
        self,
        client,
        requestor,
        channel_name: str,
        contract_name: str,
        peers: List[str],
        commit_timeout: float,
    ):
        self._client = client
        self._requestor = requestor
        self.channel_name = channel_name
        self.contract_name = contract_name
        self.peers = peers
        self.commit_timeout = commit_timeout

    @staticmethod
    def _to_bytes(response) -> bytes:
        if response is None:
            return b""
        if isinstance(response, bytes):
            return response
        if isinstance(response, str):
            return response.encode("utf-8")
        return json.dumps(response).encode("utf-8")

    async def evaluate_transaction(self, function_name: str, *args: str) -> bytes:
        response = await self._client.chaincode_query(
            requestor=self._requestor,
            channel_name=self.channel_name,
            peers=self.peers,
            fcn=function_name,
            args=list(args),
            cc_name=self.contract_name,
        )
        return self._to_bytes(response)

    async def submit_transaction(self, function_name: str, *args: str) -> bytes:
        response = await self._client.chaincode_invoke(
            requestor=self._requestor,
            channel_name=self.channel_name,
            peers=self.peers,
            fcn=function_name,
            args=list(args),
            cc_name=self.contract_name,
            wait_for_event=True,
            wait_for_event_timeout=self.commit_timeout,
        )
        return self._to_bytes(response)


class FabricGateway(Gateway):
    """
    Gateway session for one organization.

    Discovery is never initialised (the hfc Client only uses peers from
    the connection profile), which matches discovery.enabled = false.
    """

    def __init__(self):
        self._client = None
        self._requestor = None
        self._profile: Optional[ConnectionProfile] = None
        self._options: Optional[GatewayOptions] = None
        self._workdir: Optional[tempfile.TemporaryDirectory] = None

    async def connect(
        self,
        profile: ConnectionProfile,
        identity: Identity,
        options: GatewayOptions,
    ) -> None:
        try:
            from hfc.fabric import Client
            from hfc.fabric.user import create_user
            from hfc.util.keyvaluestore import FileKeyValueStore
        except ImportError as e:
            raise LedgerConnectionError(
                "fabric-sdk-py is not installed (pip install fabric-sdk-py)"
            ) from e

        if options.discovery_enabled:
            logger.warning("Service discovery requested but not supported; using profile peers")

        # hfc reads the profile and credentials from files
        self._workdir = tempfile.TemporaryDirectory(prefix=f"fabric-{options.org_name}-")
        workdir = Path(self._workdir.name)

        profile_path = workdir / "connection.json"
        profile_path.write_text(json.dumps(profile.to_dict()), encoding="utf-8")
        key_path = workdir / "key.pem"
        key_path.write_text(identity.credentials.private_key, encoding="utf-8")
        cert_path = workdir / "cert.pem"
        cert_path.write_text(identity.credentials.certificate, encoding="utf-8")

        try:
            client = Client(net_profile=str(profile_path))
            state_store = FileKeyValueStore(str(workdir / "state"))
            self._requestor = create_user(
                name=options.identity_label,
                org=options.org_name,
                state_store=state_store,
                msp_id=identity.msp_id,
                key_path=str(key_path),
                cert_path=str(cert_path),
            )
        except Exception as e:
            self._cleanup()
            raise LedgerConnectionError(f"Cannot open Fabric client for {options.org_name}: {e}") from e

        self._client = client
        self._profile = profile
        self._options = options
        logger.debug(f"Fabric client ready for {options.org_name} as {identity.msp_id}")

    async def get_contract(self, channel_name: str, contract_name: str) -> Contract:
        if self._client is None or self._options is None:
            raise LedgerConnectionError("Gateway is not connected")

        peers = self._profile.peers_for(self._options.org_name)
        if not peers:
            raise LedgerConnectionError(f"No peers configured for {self._options.org_name}")

        if self._client.get_channel(channel_name) is None:
            self._client.new_channel(channel_name)

        return FabricContract(
            client=self._client,
            requestor=self._requestor,
            channel_name=channel_name,
            contract_name=contract_name,
            peers=peers,
            commit_timeout=self._options.commit_timeout,
        )

    async def disconnect(self) -> None:
        self._client = None
        self._requestor = None
        self._cleanup()

    def _cleanup(self) -> None:
        if self._workdir is not None:
            self._workdir.cleanup()
            self._workdir = None
