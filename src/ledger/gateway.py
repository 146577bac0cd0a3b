"""
Ledger gateway abstraction and per-organization connection.

connect_org() runs the boot sequence for one organization:
    profile -> identity -> gateway session -> channel/contract
Every failure collapses to Unavailable; no partial handle is returned.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, ClassVar, Optional, Union

from ..utils.config import Settings
from ..utils.errors import (
    ClaimLogServiceError,
    ConfigurationError,
    IdentityError,
    LedgerConnectionError,
)
from ..wallet.identity_store import Identity, IdentityStore
from .profile import ConnectionProfile, apply_localhost_addressing, load_connection_profile

logger = logging.getLogger(__name__)


# =============================================================================
# Gateway Interfaces
# =============================================================================


@dataclass(frozen=True)
class GatewayOptions:
    """Options handed to a gateway when connecting."""
    org_name: str
    identity_label: str
    discovery_enabled: bool = False
    as_localhost: bool = True
    commit_timeout: float = 100
    query_timeout: float = 60

    @classmethod
    def from_settings(cls, org_name: str, settings: Settings) -> "GatewayOptions":
        return cls(
            org_name=org_name,
            identity_label=settings.identity_label,
            discovery_enabled=settings.discovery_enabled,
            as_localhost=settings.as_localhost,
            commit_timeout=settings.commit_timeout,
            query_timeout=settings.query_timeout,
        )


class Contract(ABC):
    """A chaincode reachable through a connected gateway."""

    @abstractmethod
    async def evaluate_transaction(self, function_name: str, *args: str) -> bytes:
        """Run a read-only query against a peer."""

    @abstractmethod
    async def submit_transaction(self, function_name: str, *args: str) -> bytes:
        """Endorse, order and wait for commit of a transaction."""


class Gateway(ABC):
    """A session against the ledger network for one identity."""

    @abstractmethod
    async def connect(
        self,
        profile: ConnectionProfile,
        identity: Identity,
        options: GatewayOptions,
    ) -> None:
        """Open the session."""

    @abstractmethod
    async def get_contract(self, channel_name: str, contract_name: str) -> Contract:
        """Resolve a contract on a channel."""

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the session and release network resources."""


GatewayFactory = Callable[[], Gateway]


def default_gateway_factory() -> Gateway:
    """Create a Fabric gateway (fabric-sdk-py is imported lazily)."""
    from .fabric import FabricGateway
    return FabricGateway()


# =============================================================================
# Contract Handle
# =============================================================================


@dataclass
class TransactionResult:
    """Outcome of a ledger call: payload on success, error message on failure."""
    payload: bytes = b""
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ContractHandle:
    """
    Live session plus contract reference for one organization.

    Calls are bounded by the query timeout (evaluate) or the commit
    timeout (submit) and return a TransactionResult instead of raising.
    """

    def __init__(
        self,
        org_name: str,
        gateway: Gateway,
        contract: Contract,
        query_timeout: float = 60,
        commit_timeout: float = 100,
    ):
        self.org_name = org_name
        self.gateway = gateway
        self.contract = contract
        self.query_timeout = query_timeout
        self.commit_timeout = commit_timeout

    async def _call(self, call, function_name: str, args: tuple, timeout: float) -> TransactionResult:
        try:
            payload = await asyncio.wait_for(call(function_name, *args), timeout=timeout)
        except asyncio.TimeoutError:
            return TransactionResult(error=f"{function_name} timed out after {timeout:g}s")
        except Exception as e:
            return TransactionResult(error=f"{function_name} failed: {e}")
        return TransactionResult(payload=payload or b"")

    async def evaluate(self, function_name: str, *args: str) -> TransactionResult:
        """Query the ledger (no commit)."""
        return await self._call(
            self.contract.evaluate_transaction, function_name, args, self.query_timeout
        )

    async def submit(self, function_name: str, *args: str) -> TransactionResult:
        """Submit a transaction and wait for its commit."""
        return await self._call(
            self.contract.submit_transaction, function_name, args, self.commit_timeout
        )

    async def close(self) -> None:
        """Disconnect the underlying gateway."""
        await self.gateway.disconnect()


# =============================================================================
# Connection Variants
# =============================================================================


@dataclass(frozen=True)
class Live:
    """Organization has a usable ledger session."""
    handle: ContractHandle
    is_live: ClassVar[bool] = True


@dataclass(frozen=True)
class Unavailable:
    """Organization has no ledger session; requests use the fallback store."""
    reason: str = ""
    is_live: ClassVar[bool] = False


OrgConnection = Union[Live, Unavailable]


# =============================================================================
# Boot Sequence
# =============================================================================


async def connect_org(
    org_name: str,
    settings: Settings,
    gateway_factory: Optional[GatewayFactory] = None,
) -> OrgConnection:
    """
    Connect one organization to the ledger.

    Args:
        org_name: Organization name, e.g. org1.example.com
        settings: Application settings (paths, channel, timeouts)
        gateway_factory: Creates the gateway (defaults to Fabric)

    Returns:
        Live(handle) on success, Unavailable(reason) on any failure
    """
    factory = gateway_factory or default_gateway_factory
    gateway: Optional[Gateway] = None

    try:
        # (a) Network topology
        profile = load_connection_profile(settings.connection_profile_path(org_name))
        if settings.as_localhost:
            profile = apply_localhost_addressing(profile)

        # (b) Identity
        store = IdentityStore(settings.wallet_path(org_name))
        identity = store.get(settings.identity_label)
        if identity is None:
            raise IdentityError(
                f"{settings.identity_label.capitalize()} identity not found in wallet for {org_name}"
            )

        # (c) Session
        options = GatewayOptions.from_settings(org_name, settings)
        gateway = factory()
        try:
            await asyncio.wait_for(
                gateway.connect(profile, identity, options),
                timeout=settings.connect_timeout,
            )
        except asyncio.TimeoutError as e:
            raise LedgerConnectionError(
                f"Gateway connect timed out after {settings.connect_timeout:g}s"
            ) from e
        except ClaimLogServiceError:
            raise
        except Exception as e:
            raise LedgerConnectionError(f"Gateway connect failed: {e}") from e

        # (d) Channel and contract
        try:
            contract = await gateway.get_contract(settings.channel_name, settings.contract_name)
        except ClaimLogServiceError:
            raise
        except Exception as e:
            raise LedgerConnectionError(
                f"Cannot resolve {settings.contract_name} on {settings.channel_name}: {e}"
            ) from e

    except (ConfigurationError, IdentityError, LedgerConnectionError) as e:
        logger.error(f"❌ Failed to connect to Fabric for {org_name}: {e}")
        await _discard(gateway, org_name)
        return Unavailable(reason=str(e))
    except Exception as e:
        logger.exception(f"❌ Unexpected error connecting {org_name}: {e}")
        await _discard(gateway, org_name)
        return Unavailable(reason=str(e))

    handle = ContractHandle(
        org_name=org_name,
        gateway=gateway,
        contract=contract,
        query_timeout=settings.query_timeout,
        commit_timeout=settings.commit_timeout,
    )
    logger.info(f"✅ Connected to Fabric for {org_name}!")
    return Live(handle=handle)


async def _discard(gateway: Optional[Gateway], org_name: str) -> None:
    """Disconnect a gateway left half-open by a failed boot step."""
    if gateway is None:
        return
    try:
        await gateway.disconnect()
    except Exception as e:
        logger.debug(f"Ignoring disconnect error for {org_name}: {e}")
