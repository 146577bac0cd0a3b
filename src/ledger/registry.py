"""
Connection registry: organization name -> Live | Unavailable.

Populated once at boot, read by every request, emptied at shutdown.
"""

import asyncio
import logging
from typing import Dict, Iterable, List, Optional

from ..utils.config import Settings
from .gateway import GatewayFactory, Live, OrgConnection, Unavailable, connect_org

logger = logging.getLogger(__name__)


class ConnectionRegistry:
    """
    Per-organization ledger connections.

    Usage:
        registry = ConnectionRegistry(settings.organizations)
        await registry.connect_all(settings)

        conn = registry.get("org1.example.com")
        if isinstance(conn, Live):
            result = await conn.handle.evaluate("QueryAllClaimLogs")

        await registry.close()
    """

    def __init__(self, organizations: Iterable[str]):
        self._connections: Dict[str, OrgConnection] = {
            org: Unavailable(reason="not connected") for org in organizations
        }

    @property
    def organizations(self) -> List[str]:
        """Configured organizations, in configuration order."""
        return list(self._connections)

    def get(self, org_name: str) -> OrgConnection:
        """Connection for an organization; unknown organizations are Unavailable."""
        return self._connections.get(org_name) or Unavailable(reason=f"unknown organization {org_name}")

    def set(self, org_name: str, connection: OrgConnection) -> None:
        """Replace an organization's connection."""
        self._connections[org_name] = connection

    def is_live(self, org_name: str) -> bool:
        return self.get(org_name).is_live

    def status(self) -> Dict[str, bool]:
        """Liveness per configured organization."""
        return {org: conn.is_live for org, conn in self._connections.items()}

    async def connect_all(
        self,
        settings: Settings,
        gateway_factory: Optional[GatewayFactory] = None,
    ) -> Dict[str, bool]:
        """
        Connect every organization concurrently.

        Failures are contained per organization by connect_org().
        """
        orgs = self.organizations
        results = await asyncio.gather(
            *(connect_org(org, settings, gateway_factory) for org in orgs)
        )
        for org, connection in zip(orgs, results):
            self._connections[org] = connection

        if orgs and not any(conn.is_live for conn in results):
            logger.warning("⚠️ Falling back to in-memory storage due to Fabric connection failure")

        return self.status()

    async def close(self, timeout: float = 10) -> None:
        """
        Disconnect every live handle.

        Each disconnect is independent and bounded by timeout; failures are
        logged and never propagate. Every organization ends Unavailable.
        """
        live = [(org, conn.handle) for org, conn in self._connections.items() if isinstance(conn, Live)]

        async def _close_one(org_name: str, handle) -> None:
            try:
                await asyncio.wait_for(handle.close(), timeout=timeout)
                logger.info(f"Disconnected from Fabric for {org_name}")
            except asyncio.TimeoutError:
                logger.error(f"❌ Disconnect for {org_name} timed out after {timeout:g}s")
            except Exception as e:
                logger.error(f"❌ Disconnect for {org_name} failed: {e}")

        await asyncio.gather(*(_close_one(org, handle) for org, handle in live))

        for org in self._connections:
            self._connections[org] = Unavailable(reason="shut down")
