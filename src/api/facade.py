"""
Claim log façade: routes each call to the ledger or the fallback store.

An organization with a Live connection reads through QueryAllClaimLogs
and writes through AddClaimLog. Any other organization (including unknown
names) uses the shared in-memory store. The two backends are never
synchronized.
"""

import json
import logging
from typing import Any, List

from ..ledger.gateway import ContractHandle, Live
from ..ledger.registry import ConnectionRegistry
from ..storage.claim_log_store import ClaimLogStore, utc_now_iso
from ..utils.errors import BackendError, DegradedModeNotice
from .schema import ledger_args, validate_claim_log

logger = logging.getLogger(__name__)

QUERY_ALL_CLAIM_LOGS = "QueryAllClaimLogs"
ADD_CLAIM_LOG = "AddClaimLog"


def _decode(payload: bytes) -> Any:
    try:
        return json.loads(payload.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as e:
        raise BackendError(f"Cannot decode ledger response: {e}") from e


class ClaimLogFacade:
    """
    Backend-agnostic claim log operations.

    Usage:
        facade = ClaimLogFacade(registry, store)
        logs = await facade.list_claim_logs("org1.example.com")
        stored = await facade.add_claim_log("org1.example.com", {...})
    """

    def __init__(self, registry: ConnectionRegistry, store: ClaimLogStore):
        self.registry = registry
        self.store = store

    def _degraded(self, org_name: str, operation: str) -> None:
        reason = self.registry.get(org_name).reason
        notice = DegradedModeNotice(
            org_name=org_name,
            operation=operation,
            reasons=[reason] if reason else [],
        )
        logger.info(str(notice))

    async def list_claim_logs(self, org_name: str) -> List[dict]:
        """
        All claim logs visible to an organization.

        Raises:
            BackendError: ledger query failed, timed out, or returned bad data
        """
        conn = self.registry.get(org_name)
        if isinstance(conn, Live):
            return await self._query_ledger(org_name, conn.handle)

        self._degraded(org_name, "list claim logs")
        return self.store.list_all()

    async def add_claim_log(self, org_name: str, body: Any) -> dict:
        """
        Record a claim log.

        Raises:
            ClaimValidationError: required fields missing (no backend touched)
            BackendError: ledger submit failed, timed out, or returned bad data
        """
        record = validate_claim_log(body)

        conn = self.registry.get(org_name)
        if isinstance(conn, Live):
            return await self._submit_to_ledger(org_name, conn.handle, record)

        self._degraded(org_name, "add claim log")
        stored = self.store.append(record)
        logger.info("✅ Successfully added claim log to local storage")
        return stored

    async def _query_ledger(self, org_name: str, handle: ContractHandle) -> List[dict]:
        logger.info(f"🔍 Querying blockchain for all claim logs using {org_name} credentials...")
        result = await handle.evaluate(QUERY_ALL_CLAIM_LOGS)
        if not result.ok:
            raise BackendError(result.error)

        logs = _decode(result.payload)
        if not isinstance(logs, list):
            raise BackendError(
                f"{QUERY_ALL_CLAIM_LOGS} returned {type(logs).__name__}, expected a list"
            )

        logger.info(f"✅ Retrieved {len(logs)} claim logs from blockchain via {org_name}")
        return logs

    async def _submit_to_ledger(self, org_name: str, handle: ContractHandle, record: dict) -> Any:
        logger.info(f"📝 Adding claim log to blockchain using {org_name} credentials...")
        result = await handle.submit(ADD_CLAIM_LOG, *ledger_args(record, utc_now_iso()))
        if not result.ok:
            raise BackendError(result.error)

        # Empty result is an empty record, not an echo of the submission
        response = _decode(result.payload) if result.payload else {}

        logger.info(f"✅ Successfully added claim log to blockchain via {org_name}")
        return response
