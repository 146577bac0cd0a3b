"""
Error types for the claim log service.

Boot-time errors (configuration, identity, connection) are contained per
organization and degrade it to the fallback store. Request-time errors
(validation, backend) are rendered as JSON responses by the API layer.
"""

from dataclasses import dataclass, field
from typing import List


class ClaimLogServiceError(Exception):
    """Base class for all claim log service errors."""


class ConfigurationError(ClaimLogServiceError):
    """Connection profile missing or unparseable."""


class IdentityError(ClaimLogServiceError):
    """Credential missing, malformed, or ambiguous key material."""


class LedgerConnectionError(ClaimLogServiceError):
    """Network unreachable, handshake failure, or Fabric client unavailable."""


class BackendError(ClaimLogServiceError):
    """Ledger read/write failure, decode failure, or timeout."""


class ClaimValidationError(ClaimLogServiceError):
    """Claim log is missing one or more required fields."""

    def __init__(self, missing: List[str], required: List[str]):
        self.missing = missing
        self.required = required
        super().__init__(f"Missing required fields: {', '.join(missing)}")


@dataclass
class DegradedModeNotice:
    """
    Informational signal that a request was served by the fallback store.

    Not an error: the request succeeds, only the backend differs.
    """
    org_name: str
    operation: str
    reasons: List[str] = field(default_factory=list)

    def __str__(self) -> str:
        reason = f" ({'; '.join(self.reasons)})" if self.reasons else ""
        return f"⚠️ {self.operation} for {self.org_name} served from local storage{reason}"
