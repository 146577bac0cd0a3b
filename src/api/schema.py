"""
Claim log request/response contract.
"""

import re
from collections import Counter
from typing import Any, Dict, Iterable, List, Tuple

from pydantic import BaseModel, Field

from ..utils.errors import ClaimValidationError

REQUIRED_FIELDS: Tuple[str, ...] = ("claimId", "farmerName", "cropType", "status")


class ErrorResponse(BaseModel):
    """Body of a 500 response."""
    error: str
    details: str = ""


class MissingFieldsResponse(BaseModel):
    """Body of a 400 response."""
    error: str = "Missing required fields"
    required: List[str] = Field(default_factory=lambda: list(REQUIRED_FIELDS))


def find_missing_fields(body: Any) -> List[str]:
    """Required fields that are absent or empty. A non-object body misses all of them."""
    if not isinstance(body, dict):
        return list(REQUIRED_FIELDS)
    return [name for name in REQUIRED_FIELDS if not body.get(name)]


def validate_claim_log(body: Any) -> dict:
    """
    Check a submitted claim log.

    Returns:
        The body as a dict, untouched

    Raises:
        ClaimValidationError: one or more required fields missing or empty
    """
    missing = find_missing_fields(body)
    if missing:
        raise ClaimValidationError(missing=missing, required=list(REQUIRED_FIELDS))
    return body


def ledger_args(record: dict, timestamp: str) -> Tuple[str, str, str, str, str]:
    """Positional AddClaimLog arguments: claimId, farmerName, cropType, timestamp, status."""
    return (
        str(record["claimId"]),
        str(record["farmerName"]),
        str(record["cropType"]),
        str(record.get("timestamp") or timestamp),
        str(record["status"]),
    )


def health_key(org_name: str) -> str:
    """/health field for an organization: org1.example.com -> fabricConnectedOrg1."""
    return f"fabricConnected{org_name.split('.')[0].capitalize()}"


def full_health_key(org_name: str) -> str:
    """/health field from every name segment: org1.other.com -> fabricConnectedOrg1OtherCom."""
    segments = re.split(r"[^0-9A-Za-z]+", org_name)
    return "fabricConnected" + "".join(s.capitalize() for s in segments if s)


def health_keys(org_names: Iterable[str]) -> Dict[str, str]:
    """
    Map organizations to /health fields.

    Organizations whose short field would be shared with another
    organization are reported under their full-name field instead.
    """
    org_names = list(org_names)
    short = {org: health_key(org) for org in org_names}
    counts = Counter(short.values())
    return {
        org: key if counts[key] == 1 else full_health_key(org)
        for org, key in short.items()
    }
