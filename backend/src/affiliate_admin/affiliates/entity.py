"""Affiliate entity: canonical fields and value normalization."""

import math
import re
from decimal import Decimal
from enum import Enum
from typing import Any

from affiliate_admin.storage.models import Affiliate
from affiliate_admin.validators import CENT


class AffiliateStatus(str, Enum):
    """Affiliate account status."""
    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING = "pending"      # Awaiting approval


# Canonical field order for a full record
AFFILIATE_FIELDS = (
    "affiliate_id",
    "user_id",
    "rate",
    "rate_type",
    "payment_email",
    "status",
    "earnings",
    "referrals",
    "visits",
    "date_registered",
)

# Columns shown by `list` when no --fields are given
DEFAULT_DISPLAY_FIELDS = (
    "user_login",
    "affiliate_id",
    "earnings",
    "referrals",
    "status",
)

INTEGER_FIELDS = frozenset({"affiliate_id", "user_id", "referrals", "visits"})

_NUMERIC_PREFIX = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def is_valid_status(value: Any) -> bool:
    """Return True if value is one of the known statuses."""
    return value in {status.value for status in AffiliateStatus}


def to_int(value: Any) -> int:
    """Coerce a loosely-typed value to int.

    Strings are read from their leading numeric prefix ("12abc" -> 12,
    "3.9" -> 3, "1e3" -> 1000); anything unparseable becomes 0.
    """
    if value is None:
        return 0
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, (float, Decimal)):
        if isinstance(value, float) and not math.isfinite(value):
            return 0
        if isinstance(value, Decimal) and not value.is_finite():
            return 0
        return int(value)
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="ignore")
    if isinstance(value, str):
        match = _NUMERIC_PREFIX.match(value)
        if not match:
            return 0
        number = match.group(1)
        if any(c in number for c in ".eE"):
            return to_int(float(number))
        return int(number)
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return 0


def sanitize_field(field: str, value: Any) -> Any:
    """Normalize a raw affiliate field value.

    Identifier and counter fields are always returned as int; every other
    field is returned unchanged.

    Args:
        field: Field name
        value: Raw value (string, number or anything else)

    Returns:
        Sanitized value
    """
    if field in INTEGER_FIELDS:
        return to_int(value)
    return value


def affiliate_to_record(affiliate: Affiliate) -> dict[str, Any]:
    """Convert an affiliate row into a plain, display-ready dict."""
    record: dict[str, Any] = {}
    for field in AFFILIATE_FIELDS:
        value = getattr(affiliate, field, None)
        if field == "date_registered" and value is not None:
            value = value.strftime("%Y-%m-%d %H:%M:%S")
        elif field == "earnings":
            value = str(Decimal(str(value or 0)).quantize(CENT))
        elif value is None:
            value = ""
        record[field] = sanitize_field(field, value)
    return record
