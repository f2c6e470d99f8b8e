"""Affiliate records: entity model, store and operator commands.

- Entity: canonical fields and `sanitize_field`
- Store: SQLAlchemy-backed persistence
- Processor: get / create / update / delete / list commands
"""

from affiliate_admin.affiliates.entity import (
    AFFILIATE_FIELDS,
    AffiliateStatus,
    affiliate_to_record,
    sanitize_field,
)
from affiliate_admin.affiliates.errors import AffiliateCommandError
from affiliate_admin.affiliates.processor import AffiliateCommands

__all__ = [
    "AFFILIATE_FIELDS",
    "AffiliateCommandError",
    "AffiliateCommands",
    "AffiliateStatus",
    "affiliate_to_record",
    "sanitize_field",
]
