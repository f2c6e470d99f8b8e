"""Storage layer: engine/session management and ORM models."""

from affiliate_admin.storage.db import Database
from affiliate_admin.storage.models import (
    Affiliate,
    AffiliateReferral,
    AffiliateVisit,
    Base,
    SiteMembership,
    UserAccount,
)

__all__ = [
    "Affiliate",
    "AffiliateReferral",
    "AffiliateVisit",
    "Base",
    "Database",
    "SiteMembership",
    "UserAccount",
]
