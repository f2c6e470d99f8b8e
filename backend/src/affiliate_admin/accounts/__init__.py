"""User-account collaborator for affiliate commands."""

from affiliate_admin.accounts.store import AccountError, AccountStore

__all__ = ["AccountError", "AccountStore"]
