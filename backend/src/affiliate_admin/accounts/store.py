"""Account store: the user-account collaborator used by affiliate commands."""

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError

from affiliate_admin.affiliates.entity import sanitize_field
from affiliate_admin.logging_config import get_logger
from affiliate_admin.settings import settings
from affiliate_admin.storage.db import Database
from affiliate_admin.storage.models import SiteMembership, UserAccount
from affiliate_admin.validators import is_email

logger = get_logger(__name__)


class AccountError(Exception):
    """Account operation error."""
    pass


class AccountStore:
    """Repository for user accounts and their site memberships."""

    def __init__(
        self,
        database: Database,
        multisite: bool | None = None,
        site_id: int | None = None,
    ):
        """Initialize account store.

        Args:
            database: Database instance
            multisite: Whether accounts span several sites (defaults to settings)
            site_id: Current site (defaults to settings)
        """
        self.db = database
        self.multisite = settings.multisite if multisite is None else multisite
        self.site_id = settings.site_id if site_id is None else site_id

    def get_by_id(self, user_id) -> UserAccount | None:
        """Get account by ID."""
        user_id = sanitize_field("user_id", user_id)
        if user_id <= 0:
            return None
        with self.db.session() as session:
            return session.get(UserAccount, user_id)

    def get_by_login(self, user_login: str) -> UserAccount | None:
        """Get account by login name."""
        if not user_login:
            return None
        with self.db.session() as session:
            return session.scalar(
                select(UserAccount).where(UserAccount.user_login == user_login)
            )

    def create(
        self,
        user_login: str,
        user_email: str,
        display_name: str | None = None,
    ) -> UserAccount:
        """Register a new account.

        On a multi-site host the account also joins the current site.

        Args:
            user_login: Login name
            user_email: Account email
            display_name: Optional display name

        Returns:
            Created account

        Raises:
            AccountError: If the login is empty, the email is malformed, or
                either is already taken
        """
        user_login = (user_login or "").strip()
        if not user_login:
            raise AccountError("A login name is required.")
        if not is_email(user_email):
            raise AccountError(f'"{user_email}" is not a valid email address.')

        try:
            with self.db.session() as session:
                account = UserAccount(
                    user_login=user_login,
                    user_email=user_email.strip(),
                    display_name=display_name or user_login,
                )
                session.add(account)
                session.flush()

                if self.multisite:
                    session.add(SiteMembership(user_id=account.id, site_id=self.site_id))
                    session.flush()
        except IntegrityError:
            raise AccountError(
                f'An account with the login "{user_login}" or email "{user_email}" already exists.'
            )

        logger.info("account_created", user_id=account.id, user_login=user_login)
        return account

    def delete(self, user_id) -> bool:
        """Delete an account from the current site.

        On a single-site host the account itself is removed. On a multi-site
        host only the membership for the current site is removed.

        Returns:
            True if something was deleted
        """
        user_id = sanitize_field("user_id", user_id)

        if not self.multisite:
            return self._delete_account(user_id)

        with self.db.session() as session:
            result = session.execute(
                delete(SiteMembership).where(
                    SiteMembership.user_id == user_id,
                    SiteMembership.site_id == self.site_id,
                )
            )
            removed = result.rowcount > 0

        if removed:
            logger.info("account_removed_from_site", user_id=user_id, site_id=self.site_id)
        else:
            logger.warning("account_not_member_of_site", user_id=user_id, site_id=self.site_id)
        return removed

    def delete_network_wide(self, user_id) -> bool:
        """Delete an account and all of its site memberships."""
        return self._delete_account(sanitize_field("user_id", user_id))

    def _delete_account(self, user_id: int) -> bool:
        with self.db.session() as session:
            account = session.get(UserAccount, user_id)
            if not account:
                logger.warning("account_not_found", user_id=user_id)
                return False
            session.delete(account)

        logger.info("account_deleted", user_id=user_id)
        return True
