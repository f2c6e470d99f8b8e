"""Affiliate command processor.

Implements the operator commands (get, create, update, delete, list) on top
of two collaborators: the affiliate store and the account store. Every
failure raises an `AffiliateCommandError` before any further side effect.
"""

import re
from typing import TYPE_CHECKING, Any, Callable, Iterable

from affiliate_admin.affiliates.entity import (
    affiliate_to_record,
    is_valid_status,
    sanitize_field,
)
from affiliate_admin.affiliates.errors import (
    AccountDeletionFailed,
    AffiliateDeletionFailed,
    AffiliateNotFound,
    CreationFailed,
    DuplicateAffiliate,
    InvalidUser,
    MissingArgument,
    OperationAborted,
    UpdateFailed,
)
from affiliate_admin.affiliates.options import (
    CommandResult,
    CreateOptions,
    DeleteOptions,
    DeleteResult,
    ListOptions,
    UpdateOptions,
)
from affiliate_admin.logging_config import get_logger
from affiliate_admin.storage.models import Affiliate

if TYPE_CHECKING:
    from affiliate_admin.accounts.store import AccountStore
    from affiliate_admin.affiliates.store import AffiliateStore

logger = get_logger(__name__)

EXTRA_FIELDS = ("payment_email", "user_login")

_ID_PATTERN = re.compile(r"^\s*\d+\s*$")


def parse_id(token: Any) -> int | None:
    """Return token as a non-negative int if it is one, else None."""
    if isinstance(token, bool):
        return None
    if isinstance(token, int):
        return token if token >= 0 else None
    if isinstance(token, str) and _ID_PATTERN.match(token):
        return int(token)
    return None


def confirmation_message(delete_data: bool, delete_user: bool) -> str:
    """Prompt shown before deleting an affiliate."""
    if delete_data:
        if delete_user:
            return (
                "Are you sure you want to delete this affiliate, all its data "
                "and its associated user account?"
            )
        return "Are you sure you want to delete this affiliate and all its data?"
    return "Are you sure you want to delete this affiliate?"


class AffiliateCommands:
    """Operator commands for affiliate records."""

    def __init__(
        self,
        store: "AffiliateStore",
        accounts: "AccountStore",
        multisite: bool = False,
    ):
        """Initialize the processor.

        Args:
            store: Affiliate store
            accounts: Account store
            multisite: Whether the host supports network-wide account deletion
        """
        self.store = store
        self.accounts = accounts
        self.multisite = multisite

    # ==================== LOOKUP ====================

    def resolve_reference(self, token: Any) -> Affiliate:
        """Find an affiliate by affiliate ID or by its account's username.

        Raises:
            AffiliateNotFound: If the token is missing or matches nothing
        """
        if token is None or token == "":
            raise AffiliateNotFound("An affiliate username or ID is required.")

        affiliate_id = parse_id(token)
        if affiliate_id is not None:
            affiliate = self.store.get(affiliate_id)
        else:
            affiliate = self._get_by_username(str(token))

        if not affiliate:
            raise AffiliateNotFound("Invalid affiliate username or ID.")
        return affiliate

    def _get_by_username(self, username: str) -> Affiliate | None:
        account = self.accounts.get_by_login(username)
        if not account:
            return None
        return self.store.get_by("user_id", account.id)

    # ==================== COMMANDS ====================

    def get(self, token: Any) -> dict[str, Any]:
        """Get a single affiliate record by affiliate ID."""
        if token is None or token == "":
            raise MissingArgument("An affiliate ID is required.")

        affiliate_id = parse_id(token)
        affiliate = self.store.get(affiliate_id) if affiliate_id is not None else None
        if not affiliate:
            raise AffiliateNotFound(f"Could not find the affiliate with ID {token}.")
        return affiliate_to_record(affiliate)

    def create(self, token: Any, options: CreateOptions | None = None) -> CommandResult:
        """Create an affiliate for an existing account.

        Args:
            token: Account username or account ID
            options: Affiliate fields; empty values use store defaults

        Raises:
            InvalidUser: Token missing or no such account
            DuplicateAffiliate: The account already has an affiliate
            CreationFailed: The store rejected the record
        """
        options = options or CreateOptions()

        if token is None or token == "":
            raise InvalidUser("A valid username must be specified as the first argument.")

        user_id = parse_id(token)
        if user_id is not None:
            account = self.accounts.get_by_id(user_id)
        else:
            account = self.accounts.get_by_login(str(token))

        if not account:
            raise InvalidUser(
                f'A user with the ID or username "{token}" does not exist. '
                "See `user create` for registering new users."
            )

        if self.store.get_by("user_id", account.id):
            raise DuplicateAffiliate("An affiliate already exists for this user account.")

        affiliate = self.store.create({
            "payment_email": options.payment_email,
            "rate": options.rate,
            "rate_type": options.rate_type,
            "status": options.status,
            "earnings": options.earnings,
            "referrals": options.referrals,
            "visits": options.visits,
            "user_id": account.id,
        })

        if not affiliate:
            raise CreationFailed("The affiliate account could not be added.")

        logger.info(
            "affiliate_command_create",
            affiliate_id=affiliate.affiliate_id,
            user_login=account.user_login,
        )
        return CommandResult(
            message=f'An affiliate with the username "{account.user_login}" has been created.',
            affiliate_id=sanitize_field("affiliate_id", affiliate.affiliate_id),
        )

    def update(self, token: Any, options: UpdateOptions | None = None) -> CommandResult:
        """Update an existing affiliate.

        A status that is absent or not one of the known values leaves the
        current status in place.

        Raises:
            AffiliateNotFound: Token missing or no such affiliate
            UpdateFailed: The store rejected the update
        """
        options = options or UpdateOptions()
        affiliate = self.resolve_reference(token)

        data = {
            "affiliate_id": sanitize_field("affiliate_id", affiliate.affiliate_id),
            "account_email": options.account_email,
            "payment_email": options.payment_email,
            "rate": options.rate,
            "rate_type": options.rate_type,
            "status": options.status,
        }

        if not is_valid_status(options.status):
            if options.status:
                logger.info(
                    "status_ignored",
                    affiliate_id=data["affiliate_id"],
                    status=options.status,
                )
            data["status"] = affiliate.status

        if not self.store.update(data):
            raise UpdateFailed("The affiliate account could not be updated.")

        return CommandResult(
            message="The affiliate was updated successfully.",
            affiliate_id=data["affiliate_id"],
        )

    def delete(
        self,
        token: Any,
        options: DeleteOptions | None = None,
        confirm: Callable[[str], bool] | None = None,
    ) -> DeleteResult:
        """Delete an affiliate, optionally with its data and account.

        Args:
            token: Username or affiliate ID
            options: Cascade flags
            confirm: Called with the prompt text; returning False aborts.
                No prompt is shown when omitted.

        Returns:
            Result; `partial` is set when the account could not be deleted

        Raises:
            AffiliateNotFound: Token missing or no such affiliate
            OperationAborted: The operator declined the prompt
            AffiliateDeletionFailed: The store could not delete the affiliate
        """
        options = options or DeleteOptions()
        affiliate = self.resolve_reference(token)
        affiliate_id = sanitize_field("affiliate_id", affiliate.affiliate_id)
        user_id = sanitize_field("user_id", affiliate.user_id)
        network = options.network and self.multisite

        message = confirmation_message(options.delete_data, options.delete_user)
        if confirm is not None and not confirm(message):
            raise OperationAborted("Aborted.")

        if not self.store.delete(affiliate, options.delete_data):
            raise AffiliateDeletionFailed("The affiliate account could not be deleted.")

        if not options.delete_user:
            return DeleteResult(
                message="The affiliate account has been successfully deleted.",
                affiliate_id=affiliate_id,
            )

        if network:
            account_deleted = self.accounts.delete_network_wide(user_id)
        else:
            account_deleted = self.accounts.delete(user_id)

        if not account_deleted:
            logger.warning("account_deletion_failed", affiliate_id=affiliate_id, user_id=user_id)
            error = AccountDeletionFailed(
                "The affiliate account has been deleted, but its associated "
                "user account could not be deleted."
            )
            return DeleteResult(
                message=str(error),
                affiliate_id=affiliate_id,
                account_deletion_requested=True,
                account_deleted=False,
                error=error,
            )

        return DeleteResult(
            message="The affiliate and its associated user account have been successfully deleted.",
            affiliate_id=affiliate_id,
            account_deletion_requested=True,
            account_deleted=True,
        )

    def process_extra_fields(
        self,
        records: Iterable[dict[str, Any]],
        fields: Iterable[str] = EXTRA_FIELDS,
    ) -> list[dict[str, Any]]:
        """Fill in fields that are not stored on the affiliate row.

        `payment_email` falls back to the account email when empty, and
        `user_login` comes from the linked account. Input records are not
        modified.
        """
        fields = tuple(fields)
        processed = []

        for record in records:
            item = dict(record)

            if "payment_email" in fields and not item.get("payment_email"):
                item["payment_email"] = self.store.get_payment_email(item["affiliate_id"])

            if "user_login" in fields:
                account = self.accounts.get_by_id(item["user_id"])
                item["user_login"] = account.user_login if account else ""

            processed.append(item)

        return processed

    def list(self, options: ListOptions | None = None) -> int | list[dict[str, Any]]:
        """List affiliates.

        Returns:
            The number of matching affiliates for the `count` format,
            otherwise the matching records with extra fields filled in
        """
        options = options or ListOptions()

        if options.format == "count":
            return self.store.count(options.filters)

        affiliates = self.store.list(options.filters)
        return self.process_extra_fields(affiliate_to_record(a) for a in affiliates)
