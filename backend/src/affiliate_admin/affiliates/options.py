"""Per-command options and results for affiliate commands."""

from dataclasses import dataclass, field
from typing import Any

from affiliate_admin.affiliates.errors import AccountDeletionFailed

LIST_FORMATS = ("table", "csv", "json", "count", "ids", "yaml")
ITEM_FORMATS = ("table", "json", "csv", "yaml")


@dataclass
class CreateOptions:
    """Flags accepted by `affiliate create`. Empty values use store defaults."""
    payment_email: str = ""
    rate: str = ""
    rate_type: str = ""
    status: str = ""
    earnings: Any = 0
    referrals: Any = 0
    visits: Any = 0


@dataclass
class UpdateOptions:
    """Flags accepted by `affiliate update`. Empty values mean "no change"."""
    account_email: str = ""
    payment_email: str = ""
    rate: str = ""
    rate_type: str = ""
    status: str = ""


@dataclass
class DeleteOptions:
    """Flags accepted by `affiliate delete`."""
    delete_data: bool = False
    delete_user: bool = False
    network: bool = False  # Only honoured on multi-site hosts


@dataclass
class ListOptions:
    """Filters and output format for `affiliate list`."""
    filters: dict[str, Any] = field(default_factory=dict)
    format: str = "table"


@dataclass
class CommandResult:
    """Outcome of a successful command."""
    message: str
    affiliate_id: int | None = None


@dataclass
class DeleteResult(CommandResult):
    """Outcome of `affiliate delete`.

    `error` is set when the affiliate was deleted but the requested account
    deletion failed (partial success).
    """
    account_deletion_requested: bool = False
    account_deleted: bool = False
    error: AccountDeletionFailed | None = None

    @property
    def partial(self) -> bool:
        return self.error is not None
