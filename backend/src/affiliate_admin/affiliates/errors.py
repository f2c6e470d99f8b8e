"""Errors raised by affiliate commands.

Each error carries the operator-facing message; the CLI prints it once and
stops the invocation.
"""


class AffiliateCommandError(Exception):
    """Base class for affiliate command failures."""
    pass


class MissingArgument(AffiliateCommandError):
    """A required positional argument was not given."""
    pass


class InvalidOption(AffiliateCommandError):
    """An option value is not supported (format, field name)."""
    pass


class InvalidUser(AffiliateCommandError):
    """No account matches the given username or ID."""
    pass


class DuplicateAffiliate(AffiliateCommandError):
    """The account already has an affiliate."""
    pass


class AffiliateNotFound(AffiliateCommandError):
    """No affiliate matches the given username or ID."""
    pass


class CreationFailed(AffiliateCommandError):
    pass


class UpdateFailed(AffiliateCommandError):
    pass


class AffiliateDeletionFailed(AffiliateCommandError):
    pass


class AccountDeletionFailed(AffiliateCommandError):
    """The affiliate was deleted but its account could not be."""
    pass


class OperationAborted(AffiliateCommandError):
    """The operator declined a confirmation prompt."""
    pass
