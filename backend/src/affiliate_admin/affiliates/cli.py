"""`affiliate` command group: get, create, update, delete, list."""

from typing import Annotated, Any

import typer
from rich.console import Console
from rich.markup import escape
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from affiliate_admin.accounts.store import AccountStore
from affiliate_admin.affiliates.entity import DEFAULT_DISPLAY_FIELDS
from affiliate_admin.affiliates.errors import AffiliateCommandError
from affiliate_admin.affiliates.options import (
    ITEM_FORMATS,
    LIST_FORMATS,
    CreateOptions,
    DeleteOptions,
    ListOptions,
    UpdateOptions,
)
from affiliate_admin.affiliates.processor import AffiliateCommands
from affiliate_admin.affiliates.store import AffiliateStore
from affiliate_admin.formatting import Formatter
from affiliate_admin.logging_config import get_logger
from affiliate_admin.settings import settings
from affiliate_admin.storage.db import Database

logger = get_logger(__name__)

app = typer.Typer(
    name="affiliate",
    help="Manage affiliate records.",
    no_args_is_help=True,
)

# Messages are never wrapped so they stay greppable
console = Console(soft_wrap=True)
err_console = Console(stderr=True, soft_wrap=True)

PARTIAL_SUCCESS_EXIT_CODE = 2


def _commands(ctx: typer.Context) -> AffiliateCommands:
    database: Database = ctx.obj
    return AffiliateCommands(
        store=AffiliateStore(database),
        accounts=AccountStore(database),
        multisite=settings.multisite,
    )


def success(message: str) -> None:
    console.print(f"[bold green]Success:[/bold green] {escape(message)}")


def error_message(error: Exception) -> str:
    """One-line description of an error, without SQLAlchemy's statement dump."""
    if not isinstance(error, SQLAlchemyError):
        return str(error)

    logger.error("database_error", error=str(error))
    message = f"Database error: {getattr(error, 'orig', None) or error}."
    if isinstance(error, OperationalError):
        message += " Has `affiliate-admin init` been run for this database?"
    return message


def fail(error: Exception) -> None:
    """Report an error and end the invocation with a non-zero status."""
    err_console.print(f"[bold red]Error:[/bold red] {escape(error_message(error))}")
    raise typer.Exit(1)


def parse_filter_args(args: list[str]) -> dict[str, Any]:
    """Turn extra `--key=value` / `--key value` / `--flag` tokens into filters."""
    filters: dict[str, Any] = {}
    i = 0
    while i < len(args):
        token = args[i]
        i += 1
        if not token.startswith("--"):
            logger.debug("argument_ignored", argument=token)
            continue
        key = token[2:]
        if "=" in key:
            key, value = key.split("=", 1)
        elif i < len(args) and not args[i].startswith("--"):
            value = args[i]
            i += 1
        else:
            value = True
        filters[key.replace("-", "_")] = value
    return filters


@app.command("get")
def get_affiliate(
    ctx: typer.Context,
    affiliate_id: Annotated[str, typer.Argument(help="The affiliate ID to retrieve")] = "",
    field: Annotated[str | None, typer.Option("--field", help="Return the value of a single field")] = None,
    fields: Annotated[str | None, typer.Option("--fields", help="Comma-separated fields to show")] = None,
    format: Annotated[str, typer.Option("--format", help="table, json, csv or yaml")] = "table",
) -> None:
    """Get an affiliate, or one of its fields, by ID."""
    try:
        formatter = Formatter(format, fields=fields, field=field, formats=ITEM_FORMATS)
        record = _commands(ctx).get(affiliate_id)
        formatter.display_item(record)
    except (AffiliateCommandError, SQLAlchemyError) as e:
        fail(e)


@app.command("create")
def create_affiliate(
    ctx: typer.Context,
    user: Annotated[str, typer.Argument(metavar="USERNAME|ID", help="Username or ID of an existing user")] = "",
    payment_email: Annotated[str, typer.Option("--payment_email", "--payment-email", help="Payment email (defaults to the account email)")] = "",
    rate: Annotated[str, typer.Option("--rate", help="Referral rate (defaults to the system rate)")] = "",
    rate_type: Annotated[str, typer.Option("--rate_type", "--rate-type", help="percentage, flat, or a custom rate type")] = "",
    status: Annotated[str, typer.Option("--status", help="active, inactive or pending")] = "",
    earnings: Annotated[str, typer.Option("--earnings", help="Affiliate earnings")] = "0",
    referrals: Annotated[str, typer.Option("--referrals", help="Number of referrals")] = "0",
    visits: Annotated[str, typer.Option("--visits", help="Number of visits")] = "0",
) -> None:
    """Create an affiliate for an existing user account."""
    options = CreateOptions(
        payment_email=payment_email,
        rate=rate,
        rate_type=rate_type,
        status=status,
        earnings=earnings,
        referrals=referrals,
        visits=visits,
    )
    try:
        result = _commands(ctx).create(user, options)
    except (AffiliateCommandError, SQLAlchemyError) as e:
        fail(e)
    success(result.message)


@app.command("update")
def update_affiliate(
    ctx: typer.Context,
    affiliate: Annotated[str, typer.Argument(metavar="USERNAME|ID", help="Username or affiliate ID")] = "",
    account_email: Annotated[str, typer.Option("--account_email", "--account-email", help="Account email")] = "",
    payment_email: Annotated[str, typer.Option("--payment_email", "--payment-email", help="Payment email")] = "",
    rate: Annotated[str, typer.Option("--rate", help="Referral rate")] = "",
    rate_type: Annotated[str, typer.Option("--rate_type", "--rate-type", help="percentage, flat, or a custom rate type")] = "",
    status: Annotated[str, typer.Option("--status", help="active, inactive or pending")] = "",
) -> None:
    """Update an existing affiliate."""
    options = UpdateOptions(
        account_email=account_email,
        payment_email=payment_email,
        rate=rate,
        rate_type=rate_type,
        status=status,
    )
    try:
        result = _commands(ctx).update(affiliate, options)
    except (AffiliateCommandError, SQLAlchemyError) as e:
        fail(e)
    success(result.message)


@app.command("delete")
def delete_affiliate(
    ctx: typer.Context,
    affiliate: Annotated[str, typer.Argument(metavar="USERNAME|AFFILIATE_ID", help="Username or affiliate ID")] = "",
    delete_data: Annotated[bool, typer.Option("--delete_data", "--delete-data", help="Also delete referrals, visits and other affiliate data")] = False,
    delete_user: Annotated[bool, typer.Option("--delete_user", "--delete-user", help="Also delete the associated user account")] = False,
    network: Annotated[bool, typer.Option("--network", help="Delete the user account network-wide (multi-site only)")] = False,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip the confirmation prompt")] = False,
) -> None:
    """Delete an affiliate."""
    options = DeleteOptions(delete_data=delete_data, delete_user=delete_user, network=network)

    def confirm(message: str) -> bool:
        return yes or typer.confirm(message, default=False)

    try:
        result = _commands(ctx).delete(affiliate, options, confirm=confirm)
    except (AffiliateCommandError, SQLAlchemyError) as e:
        fail(e)

    if result.partial:
        err_console.print(f"[bold yellow]Warning:[/bold yellow] {escape(result.message)}")
        raise typer.Exit(PARTIAL_SUCCESS_EXIT_CODE)
    success(result.message)


@app.command(
    "list",
    context_settings={"allow_extra_args": True, "ignore_unknown_options": True},
)
def list_affiliates(
    ctx: typer.Context,
    field: Annotated[str | None, typer.Option("--field", help="Print a single field for each affiliate")] = None,
    fields: Annotated[str | None, typer.Option("--fields", help="Comma-separated fields to show")] = None,
    format: Annotated[str, typer.Option("--format", help="table, csv, json, count, ids or yaml")] = "table",
) -> None:
    """List affiliates.

    Any other --<field>=<value> flag is passed on as a filter, e.g.
    --status=active --rate_type=percentage --orderby=status --order=ASC.
    """
    filters = parse_filter_args(ctx.args)
    try:
        formatter = Formatter(format, fields=fields, field=field, formats=LIST_FORMATS)
        result = _commands(ctx).list(ListOptions(filters=filters, format=format))
        if format == "count":
            console.print(f"Number of affiliates: {result}")
            return
        formatter.display_items(result, default_fields=DEFAULT_DISPLAY_FIELDS)
    except (AffiliateCommandError, SQLAlchemyError) as e:
        fail(e)
