"""Command-line interface for affiliate administration."""

from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from sqlalchemy.exc import SQLAlchemyError

from affiliate_admin.accounts.store import AccountError, AccountStore
from affiliate_admin.affiliates.cli import app as affiliate_app
from affiliate_admin.affiliates.cli import fail
from affiliate_admin.logging_config import configure_logging
from affiliate_admin.settings import settings
from affiliate_admin.storage.db import Database

# Create Typer app
app = typer.Typer(
    name="affiliate-admin",
    help="Affiliate administration for operators.",
    no_args_is_help=True,
)
user_app = typer.Typer(name="user", help="Manage user accounts.", no_args_is_help=True)

app.add_typer(affiliate_app, name="affiliate")
app.add_typer(user_app, name="user")

# Rich console for pretty output
console = Console(soft_wrap=True)


@app.callback()
def main(
    ctx: typer.Context,
    database_url: Annotated[
        str | None,
        typer.Option("--database-url", envvar="AFFILIATE_ADMIN_DATABASE_URL", help="Database connection URL"),
    ] = None,
    log_level: Annotated[str | None, typer.Option("--log-level", help="DEBUG, INFO, WARNING or ERROR")] = None,
) -> None:
    """Affiliate administration for operators."""
    configure_logging(log_level, command=ctx.invoked_subcommand)
    database = Database(database_url or settings.database_url)
    ctx.obj = database
    ctx.call_on_close(database.dispose)


@app.command("init")
def init_database(ctx: typer.Context) -> None:
    """Initialize the database and create tables."""
    database: Database = ctx.obj
    console.print("[bold blue]Initializing database...[/bold blue]")
    database.create_tables()
    console.print("[bold green]✓[/bold green] Database initialized successfully")


@user_app.command("create")
def create_user(
    ctx: typer.Context,
    user_login: Annotated[str, typer.Argument(help="Login name")],
    email: Annotated[str, typer.Option("--email", "-e", help="Account email")],
    display_name: Annotated[str | None, typer.Option("--display-name", help="Display name")] = None,
) -> None:
    """Register a user account that affiliates can be attached to."""
    try:
        account = AccountStore(ctx.obj).create(user_login, email, display_name=display_name)
    except (AccountError, SQLAlchemyError) as e:
        fail(e)

    console.print(
        f'[bold green]Success:[/bold green] Created user {account.id} ("{escape(account.user_login)}").'
    )


if __name__ == "__main__":
    app()
