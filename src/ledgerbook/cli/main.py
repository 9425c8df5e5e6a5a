"""Main CLI entry point."""

import logging
import os

import click

from ledgerbook.cli.commands import account, lending, person, report, txn
from ledgerbook.database.factories import create_database

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def configure_logging(verbose: bool) -> None:
    """Configure root logging from --verbose or LEDGERBOOK_LOG_LEVEL."""
    if verbose:
        level = logging.DEBUG
    else:
        name = os.environ.get("LEDGERBOOK_LOG_LEVEL", "WARNING").upper()
        level = logging.getLevelName(name)
        if not isinstance(level, int):
            raise click.BadParameter(
                f"Unknown log level '{name}'", param_hint="LEDGERBOOK_LOG_LEVEL"
            )
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("ledgerbook").setLevel(level)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides LEDGERBOOK_DB_PATH environment variable)",
    envvar="LEDGERBOOK_DB_PATH",
)
@click.option(
    "--user-id",
    type=int,
    help="User ID recorded in audit history (overrides LEDGERBOOK_USER_ID)",
    envvar="LEDGERBOOK_USER_ID",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx, db_path: str | None, user_id: int | None, verbose: bool):
    """Ledgerbook - Lending and account ledger.

    Record lendings with persons and between accounts, transfers, interest
    and investment results, and keep account balances in step with them.
    """
    ctx.ensure_object(dict)
    configure_logging(verbose)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.obj["user_id"] = user_id
        ctx.call_on_close(db.disconnect)


account.register_commands(cli)
person.register_commands(cli)
lending.register_commands(cli)
txn.register_commands(cli)
report.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
