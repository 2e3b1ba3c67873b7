"""Main CLI entry point."""

import logging

import click
from ledgerly.database.factories import create_sqlite_database

# Import and register all commands at module level
from ledgerly.cli.commands import (
    account,
    add,
    entry,
    plan,
    statement,
    report,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides LEDGERLY_DB_PATH environment variable)",
    envvar="LEDGERLY_DB_PATH",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx, db_path: str | None, verbose: bool):
    """Ledgerly - Personal ledger and credit card reconciliation.

    Track account balances, schedule installment and recurring payments,
    reconcile credit card statements and project monthly cashflow.
    """
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


# Register all commands
account.register_commands(cli)
add.register_commands(cli)
entry.register_commands(cli)
plan.register_commands(cli)
statement.register_commands(cli)
report.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
