"""CLI helpers for account resolution and input parsing."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import click
from ledgerly.cli.error_handling import handle_domain_error
from ledgerly.domain.account import AccountService
from ledgerly.utils.account_resolver import resolve_account
from ledgerly.utils.amount_parser import parse_amount
from ledgerly.utils.date_parser import parse_date


def resolve_account_or_exit(
    ctx: click.Context, account_service: AccountService, account: str | int
) -> int:
    """Resolve account name or ID, or exit with a CLI error.

    This keeps error messaging and exit behavior consistent across commands.
    """
    try:
        return resolve_account(account_service, account)
    except ValueError as exc:
        handle_domain_error(ctx, exc)


def parse_date_or_exit(ctx: click.Context, value: str, label: str = "date") -> date:
    """Parse a date option, or exit with a CLI error."""
    try:
        return parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


def parse_amount_or_exit(ctx: click.Context, value: str, label: str = "amount") -> Decimal:
    """Parse an amount option, or exit with a CLI error."""
    try:
        return parse_amount(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label} format: {e}", err=True)
        ctx.exit(1)
