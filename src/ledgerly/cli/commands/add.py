"""Add ledger entry command."""

import click
from ledgerly.cli.account_resolution import (
    parse_amount_or_exit,
    parse_date_or_exit,
    resolve_account_or_exit,
)
from ledgerly.cli.error_handling import handle_domain_error
from ledgerly.domain.account import AccountService
from ledgerly.domain.entities import EntryKind
from ledgerly.domain.entry import EntryService
from ledgerly.domain.errors import DomainError


@click.command("add")
@click.option("--account", required=True, help="Account name or ID")
@click.option(
    "--kind",
    type=click.Choice([k.value for k in EntryKind]),
    default=EntryKind.EXPENSE.value,
    show_default=True,
    help="Entry kind",
)
@click.option(
    "--date",
    required=True,
    help="Entry date (YYYY-MM-DD or relative like 'today', 'yesterday')",
)
@click.option("--amount", required=True, help="Amount (e.g., 123.45)")
@click.option("--fee", default="0", help="Fee charged on the account")
@click.option("--to-account", help="Receiving account name or ID (transfers only)")
@click.option("--bill-date", help="Billing date override for credit card cycles")
@click.option("--category", default="", help="Category")
@click.option("--subcategory", help="Subcategory")
@click.option("--note", default="", help="Note")
@click.option("--merchant", help="Merchant")
@click.option("--counterparty", help="Counterparty")
@click.pass_context
def add_entry(
    ctx,
    account: str,
    kind: str,
    date: str,
    amount: str,
    fee: str,
    to_account: str | None,
    bill_date: str | None,
    category: str,
    subcategory: str | None,
    note: str,
    merchant: str | None,
    counterparty: str | None,
):
    """Add a ledger entry manually.

    Examples:
        ledgerly add --account Checking --kind income --date 2025-03-03 --amount 500 --category Salary
        ledgerly add --account Visa --date today --amount 42.50 --category Food --merchant "Corner Cafe"
        ledgerly add --account Checking --kind transfer --to-account Visa --date today --amount 300
    """
    db = ctx.obj["db"]
    entry_service = EntryService(db)
    account_service = AccountService(db)

    account_id = resolve_account_or_exit(ctx, account_service, account)
    to_account_id = None
    if to_account is not None:
        to_account_id = resolve_account_or_exit(ctx, account_service, to_account)

    entry_date = parse_date_or_exit(ctx, date)
    billing_date = None
    if bill_date is not None:
        billing_date = parse_date_or_exit(ctx, bill_date, "bill date")

    entry_amount = parse_amount_or_exit(ctx, amount)
    entry_fee = parse_amount_or_exit(ctx, fee, "fee")

    try:
        entry_id = entry_service.create_entry(
            kind=EntryKind(kind),
            amount=entry_amount,
            account_id=account_id,
            occurred_at=entry_date,
            fee=entry_fee,
            to_account_id=to_account_id,
            billing_assignment=billing_date,
            category=category,
            subcategory=subcategory,
            note=note,
            merchant=merchant,
            counterparty=counterparty,
        )
        click.echo(f"Added {kind} entry {entry_id}: {entry_amount:,.2f} on {entry_date}")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register add command with main CLI."""
    cli.add_command(add_entry)
