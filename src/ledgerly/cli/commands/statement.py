"""Credit card statement commands."""

import click
from ledgerly.cli.account_resolution import (
    parse_amount_or_exit,
    parse_date_or_exit,
    resolve_account_or_exit,
)
from ledgerly.cli.error_handling import handle_domain_error
from ledgerly.domain.account import AccountService
from ledgerly.domain.billing import BillingCycleAssembler
from ledgerly.domain.entities import Membership, StatementStatus
from ledgerly.domain.errors import DomainError
from ledgerly.domain.reconciliation import ReconciliationService

_MARKERS = {
    Membership.PRIMARY: " ",
    Membership.DEFERRED_IN: "<",
    Membership.DEFERRED_OUT: ">",
}


@click.group()
def statement_group():
    """Reconcile credit card billing cycles."""
    pass


@statement_group.command("periods")
@click.argument("account")
@click.pass_context
def list_periods(ctx, account: str):
    """Show the billing cycles of a credit card, newest first.

    Entries marked '<' were deferred into the cycle, '>' were deferred out
    of it, '*' are reconciled and 'P' are card payments.
    """
    db = ctx.obj["db"]
    account_id = resolve_account_or_exit(ctx, AccountService(db), account)

    try:
        periods = BillingCycleAssembler(db).assemble(account_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not periods:
        click.echo("No billing cycles found.")
        return

    for period in periods:
        stmt = f" statement {period.statement_id}" if period.statement_id else ""
        click.echo(
            f"\n{period.cycle_start} .. {period.cycle_end} | "
            f"{period.total_amount:>12,.2f} | {period.status.value}{stmt}"
        )
        click.echo("-" * 80)
        for item in period.entries:
            e = item.entry
            flags = _MARKERS[item.membership]
            flags += "*" if e.reconciled else " "
            flags += "P" if item.is_payment else " "
            click.echo(
                f"  {flags} {e.id:5d} | {e.occurred_at} | {e.kind.value:18s} | "
                f"{e.amount:>10,.2f} | {e.note or e.merchant or e.category}"
            )


@statement_group.command("save")
@click.argument("account")
@click.option("--start", "start_date", required=True, help="First day of the cycle")
@click.option("--end", "end_date", required=True, help="Closing day of the cycle")
@click.option("--confirm", "confirmed", type=int, multiple=True, help="Entry ID to confirm (repeatable)")
@click.option("--defer", "deferred", type=int, multiple=True, help="Entry ID to defer (repeatable)")
@click.pass_context
def save_statement(ctx, account: str, start_date: str, end_date: str, confirmed, deferred):
    """Save the reconciliation of one billing cycle.

    Examples:
        ledgerly statement save Visa --start 2025-02-21 --end 2025-03-20 --confirm 4 --confirm 7 --defer 9
    """
    db = ctx.obj["db"]
    account_id = resolve_account_or_exit(ctx, AccountService(db), account)
    start = parse_date_or_exit(ctx, start_date, "start date")
    end = parse_date_or_exit(ctx, end_date, "end date")

    try:
        result = ReconciliationService(db).save(
            account_id, start, end, confirmed_ids=confirmed, deferred_ids=deferred
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    stmt = result.statement
    click.echo(f"Saved statement {stmt.id} ({stmt.billing_cycle_start} .. {stmt.billing_cycle_end})")
    click.echo(f"  Confirmed total: {result.confirmed_total:,.2f}")
    click.echo(f"  Due date: {stmt.due_date}")
    click.echo(f"  Status: {stmt.status.value}")


@statement_group.command("list")
@click.option("--account", help="Account name or ID")
@click.pass_context
def list_statements(ctx, account: str | None):
    """List statements, newest first."""
    db = ctx.obj["db"]
    account_service = AccountService(db)
    account_id = None
    if account:
        account_id = resolve_account_or_exit(ctx, account_service, account)

    views = ReconciliationService(db).list_statements(account_id)
    if not views:
        click.echo("No statements found.")
        return

    accounts = {acc.id: acc.name for acc in account_service.list_accounts()}
    click.echo("\nStatements:")
    click.echo("-" * 100)
    for view in views:
        s = view.statement
        amount = f"{s.statement_amount:,.2f}" if s.statement_amount is not None else "-"
        click.echo(
            f"ID: {s.id:3d} | {accounts.get(s.account_id, s.account_id)} | "
            f"{s.billing_cycle_start} .. {s.billing_cycle_end} | due {s.due_date} | "
            f"amount {amount} | confirmed {view.confirmed_total:,.2f} | "
            f"diff {view.difference:,.2f} | {s.status.value}"
        )


@statement_group.command("update")
@click.argument("statement_id", type=int)
@click.option("--amount", help="Statement amount as issued")
@click.option("--status", type=click.Choice([s.value for s in StatementStatus]))
@click.option("--paid-amount", help="Amount paid")
@click.option("--paid-date", help="Payment date")
@click.option("--note", help="Note")
@click.pass_context
def update_statement(
    ctx,
    statement_id: int,
    amount: str | None,
    status: str | None,
    paid_amount: str | None,
    paid_date: str | None,
    note: str | None,
):
    """Record the issued amount or the payment of a statement."""
    db = ctx.obj["db"]

    fields = {}
    if amount is not None:
        fields["statement_amount"] = parse_amount_or_exit(ctx, amount)
    if paid_amount is not None:
        fields["paid_amount"] = parse_amount_or_exit(ctx, paid_amount, "paid amount")
    if paid_date is not None:
        fields["paid_date"] = parse_date_or_exit(ctx, paid_date, "paid date")
    if note is not None:
        fields["note"] = note

    try:
        view = ReconciliationService(db).update_statement(
            statement_id,
            status=StatementStatus(status) if status else None,
            **fields,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Updated statement {statement_id}")
    click.echo(f"  Difference to confirmed entries: {view.difference:,.2f}")


@statement_group.command("entries")
@click.argument("statement_id", type=int)
@click.pass_context
def statement_entries(ctx, statement_id: int):
    """Show the entries of a statement and the unbound candidates near its cycle."""
    db = ctx.obj["db"]

    try:
        result = ReconciliationService(db).statement_entries(statement_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nStatement {statement_id}")
    click.echo(f"  Confirmed total: {result.view.confirmed_total:,.2f}")
    click.echo(f"  Difference: {result.view.difference:,.2f}")
    for title, entries in (("Confirmed", result.confirmed), ("Candidates", result.candidates)):
        click.echo(f"\n{title}:")
        click.echo("-" * 80)
        if not entries:
            click.echo("  (none)")
        for e in entries:
            click.echo(
                f"  {e.id:5d} | {e.occurred_at} | {e.kind.value:18s} | "
                f"{e.amount:>10,.2f} | {e.note or e.merchant or e.category}"
            )


@statement_group.command("bind")
@click.argument("statement_id", type=int)
@click.option("--add", "added", type=int, multiple=True, help="Entry ID to bind (repeatable)")
@click.option("--remove", "removed", type=int, multiple=True, help="Entry ID to release (repeatable)")
@click.pass_context
def bind_entries(ctx, statement_id: int, added, removed):
    """Bind or release individual entries of a statement.

    Examples:
        ledgerly statement bind 3 --add 12 --add 15 --remove 9
    """
    db = ctx.obj["db"]

    try:
        view = ReconciliationService(db).set_statement_entries(
            statement_id, add_ids=added, remove_ids=removed
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Updated entries of statement {statement_id}")
    click.echo(f"  Confirmed total: {view.confirmed_total:,.2f}")
    click.echo(f"  Difference: {view.difference:,.2f}")


def register_commands(cli):
    """Register statement commands with main CLI."""
    cli.add_command(statement_group, name="statement")
