"""Ledger entry commands."""

import click
from ledgerly.cli.account_resolution import parse_date_or_exit, resolve_account_or_exit
from ledgerly.cli.error_handling import handle_domain_error
from ledgerly.domain.account import AccountService
from ledgerly.domain.entities import EntryKind
from ledgerly.domain.entry import EntryService
from ledgerly.domain.errors import DomainError


@click.group()
def entry_group():
    """Manage ledger entries."""
    pass


@entry_group.command("list")
@click.option("--account", help="Account name or ID")
@click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'last month')")
@click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today')")
@click.option("--kind", type=click.Choice([k.value for k in EntryKind]), help="Entry kind")
@click.option("--plan", "plan_id", type=int, help="Only entries generated by this plan")
@click.pass_context
def list_entries(
    ctx,
    account: str | None,
    start_date: str | None,
    end_date: str | None,
    kind: str | None,
    plan_id: int | None,
):
    """List ledger entries, oldest first."""
    db = ctx.obj["db"]
    service = EntryService(db)
    account_service = AccountService(db)

    account_id = None
    if account:
        account_id = resolve_account_or_exit(ctx, account_service, account)
    start = parse_date_or_exit(ctx, start_date, "start date") if start_date else None
    end = parse_date_or_exit(ctx, end_date, "end date") if end_date else None

    entries = service.list_entries(
        account_id=account_id,
        start_date=start,
        end_date=end,
        kind=EntryKind(kind) if kind else None,
        plan_id=plan_id,
    )
    if not entries:
        click.echo("No entries found.")
        return

    accounts = {acc.id: acc.name for acc in account_service.list_accounts()}
    click.echo(f"\nFound {len(entries)} entr{'y' if len(entries) == 1 else 'ies'}:")
    click.echo("-" * 100)
    for e in entries:
        target = ""
        if e.to_account_id is not None:
            target = f" -> {accounts.get(e.to_account_id, e.to_account_id)}"
        state = f" [{e.schedule_state.value}]" if e.schedule_state else ""
        billed = ""
        if e.billing_assignment and e.billing_assignment != e.occurred_at:
            billed = f" (billed {e.billing_assignment})"
        click.echo(
            f"{e.id:5d} | {e.occurred_at} | {e.kind.value:18s} | {e.amount:>12,.2f} | "
            f"{accounts.get(e.account_id, e.account_id)}{target} | {e.category} | {e.note}"
            f"{state}{billed}"
        )


@entry_group.command("delete")
@click.argument("entry_id", type=int)
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_entry(ctx, entry_id: int, yes: bool):
    """Delete a ledger entry."""
    db = ctx.obj["db"]
    service = EntryService(db)

    if not yes and not click.confirm(f"Are you sure you want to delete entry {entry_id}?"):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_entry(entry_id)
        click.echo(f"Deleted entry {entry_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register entry commands with main CLI."""
    cli.add_command(entry_group, name="entry")
