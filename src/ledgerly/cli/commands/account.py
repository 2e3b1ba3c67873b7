"""Account management commands."""

import click
from ledgerly.cli.account_resolution import parse_amount_or_exit
from ledgerly.cli.error_handling import handle_domain_error
from ledgerly.domain.account import AccountService
from ledgerly.domain.entities import AccountKind
from ledgerly.domain.errors import DomainError
from ledgerly.utils.amount_parser import round_money


@click.group()
def account_group():
    """Manage accounts."""
    pass


@account_group.command("create")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option(
    "--kind",
    type=click.Choice([k.value for k in AccountKind]),
    default=AccountKind.PHYSICAL.value,
    show_default=True,
    help="Account kind",
)
@click.option("--initial-balance", default="0", help="Opening balance")
@click.option("--group", default="", help="Group label (e.g., 'Cash', 'Cards')")
@click.option("--exclude-from-stats", is_flag=True, help="Leave the account out of summaries")
@click.option("--bill-day", type=int, help="Statement closing day, 1-28 (credit only)")
@click.option("--pay-day", type=int, help="Payment due day, 1-28 (credit only)")
@click.option("--credit-limit", help="Credit limit (credit only)")
@click.pass_context
def create_account(
    ctx,
    name: str,
    kind: str,
    initial_balance: str,
    group: str,
    exclude_from_stats: bool,
    bill_day: int | None,
    pay_day: int | None,
    credit_limit: str | None,
):
    """Create a new account.

    Examples:
        ledgerly account create "Checking" --initial-balance 1000
        ledgerly account create "Visa" --kind credit --bill-day 20 --pay-day 10 --credit-limit 5000
    """
    db = ctx.obj["db"]
    service = AccountService(db)

    balance = parse_amount_or_exit(ctx, initial_balance, "initial balance")
    limit = None
    if credit_limit is not None:
        limit = parse_amount_or_exit(ctx, credit_limit, "credit limit")

    try:
        account_id = service.create_account(
            name=name,
            kind=AccountKind(kind),
            initial_balance=balance,
            group=group,
            include_in_stats=not exclude_from_stats,
            bill_day=bill_day,
            pay_day=pay_day,
            credit_limit=limit,
        )
        click.echo(f"Created account '{name}' (ID: {account_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@account_group.command("list")
@click.pass_context
def list_accounts(ctx):
    """List all accounts."""
    db = ctx.obj["db"]
    service = AccountService(db)

    accounts = service.list_accounts()
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 70)
    for acc in accounts:
        line = f"ID: {acc.id:3d} | {acc.name:20s} | {acc.kind.value:8s}"
        if acc.is_credit:
            line += f" | Bill day: {acc.bill_day or '-'} | Pay day: {acc.pay_day or '-'}"
        if not acc.include_in_stats:
            line += " | (excluded)"
        click.echo(line)


@account_group.command("balances")
@click.pass_context
def account_balances(ctx):
    """Show current balances and net worth."""
    db = ctx.obj["db"]
    service = AccountService(db)

    summary = service.balances()
    if not summary.balances:
        click.echo("No accounts found.")
        return

    click.echo("\nBalances:")
    click.echo("-" * 70)
    for item in summary.balances:
        line = f"{item.account.name:20s} {round_money(item.balance):>14,.2f}"
        if item.available_credit is not None:
            line += f"  (available: {round_money(item.available_credit):,.2f})"
        click.echo(line)
    click.echo("-" * 70)
    click.echo(f"{'Total assets':20s} {round_money(summary.total_assets):>14,.2f}")
    click.echo(f"{'Total liabilities':20s} {round_money(summary.total_liabilities):>14,.2f}")
    click.echo(f"{'Net worth':20s} {round_money(summary.net_worth):>14,.2f}")


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
