"""Report commands."""

from datetime import date

import click
from ledgerly.cli.account_resolution import resolve_account_or_exit
from ledgerly.cli.error_handling import handle_domain_error
from ledgerly.domain.account import AccountService
from ledgerly.domain.cashflow import CashflowProjector
from ledgerly.domain.errors import DomainError


@click.group()
def report_group():
    """Reports."""
    pass


def _echo_groups(title: str, total, groups, verbose: bool) -> None:
    click.echo(f"\n{title}: {total:,.2f}")
    for group in groups:
        label = group.category
        if group.subcategory:
            label += f" > {group.subcategory}"
        click.echo(f"  {label:30s} {group.amount:>12,.2f}")
        if verbose:
            for detail in group.entries:
                click.echo(f"      {detail.date} {detail.amount:>10,.2f} {detail.note or detail.merchant}")


@report_group.command("cashflow")
@click.option("--year", type=int, help="Year (defaults to current year)")
@click.option("--month", type=int, help="Month 1-12 (defaults to current month)")
@click.option("--account", "accounts", multiple=True, help="Restrict to account name or ID (repeatable)")
@click.option("--daily", is_flag=True, help="Show the daily running balance")
@click.option("--details", is_flag=True, help="Show individual entries in each group")
@click.pass_context
def cashflow(ctx, year: int | None, month: int | None, accounts, daily: bool, details: bool):
    """Show the cashflow of a month.

    Examples:
        ledgerly report cashflow
        ledgerly report cashflow --year 2025 --month 3 --daily
    """
    db = ctx.obj["db"]
    today = date.today()
    account_service = AccountService(db)
    account_ids = None
    if accounts:
        account_ids = [resolve_account_or_exit(ctx, account_service, a) for a in accounts]

    try:
        report = CashflowProjector(db).project(
            year or today.year, month or today.month, account_ids=account_ids
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nCashflow {report.year}-{report.month:02d} ({report.period_start} .. {report.period_end})")
    click.echo("=" * 60)
    click.echo(f"Opening balance: {report.opening_balance:,.2f}")

    _echo_groups("Income", report.total_income, report.income, details)
    _echo_groups("Direct expenses", report.direct_total, report.direct_expense, details)

    click.echo(f"\nCredit card bills: {report.credit_bills_total:,.2f}")
    for bill in report.credit_card_bills:
        estimate = " (estimated)" if bill.estimated else ""
        click.echo(
            f"  {bill.account_name:20s} due {bill.due_date} {bill.bill_amount:>12,.2f}{estimate}"
        )
        if details:
            for item in bill.plan_items:
                click.echo(f"      [plan] {item.name:22s} {item.amount:>10,.2f}")
            for group in bill.other_by_category:
                click.echo(f"      {group.category:29s} {group.amount:>10,.2f}")

    _echo_groups("Fixed expenses", report.fixed_total, report.fixed_expenses, details)

    if report.adjustments:
        click.echo(f"\nAdjustments: {report.adjustments_total:,.2f}")
        if details:
            for adj in report.adjustments:
                click.echo(f"  {adj.date} {adj.kind:18s} {adj.amount:>10,.2f} {adj.note}")

    click.echo("=" * 60)
    click.echo(f"Total expenses:  {report.total_expenses:,.2f}")
    click.echo(f"Closing balance: {report.closing_balance:,.2f}")
    click.echo(f"Net:             {report.net:,.2f} ({report.status.value})")

    if daily:
        click.echo("\nDaily balance:")
        for day in report.daily_balance:
            click.echo(f"  {day.date} {day.net:>12,.2f} {day.running_balance:>14,.2f}")


def register_commands(cli):
    """Register report commands with main CLI."""
    cli.add_command(report_group, name="report")
