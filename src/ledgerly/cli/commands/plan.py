"""Payment plan commands."""

import click
from ledgerly.cli.account_resolution import (
    parse_amount_or_exit,
    parse_date_or_exit,
    resolve_account_or_exit,
)
from ledgerly.cli.error_handling import handle_domain_error
from ledgerly.domain.account import AccountService
from ledgerly.domain.entities import Frequency, PlanKind, PlanStatus
from ledgerly.domain.errors import DomainError
from ledgerly.domain.plan import PlanService
from ledgerly.utils.amount_parser import round_money


@click.group()
def plan_group():
    """Manage installment and recurring payment plans."""
    pass


@plan_group.command("create")
@click.argument("name")
@click.option(
    "--kind",
    type=click.Choice([k.value for k in PlanKind]),
    required=True,
    help="Installment (fixed number of periods) or recurring",
)
@click.option("--amount", required=True, help="Amount per period")
@click.option(
    "--frequency",
    type=click.Choice([f.value for f in Frequency]),
    default=Frequency.MONTHLY.value,
    show_default=True,
)
@click.option("--start-date", required=True, help="Date of the first period")
@click.option("--payment-day", type=int, help="Day of month, 1-28 (defaults to start day)")
@click.option("--periods", type=int, help="Number of periods (required for installments)")
@click.option("--account", required=True, help="Account name or ID")
@click.option("--category", required=True, help="Category of generated entries")
@click.option("--subcategory", help="Subcategory")
@click.option("--counterparty", help="Counterparty")
@click.option("--note", help="Note")
@click.pass_context
def create_plan(
    ctx,
    name: str,
    kind: str,
    amount: str,
    frequency: str,
    start_date: str,
    payment_day: int | None,
    periods: int | None,
    account: str,
    category: str,
    subcategory: str | None,
    counterparty: str | None,
    note: str | None,
):
    """Create a plan and generate its entries.

    Examples:
        ledgerly plan create "Laptop" --kind installment --amount 100 --periods 12 \\
            --start-date 2025-01-05 --account Visa --category Electronics
        ledgerly plan create "Rent" --kind recurring --amount 1200 --start-date 2025-01-01 \\
            --payment-day 1 --account Checking --category Housing
    """
    db = ctx.obj["db"]
    service = PlanService(db)
    account_service = AccountService(db)

    account_id = resolve_account_or_exit(ctx, account_service, account)
    start = parse_date_or_exit(ctx, start_date, "start date")
    plan_amount = parse_amount_or_exit(ctx, amount)
    if payment_day is None:
        payment_day = min(start.day, 28)

    try:
        plan, created = service.create_plan(
            name=name,
            kind=PlanKind(kind),
            amount=plan_amount,
            frequency=Frequency(frequency),
            payment_day=payment_day,
            start_date=start,
            account_id=account_id,
            category=category,
            total_periods=periods,
            subcategory=subcategory,
            counterparty=counterparty,
            note=note,
        )
        click.echo(f"Created plan '{plan.name}' (ID: {plan.id})")
        click.echo(f"Generated {created} entr{'y' if created == 1 else 'ies'}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@plan_group.command("list")
@click.option("--status", type=click.Choice([s.value for s in PlanStatus]), help="Filter by status")
@click.option("--kind", type=click.Choice([k.value for k in PlanKind]), help="Filter by kind")
@click.pass_context
def list_plans(ctx, status: str | None, kind: str | None):
    """List plans, newest first."""
    db = ctx.obj["db"]
    service = PlanService(db)

    plans = service.list_plans(
        status=PlanStatus(status) if status else None,
        kind=PlanKind(kind) if kind else None,
    )
    if not plans:
        click.echo("No plans found.")
        return

    click.echo("\nPlans:")
    click.echo("-" * 90)
    for p in plans:
        periods = p.total_periods if p.total_periods is not None else "open"
        click.echo(
            f"ID: {p.id:3d} | {p.name:20s} | {p.kind.value:11s} | {p.amount:>10,.2f} "
            f"{p.frequency.value:7s} | periods: {periods} | {p.status.value}"
        )


@plan_group.command("show")
@click.argument("plan_id", type=int)
@click.pass_context
def show_plan(ctx, plan_id: int):
    """Show a plan with its entries and progress."""
    db = ctx.obj["db"]
    service = PlanService(db)

    try:
        summary = service.plan_summary(plan_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    plan = summary.plan
    click.echo(f"\n{plan.name} ({plan.kind.value}, {plan.status.value})")
    click.echo(f"  Amount: {plan.amount:,.2f} {plan.frequency.value}, from {plan.start_date}")
    click.echo(f"  Periods: {summary.paid_count} paid, {summary.scheduled_count} scheduled, {summary.total_periods} total")
    click.echo(f"  Paid: {round_money(summary.paid_amount):,.2f} of {round_money(summary.total_amount):,.2f}")
    click.echo(f"  Unpaid: {round_money(summary.unpaid_amount):,.2f}")
    click.echo("-" * 60)
    for e in summary.entries:
        state = e.schedule_state.value if e.schedule_state else "-"
        click.echo(f"{e.id:5d} | #{e.period_index:<3d} | {e.occurred_at} | {e.amount:>10,.2f} | {state}")


@plan_group.command("update")
@click.argument("plan_id", type=int)
@click.option("--name", help="New name")
@click.option("--account", help="Account name or ID for future entries")
@click.option("--category", help="Category for future entries")
@click.option("--subcategory", help="Subcategory")
@click.option("--counterparty", help="Counterparty")
@click.option("--note", help="Note")
@click.option("--status", type=click.Choice([PlanStatus.ACTIVE.value, PlanStatus.PAUSED.value]))
@click.pass_context
def update_plan(
    ctx,
    plan_id: int,
    name: str | None,
    account: str | None,
    category: str | None,
    subcategory: str | None,
    counterparty: str | None,
    note: str | None,
    status: str | None,
):
    """Edit a plan and generate any periods it is missing.

    Existing entries keep their values.
    """
    db = ctx.obj["db"]
    service = PlanService(db)

    fields = {}
    if account is not None:
        fields["account_id"] = resolve_account_or_exit(ctx, AccountService(db), account)
    for key, value in (("subcategory", subcategory), ("counterparty", counterparty), ("note", note)):
        if value is not None:
            fields[key] = value

    try:
        plan, created = service.update_plan(
            plan_id,
            name=name,
            category=category,
            status=PlanStatus(status) if status else None,
            **fields,
        )
        click.echo(f"Updated plan '{plan.name}' (ID: {plan.id})")
        if created:
            click.echo(f"Generated {created} entr{'y' if created == 1 else 'ies'}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@plan_group.command("generate")
@click.pass_context
def generate_records(ctx):
    """Generate missing entries for all active plans."""
    db = ctx.obj["db"]
    service = PlanService(db)

    result = service.generate_records()
    click.echo(f"Generated {result.total_created} entr{'y' if result.total_created == 1 else 'ies'}")
    for detail in result.details:
        click.echo(f"  {detail.plan_name} (ID: {detail.plan_id}): {detail.records_created}")


@plan_group.command("extend")
@click.argument("plan_id", type=int)
@click.pass_context
def extend_plan(ctx, plan_id: int):
    """Add twelve more periods to a recurring plan."""
    db = ctx.obj["db"]
    service = PlanService(db)

    try:
        plan, created = service.extend_plan(plan_id)
        click.echo(f"Extended plan '{plan.name}' to {plan.total_periods} periods")
        click.echo(f"Generated {created} entr{'y' if created == 1 else 'ies'}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@plan_group.command("confirm")
@click.argument("plan_id", type=int)
@click.argument("entry_id", type=int)
@click.pass_context
def confirm_entry(ctx, plan_id: int, entry_id: int):
    """Mark a plan entry as paid."""
    db = ctx.obj["db"]
    service = PlanService(db)

    try:
        status = service.confirm_entry(plan_id, entry_id)
        click.echo(f"Confirmed entry {entry_id}")
        if status == PlanStatus.COMPLETED:
            click.echo(f"Plan {plan_id} is now completed")
    except DomainError as e:
        handle_domain_error(ctx, e)


@plan_group.command("skip")
@click.argument("plan_id", type=int)
@click.argument("entry_id", type=int)
@click.pass_context
def skip_entry(ctx, plan_id: int, entry_id: int):
    """Skip a plan entry; skipped entries never move money."""
    db = ctx.obj["db"]
    service = PlanService(db)

    try:
        status = service.skip_entry(plan_id, entry_id)
        click.echo(f"Skipped entry {entry_id}")
        if status == PlanStatus.COMPLETED:
            click.echo(f"Plan {plan_id} is now completed")
    except DomainError as e:
        handle_domain_error(ctx, e)


@plan_group.command("update-entry")
@click.argument("plan_id", type=int)
@click.argument("entry_id", type=int)
@click.option("--amount", help="New amount")
@click.option("--date", "entry_date", help="New date (moves the billing date too unless given)")
@click.option("--billing-date", help="Date deciding which card bill the entry belongs to")
@click.option("--note", help="Note")
@click.pass_context
def update_entry(
    ctx,
    plan_id: int,
    entry_id: int,
    amount: str | None,
    entry_date: str | None,
    billing_date: str | None,
    note: str | None,
):
    """Edit one period of a plan."""
    db = ctx.obj["db"]
    service = PlanService(db)

    try:
        entry = service.update_entry(
            plan_id,
            entry_id,
            amount=parse_amount_or_exit(ctx, amount) if amount is not None else None,
            occurred_at=parse_date_or_exit(ctx, entry_date) if entry_date is not None else None,
            billing_assignment=(
                parse_date_or_exit(ctx, billing_date, "billing date") if billing_date is not None else None
            ),
            note=note,
        )
        click.echo(f"Updated entry {entry.id}: {entry.occurred_at} | {entry.amount:,.2f}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@plan_group.command("delete-entry")
@click.argument("plan_id", type=int)
@click.argument("entry_id", type=int)
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_entry(ctx, plan_id: int, entry_id: int, yes: bool):
    """Delete one period of a plan.

    Active plans generate the period again on the next run; use 'skip' to
    drop a period for good.
    """
    db = ctx.obj["db"]
    service = PlanService(db)

    if not yes and not click.confirm(f"Are you sure you want to delete entry {entry_id}?"):
        click.echo("Deletion cancelled.")
        return

    try:
        status = service.delete_entry(plan_id, entry_id)
        click.echo(f"Deleted entry {entry_id}")
        if status == PlanStatus.COMPLETED:
            click.echo(f"Plan {plan_id} is now completed")
    except DomainError as e:
        handle_domain_error(ctx, e)


@plan_group.command("add-period")
@click.argument("plan_id", type=int)
@click.option("--amount", help="Amount (defaults to the plan amount)")
@click.option("--date", "entry_date", help="Date (defaults to the next due date)")
@click.pass_context
def add_period(ctx, plan_id: int, amount: str | None, entry_date: str | None):
    """Append one more period to a plan."""
    db = ctx.obj["db"]
    service = PlanService(db)

    try:
        entry = service.add_period(
            plan_id,
            amount=parse_amount_or_exit(ctx, amount) if amount is not None else None,
            occurred_at=parse_date_or_exit(ctx, entry_date) if entry_date is not None else None,
        )
        click.echo(f"Added period #{entry.period_index} (entry {entry.id}) on {entry.occurred_at}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@plan_group.command("pause")
@click.argument("plan_id", type=int)
@click.pass_context
def pause_plan(ctx, plan_id: int):
    """Pause a plan; paused plans are not generated."""
    db = ctx.obj["db"]
    try:
        PlanService(db).set_status(plan_id, PlanStatus.PAUSED)
        click.echo(f"Paused plan {plan_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@plan_group.command("resume")
@click.argument("plan_id", type=int)
@click.pass_context
def resume_plan(ctx, plan_id: int):
    """Resume a paused plan."""
    db = ctx.obj["db"]
    try:
        PlanService(db).set_status(plan_id, PlanStatus.ACTIVE)
        click.echo(f"Resumed plan {plan_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@plan_group.command("delete")
@click.argument("plan_id", type=int)
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_plan(ctx, plan_id: int, yes: bool):
    """Delete a plan.

    Scheduled entries are removed; paid and skipped entries stay in the
    ledger without the plan link.
    """
    db = ctx.obj["db"]
    service = PlanService(db)

    if not yes and not click.confirm(f"Are you sure you want to delete plan {plan_id}?"):
        click.echo("Deletion cancelled.")
        return

    try:
        result = service.delete_plan(plan_id)
        click.echo(f"Deleted plan '{result.plan_name}'")
        click.echo(f"  Removed {result.deleted_scheduled} scheduled, kept {result.detached} entries")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register plan commands with main CLI."""
    cli.add_command(plan_group, name="plan")
