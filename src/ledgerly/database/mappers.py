"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, including the string columns that
back the domain enums.
"""

from decimal import Decimal
from typing import Optional

from ledgerly.domain import entities as domain
from ledgerly.database.models import (
    Account as ORMAccount,
    LedgerEntry as ORMLedgerEntry,
    PaymentPlan as ORMPaymentPlan,
    Statement as ORMStatement,
)


def _decimal(value) -> Optional[Decimal]:
    if value is None:
        return None
    return Decimal(value)


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        name=orm_account.name,
        kind=domain.AccountKind(orm_account.kind),
        initial_balance=_decimal(orm_account.initial_balance) or Decimal("0"),
        include_in_stats=orm_account.include_in_stats,
        created_at=orm_account.created_at,
        group=orm_account.group or "",
        bill_day=orm_account.bill_day,
        pay_day=orm_account.pay_day,
        credit_limit=_decimal(orm_account.credit_limit),
    )


def entry_to_domain(orm_entry: ORMLedgerEntry) -> domain.LedgerEntry:
    """Convert SQLAlchemy LedgerEntry model to domain LedgerEntry entity."""
    schedule_state = None
    if orm_entry.schedule_state is not None:
        schedule_state = domain.ScheduleState(orm_entry.schedule_state)
    return domain.LedgerEntry(
        id=orm_entry.id,
        kind=domain.EntryKind(orm_entry.kind),
        amount=Decimal(orm_entry.amount),
        account_id=orm_entry.account_id,
        occurred_at=orm_entry.occurred_at,
        created_at=orm_entry.created_at,
        fee=_decimal(orm_entry.fee) or Decimal("0"),
        discount=_decimal(orm_entry.discount) or Decimal("0"),
        to_account_id=orm_entry.to_account_id,
        billing_assignment=orm_entry.billing_assignment,
        category=orm_entry.category or "",
        subcategory=orm_entry.subcategory,
        note=orm_entry.note or "",
        merchant=orm_entry.merchant,
        counterparty=orm_entry.counterparty,
        plan_id=orm_entry.plan_id,
        period_index=orm_entry.period_index,
        schedule_state=schedule_state,
        statement_id=orm_entry.statement_id,
        reconciled=orm_entry.reconciled,
    )


def draft_to_orm(draft: domain.LedgerEntryDraft) -> ORMLedgerEntry:
    """Build an unsaved SQLAlchemy LedgerEntry row from a domain draft."""
    return ORMLedgerEntry(
        kind=draft.kind.value,
        amount=draft.amount,
        fee=draft.fee,
        discount=draft.discount,
        account_id=draft.account_id,
        to_account_id=draft.to_account_id,
        occurred_at=draft.occurred_at,
        billing_assignment=draft.billing_assignment,
        category=draft.category,
        subcategory=draft.subcategory,
        note=draft.note,
        merchant=draft.merchant,
        counterparty=draft.counterparty,
        plan_id=draft.plan_id,
        period_index=draft.period_index,
        schedule_state=draft.schedule_state.value if draft.schedule_state else None,
        reconciled=False,
    )


def plan_to_domain(orm_plan: ORMPaymentPlan) -> domain.PaymentPlan:
    """Convert SQLAlchemy PaymentPlan model to domain PaymentPlan entity."""
    return domain.PaymentPlan(
        id=orm_plan.id,
        name=orm_plan.name,
        kind=domain.PlanKind(orm_plan.kind),
        amount=Decimal(orm_plan.amount),
        frequency=domain.Frequency(orm_plan.frequency),
        payment_day=orm_plan.payment_day,
        start_date=orm_plan.start_date,
        account_id=orm_plan.account_id,
        category=orm_plan.category,
        status=domain.PlanStatus(orm_plan.status),
        created_at=orm_plan.created_at,
        total_periods=orm_plan.total_periods,
        total_amount=_decimal(orm_plan.total_amount),
        subcategory=orm_plan.subcategory,
        counterparty=orm_plan.counterparty,
        note=orm_plan.note,
    )


def statement_to_domain(orm_statement: ORMStatement) -> domain.Statement:
    """Convert SQLAlchemy Statement model to domain Statement entity."""
    return domain.Statement(
        id=orm_statement.id,
        account_id=orm_statement.account_id,
        billing_cycle_start=orm_statement.billing_cycle_start,
        billing_cycle_end=orm_statement.billing_cycle_end,
        due_date=orm_statement.due_date,
        status=domain.StatementStatus(orm_statement.status),
        statement_amount=_decimal(orm_statement.statement_amount),
        paid_amount=_decimal(orm_statement.paid_amount),
        paid_date=orm_statement.paid_date,
        note=orm_statement.note,
    )
