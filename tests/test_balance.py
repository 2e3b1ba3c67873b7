"""Tests for ledger replay and balance summaries."""

from datetime import date
from decimal import Decimal

import pytest

from ledgerly.domain.balance import LedgerBalanceCalculator
from ledgerly.domain.entities import AccountKind, EntryKind, Frequency, PlanKind
from ledgerly.domain.errors import NotFoundError


@pytest.fixture
def calculator(temp_db):
    return LedgerBalanceCalculator(temp_db)


def test_no_entries_returns_initial_balance(calculator, checking):
    assert calculator.balance_as_of(checking.id, date(2025, 1, 1)) == Decimal("1000")


def test_unknown_account(calculator):
    with pytest.raises(NotFoundError):
        calculator.balance_as_of(99, date(2025, 1, 1))


def test_income_and_expense_scenario(calculator, checking, add_entry):
    add_entry(EntryKind.INCOME, "500", checking.id, date(2025, 3, 3))
    add_entry(EntryKind.EXPENSE, "200", checking.id, date(2025, 3, 10))

    assert calculator.balance_as_of(checking.id, date(2025, 4, 1)) == Decimal("1300")


def test_cutoff_is_exclusive(calculator, checking, add_entry):
    add_entry(EntryKind.EXPENSE, "200", checking.id, date(2025, 3, 10))

    assert calculator.balance_as_of(checking.id, date(2025, 3, 10)) == Decimal("1000")
    assert calculator.balance_as_of(checking.id, date(2025, 3, 11)) == Decimal("800")


def test_physical_kinds_and_fees(calculator, checking, add_entry):
    add_entry(EntryKind.RECEIVABLE, "40", checking.id, date(2025, 1, 2))
    add_entry(EntryKind.PAYABLE, "30", checking.id, date(2025, 1, 2))
    add_entry(EntryKind.INTEREST, "5", checking.id, date(2025, 1, 2))
    add_entry(EntryKind.REFUND, "10", checking.id, date(2025, 1, 2))
    add_entry(EntryKind.BALANCE_ADJUSTMENT, "-15", checking.id, date(2025, 1, 2))
    add_entry(EntryKind.EXPENSE, "100", checking.id, date(2025, 1, 2), fee=Decimal("2.50"))

    # 1000 + 40 - 30 - 5 + 10 - 15 - 100 - 2.50
    assert calculator.balance_as_of(checking.id, date(2025, 2, 1)) == Decimal("897.50")


def test_transfer_moves_money_between_accounts(calculator, account_service, checking, add_entry):
    savings_id = account_service.create_account(name="Savings", kind=AccountKind.PHYSICAL)
    add_entry(
        EntryKind.TRANSFER, "250", checking.id, date(2025, 1, 5), to_account_id=savings_id, fee=Decimal("1")
    )

    assert calculator.balance_as_of(checking.id, date(2025, 2, 1)) == Decimal("749")
    assert calculator.balance_as_of(savings_id, date(2025, 2, 1)) == Decimal("250")


def test_credit_card_spending_and_payment(calculator, checking, credit_card, add_entry):
    add_entry(EntryKind.EXPENSE, "120", credit_card.id, date(2025, 1, 5), fee=Decimal("3"))
    add_entry(EntryKind.REFUND, "20", credit_card.id, date(2025, 1, 6))
    add_entry(EntryKind.INCOME, "999", credit_card.id, date(2025, 1, 6), fee=Decimal("1"))
    add_entry(EntryKind.TRANSFER, "50", checking.id, date(2025, 1, 10), to_account_id=credit_card.id)

    # -120 - 3 + 20 - 1 (income on a card only costs its fee) + 50
    assert calculator.balance_as_of(credit_card.id, date(2025, 2, 1)) == Decimal("-54")


def test_scheduled_entries_are_optional(calculator, plan_service, checking):
    plan_service.create_plan(
        name="Rent",
        kind=PlanKind.INSTALLMENT,
        amount=Decimal("300"),
        frequency=Frequency.MONTHLY,
        payment_day=1,
        start_date=date(2025, 1, 1),
        account_id=checking.id,
        category="Housing",
        total_periods=3,
        today=date(2025, 1, 15),
    )
    cutoff = date(2025, 4, 1)
    assert calculator.balance_as_of(checking.id, cutoff) == Decimal("700")
    assert calculator.balance_as_of(checking.id, cutoff, exclude_scheduled=False) == Decimal("100")


def test_skipped_entries_never_count(calculator, plan_service, temp_db, checking):
    plan, _ = plan_service.create_plan(
        name="Rent",
        kind=PlanKind.INSTALLMENT,
        amount=Decimal("300"),
        frequency=Frequency.MONTHLY,
        payment_day=1,
        start_date=date(2025, 1, 1),
        account_id=checking.id,
        category="Housing",
        total_periods=2,
        today=date(2024, 12, 1),
    )
    first = temp_db.list_entries(plan_id=plan.id)[0]
    plan_service.skip_entry(plan.id, first.id)

    cutoff = date(2025, 4, 1)
    assert calculator.balance_as_of(checking.id, cutoff, exclude_scheduled=False) == Decimal("700")


def test_balances_summary(account_service, checking, credit_card, add_entry):
    hidden_id = account_service.create_account(
        name="Piggy bank", kind=AccountKind.PHYSICAL, initial_balance=Decimal("50"), include_in_stats=False
    )
    add_entry(EntryKind.EXPENSE, "400", credit_card.id, date(2025, 3, 1))
    add_entry(EntryKind.EXPENSE, "10", checking.id, date(2025, 3, 16))

    summary = account_service.balances(today=date(2025, 3, 15))

    by_name = {b.account.name: b for b in summary.balances}
    assert by_name["Checking"].balance == Decimal("1000")
    assert by_name["Visa"].balance == Decimal("-400")
    assert by_name["Visa"].available_credit == Decimal("4600")
    assert by_name["Piggy bank"].balance == Decimal("50")
    assert hidden_id == by_name["Piggy bank"].account.id

    assert summary.total_assets == Decimal("1000")
    assert summary.total_liabilities == Decimal("400")
    assert summary.net_worth == Decimal("600")
