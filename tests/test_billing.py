"""Tests for billing cycle assembly."""

from datetime import date, datetime, UTC
from decimal import Decimal

import pytest

from ledgerly.domain.billing import classify_membership, cycle_total
from ledgerly.domain.entities import (
    CycleEntry,
    CycleStatus,
    EntryKind,
    LedgerEntry,
    Membership,
)
from ledgerly.domain.errors import NotFoundError, ValidationError

START = date(2025, 2, 21)
END = date(2025, 3, 20)


def make_entry(occurred_at, billing_assignment=None, kind=EntryKind.EXPENSE, amount="10", fee="0"):
    return LedgerEntry(
        id=1,
        kind=kind,
        amount=Decimal(amount),
        fee=Decimal(fee),
        account_id=1,
        occurred_at=occurred_at,
        billing_assignment=billing_assignment,
        created_at=datetime.now(UTC),
    )


class TestClassifyMembership:
    @pytest.mark.parametrize(
        "occurred_at, expected",
        [
            (date(2025, 2, 20), Membership.NONE),
            (date(2025, 2, 21), Membership.PRIMARY),
            (date(2025, 3, 20), Membership.PRIMARY),
            (date(2025, 3, 21), Membership.NONE),
        ],
    )
    def test_occurred_at_boundaries(self, occurred_at, expected):
        assert classify_membership(make_entry(occurred_at), START, END) == expected

    def test_assignment_inside_same_window_is_primary(self):
        entry = make_entry(date(2025, 3, 1), billing_assignment=date(2025, 3, 20))
        assert classify_membership(entry, START, END) == Membership.PRIMARY

    def test_assignment_after_window_is_deferred_out(self):
        entry = make_entry(date(2025, 3, 20), billing_assignment=date(2025, 3, 21))
        assert classify_membership(entry, START, END) == Membership.DEFERRED_OUT

    def test_assignment_before_window_is_deferred_out(self):
        entry = make_entry(date(2025, 2, 21), billing_assignment=date(2025, 2, 20))
        assert classify_membership(entry, START, END) == Membership.DEFERRED_OUT

    @pytest.mark.parametrize("assigned", [date(2025, 2, 21), date(2025, 3, 20)])
    def test_assignment_into_window_is_deferred_in(self, assigned):
        entry = make_entry(date(2025, 2, 10), billing_assignment=assigned)
        assert classify_membership(entry, START, END) == Membership.DEFERRED_IN

    def test_assignment_outside_and_date_outside(self):
        entry = make_entry(date(2025, 1, 10), billing_assignment=date(2025, 4, 1))
        assert classify_membership(entry, START, END) == Membership.NONE

    def test_deferred_entry_counts_in_exactly_one_cycle(self):
        entry = make_entry(date(2025, 3, 15), billing_assignment=date(2025, 3, 21))
        cycles = [
            (date(2025, 1, 21), date(2025, 2, 20)),
            (START, END),
            (date(2025, 3, 21), date(2025, 4, 20)),
            (date(2025, 4, 21), date(2025, 5, 20)),
        ]
        counted = [
            (start, end)
            for start, end in cycles
            if classify_membership(entry, start, end) in (Membership.PRIMARY, Membership.DEFERRED_IN)
        ]
        assert counted == [(date(2025, 3, 21), date(2025, 4, 20))]


def test_cycle_total_rules():
    items = [
        CycleEntry(make_entry(START, amount="100", fee="2"), Membership.PRIMARY),
        CycleEntry(make_entry(START, kind=EntryKind.REFUND, amount="30"), Membership.PRIMARY),
        CycleEntry(make_entry(START, amount="55"), Membership.DEFERRED_OUT),
        CycleEntry(make_entry(START, kind=EntryKind.TRANSFER, amount="500"), Membership.PRIMARY, is_payment=True),
        CycleEntry(make_entry(START, amount="0.005"), Membership.DEFERRED_IN),
    ]
    assert cycle_total(items) == Decimal("72.01")


class TestAssemble:
    def test_requires_credit_account(self, assembler, checking):
        with pytest.raises(NotFoundError):
            assembler.assemble(checking.id)

    def test_requires_bill_day(self, assembler, account_service):
        from ledgerly.domain.entities import AccountKind

        card_id = account_service.create_account(name="No Day", kind=AccountKind.CREDIT)
        with pytest.raises(ValidationError):
            assembler.assemble(card_id)

    def test_no_entries(self, assembler, credit_card, today):
        assert assembler.assemble(credit_card.id, today=today) == []

    def test_cycles_newest_first_with_totals(self, assembler, checking, credit_card, add_entry, today):
        add_entry(EntryKind.EXPENSE, "100", credit_card.id, date(2025, 1, 25))
        add_entry(EntryKind.EXPENSE, "40", credit_card.id, date(2025, 2, 20), fee=Decimal("1"))
        add_entry(EntryKind.REWARD, "5", credit_card.id, date(2025, 3, 1))
        add_entry(EntryKind.TRANSFER, "141", checking.id, date(2025, 3, 5), to_account_id=credit_card.id)

        periods = assembler.assemble(credit_card.id, today=today)

        assert [(p.cycle_start, p.cycle_end) for p in periods] == [
            (date(2025, 2, 21), date(2025, 3, 20)),
            (date(2025, 1, 21), date(2025, 2, 20)),
        ]
        assert periods[1].total_amount == Decimal("141.00")
        # The reward counts, the payment does not
        assert periods[0].total_amount == Decimal("-5.00")
        payment = [i for i in periods[0].entries if i.is_payment]
        assert len(payment) == 1
        assert all(p.status == CycleStatus.UNRECONCILED for p in periods)
        assert all(p.statement_id is None for p in periods)

    def test_cash_advance_is_included(self, assembler, checking, credit_card, add_entry, today):
        add_entry(EntryKind.TRANSFER, "200", credit_card.id, date(2025, 3, 1), to_account_id=checking.id, fee=Decimal("6"))

        periods = assembler.assemble(credit_card.id, today=today)
        assert len(periods) == 1
        assert periods[0].entries[0].is_cash_advance
        assert periods[0].total_amount == Decimal("206.00")

    def test_lookahead_includes_future_scheduled_cycles(
        self, assembler, plan_service, credit_card, today
    ):
        from ledgerly.domain.entities import Frequency, PlanKind

        plan_service.create_plan(
            name="Phone",
            kind=PlanKind.INSTALLMENT,
            amount=Decimal("50"),
            frequency=Frequency.MONTHLY,
            payment_day=1,
            start_date=date(2025, 3, 1),
            account_id=credit_card.id,
            category="Electronics",
            total_periods=6,
            today=today,
        )
        periods = assembler.assemble(credit_card.id, today=today)
        # The cycle closing May 20 lies past the May 15 lookahead limit
        assert [p.cycle_end for p in periods] == [
            date(2025, 4, 20),
            date(2025, 3, 20),
        ]
