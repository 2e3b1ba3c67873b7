"""Tests for period date arithmetic and plan backfill."""

from datetime import date, datetime, UTC
from decimal import Decimal

import pytest

from ledgerly.domain.entities import (
    EntryKind,
    Frequency,
    PaymentPlan,
    PlanKind,
    PlanStatus,
    ScheduleState,
)
from ledgerly.domain.scheduler import (
    PAYABLE_CATEGORY,
    PeriodScheduler,
    period_date,
    total_periods,
)


def make_plan(**overrides):
    fields = dict(
        id=1,
        name="Laptop",
        kind=PlanKind.INSTALLMENT,
        amount=Decimal("100"),
        frequency=Frequency.MONTHLY,
        payment_day=5,
        start_date=date(2025, 1, 5),
        account_id=1,
        category="Electronics",
        status=PlanStatus.ACTIVE,
        created_at=datetime.now(UTC),
        total_periods=3,
    )
    fields.update(overrides)
    return PaymentPlan(**fields)


class TestPeriodDate:
    def test_monthly_clamps_to_february_end(self):
        assert period_date(date(2025, 1, 31), 1, Frequency.MONTHLY, 31) == date(2025, 2, 28)

    def test_monthly_clamps_to_leap_day(self):
        assert period_date(date(2024, 1, 31), 1, Frequency.MONTHLY, 31) == date(2024, 2, 29)

    def test_monthly_period_zero_stays_in_start_month(self):
        assert period_date(date(2025, 1, 20), 0, Frequency.MONTHLY, 5) == date(2025, 1, 5)

    def test_monthly_crosses_year(self):
        assert period_date(date(2025, 11, 5), 3, Frequency.MONTHLY, 5) == date(2026, 2, 5)

    def test_weekly(self):
        assert period_date(date(2025, 1, 1), 3, Frequency.WEEKLY, 1) == date(2025, 1, 22)

    def test_yearly_clamps_leap_day(self):
        assert period_date(date(2024, 2, 29), 1, Frequency.YEARLY, 29) == date(2025, 2, 28)
        assert period_date(date(2024, 2, 29), 4, Frequency.YEARLY, 29) == date(2028, 2, 29)


class TestTotalPeriods:
    def test_stored_count_wins(self):
        assert total_periods(make_plan(total_periods=7), date(2030, 1, 1)) == 7

    def test_open_ended_monthly(self):
        plan = make_plan(kind=PlanKind.RECURRING, total_periods=None, start_date=date(2025, 1, 5))
        # January 2025 through March 2026
        assert total_periods(plan, date(2025, 3, 15)) == 15

    def test_open_ended_yearly(self):
        plan = make_plan(
            kind=PlanKind.RECURRING,
            total_periods=None,
            frequency=Frequency.YEARLY,
            start_date=date(2023, 6, 1),
        )
        assert total_periods(plan, date(2025, 3, 15)) == 4

    def test_open_ended_weekly(self):
        plan = make_plan(
            kind=PlanKind.RECURRING,
            total_periods=None,
            frequency=Frequency.WEEKLY,
            start_date=date(2025, 3, 1),
        )
        # 2025-03-01 .. 2026-03-01 is 365 days
        assert total_periods(plan, date(2025, 3, 1)) == 53

    def test_floored_at_one(self):
        plan = make_plan(
            kind=PlanKind.RECURRING,
            total_periods=None,
            start_date=date(2030, 1, 1),
        )
        assert total_periods(plan, date(2025, 1, 1)) == 1


class TestBackfill:
    @pytest.fixture
    def plan(self, temp_db, checking):
        plan_id = temp_db.create_plan(
            name="Laptop",
            kind=PlanKind.INSTALLMENT,
            amount=Decimal("100"),
            frequency=Frequency.MONTHLY,
            payment_day=5,
            start_date=date(2025, 1, 5),
            account_id=checking.id,
            category="Electronics",
            total_periods=3,
            total_amount=Decimal("300"),
        )
        return temp_db.get_plan(plan_id)

    def test_creates_one_entry_per_period(self, temp_db, plan):
        created = PeriodScheduler(temp_db).backfill(plan, today=date(2025, 2, 10))

        assert created == 3
        entries = temp_db.list_entries(plan_id=plan.id)
        assert [e.period_index for e in entries] == [0, 1, 2]
        assert [e.occurred_at for e in entries] == [
            date(2025, 1, 5),
            date(2025, 2, 5),
            date(2025, 3, 5),
        ]
        assert [e.schedule_state for e in entries] == [
            ScheduleState.CONFIRMED,
            ScheduleState.CONFIRMED,
            ScheduleState.SCHEDULED,
        ]
        assert all(e.billing_assignment == e.occurred_at for e in entries)
        assert {e.kind for e in entries} == {EntryKind.PAYABLE}
        assert entries[0].note == "[Installment 1/3] Laptop"

    def test_second_run_creates_nothing(self, temp_db, plan):
        scheduler = PeriodScheduler(temp_db)
        assert scheduler.backfill(plan, today=date(2025, 1, 1)) == 3
        assert scheduler.backfill(plan, today=date(2025, 1, 1)) == 0
        assert temp_db.count_plan_entries(plan.id) == 3

    def test_fills_only_missing_periods(self, temp_db, plan):
        scheduler = PeriodScheduler(temp_db)
        scheduler.backfill(plan, today=date(2025, 1, 1))
        middle = temp_db.list_entries(plan_id=plan.id)[1]
        temp_db.delete_entry(middle.id)

        assert scheduler.backfill(plan, today=date(2025, 1, 1)) == 1
        assert temp_db.get_plan_period_indexes(plan.id) == {0, 1, 2}

    def test_concurrent_writer_is_tolerated(self, temp_db, plan, monkeypatch):
        """A stale occupancy read must not produce duplicate periods."""
        scheduler = PeriodScheduler(temp_db)
        scheduler.backfill(plan, today=date(2025, 1, 1))
        middle = temp_db.list_entries(plan_id=plan.id)[1]
        temp_db.delete_entry(middle.id)

        # Simulate a writer that read occupancy before the first run landed
        monkeypatch.setattr(temp_db, "get_plan_period_indexes", lambda plan_id: set())
        scheduler.backfill(plan, today=date(2025, 1, 1))
        monkeypatch.undo()

        entries = temp_db.list_entries(plan_id=plan.id)
        assert sorted(e.period_index for e in entries) == [0, 1, 2]

    def test_payable_category_creates_payable_entries(self, temp_db, checking):
        plan_id = temp_db.create_plan(
            name="Loan from Sam",
            kind=PlanKind.RECURRING,
            amount=Decimal("50"),
            frequency=Frequency.MONTHLY,
            payment_day=1,
            start_date=date(2025, 1, 1),
            account_id=checking.id,
            category=PAYABLE_CATEGORY,
            total_periods=2,
        )
        plan = temp_db.get_plan(plan_id)
        PeriodScheduler(temp_db).backfill(plan, today=date(2025, 1, 1))

        entries = temp_db.list_entries(plan_id=plan_id)
        assert [e.kind for e in entries] == [EntryKind.PAYABLE, EntryKind.PAYABLE]
        assert entries[0].note == "[Recurring] Loan from Sam"

    def test_recurring_plan_creates_expense_entries(self, temp_db, checking):
        plan_id = temp_db.create_plan(
            name="Gym",
            kind=PlanKind.RECURRING,
            amount=Decimal("30"),
            frequency=Frequency.MONTHLY,
            payment_day=1,
            start_date=date(2025, 1, 1),
            account_id=checking.id,
            category="Health",
            total_periods=2,
        )
        plan = temp_db.get_plan(plan_id)
        PeriodScheduler(temp_db).backfill(plan, today=date(2025, 1, 1))

        entries = temp_db.list_entries(plan_id=plan_id)
        assert {e.kind for e in entries} == {EntryKind.EXPENSE}
