"""Period date arithmetic and idempotent backfill of plan entries."""

import logging
import math
from datetime import date, timedelta
from typing import Optional

from dateutil.relativedelta import relativedelta

from ledgerly.database.base import Database
from ledgerly.domain.entities import (
    EntryKind,
    Frequency,
    LedgerEntryDraft,
    PaymentPlan,
    PlanKind,
    ScheduleState,
)
from ledgerly.utils.date_parser import add_months, date_for_day

logger = logging.getLogger(__name__)

PAYABLE_CATEGORY = "Payables"
OPEN_ENDED_HORIZON_MONTHS = 12


def period_date(start_date: date, period_index: int, frequency: Frequency, payment_day: int) -> date:
    """Return the due date of a plan period.

    Monthly periods land on ``payment_day`` clamped to the target month, so
    period 0 stays in the start month even when ``payment_day`` is earlier
    than the start day.
    """
    frequency = Frequency(frequency)
    if frequency == Frequency.WEEKLY:
        return start_date + timedelta(days=7 * period_index)
    if frequency == Frequency.YEARLY:
        return start_date + relativedelta(years=period_index)
    year, month = add_months(start_date.year, start_date.month, period_index)
    return date_for_day(year, month, payment_day)


def total_periods(plan: PaymentPlan, today: Optional[date] = None) -> int:
    """Return the number of periods to materialize for a plan.

    Plans without a stored count are open-ended and run up to a horizon of
    twelve months past today.
    """
    if plan.total_periods is not None and plan.total_periods > 0:
        return plan.total_periods

    today = today or date.today()
    horizon = today + relativedelta(months=OPEN_ENDED_HORIZON_MONTHS)
    start = plan.start_date

    if plan.frequency == Frequency.WEEKLY:
        count = math.ceil((horizon - start).days / 7)
    elif plan.frequency == Frequency.YEARLY:
        count = horizon.year - start.year + 1
    else:
        count = (horizon.year - start.year) * 12 + horizon.month - start.month + 1
    return max(count, 1)


def entry_kind_for(plan: PaymentPlan) -> EntryKind:
    """Installments and loan-style plans book payables; everything else is an expense."""
    if plan.kind == PlanKind.INSTALLMENT or plan.category == PAYABLE_CATEGORY:
        return EntryKind.PAYABLE
    return EntryKind.EXPENSE


def period_note(plan: PaymentPlan, period_index: int, periods: int) -> str:
    if plan.kind == PlanKind.INSTALLMENT:
        return f"[Installment {period_index + 1}/{periods}] {plan.name}"
    return f"[Recurring] {plan.name}"


class PeriodScheduler:
    """Materializes missing plan entries."""

    def __init__(self, db: Database):
        """Initialize scheduler.

        Args:
            db: Database instance
        """
        self.db = db

    def build_drafts(self, plan: PaymentPlan, today: Optional[date] = None) -> list[LedgerEntryDraft]:
        """Build drafts for every period index that has no entry yet."""
        today = today or date.today()
        periods = total_periods(plan, today)
        occupied = self.db.get_plan_period_indexes(plan.id)
        kind = entry_kind_for(plan)

        drafts = []
        for index in range(periods):
            if index in occupied:
                continue
            due = period_date(plan.start_date, index, plan.frequency, plan.payment_day)
            state = ScheduleState.CONFIRMED if due <= today else ScheduleState.SCHEDULED
            drafts.append(
                LedgerEntryDraft(
                    kind=kind,
                    amount=plan.amount,
                    account_id=plan.account_id,
                    occurred_at=due,
                    billing_assignment=due,
                    category=plan.category,
                    subcategory=plan.subcategory,
                    note=period_note(plan, index, periods),
                    counterparty=plan.counterparty,
                    plan_id=plan.id,
                    period_index=index,
                    schedule_state=state,
                )
            )
        return drafts

    def backfill(self, plan: PaymentPlan, today: Optional[date] = None) -> int:
        """Insert entries for missing periods of a plan.

        Safe to run repeatedly and concurrently: periods that already exist,
        including ones stored by another writer after the occupancy read, are
        skipped by the store.

        Returns:
            Number of entries attempted
        """
        drafts = self.build_drafts(plan, today)
        if not drafts:
            return 0

        inserted = self.db.insert_plan_entries(drafts)
        if inserted < len(drafts):
            logger.debug(
                "Plan %s: %d of %d periods were already present",
                plan.id,
                len(drafts) - inserted,
                len(drafts),
            )
        logger.info("Plan %s: backfilled %d entries", plan.id, len(drafts))
        return len(drafts)
