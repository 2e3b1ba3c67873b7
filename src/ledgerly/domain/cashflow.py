"""Monthly cashflow projection."""

from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal
from typing import Callable, Iterable, Optional

from ledgerly.database.base import Database
from ledgerly.domain.balance import LedgerBalanceCalculator, entry_delta, moves_money
from ledgerly.domain.billing import bill_contribution, cycle_items
from ledgerly.domain.entities import (
    Account,
    AdjustmentItem,
    CashflowReport,
    CashflowStatus,
    CategoryGroup,
    CreditCardBill,
    DailyBalance,
    EntryDetail,
    EntryKind,
    LedgerEntry,
    PlanItem,
    ScheduleState,
)
from ledgerly.domain.errors import ValidationError
from ledgerly.domain.reconciliation import ReconciliationService, compute_due_date
from ledgerly.utils.amount_parser import round_money
from ledgerly.utils.date_parser import add_months, date_for_day, month_bounds

TIGHT_RATIO = Decimal("0.2")

ADJUSTMENT_KINDS = frozenset(
    {
        EntryKind.BALANCE_ADJUSTMENT,
        EntryKind.INTEREST,
        EntryKind.REFUND,
        EntryKind.REWARD,
        EntryKind.DISCOUNT,
        EntryKind.RECEIVABLE,
    }
)

ZERO = Decimal("0")


def _detail(entry: LedgerEntry, amount: Decimal) -> EntryDetail:
    return EntryDetail(
        entry_id=entry.id,
        date=entry.occurred_at,
        amount=round_money(amount),
        note=entry.note or "",
        merchant=entry.merchant or "",
        subcategory=entry.subcategory or "",
        counterparty=entry.counterparty or "",
    )


def group_by_category(
    entries: Iterable[LedgerEntry],
    amount_of: Callable[[LedgerEntry], Decimal],
    by_subcategory: bool = False,
) -> tuple[CategoryGroup, ...]:
    """Group entries by category (and optionally subcategory), largest first."""
    buckets: dict[tuple[str, str], list[LedgerEntry]] = defaultdict(list)
    for entry in entries:
        sub = (entry.subcategory or "") if by_subcategory else ""
        buckets[(entry.category or "Uncategorized", sub)].append(entry)

    groups = []
    for (category, subcategory), members in buckets.items():
        amount = sum((amount_of(e) for e in members), ZERO)
        groups.append(
            CategoryGroup(
                category=category,
                subcategory=subcategory,
                amount=round_money(amount),
                entries=tuple(_detail(e, amount_of(e)) for e in members),
            )
        )
    groups.sort(key=lambda g: (-g.amount, g.category, g.subcategory))
    return tuple(groups)


def _total(groups: Iterable) -> Decimal:
    return round_money(sum((g.amount for g in groups), ZERO))


class CashflowProjector:
    """Composes balances, plans and card bills into a month's cashflow."""

    def __init__(self, db: Database):
        """Initialize projector.

        Args:
            db: Database instance
        """
        self.db = db
        self.calculator = LedgerBalanceCalculator(db)
        self.reconciliation = ReconciliationService(db)

    def project(
        self, year: int, month: int, account_ids: Optional[Iterable[int]] = None
    ) -> CashflowReport:
        """Build the cashflow report of a month.

        Args:
            year: Year
            month: Month (1-12)
            account_ids: Optional restriction of the accounts considered;
                accounts excluded from stats are always left out

        Returns:
            CashflowReport

        Raises:
            ValidationError: If month is out of range
        """
        if not 1 <= month <= 12:
            raise ValidationError(f"Month must be between 1 and 12, got {month}")

        wanted = set(account_ids) if account_ids is not None else None
        accounts = [
            a
            for a in self.db.list_accounts()
            if a.include_in_stats and (wanted is None or a.id in wanted)
        ]
        physical = [a for a in accounts if not a.is_credit]
        credit = [a for a in accounts if a.is_credit]
        physical_ids = {a.id for a in physical}
        included_ids = {a.id for a in accounts}

        month_start, next_start = month_bounds(year, month)
        month_end = next_start - timedelta(days=1)

        opening = sum(
            (self.calculator.balance_as_of(a.id, month_start, True) for a in physical), ZERO
        )
        closing = sum(
            (self.calculator.balance_as_of(a.id, next_start, True) for a in physical), ZERO
        )

        entries = []
        if accounts:
            entries = self.db.list_entries(
                account_ids=included_ids,
                involving=True,
                start_date=month_start,
                end_date=month_end,
            )
        actual = [e for e in entries if moves_money(e)]
        on_physical = [e for e in actual if e.account_id in physical_ids]

        income_entries = [e for e in on_physical if e.kind == EntryKind.INCOME]
        income = group_by_category(income_entries, lambda e: e.amount)
        direct_entries = [e for e in on_physical if e.kind == EntryKind.EXPENSE]
        direct = group_by_category(direct_entries, lambda e: e.amount)

        fixed_entries = [
            e
            for e in entries
            if e.schedule_state != ScheduleState.SKIPPED
            and e.account_id in included_ids
            and (
                e.kind == EntryKind.PAYABLE
                or (
                    e.plan_id is not None
                    and e.schedule_state == ScheduleState.SCHEDULED
                    and e.account_id in physical_ids
                )
            )
        ]
        fixed = group_by_category(fixed_entries, lambda e: e.amount, by_subcategory=True)

        bills = []
        for account in credit:
            if account.bill_day and account.pay_day:
                bill = self._card_bill(account, month_start, month_end)
                if bill is not None:
                    bills.append(bill)
        bills = tuple(bills)

        adjustments = self._adjustments(on_physical, {a.id: a for a in physical})
        daily = self._daily_balance(actual, physical, month_start, next_start, opening)

        total_income = _total(income)
        direct_total = _total(direct)
        fixed_total = _total(fixed)
        credit_total = round_money(sum((b.bill_amount for b in bills), ZERO))
        net = closing - opening

        if net < 0:
            status = CashflowStatus.NEGATIVE
        elif total_income > 0 and net / total_income <= TIGHT_RATIO:
            status = CashflowStatus.TIGHT
        else:
            status = CashflowStatus.OK

        return CashflowReport(
            year=year,
            month=month,
            period_start=month_start,
            period_end=month_end,
            opening_balance=round_money(opening),
            closing_balance=round_money(closing),
            total_income=total_income,
            income=income,
            direct_total=direct_total,
            direct_expense=direct,
            credit_bills_total=credit_total,
            credit_card_bills=bills,
            fixed_total=fixed_total,
            fixed_expenses=fixed,
            adjustments_total=round_money(sum((a.amount for a in adjustments), ZERO)),
            adjustments=adjustments,
            total_expenses=round_money(direct_total + credit_total + fixed_total),
            net=round_money(net),
            status=status,
            daily_balance=daily,
        )

    def _card_bill(self, account: Account, month_start: date, month_end: date) -> Optional[CreditCardBill]:
        """Return the card bill that falls due within the month."""
        for offset in (-1, 0):
            year, month = add_months(month_start.year, month_start.month, offset)
            cycle_end = date_for_day(year, month, account.bill_day)
            due = compute_due_date(cycle_end, account.pay_day)
            if month_start <= due <= month_end:
                break
        else:
            return None

        prev_year, prev_month = add_months(cycle_end.year, cycle_end.month, -1)
        cycle_start = date_for_day(prev_year, prev_month, account.bill_day) + timedelta(days=1)
        bill = self.reconciliation.bill_amount(account.id, cycle_start, cycle_end)

        card_entries = self.db.list_entries(account_ids=[account.id], involving=True)
        billed = [
            item.entry
            for item in cycle_items(card_entries, account.id, cycle_start, cycle_end)
            if item.counts_toward_total
            # Payables are reported under fixed expenses
            and item.entry.kind != EntryKind.PAYABLE
        ]

        plan_items = []
        others = []
        plan_names: dict[int, str] = {}
        for entry in billed:
            if entry.plan_id is None:
                others.append(entry)
                continue
            if entry.plan_id not in plan_names:
                plan = self.db.get_plan(entry.plan_id)
                plan_names[entry.plan_id] = plan.name if plan else entry.note
            plan_items.append(
                PlanItem(
                    name=plan_names[entry.plan_id],
                    category=entry.category,
                    subcategory=entry.subcategory or "",
                    amount=round_money(bill_contribution(entry)),
                )
            )
        other_groups = group_by_category(others, bill_contribution)

        return CreditCardBill(
            account_id=account.id,
            account_name=account.name,
            cycle_start=cycle_start,
            cycle_end=cycle_end,
            due_date=due,
            bill_amount=bill.amount,
            estimated=bill.estimated,
            plan_items=tuple(plan_items),
            plan_total=_total(plan_items),
            other_by_category=other_groups,
            other_total=_total(other_groups),
        )

    def _adjustments(
        self, entries: Iterable[LedgerEntry], accounts: dict[int, Account]
    ) -> tuple[AdjustmentItem, ...]:
        items = []
        for entry in entries:
            account = accounts[entry.account_id]
            if entry.kind in ADJUSTMENT_KINDS:
                items.append(
                    AdjustmentItem(
                        date=entry.occurred_at,
                        kind=entry.kind.value,
                        note=entry.note or "",
                        amount=round_money(entry_delta(entry, account) + entry.fee),
                    )
                )
            if entry.fee:
                items.append(
                    AdjustmentItem(
                        date=entry.occurred_at,
                        kind="fee",
                        note=entry.note or "",
                        amount=round_money(-entry.fee),
                    )
                )
        return tuple(items)

    def _daily_balance(
        self,
        entries: list[LedgerEntry],
        physical: list[Account],
        month_start: date,
        next_start: date,
        opening: Decimal,
    ) -> tuple[DailyBalance, ...]:
        """Replay the month day by day over the physical accounts."""
        by_day: dict[date, list[LedgerEntry]] = defaultdict(list)
        for entry in entries:
            by_day[entry.occurred_at].append(entry)
        physical_by_id = {a.id: a for a in physical}
        credit_ids = {a.id for a in self.db.list_accounts() if a.is_credit}

        days = []
        running = opening
        day = month_start
        while day < next_start:
            income = direct = card_payment = fixed = net = ZERO
            for entry in by_day.get(day, ()):
                for account_id in physical_by_id.keys() & {entry.account_id, entry.to_account_id}:
                    net += entry_delta(entry, physical_by_id[account_id])
                if entry.account_id not in physical_by_id:
                    continue
                if entry.kind == EntryKind.INCOME:
                    income += entry.amount
                elif entry.kind == EntryKind.EXPENSE:
                    direct += entry.amount
                elif entry.kind == EntryKind.PAYABLE:
                    fixed += entry.amount
                elif entry.kind == EntryKind.TRANSFER and entry.to_account_id in credit_ids:
                    card_payment += entry.amount
            running += net
            days.append(
                DailyBalance(
                    date=day,
                    income=round_money(income),
                    direct_expense=round_money(direct),
                    credit_bill_payment=round_money(card_payment),
                    fixed_expense=round_money(fixed),
                    expense=round_money(direct + card_payment + fixed),
                    net=round_money(net),
                    running_balance=round_money(running),
                )
            )
            day += timedelta(days=1)
        return tuple(days)
