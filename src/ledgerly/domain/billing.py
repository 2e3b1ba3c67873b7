"""Credit card billing cycle assembly.

Each entry carries two dates: ``occurred_at`` (when it happened) and an
optional ``billing_assignment`` (which bill it belongs to). A cycle covers
``(previous bill day, bill day]``; the two dates decide whether an entry is
billed in its natural cycle or moved to a later one.
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Optional

from ledgerly.database.base import Database
from ledgerly.domain.entities import (
    CREDITING_KINDS,
    BillingPeriod,
    CycleEntry,
    CycleStatus,
    EntryKind,
    LedgerEntry,
    Membership,
    ScheduleState,
)
from ledgerly.domain.errors import (
    NotFoundError,
    ValidationError,
    bill_day_not_set,
    credit_account_not_found,
)
from ledgerly.utils.amount_parser import round_money
from ledgerly.utils.date_parser import add_months, date_for_day

LOOKAHEAD_MONTHS = 2


def classify_membership(entry: LedgerEntry, cycle_start: date, cycle_end: date) -> Membership:
    """Classify how an entry relates to the cycle ``[cycle_start, cycle_end]``."""
    in_by_date = cycle_start <= entry.occurred_at <= cycle_end
    assigned = entry.billing_assignment
    in_by_bill = assigned is not None and cycle_start <= assigned <= cycle_end

    if in_by_date and assigned is not None and not in_by_bill:
        return Membership.DEFERRED_OUT
    if in_by_bill and not in_by_date:
        return Membership.DEFERRED_IN
    if in_by_date:
        return Membership.PRIMARY
    return Membership.NONE


def is_payment(entry: LedgerEntry, account_id: int) -> bool:
    """A transfer from another account onto the card."""
    return (
        entry.kind == EntryKind.TRANSFER
        and entry.to_account_id == account_id
        and entry.account_id != account_id
    )


def is_cash_advance(entry: LedgerEntry, account_id: int) -> bool:
    return entry.kind == EntryKind.TRANSFER and entry.account_id == account_id


def bill_contribution(entry: LedgerEntry) -> Decimal:
    """Amount an entry adds to a card bill; crediting kinds reduce it."""
    if entry.kind in CREDITING_KINDS:
        return -entry.amount
    return entry.amount + entry.fee


def cycle_total(items: Iterable[CycleEntry]) -> Decimal:
    """Sum the billed items of a cycle, rounded to cents."""
    total = sum(
        (bill_contribution(item.entry) for item in items if item.counts_toward_total),
        Decimal("0"),
    )
    return round_money(total)


def cycle_status(items: Iterable[CycleEntry]) -> CycleStatus:
    actionable = [item for item in items if item.membership != Membership.DEFERRED_OUT]
    if not actionable:
        return CycleStatus.CONFIRMED
    reconciled = sum(1 for item in actionable if item.entry.reconciled)
    if reconciled == 0:
        return CycleStatus.UNRECONCILED
    if reconciled < len(actionable):
        return CycleStatus.PENDING
    return CycleStatus.CONFIRMED


def cycle_items(
    entries: Iterable[LedgerEntry], account_id: int, cycle_start: date, cycle_end: date
) -> list[CycleEntry]:
    """Return the entries that belong to a cycle window, with their membership."""
    items = []
    for entry in entries:
        if entry.schedule_state == ScheduleState.SKIPPED:
            continue
        membership = classify_membership(entry, cycle_start, cycle_end)
        if membership == Membership.NONE:
            continue
        items.append(
            CycleEntry(
                entry=entry,
                membership=membership,
                is_payment=is_payment(entry, account_id),
                is_cash_advance=is_cash_advance(entry, account_id),
            )
        )
    return items


def cycle_end_on_or_after(day: date, bill_day: int) -> date:
    end = date_for_day(day.year, day.month, bill_day)
    if end < day:
        year, month = add_months(day.year, day.month, 1)
        end = date_for_day(year, month, bill_day)
    return end


def cycle_start_for(cycle_end: date, bill_day: int) -> date:
    """First day of the cycle closing on ``cycle_end``."""
    year, month = add_months(cycle_end.year, cycle_end.month, -1)
    return date_for_day(year, month, bill_day) + timedelta(days=1)


class BillingCycleAssembler:
    """Partitions a credit account's entries into billing cycles."""

    def __init__(self, db: Database):
        """Initialize assembler.

        Args:
            db: Database instance
        """
        self.db = db

    def require_bill_day(self, account_id: int):
        """Return the credit account and its bill day.

        Raises:
            NotFoundError: If the account is missing or not a credit account
            ValidationError: If the account has no bill day
        """
        account = self.db.get_account(account_id)
        if account is None or not account.is_credit:
            raise NotFoundError(credit_account_not_found(account_id))
        if account.bill_day is None:
            raise ValidationError(bill_day_not_set(account_id))
        return account, account.bill_day

    def assemble(self, account_id: int, today: Optional[date] = None) -> list[BillingPeriod]:
        """Build the billing cycles of a credit account, newest first.

        Cycles run from the one holding the earliest entry up to two months
        past today; cycles without entries are left out.
        """
        today = today or date.today()
        _, bill_day = self.require_bill_day(account_id)

        entries = self.db.list_entries(account_ids=[account_id], involving=True)
        if not entries:
            return []

        earliest = min(min(e.occurred_at, e.billing_date) for e in entries)
        limit_year, limit_month = add_months(today.year, today.month, LOOKAHEAD_MONTHS)
        limit = date_for_day(limit_year, limit_month, today.day)

        periods = []
        cycle_end = cycle_end_on_or_after(earliest, bill_day)
        while cycle_end <= limit:
            cycle_start = cycle_start_for(cycle_end, bill_day)
            items = cycle_items(entries, account_id, cycle_start, cycle_end)
            if items:
                statement = self.db.get_statement_for_cycle(account_id, cycle_end)
                periods.append(
                    BillingPeriod(
                        cycle_start=cycle_start,
                        cycle_end=cycle_end,
                        entries=tuple(items),
                        total_amount=cycle_total(items),
                        status=cycle_status(items),
                        statement_id=statement.id if statement else None,
                    )
                )
            year, month = add_months(cycle_end.year, cycle_end.month, 1)
            cycle_end = date_for_day(year, month, bill_day)

        periods.reverse()
        return periods
