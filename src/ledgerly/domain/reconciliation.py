"""Credit card statement reconciliation."""

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Optional

from ledgerly.database.base import Database, UNSET
from ledgerly.domain.billing import (
    bill_contribution,
    cycle_items,
    is_payment,
)
from ledgerly.domain.entities import (
    BillAmount,
    EntryKind,
    Membership,
    ReconciliationResult,
    ScheduleState,
    Statement,
    StatementEntries,
    StatementStatus,
    StatementView,
)
from ledgerly.domain.errors import (
    NotFoundError,
    ValidationError,
    credit_account_not_found,
    entries_not_on_account,
    statement_not_found,
)
from ledgerly.utils.amount_parser import round_money
from ledgerly.utils.date_parser import add_months, date_for_day

logger = logging.getLogger(__name__)

CANDIDATE_MARGIN_DAYS = 7


def compute_due_date(cycle_end: date, day: int) -> date:
    """Return the first ``day`` of month strictly after ``cycle_end``."""
    due = date_for_day(cycle_end.year, cycle_end.month, day)
    if due <= cycle_end:
        year, month = add_months(cycle_end.year, cycle_end.month, 1)
        due = date_for_day(year, month, day)
    return due


class ReconciliationService:
    """Tracks confirm/defer decisions per billing cycle and their statements."""

    def __init__(self, db: Database):
        """Initialize reconciliation service.

        Args:
            db: Database instance
        """
        self.db = db

    def save(
        self,
        account_id: int,
        cycle_start: date,
        cycle_end: date,
        confirmed_ids: Iterable[int] = (),
        deferred_ids: Iterable[int] = (),
    ) -> ReconciliationResult:
        """Record which entries belong to a cycle's statement.

        Confirmed entries are bound to the statement; deferred entries move
        to the next cycle; entries previously bound but now in neither list
        are released. The statement amount and status are recomputed from
        the result, so saving the same decision twice changes nothing.

        Args:
            account_id: Credit account ID
            cycle_start: First day of the cycle
            cycle_end: Statement closing day of the cycle
            confirmed_ids: Entries to confirm
            deferred_ids: Entries to defer

        Returns:
            ReconciliationResult with the saved statement

        Raises:
            NotFoundError: If the credit account doesn't exist
            ValidationError: If the cycle or the id lists are invalid
        """
        account = self.db.get_account(account_id)
        if account is None or not account.is_credit:
            raise NotFoundError(credit_account_not_found(account_id))
        if cycle_start > cycle_end:
            raise ValidationError("Cycle start must not be after cycle end")

        confirmed = set(confirmed_ids)
        deferred = set(deferred_ids)
        overlap = confirmed & deferred
        if overlap:
            ids = ", ".join(str(i) for i in sorted(overlap))
            raise ValidationError(f"Entries cannot be both confirmed and deferred: {ids}")

        invalid = []
        for entry_id in confirmed | deferred:
            entry = self.db.get_entry(entry_id)
            if entry is None or not entry.touches(account_id):
                invalid.append(entry_id)
        if invalid:
            raise ValidationError(entries_not_on_account(account_id, invalid))

        due_date = compute_due_date(cycle_end, account.pay_day or account.bill_day or 1)
        statement_id = self.db.save_reconciliation(
            account_id=account_id,
            cycle_start=cycle_start,
            cycle_end=cycle_end,
            due_date=due_date,
            confirmed_ids=confirmed,
            deferred_ids=deferred,
            deferred_to=cycle_end + timedelta(days=1),
        )

        total = self.confirmed_total(statement_id, account_id)
        status = self._statement_status(account_id, cycle_start, cycle_end)
        self.db.update_statement(statement_id, statement_amount=total, status=status)
        logger.info(
            "Saved statement %s for account %s: %d confirmed, %d deferred, total %s (%s)",
            statement_id,
            account_id,
            len(confirmed),
            len(deferred),
            total,
            status.value,
        )
        return ReconciliationResult(statement=self.db.get_statement(statement_id), confirmed_total=total)

    def confirmed_total(self, statement_id: int, account_id: int) -> Decimal:
        """Total of the reconciled entries bound to a statement, rounded."""
        entries = self.db.list_entries(statement_id=statement_id, reconciled=True)
        total = sum(
            (bill_contribution(e) for e in entries if not is_payment(e, account_id)),
            Decimal("0"),
        )
        return round_money(total)

    def _statement_status(self, account_id: int, cycle_start: date, cycle_end: date) -> StatementStatus:
        entries = self.db.list_entries(account_ids=[account_id], involving=True)
        items = [
            item
            for item in cycle_items(entries, account_id, cycle_start, cycle_end)
            if item.membership in (Membership.PRIMARY, Membership.DEFERRED_IN)
        ]
        if all(item.entry.reconciled for item in items):
            return StatementStatus.CONFIRMED
        return StatementStatus.PENDING

    def bill_amount(self, account_id: int, cycle_start: date, cycle_end: date) -> BillAmount:
        """Return the statement amount of a cycle, or an estimate.

        The estimate sums card expenses billed in the window, including plan
        entries that are still scheduled.
        """
        statement = self.db.get_statement_for_cycle(account_id, cycle_end)
        if statement is not None and statement.statement_amount is not None:
            return BillAmount(amount=statement.statement_amount, estimated=False)

        entries = self.db.list_entries(account_ids=[account_id], kinds=[EntryKind.EXPENSE])
        estimate = sum(
            (
                e.amount + e.fee
                for e in entries
                if e.schedule_state != ScheduleState.SKIPPED
                and cycle_start <= e.billing_date <= cycle_end
            ),
            Decimal("0"),
        )
        return BillAmount(amount=round_money(estimate), estimated=True)

    def _view(self, statement: Statement) -> StatementView:
        total = self.confirmed_total(statement.id, statement.account_id)
        difference = Decimal("0.00")
        if statement.statement_amount is not None:
            difference = round_money(statement.statement_amount - total)
        return StatementView(statement=statement, confirmed_total=total, difference=difference)

    def list_statements(self, account_id: Optional[int] = None) -> list[StatementView]:
        """List statements with their confirmed totals, newest first."""
        return [self._view(s) for s in self.db.list_statements(account_id)]

    def update_statement(
        self,
        statement_id: int,
        statement_amount=UNSET,
        status: Optional[StatementStatus] = None,
        paid_amount=UNSET,
        paid_date=UNSET,
        note=UNSET,
    ) -> StatementView:
        """Record the issued amount or payment of a statement.

        Raises:
            NotFoundError: If statement not found
        """
        if self.db.get_statement(statement_id) is None:
            raise NotFoundError(statement_not_found(statement_id))
        self.db.update_statement(
            statement_id,
            statement_amount=statement_amount,
            status=StatementStatus(status) if status is not None else None,
            paid_amount=paid_amount,
            paid_date=paid_date,
            note=note,
        )
        return self._view(self.db.get_statement(statement_id))

    def statement_entries(self, statement_id: int) -> StatementEntries:
        """Return the entries bound to a statement and the candidates to bind.

        Candidates are unbound entries on the card dated within a week of the
        statement's cycle.

        Raises:
            NotFoundError: If statement not found
        """
        statement = self.db.get_statement(statement_id)
        if statement is None:
            raise NotFoundError(statement_not_found(statement_id))

        confirmed = self.db.list_entries(statement_id=statement_id, reconciled=True)
        margin = timedelta(days=CANDIDATE_MARGIN_DAYS)
        nearby = self.db.list_entries(
            account_ids=[statement.account_id],
            involving=True,
            start_date=statement.billing_cycle_start - margin,
            end_date=statement.billing_cycle_end + margin,
        )
        candidates = [
            e for e in nearby if e.statement_id is None and e.schedule_state != ScheduleState.SKIPPED
        ]
        return StatementEntries(
            view=self._view(statement),
            confirmed=tuple(confirmed),
            candidates=tuple(candidates),
        )

    def set_statement_entries(
        self,
        statement_id: int,
        add_ids: Iterable[int] = (),
        remove_ids: Iterable[int] = (),
    ) -> StatementView:
        """Bind or release individual entries of a statement by hand.

        The issued statement amount is left alone, so the returned difference
        shows what is still unaccounted for.

        Raises:
            NotFoundError: If statement not found
            ValidationError: If an id is in both lists or an added entry is
                not on the statement's card
        """
        statement = self.db.get_statement(statement_id)
        if statement is None:
            raise NotFoundError(statement_not_found(statement_id))

        add = set(add_ids)
        remove = set(remove_ids)
        overlap = add & remove
        if overlap:
            ids = ", ".join(str(i) for i in sorted(overlap))
            raise ValidationError(f"Entries cannot be both added and removed: {ids}")

        invalid = []
        for entry_id in add:
            entry = self.db.get_entry(entry_id)
            if entry is None or not entry.touches(statement.account_id):
                invalid.append(entry_id)
        if invalid:
            raise ValidationError(entries_not_on_account(statement.account_id, invalid))

        self.db.bind_statement_entries(statement_id, add_ids=add, remove_ids=remove)
        logger.info(
            "Statement %s: bound %d, released up to %d entries", statement_id, len(add), len(remove)
        )
        return self._view(self.db.get_statement(statement_id))
