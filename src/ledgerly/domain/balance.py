"""Ledger replay for point-in-time account balances."""

from datetime import date
from decimal import Decimal

from ledgerly.database.base import Database
from ledgerly.domain.entities import Account, EntryKind, LedgerEntry, ScheduleState
from ledgerly.domain.errors import NotFoundError, account_not_found

# Kinds that add their amount when booked on a physical account
_PHYSICAL_CREDITS = frozenset(
    {
        EntryKind.INCOME,
        EntryKind.RECEIVABLE,
        EntryKind.REFUND,
        EntryKind.REWARD,
        EntryKind.DISCOUNT,
        EntryKind.BALANCE_ADJUSTMENT,
    }
)
_PHYSICAL_DEBITS = frozenset(
    {EntryKind.EXPENSE, EntryKind.TRANSFER, EntryKind.PAYABLE, EntryKind.INTEREST}
)

_CREDIT_CREDITS = frozenset(
    {EntryKind.REFUND, EntryKind.REWARD, EntryKind.DISCOUNT, EntryKind.BALANCE_ADJUSTMENT}
)
_CREDIT_DEBITS = frozenset({EntryKind.EXPENSE, EntryKind.TRANSFER, EntryKind.INTEREST})


def entry_delta(entry: LedgerEntry, account: Account) -> Decimal:
    """Return how much ``entry`` moves the balance of ``account``.

    An entry that does not touch the account contributes nothing. A transfer
    to the same account it was booked on contributes both legs.
    """
    delta = Decimal("0")

    if entry.account_id == account.id:
        if account.is_credit:
            if entry.kind in _CREDIT_CREDITS:
                delta += entry.amount
            elif entry.kind in _CREDIT_DEBITS:
                delta -= entry.amount
        else:
            if entry.kind in _PHYSICAL_CREDITS:
                delta += entry.amount
            elif entry.kind in _PHYSICAL_DEBITS:
                delta -= entry.amount
        delta -= entry.fee

    if entry.to_account_id == account.id and entry.kind == EntryKind.TRANSFER:
        delta += entry.amount

    return delta


def moves_money(entry: LedgerEntry, include_scheduled: bool = False) -> bool:
    """Return True if the entry counts toward actual balances."""
    if entry.schedule_state == ScheduleState.SKIPPED:
        return False
    if entry.schedule_state == ScheduleState.SCHEDULED:
        return include_scheduled
    return True


class LedgerBalanceCalculator:
    """Derives account balances by replaying the ledger."""

    def __init__(self, db: Database):
        """Initialize balance calculator.

        Args:
            db: Database instance
        """
        self.db = db

    def balance_as_of(
        self, account_id: int, cutoff: date, exclude_scheduled: bool = True
    ) -> Decimal:
        """Return the unrounded balance from entries strictly before ``cutoff``.

        Args:
            account_id: Account ID
            cutoff: Exclusive date bound
            exclude_scheduled: Ignore entries still in the scheduled state

        Returns:
            Initial balance plus the sum of entry deltas

        Raises:
            NotFoundError: If account not found
        """
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))

        entries = self.db.list_entries(account_ids=[account_id], involving=True, before=cutoff)
        balance = account.initial_balance
        for entry in entries:
            if not moves_money(entry, include_scheduled=not exclude_scheduled):
                continue
            balance += entry_delta(entry, account)
        return balance
