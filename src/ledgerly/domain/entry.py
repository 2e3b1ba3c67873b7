"""Ledger entry domain service."""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from ledgerly.database.base import Database
from ledgerly.domain.entities import (
    EntryKind,
    LedgerEntry as LedgerEntryEntity,
    LedgerEntryDraft,
)
from ledgerly.domain.errors import (
    NotFoundError,
    ValidationError,
    account_not_found,
    entry_not_found,
)

logger = logging.getLogger(__name__)


class EntryService:
    """Service for recording and querying manual ledger entries."""

    def __init__(self, db: Database):
        """Initialize entry service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_entry(
        self,
        kind: EntryKind,
        amount: Decimal,
        account_id: int,
        occurred_at: date,
        fee: Decimal = Decimal("0"),
        discount: Decimal = Decimal("0"),
        to_account_id: Optional[int] = None,
        billing_assignment: Optional[date] = None,
        category: str = "",
        subcategory: Optional[str] = None,
        note: str = "",
        merchant: Optional[str] = None,
        counterparty: Optional[str] = None,
    ) -> int:
        """Create a ledger entry.

        Args:
            kind: Entry kind
            amount: Amount; only balance adjustments may be negative
            account_id: Account the entry is booked on
            occurred_at: Real-world transaction date
            fee: Non-negative fee charged on the booking account
            discount: Non-negative discount, kept for reference
            to_account_id: Receiving account of a transfer
            billing_assignment: Billing date override for card cycles
            category: Category name
            subcategory: Optional subcategory
            note: Free-form note
            merchant: Optional merchant
            counterparty: Optional counterparty

        Returns:
            Entry ID

        Raises:
            ValidationError: If amounts or the transfer target are invalid
            NotFoundError: If a referenced account doesn't exist
        """
        kind = EntryKind(kind)
        if amount < 0 and kind != EntryKind.BALANCE_ADJUSTMENT:
            raise ValidationError(f"Amount must not be negative for {kind.value} entries")
        if fee < 0:
            raise ValidationError("Fee must not be negative")
        if discount < 0:
            raise ValidationError("Discount must not be negative")

        if to_account_id is not None:
            if kind != EntryKind.TRANSFER:
                raise ValidationError("Only transfers can have a receiving account")
            if to_account_id == account_id:
                raise ValidationError("Cannot transfer to the same account")
        elif kind == EntryKind.TRANSFER:
            raise ValidationError("Transfers need a receiving account")

        if self.db.get_account(account_id) is None:
            raise NotFoundError(account_not_found(account_id))
        if to_account_id is not None and self.db.get_account(to_account_id) is None:
            raise NotFoundError(account_not_found(to_account_id))

        draft = LedgerEntryDraft(
            kind=kind,
            amount=amount,
            account_id=account_id,
            occurred_at=occurred_at,
            fee=fee,
            discount=discount,
            to_account_id=to_account_id,
            billing_assignment=billing_assignment,
            category=category,
            subcategory=subcategory,
            note=note,
            merchant=merchant,
            counterparty=counterparty,
        )
        entry_id = self.db.create_entry(draft)
        logger.info("Recorded %s of %s on account %s (id=%s)", kind.value, amount, account_id, entry_id)
        return entry_id

    def get_entry(self, entry_id: int) -> Optional[LedgerEntryEntity]:
        """Get entry by ID."""
        return self.db.get_entry(entry_id)

    def list_entries(
        self,
        account_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        kind: Optional[EntryKind] = None,
        plan_id: Optional[int] = None,
    ) -> list[LedgerEntryEntity]:
        """List entries, oldest first.

        An account filter matches entries booked on the account as well as
        transfers into it.
        """
        return self.db.list_entries(
            account_ids=[account_id] if account_id is not None else None,
            involving=True,
            start_date=start_date,
            end_date=end_date,
            kinds=[kind] if kind is not None else None,
            plan_id=plan_id,
        )

    def delete_entry(self, entry_id: int) -> None:
        """Delete an entry.

        Raises:
            NotFoundError: If entry not found
        """
        if self.db.get_entry(entry_id) is None:
            raise NotFoundError(entry_not_found(entry_id))
        self.db.delete_entry(entry_id)
        logger.info("Deleted entry %s", entry_id)
