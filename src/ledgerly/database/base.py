"""Abstract database interface."""

from abc import ABC, abstractmethod
from typing import Optional, Iterable
from datetime import date
from decimal import Decimal

# Import entities directly; domain/__init__.py does not import services eagerly
from ledgerly.domain.entities import (
    Account,
    AccountKind,
    EntryKind,
    LedgerEntry,
    LedgerEntryDraft,
    PaymentPlan,
    PlanKind,
    PlanStatus,
    Frequency,
    ScheduleState,
    Statement,
    StatementStatus,
)

# Sentinel for update methods where None is a meaningful value
UNSET = object()


class Database(ABC):
    """Abstract database interface for ledgerly."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Account operations
    @abstractmethod
    def create_account(
        self,
        name: str,
        kind: AccountKind,
        initial_balance: Decimal = Decimal("0"),
        group: str = "",
        include_in_stats: bool = True,
        bill_day: Optional[int] = None,
        pay_day: Optional[int] = None,
        credit_limit: Optional[Decimal] = None,
    ) -> int:
        """Create a new account. Returns account ID."""
        pass

    @abstractmethod
    def get_account(self, account_id: int) -> Optional[Account]:
        """Get account by ID."""
        pass

    @abstractmethod
    def list_accounts(self) -> list[Account]:
        """List all accounts."""
        pass

    # Ledger entry operations
    @abstractmethod
    def create_entry(self, draft: LedgerEntryDraft) -> int:
        """Store a single ledger entry. Returns entry ID."""
        pass

    @abstractmethod
    def get_entry(self, entry_id: int) -> Optional[LedgerEntry]:
        """Get ledger entry by ID."""
        pass

    @abstractmethod
    def list_entries(
        self,
        account_ids: Optional[Iterable[int]] = None,
        involving: bool = False,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        before: Optional[date] = None,
        kinds: Optional[Iterable[EntryKind]] = None,
        plan_id: Optional[int] = None,
        schedule_state: Optional[ScheduleState] = None,
        statement_id: Optional[int] = None,
        reconciled: Optional[bool] = None,
    ) -> list[LedgerEntry]:
        """List ledger entries with optional filters, oldest first.

        Args:
            account_ids: Restrict to entries booked on these accounts
            involving: If True, also match entries whose to_account is in account_ids
            start_date: Optional inclusive lower bound on occurred_at
            end_date: Optional inclusive upper bound on occurred_at
            before: Optional exclusive upper bound on occurred_at
            kinds: Restrict to these entry kinds
            plan_id: Restrict to entries generated for this plan
            schedule_state: Restrict to entries in this schedule state
            statement_id: Restrict to entries bound to this statement
            reconciled: Restrict by reconciled flag
        """
        pass

    @abstractmethod
    def delete_entry(self, entry_id: int) -> None:
        """Delete a ledger entry."""
        pass

    @abstractmethod
    def update_entry(
        self,
        entry_id: int,
        amount: Optional[Decimal] = None,
        occurred_at: Optional[date] = None,
        billing_assignment=UNSET,
        note: Optional[str] = None,
    ) -> None:
        """Update entry fields that are provided; billing_assignment may be set to None."""
        pass

    @abstractmethod
    def set_schedule_state(self, entry_id: int, state: ScheduleState) -> None:
        """Set the schedule state of a plan entry."""
        pass

    # Plan entry operations
    @abstractmethod
    def get_plan_period_indexes(self, plan_id: int) -> set[int]:
        """Return the period indexes that already have an entry for the plan."""
        pass

    @abstractmethod
    def insert_plan_entries(self, drafts: list[LedgerEntryDraft]) -> int:
        """Insert plan entries with insert-if-absent semantics.

        Entries colliding on (plan_id, period_index) are skipped silently.
        Returns the number of rows actually inserted.
        """
        pass

    @abstractmethod
    def count_plan_entries(self, plan_id: int, state: Optional[ScheduleState] = None) -> int:
        """Count entries linked to a plan, optionally in one schedule state."""
        pass

    # Payment plan operations
    @abstractmethod
    def create_plan(
        self,
        name: str,
        kind: PlanKind,
        amount: Decimal,
        frequency: Frequency,
        payment_day: int,
        start_date: date,
        account_id: int,
        category: str,
        total_periods: Optional[int] = None,
        total_amount: Optional[Decimal] = None,
        subcategory: Optional[str] = None,
        counterparty: Optional[str] = None,
        note: Optional[str] = None,
        status: PlanStatus = PlanStatus.ACTIVE,
    ) -> int:
        """Create a payment plan. Returns plan ID."""
        pass

    @abstractmethod
    def get_plan(self, plan_id: int) -> Optional[PaymentPlan]:
        """Get payment plan by ID."""
        pass

    @abstractmethod
    def list_plans(
        self, status: Optional[PlanStatus] = None, kind: Optional[PlanKind] = None
    ) -> list[PaymentPlan]:
        """List payment plans, newest first."""
        pass

    @abstractmethod
    def update_plan(
        self,
        plan_id: int,
        total_periods: Optional[int] = None,
        total_amount: Optional[Decimal] = None,
        status: Optional[PlanStatus] = None,
        name: Optional[str] = None,
        account_id: Optional[int] = None,
        category: Optional[str] = None,
        subcategory=UNSET,
        counterparty=UNSET,
        note=UNSET,
    ) -> None:
        """Update plan fields that are provided.

        Nullable fields use UNSET for "leave untouched" so they can be cleared.
        """
        pass

    @abstractmethod
    def delete_plan(self, plan_id: int) -> tuple[int, int]:
        """Delete a plan in one transaction.

        Scheduled entries of the plan are deleted, the remaining entries lose
        their plan link and the plan row is removed. Nothing is written if any
        step fails.

        Returns:
            Tuple of (scheduled entries deleted, entries detached)
        """
        pass

    # Statement operations
    @abstractmethod
    def get_statement(self, statement_id: int) -> Optional[Statement]:
        """Get statement by ID."""
        pass

    @abstractmethod
    def get_statement_for_cycle(self, account_id: int, cycle_end: date) -> Optional[Statement]:
        """Get the statement of an account's billing cycle."""
        pass

    @abstractmethod
    def list_statements(self, account_id: Optional[int] = None) -> list[Statement]:
        """List statements, newest cycle first."""
        pass

    @abstractmethod
    def update_statement(
        self,
        statement_id: int,
        statement_amount=UNSET,
        status: Optional[StatementStatus] = None,
        paid_amount=UNSET,
        paid_date=UNSET,
        note=UNSET,
    ) -> None:
        """Update statement fields; fields left as UNSET are untouched."""
        pass

    @abstractmethod
    def save_reconciliation(
        self,
        account_id: int,
        cycle_start: date,
        cycle_end: date,
        due_date: date,
        confirmed_ids: set[int],
        deferred_ids: set[int],
        deferred_to: date,
    ) -> int:
        """Upsert a cycle's statement and apply the three-way partition atomically.

        In one transaction: the statement keyed by (account_id, cycle_end) is
        created or updated and reset to pending; entries bound to it but in
        neither id set are unbound; confirmed ids are bound and reconciled;
        deferred ids get billing_assignment = deferred_to and are unbound.

        Returns the statement ID.
        """
        pass

    @abstractmethod
    def bind_statement_entries(
        self, statement_id: int, add_ids: set[int], remove_ids: set[int]
    ) -> None:
        """Bind and unbind entries of a statement in one transaction.

        Added entries are bound and reconciled; removed entries are released
        only if they are currently bound to this statement.
        """
        pass
