"""Domain model entities for ledgerly.

These are pure data classes representing business concepts, independent of
database schema. Services build and return these; the database layer maps its
ORM rows onto them so no ORM defaults or hooks leak into the domain.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional


class EntryKind(str, Enum):
    """Kind of a ledger entry; decides the sign of its balance delta."""

    EXPENSE = "expense"
    INCOME = "income"
    TRANSFER = "transfer"
    RECEIVABLE = "receivable"
    PAYABLE = "payable"
    BALANCE_ADJUSTMENT = "balance_adjustment"
    REFUND = "refund"
    INTEREST = "interest"
    REWARD = "reward"
    DISCOUNT = "discount"


class AccountKind(str, Enum):
    PHYSICAL = "physical"
    CREDIT = "credit"


class ScheduleState(str, Enum):
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    SKIPPED = "skipped"


class PlanKind(str, Enum):
    INSTALLMENT = "installment"
    RECURRING = "recurring"


class Frequency(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class PlanStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    PAUSED = "paused"


class StatementStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PAID = "paid"


class CycleStatus(str, Enum):
    """Reconciliation progress of an assembled billing cycle."""

    UNRECONCILED = "unreconciled"
    PENDING = "pending"
    CONFIRMED = "confirmed"


class Membership(str, Enum):
    """How an entry relates to a billing cycle window."""

    PRIMARY = "primary"
    DEFERRED_IN = "deferred_in"
    DEFERRED_OUT = "deferred_out"
    NONE = "none"


class CashflowStatus(str, Enum):
    OK = "ok"
    TIGHT = "tight"
    NEGATIVE = "negative"


# Kinds that reduce what is owed on a card bill instead of adding to it.
CREDITING_KINDS = frozenset(
    {
        EntryKind.REFUND,
        EntryKind.REWARD,
        EntryKind.DISCOUNT,
        EntryKind.BALANCE_ADJUSTMENT,
    }
)


@dataclass(frozen=True)
class Account:
    """Account domain entity (bank/cash style or credit card)."""

    id: int
    name: str
    kind: AccountKind
    initial_balance: Decimal
    include_in_stats: bool
    created_at: datetime
    group: str = ""
    bill_day: Optional[int] = None
    pay_day: Optional[int] = None
    credit_limit: Optional[Decimal] = None

    @property
    def is_credit(self) -> bool:
        return self.kind == AccountKind.CREDIT


@dataclass(frozen=True)
class PlanRef:
    """Link from a generated entry back to its plan period."""

    plan_id: int
    period_index: int


@dataclass(frozen=True)
class LedgerEntry:
    """Ledger entry domain entity.

    The amounts and dates are the financial fact; ``schedule_state``,
    ``statement_id``, ``reconciled`` and ``billing_assignment`` are the
    mutable metadata maintained by scheduling and reconciliation.
    """

    id: int
    kind: EntryKind
    amount: Decimal
    account_id: int
    occurred_at: date
    created_at: datetime
    fee: Decimal = Decimal("0")
    discount: Decimal = Decimal("0")
    to_account_id: Optional[int] = None
    billing_assignment: Optional[date] = None
    category: str = ""
    subcategory: Optional[str] = None
    note: str = ""
    merchant: Optional[str] = None
    counterparty: Optional[str] = None
    plan_id: Optional[int] = None
    period_index: Optional[int] = None
    schedule_state: Optional[ScheduleState] = None
    statement_id: Optional[int] = None
    reconciled: bool = False

    @property
    def plan_ref(self) -> Optional[PlanRef]:
        if self.plan_id is None or self.period_index is None:
            return None
        return PlanRef(plan_id=self.plan_id, period_index=self.period_index)

    @property
    def billing_date(self) -> date:
        """Date that decides billing-period membership."""
        return self.billing_assignment or self.occurred_at

    def touches(self, account_id: int) -> bool:
        return self.account_id == account_id or self.to_account_id == account_id


@dataclass(frozen=True)
class LedgerEntryDraft:
    """Fully populated ledger entry that has not been stored yet."""

    kind: EntryKind
    amount: Decimal
    account_id: int
    occurred_at: date
    fee: Decimal = Decimal("0")
    discount: Decimal = Decimal("0")
    to_account_id: Optional[int] = None
    billing_assignment: Optional[date] = None
    category: str = ""
    subcategory: Optional[str] = None
    note: str = ""
    merchant: Optional[str] = None
    counterparty: Optional[str] = None
    plan_id: Optional[int] = None
    period_index: Optional[int] = None
    schedule_state: Optional[ScheduleState] = None


@dataclass(frozen=True)
class PaymentPlan:
    """Installment or recurring payment plan domain entity."""

    id: int
    name: str
    kind: PlanKind
    amount: Decimal
    frequency: Frequency
    payment_day: int
    start_date: date
    account_id: int
    category: str
    status: PlanStatus
    created_at: datetime
    total_periods: Optional[int] = None
    total_amount: Optional[Decimal] = None
    subcategory: Optional[str] = None
    counterparty: Optional[str] = None
    note: Optional[str] = None


@dataclass(frozen=True)
class Statement:
    """Credit card statement for one billing cycle."""

    id: int
    account_id: int
    billing_cycle_start: date
    billing_cycle_end: date
    due_date: date
    status: StatementStatus
    statement_amount: Optional[Decimal] = None
    paid_amount: Optional[Decimal] = None
    paid_date: Optional[date] = None
    note: Optional[str] = None


@dataclass(frozen=True)
class AccountBalance:
    account: Account
    balance: Decimal
    available_credit: Optional[Decimal] = None


@dataclass(frozen=True)
class BalanceSummary:
    """Balances of every account plus a net-worth summary."""

    balances: tuple[AccountBalance, ...]
    total_assets: Decimal
    total_liabilities: Decimal
    net_worth: Decimal


@dataclass(frozen=True)
class GenerationDetail:
    plan_id: int
    plan_name: str
    records_created: int


@dataclass(frozen=True)
class GenerationResult:
    total_created: int
    details: tuple[GenerationDetail, ...] = ()


@dataclass(frozen=True)
class PlanSummary:
    """Progress of a plan derived from its linked entries."""

    plan: PaymentPlan
    entries: tuple[LedgerEntry, ...]
    total_periods: int
    paid_count: int
    scheduled_count: int
    paid_amount: Decimal
    scheduled_amount: Decimal
    total_amount: Decimal
    unpaid_amount: Decimal


@dataclass(frozen=True)
class PlanDeletion:
    plan_name: str
    deleted_scheduled: int
    detached: int


@dataclass(frozen=True)
class CycleEntry:
    """An entry as it appears inside one billing cycle."""

    entry: LedgerEntry
    membership: Membership
    is_payment: bool = False
    is_cash_advance: bool = False

    @property
    def counts_toward_total(self) -> bool:
        return self.membership != Membership.DEFERRED_OUT and not self.is_payment


@dataclass(frozen=True)
class BillingPeriod:
    cycle_start: date
    cycle_end: date
    entries: tuple[CycleEntry, ...]
    total_amount: Decimal
    status: CycleStatus
    statement_id: Optional[int] = None


@dataclass(frozen=True)
class ReconciliationResult:
    statement: Statement
    confirmed_total: Decimal


@dataclass(frozen=True)
class StatementView:
    """Statement enriched with the total of its reconciled entries."""

    statement: Statement
    confirmed_total: Decimal
    difference: Decimal


@dataclass(frozen=True)
class StatementEntries:
    """Entries bound to a statement plus unbound candidates around its cycle."""

    view: StatementView
    confirmed: tuple[LedgerEntry, ...]
    candidates: tuple[LedgerEntry, ...]


@dataclass(frozen=True)
class BillAmount:
    amount: Decimal
    estimated: bool


@dataclass(frozen=True)
class EntryDetail:
    """Drill-down line for report groups."""

    entry_id: int
    date: date
    amount: Decimal
    note: str = ""
    merchant: str = ""
    subcategory: str = ""
    counterparty: str = ""


@dataclass(frozen=True)
class CategoryGroup:
    category: str
    amount: Decimal
    entries: tuple[EntryDetail, ...] = ()
    subcategory: str = ""


@dataclass(frozen=True)
class PlanItem:
    name: str
    category: str
    subcategory: str
    amount: Decimal


@dataclass(frozen=True)
class CreditCardBill:
    account_id: int
    account_name: str
    cycle_start: date
    cycle_end: date
    due_date: date
    bill_amount: Decimal
    estimated: bool
    plan_items: tuple[PlanItem, ...] = ()
    plan_total: Decimal = Decimal("0")
    other_by_category: tuple[CategoryGroup, ...] = ()
    other_total: Decimal = Decimal("0")


@dataclass(frozen=True)
class AdjustmentItem:
    date: date
    kind: str
    note: str
    amount: Decimal


@dataclass(frozen=True)
class DailyBalance:
    date: date
    income: Decimal
    direct_expense: Decimal
    credit_bill_payment: Decimal
    fixed_expense: Decimal
    expense: Decimal
    net: Decimal
    running_balance: Decimal


@dataclass(frozen=True)
class CashflowReport:
    """Month-level cashflow waterfall with a ledger-accurate daily balance."""

    year: int
    month: int
    period_start: date
    period_end: date
    opening_balance: Decimal
    closing_balance: Decimal
    total_income: Decimal
    income: tuple[CategoryGroup, ...]
    direct_total: Decimal
    direct_expense: tuple[CategoryGroup, ...]
    credit_bills_total: Decimal
    credit_card_bills: tuple[CreditCardBill, ...]
    fixed_total: Decimal
    fixed_expenses: tuple[CategoryGroup, ...]
    adjustments_total: Decimal
    adjustments: tuple[AdjustmentItem, ...]
    total_expenses: Decimal
    net: Decimal
    status: CashflowStatus
    daily_balance: tuple[DailyBalance, ...] = field(default_factory=tuple)
