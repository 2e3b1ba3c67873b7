"""Payment plan domain service."""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from ledgerly.database.base import Database, UNSET
from ledgerly.domain.account import validate_day
from ledgerly.domain.entities import (
    Frequency,
    GenerationDetail,
    GenerationResult,
    LedgerEntry,
    LedgerEntryDraft,
    PaymentPlan as PaymentPlanEntity,
    PlanDeletion,
    PlanKind,
    PlanStatus,
    PlanSummary,
    ScheduleState,
)
from ledgerly.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    account_not_found,
    plan_entry_not_found,
    plan_not_found,
)
from ledgerly.domain.scheduler import (
    PeriodScheduler,
    entry_kind_for,
    period_date,
    period_note,
    total_periods,
)

logger = logging.getLogger(__name__)

EXTENSION_PERIODS = 12


class PlanService:
    """Service for installment and recurring payment plans."""

    def __init__(self, db: Database):
        """Initialize plan service.

        Args:
            db: Database instance
        """
        self.db = db
        self.scheduler = PeriodScheduler(db)

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
        subcategory: Optional[str] = None,
        counterparty: Optional[str] = None,
        note: Optional[str] = None,
        today: Optional[date] = None,
    ) -> tuple[PaymentPlanEntity, int]:
        """Create a plan and backfill its entries.

        Args:
            name: Plan name
            kind: Installment or recurring
            amount: Amount per period
            frequency: Weekly, monthly or yearly
            payment_day: Day of month for monthly plans (1-28)
            start_date: Date of period 0
            account_id: Account the entries are booked on
            category: Category of generated entries
            total_periods: Number of periods; required for installments
            subcategory: Optional subcategory
            counterparty: Optional counterparty
            note: Optional note
            today: Reference date for confirmed/scheduled state

        Returns:
            Tuple of (plan, records created)

        Raises:
            ValidationError: If the plan definition is invalid
            NotFoundError: If the account doesn't exist
        """
        kind = PlanKind(kind)
        frequency = Frequency(frequency)
        if not name.strip():
            raise ValidationError("Plan name must not be empty")
        if amount <= 0:
            raise ValidationError("Plan amount must be positive")
        validate_day("payment_day", payment_day)
        if not category:
            raise ValidationError("Plan category must not be empty")

        total_amount = None
        if kind == PlanKind.INSTALLMENT:
            if total_periods is None or total_periods <= 0:
                raise ValidationError("Installment plans need a positive number of periods")
            total_amount = amount * total_periods
        elif total_periods is not None and total_periods <= 0:
            raise ValidationError("Number of periods must be positive")

        if self.db.get_account(account_id) is None:
            raise NotFoundError(account_not_found(account_id))

        plan_id = self.db.create_plan(
            name=name.strip(),
            kind=kind,
            amount=amount,
            frequency=frequency,
            payment_day=payment_day,
            start_date=start_date,
            account_id=account_id,
            category=category,
            total_periods=total_periods,
            total_amount=total_amount,
            subcategory=subcategory,
            counterparty=counterparty,
            note=note,
        )
        plan = self.require_plan(plan_id)
        created = self.scheduler.backfill(plan, today)
        logger.info("Created %s plan %r (id=%s) with %d entries", kind.value, plan.name, plan_id, created)
        return plan, created

    def get_plan(self, plan_id: int) -> Optional[PaymentPlanEntity]:
        """Get plan by ID."""
        return self.db.get_plan(plan_id)

    def require_plan(self, plan_id: int) -> PaymentPlanEntity:
        plan = self.db.get_plan(plan_id)
        if plan is None:
            raise NotFoundError(plan_not_found(plan_id))
        return plan

    def list_plans(
        self, status: Optional[PlanStatus] = None, kind: Optional[PlanKind] = None
    ) -> list[PaymentPlanEntity]:
        """List plans, newest first."""
        return self.db.list_plans(status=status, kind=kind)

    def update_plan(
        self,
        plan_id: int,
        name: Optional[str] = None,
        account_id: Optional[int] = None,
        category: Optional[str] = None,
        subcategory=UNSET,
        counterparty=UNSET,
        note=UNSET,
        status: Optional[PlanStatus] = None,
        today: Optional[date] = None,
    ) -> tuple[PaymentPlanEntity, int]:
        """Edit a plan and backfill any periods it is missing.

        Entries that already exist keep their values; only periods generated
        afterwards pick up the changes. Paused plans are not backfilled.

        Returns:
            Tuple of (updated plan, records created)

        Raises:
            NotFoundError: If the plan or the new account doesn't exist
            ValidationError: If a field is empty or the status change is not allowed
        """
        plan = self.require_plan(plan_id)
        if name is not None:
            name = name.strip()
            if not name:
                raise ValidationError("Plan name must not be empty")
        if category is not None and not category:
            raise ValidationError("Plan category must not be empty")
        if account_id is not None and self.db.get_account(account_id) is None:
            raise NotFoundError(account_not_found(account_id))
        if status is not None:
            status = PlanStatus(status)
            self._check_status_change(plan, status)

        self.db.update_plan(
            plan_id,
            name=name,
            account_id=account_id,
            category=category,
            subcategory=subcategory,
            counterparty=counterparty,
            note=note,
            status=status,
        )
        plan = self.require_plan(plan_id)
        created = 0
        if plan.status == PlanStatus.ACTIVE:
            created = self.scheduler.backfill(plan, today)
        logger.info("Updated plan %s, %d entries generated", plan_id, created)
        return plan, created

    def generate_records(self, today: Optional[date] = None) -> GenerationResult:
        """Backfill every active plan.

        Returns:
            Total created plus one detail per plan that created entries
        """
        details = []
        total = 0
        for plan in self.db.list_plans(status=PlanStatus.ACTIVE):
            created = self.scheduler.backfill(plan, today)
            if created > 0:
                total += created
                details.append(
                    GenerationDetail(plan_id=plan.id, plan_name=plan.name, records_created=created)
                )
        return GenerationResult(total_created=total, details=tuple(details))

    def extend_plan(
        self, plan_id: int, today: Optional[date] = None
    ) -> tuple[PaymentPlanEntity, int]:
        """Add another year of periods to a recurring plan.

        Raises:
            NotFoundError: If plan not found
            ValidationError: If the plan is an installment plan
        """
        plan = self.require_plan(plan_id)
        if plan.kind != PlanKind.RECURRING:
            raise ValidationError("Only recurring plans can be extended")

        new_total = total_periods(plan, today) + EXTENSION_PERIODS
        self.db.update_plan(plan_id, total_periods=new_total)
        plan = self.require_plan(plan_id)
        created = self.scheduler.backfill(plan, today)
        logger.info("Extended plan %s to %d periods", plan_id, new_total)
        return plan, created

    def plan_summary(self, plan_id: int, today: Optional[date] = None) -> PlanSummary:
        """Summarize paid and outstanding periods of a plan."""
        plan = self.require_plan(plan_id)
        entries = self.db.list_entries(plan_id=plan_id)

        paid = [e for e in entries if e.schedule_state == ScheduleState.CONFIRMED]
        scheduled = [e for e in entries if e.schedule_state == ScheduleState.SCHEDULED]
        periods = total_periods(plan, today)
        paid_amount = sum((e.amount for e in paid), Decimal("0"))
        scheduled_amount = sum((e.amount for e in scheduled), Decimal("0"))
        total_amount = plan.total_amount if plan.total_amount is not None else plan.amount * periods

        return PlanSummary(
            plan=plan,
            entries=tuple(entries),
            total_periods=periods,
            paid_count=len(paid),
            scheduled_count=len(scheduled),
            paid_amount=paid_amount,
            scheduled_amount=scheduled_amount,
            total_amount=total_amount,
            unpaid_amount=total_amount - paid_amount,
        )

    def confirm_entry(self, plan_id: int, entry_id: int) -> PlanStatus:
        """Mark a plan entry as paid. Returns the plan status afterwards."""
        return self._set_entry_state(plan_id, entry_id, ScheduleState.CONFIRMED)

    def skip_entry(self, plan_id: int, entry_id: int) -> PlanStatus:
        """Mark a plan entry as skipped. Returns the plan status afterwards."""
        return self._set_entry_state(plan_id, entry_id, ScheduleState.SKIPPED)

    def update_entry(
        self,
        plan_id: int,
        entry_id: int,
        amount: Optional[Decimal] = None,
        occurred_at: Optional[date] = None,
        billing_assignment: Optional[date] = None,
        note: Optional[str] = None,
    ) -> LedgerEntry:
        """Edit one period of a plan.

        Moving the date without giving a billing date moves the billing date
        with it.

        Raises:
            NotFoundError: If the plan or the entry doesn't exist
            ValidationError: If the amount is negative
        """
        self.require_plan(plan_id)
        self._require_plan_entry(plan_id, entry_id)
        if amount is not None and amount < 0:
            raise ValidationError("Amount must not be negative")
        if occurred_at is not None and billing_assignment is None:
            billing_assignment = occurred_at

        self.db.update_entry(
            entry_id,
            amount=amount,
            occurred_at=occurred_at,
            billing_assignment=billing_assignment if billing_assignment is not None else UNSET,
            note=note,
        )
        return self.db.get_entry(entry_id)

    def delete_entry(self, plan_id: int, entry_id: int) -> PlanStatus:
        """Delete one period of a plan. Returns the plan status afterwards.

        The freed period is generated again by the next backfill while the
        plan stays active; skip a period to drop it for good.
        """
        plan = self.require_plan(plan_id)
        self._require_plan_entry(plan_id, entry_id)
        self.db.delete_entry(entry_id)
        logger.info("Deleted entry %s of plan %s", entry_id, plan_id)
        return self._check_completion(plan)

    def add_period(
        self,
        plan_id: int,
        amount: Optional[Decimal] = None,
        occurred_at: Optional[date] = None,
        today: Optional[date] = None,
    ) -> LedgerEntry:
        """Append a period after the last existing one.

        Plans with a fixed number of periods grow to include it; installment
        plans grow their total amount too. A completed plan that gets a new
        scheduled period becomes active again.

        Args:
            plan_id: Plan ID
            amount: Amount of the period; defaults to the plan amount
            occurred_at: Date of the period; defaults to its computed due date
            today: Reference date for confirmed/scheduled state

        Raises:
            NotFoundError: If plan not found
            ValidationError: If the amount is negative
            ConflictError: If the period was stored by another writer first
        """
        plan = self.require_plan(plan_id)
        if amount is not None and amount < 0:
            raise ValidationError("Amount must not be negative")
        today = today or date.today()

        occupied = self.db.get_plan_period_indexes(plan_id)
        index = max(occupied) + 1 if occupied else 0
        due = occurred_at or period_date(plan.start_date, index, plan.frequency, plan.payment_day)
        periods = max(total_periods(plan, today), index + 1)
        state = ScheduleState.CONFIRMED if due <= today else ScheduleState.SCHEDULED

        draft = LedgerEntryDraft(
            kind=entry_kind_for(plan),
            amount=amount if amount is not None else plan.amount,
            account_id=plan.account_id,
            occurred_at=due,
            billing_assignment=due,
            category=plan.category,
            subcategory=plan.subcategory,
            note=period_note(plan, index, periods),
            counterparty=plan.counterparty,
            plan_id=plan_id,
            period_index=index,
            schedule_state=state,
        )
        if self.db.insert_plan_entries([draft]) == 0:
            raise ConflictError(f"Period {index} of plan {plan_id} already exists")

        if plan.total_periods is not None and index >= plan.total_periods:
            total_amount = None
            if plan.kind == PlanKind.INSTALLMENT:
                total_amount = plan.amount * (index + 1)
            self.db.update_plan(plan_id, total_periods=index + 1, total_amount=total_amount)
        if plan.status == PlanStatus.COMPLETED and state == ScheduleState.SCHEDULED:
            self.db.update_plan(plan_id, status=PlanStatus.ACTIVE)
            logger.info("Plan %s reopened", plan_id)

        logger.info("Added period %d to plan %s", index, plan_id)
        return next(e for e in self.db.list_entries(plan_id=plan_id) if e.period_index == index)

    def _require_plan_entry(self, plan_id: int, entry_id: int) -> LedgerEntry:
        entry = self.db.get_entry(entry_id)
        if entry is None or entry.plan_id != plan_id:
            raise NotFoundError(plan_entry_not_found(plan_id, entry_id))
        return entry

    def _set_entry_state(self, plan_id: int, entry_id: int, state: ScheduleState) -> PlanStatus:
        plan = self.require_plan(plan_id)
        self._require_plan_entry(plan_id, entry_id)
        self.db.set_schedule_state(entry_id, state)
        return self._check_completion(plan)

    def _check_completion(self, plan: PaymentPlanEntity) -> PlanStatus:
        """Complete an active installment plan once nothing is left scheduled."""
        if plan.kind != PlanKind.INSTALLMENT or plan.status != PlanStatus.ACTIVE:
            return plan.status
        if self.db.count_plan_entries(plan.id, ScheduleState.SCHEDULED) > 0:
            return plan.status

        self.db.update_plan(plan.id, status=PlanStatus.COMPLETED)
        logger.info("Plan %s completed", plan.id)
        return PlanStatus.COMPLETED

    def set_status(self, plan_id: int, status: PlanStatus) -> None:
        """Pause or resume a plan.

        Raises:
            ValidationError: If the status is not active/paused or the plan
                is already completed
        """
        status = PlanStatus(status)
        plan = self.require_plan(plan_id)
        self._check_status_change(plan, status)
        self.db.update_plan(plan_id, status=status)
        logger.info("Plan %s set to %s", plan_id, status.value)

    def _check_status_change(self, plan: PaymentPlanEntity, status: PlanStatus) -> None:
        if status not in (PlanStatus.ACTIVE, PlanStatus.PAUSED):
            raise ValidationError("Plans can only be set to active or paused")
        if plan.status == PlanStatus.COMPLETED:
            raise ValidationError(f"Plan {plan.id} is already completed")

    def delete_plan(self, plan_id: int) -> PlanDeletion:
        """Delete a plan with its scheduled entries, keeping settled history.

        Confirmed and skipped entries stay in the ledger but lose their plan
        link; their period index is kept.
        """
        plan = self.require_plan(plan_id)
        deleted, detached = self.db.delete_plan(plan_id)
        logger.info(
            "Deleted plan %s: %d scheduled entries removed, %d detached",
            plan_id,
            deleted,
            detached,
        )
        return PlanDeletion(plan_name=plan.name, deleted_scheduled=deleted, detached=detached)
