"""Account domain service."""

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from ledgerly.database.base import Database
from ledgerly.domain.balance import LedgerBalanceCalculator
from ledgerly.domain.entities import (
    Account as AccountEntity,
    AccountBalance,
    AccountKind,
    BalanceSummary,
)
from ledgerly.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    account_not_found,
    day_out_of_range,
    duplicate_account_name,
)

logger = logging.getLogger(__name__)


def validate_day(field: str, value: Optional[int]) -> None:
    """Check a statement/payment day is within 1-28 when given."""
    if value is not None and not 1 <= value <= 28:
        raise ValidationError(day_out_of_range(field, value))


class AccountService:
    """Service for managing accounts."""

    def __init__(self, db: Database):
        """Initialize account service.

        Args:
            db: Database instance
        """
        self.db = db
        self.calculator = LedgerBalanceCalculator(db)

    def create_account(
        self,
        name: str,
        kind: AccountKind = AccountKind.PHYSICAL,
        initial_balance: Decimal = Decimal("0"),
        group: str = "",
        include_in_stats: bool = True,
        bill_day: Optional[int] = None,
        pay_day: Optional[int] = None,
        credit_limit: Optional[Decimal] = None,
    ) -> int:
        """Create a new account.

        Args:
            name: Account name
            kind: Physical or credit
            initial_balance: Opening balance
            group: Free-form grouping label
            include_in_stats: Whether the account counts in summaries and reports
            bill_day: Statement closing day (credit only)
            pay_day: Payment due day (credit only)
            credit_limit: Credit limit (credit only)

        Returns:
            Account ID

        Raises:
            ConflictError: If account name already exists
            ValidationError: If a credit-only field is set on a physical account
                or a day is out of range
        """
        kind = AccountKind(kind)
        name = name.strip()
        if not name:
            raise ValidationError("Account name must not be empty")

        for acc in self.db.list_accounts():
            if acc.name == name:
                raise ConflictError(duplicate_account_name(name))

        if kind == AccountKind.PHYSICAL and (
            bill_day is not None or pay_day is not None or credit_limit is not None
        ):
            raise ValidationError(
                "bill_day, pay_day and credit_limit only apply to credit accounts"
            )
        validate_day("bill_day", bill_day)
        validate_day("pay_day", pay_day)

        account_id = self.db.create_account(
            name=name,
            kind=kind,
            initial_balance=initial_balance,
            group=group,
            include_in_stats=include_in_stats,
            bill_day=bill_day,
            pay_day=pay_day,
            credit_limit=credit_limit,
        )
        logger.info("Created %s account %r (id=%s)", kind.value, name, account_id)
        return account_id

    def get_account(self, account_id: int) -> Optional[AccountEntity]:
        """Get account by ID.

        Returns:
            Account entity or None if not found
        """
        return self.db.get_account(account_id)

    def require_account(self, account_id: int) -> AccountEntity:
        """Get account by ID, raising NotFoundError if it does not exist."""
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        return account

    def list_accounts(self) -> list[AccountEntity]:
        """List all accounts.

        Returns:
            List of account entities
        """
        return self.db.list_accounts()

    def balances(self, today: Optional[date] = None) -> BalanceSummary:
        """Return every account's current balance and a net-worth summary.

        Balances include everything dated today or earlier; scheduled plan
        entries are left out. Totals only cover accounts with include_in_stats.
        """
        today = today or date.today()
        cutoff = today + timedelta(days=1)

        results = []
        total_assets = Decimal("0")
        total_liabilities = Decimal("0")
        for account in self.db.list_accounts():
            balance = self.calculator.balance_as_of(account.id, cutoff, exclude_scheduled=True)
            available = None
            if account.is_credit and account.credit_limit is not None:
                available = account.credit_limit + balance
            results.append(
                AccountBalance(account=account, balance=balance, available_credit=available)
            )

            if not account.include_in_stats:
                continue
            if account.is_credit:
                if balance < 0:
                    total_liabilities += -balance
            elif balance > 0:
                total_assets += balance

        return BalanceSummary(
            balances=tuple(results),
            total_assets=total_assets,
            total_liabilities=total_liabilities,
            net_worth=total_assets - total_liabilities,
        )
