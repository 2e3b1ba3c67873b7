"""Shared pytest fixtures for ledgerly tests."""

import tempfile
import os
from datetime import date
from decimal import Decimal
import pytest

from ledgerly.database.factories import create_sqlite_database
from ledgerly.domain.account import AccountService
from ledgerly.domain.billing import BillingCycleAssembler
from ledgerly.domain.cashflow import CashflowProjector
from ledgerly.domain.entities import AccountKind
from ledgerly.domain.entry import EntryService
from ledgerly.domain.plan import PlanService
from ledgerly.domain.reconciliation import ReconciliationService


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def account_service(temp_db):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db)


@pytest.fixture
def entry_service(temp_db):
    """Create an EntryService with a temporary database."""
    return EntryService(temp_db)


@pytest.fixture
def plan_service(temp_db):
    """Create a PlanService with a temporary database."""
    return PlanService(temp_db)


@pytest.fixture
def assembler(temp_db):
    """Create a BillingCycleAssembler with a temporary database."""
    return BillingCycleAssembler(temp_db)


@pytest.fixture
def reconciliation_service(temp_db):
    """Create a ReconciliationService with a temporary database."""
    return ReconciliationService(temp_db)


@pytest.fixture
def projector(temp_db):
    """Create a CashflowProjector with a temporary database."""
    return CashflowProjector(temp_db)


@pytest.fixture
def checking(account_service):
    """Physical account with an opening balance of 1000."""
    account_id = account_service.create_account(
        name="Checking", kind=AccountKind.PHYSICAL, initial_balance=Decimal("1000")
    )
    return account_service.get_account(account_id)


@pytest.fixture
def credit_card(account_service):
    """Credit account closing on the 20th, due on the 10th."""
    account_id = account_service.create_account(
        name="Visa",
        kind=AccountKind.CREDIT,
        bill_day=20,
        pay_day=10,
        credit_limit=Decimal("5000"),
    )
    return account_service.get_account(account_id)


@pytest.fixture
def add_entry(entry_service):
    """Return a helper that records an entry and returns it."""

    def _add(kind, amount, account_id, occurred_at, **kwargs):
        entry_id = entry_service.create_entry(
            kind=kind,
            amount=Decimal(str(amount)),
            account_id=account_id,
            occurred_at=occurred_at,
            **kwargs,
        )
        return entry_service.get_entry(entry_id)

    return _add


@pytest.fixture
def today():
    """Fixed reference date for time-dependent operations."""
    return date(2025, 3, 15)


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
