"""SQLAlchemy models for ledgerly database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    Index,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, sessionmaker, Session

Base = declarative_base()


class Account(Base):
    """Account model."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    kind = Column(String, nullable=False)
    group = Column(String, default="", nullable=False)
    include_in_stats = Column(Boolean, default=True, nullable=False)
    initial_balance = Column(Numeric(14, 2), default=0, nullable=False)
    credit_limit = Column(Numeric(14, 2), nullable=True)
    bill_day = Column(Integer, nullable=True)
    pay_day = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)


class PaymentPlan(Base):
    """Installment or recurring payment plan model."""

    __tablename__ = "payment_plans"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    kind = Column(String, nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    total_amount = Column(Numeric(14, 2), nullable=True)
    total_periods = Column(Integer, nullable=True)
    frequency = Column(String, nullable=False)
    payment_day = Column(Integer, nullable=False)
    start_date = Column(Date, nullable=False)
    # Weak reference: accounts are never cascaded onto plans
    account_id = Column(Integer, nullable=False)
    category = Column(String, nullable=False)
    subcategory = Column(String, nullable=True)
    counterparty = Column(String, nullable=True)
    note = Column(String, nullable=True)
    status = Column(String, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (Index("ix_payment_plans_status", "status"),)


class Statement(Base):
    """Credit card statement model, one per billing cycle end."""

    __tablename__ = "statements"

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, nullable=False)
    billing_cycle_start = Column(Date, nullable=False)
    billing_cycle_end = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False)
    statement_amount = Column(Numeric(14, 2), nullable=True)
    paid_amount = Column(Numeric(14, 2), nullable=True)
    paid_date = Column(Date, nullable=True)
    status = Column(String, nullable=False)
    note = Column(String, nullable=True)

    __table_args__ = (
        UniqueConstraint("account_id", "billing_cycle_end", name="uq_statement_cycle"),
    )


class LedgerEntry(Base):
    """Ledger entry (transaction) model."""

    __tablename__ = "ledger_entries"

    id = Column(Integer, primary_key=True)
    kind = Column(String, nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    fee = Column(Numeric(14, 2), default=0, nullable=False)
    discount = Column(Numeric(14, 2), default=0, nullable=False)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    to_account_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    occurred_at = Column(Date, nullable=False)
    billing_assignment = Column(Date, nullable=True)
    category = Column(String, default="", nullable=False)
    subcategory = Column(String, nullable=True)
    note = Column(String, default="", nullable=False)
    merchant = Column(String, nullable=True)
    counterparty = Column(String, nullable=True)
    plan_id = Column(Integer, nullable=True)
    period_index = Column(Integer, nullable=True)
    schedule_state = Column(String, nullable=True)
    statement_id = Column(Integer, nullable=True)
    reconciled = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # NULL plan_id rows never collide, so the key only binds generated entries
    __table_args__ = (
        UniqueConstraint("plan_id", "period_index", name="uq_plan_period"),
        Index("ix_ledger_entries_account_date", "account_id", "occurred_at"),
        Index("ix_ledger_entries_to_account", "to_account_id"),
        Index("ix_ledger_entries_statement", "statement_id"),
    )


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
