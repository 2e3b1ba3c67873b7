"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input, missing configuration or failed validation."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


def account_not_found(account_id: int) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def credit_account_not_found(account_id: int) -> str:
    """Return message for a missing or non-credit account."""
    return f"Credit card account {account_id} not found"


def entry_not_found(entry_id: int) -> str:
    """Return message for missing ledger entry."""
    return f"Entry {entry_id} not found"


def plan_not_found(plan_id: int) -> str:
    """Return message for missing payment plan."""
    return f"Plan {plan_id} not found"


def plan_entry_not_found(plan_id: int, entry_id: int) -> str:
    """Return message for an entry that is not linked to the plan."""
    return f"Entry {entry_id} not found in plan {plan_id}"


def statement_not_found(statement_id: int) -> str:
    """Return message for missing statement."""
    return f"Statement {statement_id} not found"


def bill_day_not_set(account_id: int) -> str:
    """Return message when a credit account has no statement closing day."""
    return f"Credit card {account_id} has no bill day set. Please set it first."


def duplicate_account_name(name: str) -> str:
    """Return message for duplicate account names."""
    return f"Account with name '{name}' already exists"


def day_out_of_range(field: str, value: int) -> str:
    """Return message for a day-of-month field outside 1-28."""
    return f"{field} must be between 1 and 28, got {value}"


def entries_not_on_account(account_id: int, entry_ids: list[int]) -> str:
    """Return message for reconciliation ids that do not belong to the card."""
    ids = ", ".join(str(i) for i in sorted(entry_ids))
    return f"Entries not found on account {account_id}: {ids}"
