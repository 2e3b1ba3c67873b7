"""Tests for EntryService."""

from datetime import date
from decimal import Decimal

import pytest

from ledgerly.domain.entities import EntryKind
from ledgerly.domain.errors import NotFoundError, ValidationError


def test_create_and_get_entry(entry_service, checking):
    entry_id = entry_service.create_entry(
        kind=EntryKind.EXPENSE,
        amount=Decimal("12.50"),
        account_id=checking.id,
        occurred_at=date(2025, 3, 1),
        category="Food",
        merchant="Bakery",
    )
    entry = entry_service.get_entry(entry_id)

    assert entry.kind == EntryKind.EXPENSE
    assert entry.amount == Decimal("12.50")
    assert entry.fee == Decimal("0")
    assert entry.merchant == "Bakery"
    assert entry.billing_date == date(2025, 3, 1)
    assert entry.plan_ref is None
    assert entry.reconciled is False


def test_negative_amount_only_for_adjustments(entry_service, checking):
    with pytest.raises(ValidationError):
        entry_service.create_entry(EntryKind.EXPENSE, Decimal("-1"), checking.id, date(2025, 3, 1))

    entry_id = entry_service.create_entry(
        EntryKind.BALANCE_ADJUSTMENT, Decimal("-1"), checking.id, date(2025, 3, 1)
    )
    assert entry_service.get_entry(entry_id).amount == Decimal("-1")


def test_negative_fee_rejected(entry_service, checking):
    with pytest.raises(ValidationError):
        entry_service.create_entry(
            EntryKind.EXPENSE, Decimal("1"), checking.id, date(2025, 3, 1), fee=Decimal("-1")
        )


def test_transfer_validation(entry_service, checking, credit_card):
    with pytest.raises(ValidationError):
        entry_service.create_entry(EntryKind.TRANSFER, Decimal("10"), checking.id, date(2025, 3, 1))
    with pytest.raises(ValidationError):
        entry_service.create_entry(
            EntryKind.TRANSFER, Decimal("10"), checking.id, date(2025, 3, 1), to_account_id=checking.id
        )
    with pytest.raises(ValidationError):
        entry_service.create_entry(
            EntryKind.EXPENSE, Decimal("10"), checking.id, date(2025, 3, 1), to_account_id=credit_card.id
        )
    with pytest.raises(NotFoundError):
        entry_service.create_entry(
            EntryKind.TRANSFER, Decimal("10"), checking.id, date(2025, 3, 1), to_account_id=999
        )


def test_unknown_account(entry_service):
    with pytest.raises(NotFoundError):
        entry_service.create_entry(EntryKind.INCOME, Decimal("10"), 42, date(2025, 3, 1))


def test_list_entries_includes_incoming_transfers(entry_service, checking, credit_card, add_entry):
    add_entry(EntryKind.EXPENSE, "10", credit_card.id, date(2025, 3, 2))
    payment = add_entry(EntryKind.TRANSFER, "10", checking.id, date(2025, 3, 1), to_account_id=credit_card.id)
    add_entry(EntryKind.INCOME, "10", checking.id, date(2025, 3, 3))

    entries = entry_service.list_entries(account_id=credit_card.id)
    assert [e.kind for e in entries] == [EntryKind.TRANSFER, EntryKind.EXPENSE]
    assert entries[0].id == payment.id

    march_second = entry_service.list_entries(start_date=date(2025, 3, 2), end_date=date(2025, 3, 2))
    assert len(march_second) == 1

    income = entry_service.list_entries(kind=EntryKind.INCOME)
    assert len(income) == 1


def test_delete_entry(entry_service, checking, add_entry):
    entry = add_entry(EntryKind.EXPENSE, "10", checking.id, date(2025, 3, 1))
    entry_service.delete_entry(entry.id)

    assert entry_service.get_entry(entry.id) is None
    with pytest.raises(NotFoundError):
        entry_service.delete_entry(entry.id)
