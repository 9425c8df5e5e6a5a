"""Tests for domain entities."""

import dataclasses
from datetime import date, datetime, UTC
from decimal import Decimal

import pytest

from ledgerbook.domain.entities import (
    Account,
    AccountTransaction,
    ChangeDescription,
    FieldChange,
    Lending,
    LendingHistory,
    Person,
)


class TestAccount:
    """Tests for Account entity."""

    def test_defaults(self):
        account = Account(id=1, name="Savings")
        assert account.balance is None
        assert account.tags == ()
        assert account.is_archived is False

    def test_account_immutability(self):
        """Test that Account entities are immutable."""
        account = Account(id=1, name="Savings")
        with pytest.raises(dataclasses.FrozenInstanceError):
            account.name = "Other"

    def test_replace_produces_new_record(self):
        account = Account(id=1, name="Savings", balance=Decimal("100"))
        updated = dataclasses.replace(account, balance=Decimal("50"))
        assert account.balance == Decimal("100")
        assert updated.balance == Decimal("50")
        assert updated != account


class TestPerson:
    """Tests for Person entity."""

    def test_equality(self):
        assert Person(id=1, name="Tanaka") == Person(id=1, name="Tanaka")
        assert Person(id=1, name="Tanaka") != Person(id=1, name="Tanaka", memo="x")


class TestLending:
    """Tests for Lending entity."""

    def test_create_lending(self):
        lending = Lending(
            id=1,
            account_id=2,
            type="lend",
            amount=Decimal("-1000"),
            date=date(2024, 3, 1),
            counterparty_type="person",
            counterparty_id=5,
        )
        assert lending.returned is False
        assert lending.original_id is None
        assert lending.amount < 0

    def test_lending_immutability(self):
        lending = Lending(id=1, account_id=2, type="borrow", amount=Decimal("10"), date=date(2024, 1, 1))
        with pytest.raises(dataclasses.FrozenInstanceError):
            lending.returned = True


class TestAccountTransaction:
    """Tests for AccountTransaction entity."""

    def test_transfer_uses_from_and_to(self):
        transfer = AccountTransaction(
            id=1,
            type="transfer",
            amount=Decimal("300"),
            date=date(2024, 1, 1),
            from_account_id=1,
            to_account_id=2,
        )
        assert transfer.account_id is None
        assert transfer.linked_transaction_id is None


class TestHistoryAndChanges:
    """Tests for audit and change records."""

    def test_history_changes_default(self):
        history = LendingHistory(
            id=1,
            lending_id=1,
            action="created",
            description="貸しを作成",
            user_id=1,
            created_at=datetime.now(UTC),
        )
        assert history.changes is None

    def test_field_change_to_dict(self):
        change = FieldChange(
            field="amount", old_value="¥1,000", new_value="¥2,000", display_name="金額"
        )
        assert change.to_dict() == {
            "field": "amount",
            "old_value": "¥1,000",
            "new_value": "¥2,000",
            "display_name": "金額",
        }

    def test_change_description_default_changes(self):
        first = ChangeDescription(description="変更なし")
        second = ChangeDescription(description="変更なし")
        assert first.changes == []
        assert first.changes is not second.changes
