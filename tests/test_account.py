"""Tests for AccountService and PersonService."""

from decimal import Decimal

import pytest

from ledgerbook.domain.collections import ACCOUNTS
from ledgerbook.domain.errors import ConflictError, NotFoundError, ValidationError
from ledgerbook.domain.updaters import create_single_account_balance_updater


def test_create_and_list_accounts(account_service):
    account_service.create_account(name="Savings", balance=Decimal("100"))
    account_service.create_account(name="Cash")

    names = [a.name for a in account_service.list_accounts()]
    assert names == ["Cash", "Savings"]
    cash = account_service.list_accounts()[0]
    assert cash.balance is None


def test_create_duplicate_account(account_service):
    account_service.create_account(name="Cash")
    with pytest.raises(ConflictError, match="already exists"):
        account_service.create_account(name="Cash")


def test_create_account_requires_name(account_service):
    with pytest.raises(ValidationError):
        account_service.create_account(name="  ")


def test_edit_account_overwrites_balance(account_service, sample_accounts):
    a, _ = sample_accounts
    account_service.edit_account(a.id, name="Main", balance=Decimal("42"))

    edited = account_service.get_account(a.id)
    assert (edited.name, edited.balance) == ("Main", Decimal("42"))


def test_edit_account_keeps_posting_made_before_write(account_service, sample_accounts, monkeypatch):
    """A balance posting landing between the read and the write is not lost."""
    a, _ = sample_accounts
    db = account_service.db
    original = db.update_collection
    posted = []

    def update_with_posting(key, updater):
        if key == ACCOUNTS and not posted:
            posted.append(True)
            original(ACCOUNTS, create_single_account_balance_updater(a.id, Decimal("100")))
        return original(key, updater)

    monkeypatch.setattr(db, "update_collection", update_with_posting)
    account_service.edit_account(a.id, name="Main")

    edited = account_service.get_account(a.id)
    assert (edited.name, edited.balance) == ("Main", Decimal("1100"))


def test_edit_account_name_conflict(account_service, sample_accounts):
    a, b = sample_accounts
    with pytest.raises(ConflictError):
        account_service.edit_account(a.id, name=b.name)


def test_archive_and_restore_account(account_service, sample_accounts):
    a, _ = sample_accounts
    account_service.set_archived(a.id)
    assert a.id not in [acc.id for acc in account_service.list_accounts()]
    with pytest.raises(ConflictError):
        account_service.set_archived(a.id)

    account_service.set_archived(a.id, archived=False)
    assert account_service.get_account(a.id).is_archived is False


def test_tags(account_service, sample_accounts, temp_db):
    a, _ = sample_accounts
    account_service.add_tag(a.id, "family")
    account_service.add_tag(a.id, "family")
    account_service.add_tag(a.id, "business")
    account_service.remove_tag(a.id, "family")

    temp_db.reload()
    assert account_service.get_account(a.id).tags == ("business",)


def test_require_missing_account(account_service):
    with pytest.raises(NotFoundError):
        account_service.require_account(123)


def test_net_worth(account_service, lending_service, sample_accounts, sample_person):
    from datetime import date

    a, _ = sample_accounts
    lending_service.create_lending(
        account_id=a.id,
        counterparty_type="person",
        counterparty_id=sample_person.id,
        type="lend",
        amount=Decimal("250"),
        date=date(2024, 1, 1),
    )

    assert account_service.get_account(a.id).balance == Decimal("750")
    assert account_service.get_lending_balance(a.id) == Decimal("250")
    assert account_service.get_net_worth(a.id) == Decimal("1000")


def test_person_balance_and_totals(person_service, lending_service, sample_accounts, sample_person):
    from datetime import date

    a, _ = sample_accounts
    other_id = person_service.create_person(name="Suzuki")
    for person_id, type, amount in (
        (sample_person.id, "lend", "300"),
        (other_id, "borrow", "120"),
    ):
        lending_service.create_lending(
            account_id=a.id,
            counterparty_type="person",
            counterparty_id=person_id,
            type=type,
            amount=Decimal(amount),
            date=date(2024, 1, 1),
        )

    assert person_service.get_balance(sample_person.id) == Decimal("300")
    assert person_service.get_balance(other_id) == Decimal("-120")
    assert person_service.get_totals() == (Decimal("300"), Decimal("120"))


def test_person_archive(person_service, sample_person):
    person_service.set_archived(sample_person.id)
    assert person_service.list_persons() == []
    assert len(person_service.list_persons(include_archived=True)) == 1
    with pytest.raises(ConflictError):
        person_service.set_archived(sample_person.id)


def test_person_requires_name(person_service):
    with pytest.raises(ValidationError):
        person_service.create_person(name="")
