"""Tests for ledger operations (edit, archive, create, return)."""

import json
from datetime import date
from decimal import Decimal

import pytest

from ledgerbook.database.memory import InMemoryDatabase
from ledgerbook.domain import operations
from ledgerbook.domain.changes import generate_change_description
from ledgerbook.domain.collections import (
    ACCOUNTS,
    ACCOUNT_TRANSACTIONS,
    ACCOUNT_TRANSACTION_HISTORIES,
    COLLECTION_KEYS,
    LENDINGS,
    LENDING_HISTORIES,
    PERSONS,
    TRANSACTIONS,
)
from ledgerbook.domain.entities import Account, Person
from ledgerbook.domain.errors import ConflictError, DependencyError, ValidationError

USER_ID = 5
DAY = date(2024, 3, 10)


@pytest.fixture
def db():
    return InMemoryDatabase(
        {
            ACCOUNTS: [
                Account(id=1, name="A", balance=Decimal("1000")),
                Account(id=2, name="B", balance=Decimal("500")),
                Account(id=3, name="C", balance=Decimal("0")),
            ],
            PERSONS: [Person(id=1, name="田中"), Person(id=2, name="鈴木")],
        }
    )


def balance(db, account_id):
    return next(a.balance for a in db.get_collection(ACCOUNTS) if a.id == account_id)


def snapshot(db):
    return {key: db.get_collection(key) for key in COLLECTION_KEYS}


def failing_on(db, failing_key):
    """update_collection that rejects writes to one collection."""

    def update_collection(key, updater):
        if key == failing_key:
            raise RuntimeError(f"write to {key} rejected")
        return db.update_collection(key, updater)

    return update_collection


def lend(db, amount="200", type="lend", account_id=1, person_id=1):
    return operations.create_lending(
        db.update_collection,
        db.gen_id,
        USER_ID,
        account_id=account_id,
        counterparty_type="person",
        counterparty_id=person_id,
        type=type,
        amount=Decimal(amount),
        date=DAY,
        memo="memo",
    )


def edit_lending(db, lending, **updates):
    old = {"amount": lending.amount, "account_id": lending.account_id, "type": lending.type}
    new = {**old, **updates}
    changes = generate_change_description(
        old, new, db.get_collection(ACCOUNTS), db.get_collection(PERSONS)
    ).changes
    operations.save_lending_edit(
        db.get_collection(LENDINGS),
        db.update_collection,
        db.gen_id,
        USER_ID,
        lending.id,
        updates,
        changes,
    )
    return changes


def test_lend_then_edit_amount(db):
    lending = lend(db, "200")
    assert lending.amount == Decimal("-200")
    assert balance(db, 1) == Decimal("800")

    edit_lending(db, lending, amount=Decimal("-300"))

    assert balance(db, 1) == Decimal("700")
    edited = db.get_collection(LENDINGS)[0]
    assert edited.amount == Decimal("-300")
    assert edited.last_edited_by_user_id == USER_ID
    assert edited.last_edited_at is not None


def test_borrow_then_return(db):
    lending = lend(db, "500", type="borrow")
    assert balance(db, 1) == Decimal("1500")

    record = operations.mark_lending_returned(
        lending, db.update_collection, db.gen_id, USER_ID, return_date=date(2024, 4, 1)
    )

    assert record.type == "return"
    assert record.amount == Decimal("-500")
    assert record.returned is True
    assert record.original_id == lending.id
    assert record.date == date(2024, 4, 1)
    assert balance(db, 1) == Decimal("1000")
    original = next(l for l in db.get_collection(LENDINGS) if l.id == lending.id)
    assert original.returned is True
    actions = [h.action for h in db.get_collection(LENDING_HISTORIES)]
    assert actions == ["created", "returned"]


def test_transfer_then_archive(db):
    transfer = operations.create_transfer(
        db.update_collection,
        db.gen_id,
        USER_ID,
        from_account_id=1,
        to_account_id=2,
        amount=Decimal("200"),
        date=DAY,
    )
    assert (balance(db, 1), balance(db, 2)) == (Decimal("800"), Decimal("700"))

    operations.archive_account_transaction(transfer, db.update_collection, db.gen_id, USER_ID)

    assert (balance(db, 1), balance(db, 2)) == (Decimal("1000"), Decimal("500"))
    assert db.get_collection(ACCOUNT_TRANSACTIONS)[0].is_archived is True


def test_investment_loss_posting(db):
    account = db.get_collection(ACCOUNTS)[0]
    posting = operations.post_account_income(
        db.update_collection,
        db.gen_id,
        USER_ID,
        account=account,
        type="investment_gain",
        amount=Decimal("-150"),
        date=DAY,
    )

    assert balance(db, 1) == Decimal("850")
    [linked] = db.get_collection(TRANSACTIONS)
    assert posting.linked_transaction_id == linked.id
    assert linked.type == "expense"
    assert linked.amount == Decimal("150")
    assert linked.category == "運用損益"
    assert linked.memo == "運用損益（A）"
    assert linked.account_id == 1


def test_interest_posting_creates_income_row(db):
    account = db.get_collection(ACCOUNTS)[1]
    operations.post_account_income(
        db.update_collection,
        db.gen_id,
        USER_ID,
        account=account,
        type="interest",
        amount=Decimal("12"),
        date=DAY,
        memo="普通預金利息",
    )
    [linked] = db.get_collection(TRANSACTIONS)
    assert (linked.type, linked.category, linked.memo) == ("income", "受取利息", "普通預金利息")
    assert balance(db, 2) == Decimal("512")


def test_edit_with_no_changes_writes_nothing(db):
    lending = lend(db)
    before = snapshot(db)

    operations.save_lending_edit(
        db.get_collection(LENDINGS),
        db.update_collection,
        db.gen_id,
        USER_ID,
        lending.id,
        {"amount": Decimal("-999")},
        [],
    )

    assert snapshot(db) == before


def test_transaction_edit_with_no_changes_writes_nothing(db):
    t = operations.post_net_flow(
        db.update_collection, db.gen_id, USER_ID, account_id=1, type="deposit",
        amount=Decimal("100"), date=DAY,
    )
    before = snapshot(db)
    operations.save_transaction_edit(
        db.get_collection(ACCOUNT_TRANSACTIONS),
        db.update_collection,
        db.gen_id,
        USER_ID,
        t.id,
        {"amount": Decimal("1")},
        [],
    )
    assert snapshot(db) == before


def test_edit_of_missing_record_is_silent(db):
    lend(db)
    before = snapshot(db)
    changes = generate_change_description({"amount": 1}, {"amount": 2}, [], []).changes

    operations.save_lending_edit(
        db.get_collection(LENDINGS), db.update_collection, db.gen_id, USER_ID, 999,
        {"amount": Decimal("2")}, changes,
    )
    operations.save_transaction_edit(
        db.get_collection(ACCOUNT_TRANSACTIONS), db.update_collection, db.gen_id, USER_ID, 999,
        {"amount": Decimal("2")}, changes,
    )

    assert snapshot(db) == before


def test_edit_rejects_unknown_fields(db):
    lending = lend(db)
    changes = generate_change_description({"amount": 1}, {"amount": 2}, [], []).changes
    with pytest.raises(ValidationError, match="returned"):
        operations.save_lending_edit(
            db.get_collection(LENDINGS), db.update_collection, db.gen_id, USER_ID,
            lending.id, {"returned": True}, changes,
        )


def test_edit_appends_exactly_one_history_entry(db):
    lending = lend(db, "200")
    histories_before = db.get_collection(LENDING_HISTORIES)

    changes = edit_lending(db, lending, amount=Decimal("-300"), account_id=2)

    histories = db.get_collection(LENDING_HISTORIES)
    assert len(histories) == len(histories_before) + 1
    entry = histories[-1]
    assert entry.action == "updated"
    assert entry.lending_id == lending.id
    assert entry.user_id == USER_ID
    assert entry.description == "金額を¥200→¥300に変更、口座をA→Bに変更"
    assert json.loads(entry.changes) == [c.to_dict() for c in changes]
    assert {c["field"] for c in json.loads(entry.changes)} == {"amount", "account_id"}


def test_edit_moves_effect_to_new_account(db):
    lending = lend(db, "200")
    edit_lending(db, lending, account_id=2)
    assert balance(db, 1) == Decimal("1000")
    assert balance(db, 2) == Decimal("300")


def test_edit_of_returned_lending_leaves_balances(db):
    lending = lend(db, "200")
    operations.mark_lending_returned(lending, db.update_collection, db.gen_id, USER_ID)
    returned = next(l for l in db.get_collection(LENDINGS) if l.id == lending.id)
    assert balance(db, 1) == Decimal("1000")

    edit_lending(db, returned, amount=Decimal("-300"))

    assert balance(db, 1) == Decimal("1000")
    assert next(l for l in db.get_collection(LENDINGS) if l.id == lending.id).amount == Decimal("-300")


def test_history_defaults_to_user_one(db):
    operations.create_lending(
        db.update_collection, db.gen_id, None, account_id=1, counterparty_type="person",
        counterparty_id=1, type="lend", amount=Decimal("10"), date=DAY,
    )
    assert db.get_collection(LENDING_HISTORIES)[0].user_id == operations.DEFAULT_USER_ID


def test_archive_open_lending_reverses_effect(db):
    lending = lend(db, "200")
    operations.archive_lending(lending, db.update_collection, db.gen_id, USER_ID)

    assert balance(db, 1) == Decimal("1000")
    archived = db.get_collection(LENDINGS)[0]
    assert archived.is_archived is True
    entry = db.get_collection(LENDING_HISTORIES)[-1]
    assert (entry.action, entry.description) == ("archived", "アーカイブ")


def test_archive_returned_lending_keeps_balance(db):
    lending = lend(db, "200")
    operations.mark_lending_returned(lending, db.update_collection, db.gen_id, USER_ID)
    returned = next(l for l in db.get_collection(LENDINGS) if l.id == lending.id)

    operations.archive_lending(returned, db.update_collection, db.gen_id, USER_ID)

    assert balance(db, 1) == Decimal("1000")


def test_return_twice_is_a_conflict(db):
    lending = lend(db)
    record = operations.mark_lending_returned(lending, db.update_collection, db.gen_id, USER_ID)
    returned = next(l for l in db.get_collection(LENDINGS) if l.id == lending.id)

    with pytest.raises(ConflictError):
        operations.mark_lending_returned(returned, db.update_collection, db.gen_id, USER_ID)
    with pytest.raises(ConflictError):
        operations.mark_lending_returned(record, db.update_collection, db.gen_id, USER_ID)


def test_delete_open_lending_cascades_history(db):
    lending = lend(db, "200")
    other = lend(db, "50", person_id=2)

    operations.delete_lending(lending, db.update_collection)

    assert [l.id for l in db.get_collection(LENDINGS)] == [other.id]
    assert {h.lending_id for h in db.get_collection(LENDING_HISTORIES)} == {other.id}
    assert balance(db, 1) == Decimal("950")


def test_delete_returned_lending_is_blocked(db):
    lending = lend(db)
    operations.mark_lending_returned(lending, db.update_collection, db.gen_id, USER_ID)
    returned = next(l for l in db.get_collection(LENDINGS) if l.id == lending.id)

    with pytest.raises(DependencyError):
        operations.delete_lending(returned, db.update_collection)


def _transaction_changes(db, old, **updates):
    old_values = {"type": old.type, "amount": old.amount, "account_id": old.account_id}
    return generate_change_description(
        old_values, {**old_values, **updates}, db.get_collection(ACCOUNTS), []
    ).changes


def test_transaction_edit_type_change(db):
    t = operations.post_net_flow(
        db.update_collection, db.gen_id, USER_ID, account_id=1, type="deposit",
        amount=Decimal("300"), date=DAY,
    )
    assert balance(db, 1) == Decimal("1300")

    operations.save_transaction_edit(
        db.get_collection(ACCOUNT_TRANSACTIONS), db.update_collection, db.gen_id, USER_ID,
        t.id, {"type": "withdrawal"}, _transaction_changes(db, t, type="withdrawal"),
    )

    assert balance(db, 1) == Decimal("700")
    histories = db.get_collection(ACCOUNT_TRANSACTION_HISTORIES)
    assert [h.action for h in histories] == ["created", "updated"]
    assert histories[-1].description == "種類を純入金→純出金に変更"


def test_transfer_edit_changes_destination(db):
    t = operations.create_transfer(
        db.update_collection, db.gen_id, USER_ID, from_account_id=1, to_account_id=2,
        amount=Decimal("200"), date=DAY,
    )
    changes = generate_change_description(
        {"to_account_id": 2}, {"to_account_id": 3}, db.get_collection(ACCOUNTS), []
    ).changes

    operations.save_transaction_edit(
        db.get_collection(ACCOUNT_TRANSACTIONS), db.update_collection, db.gen_id, USER_ID,
        t.id, {"to_account_id": 3}, changes,
    )

    assert [balance(db, i) for i in (1, 2, 3)] == [Decimal("800"), Decimal("500"), Decimal("200")]


def test_linked_accounting_row_follows_edit(db):
    account = db.get_collection(ACCOUNTS)[0]
    t = operations.post_account_income(
        db.update_collection, db.gen_id, USER_ID, account=account, type="investment_gain",
        amount=Decimal("500"), date=DAY,
    )
    assert balance(db, 1) == Decimal("1500")

    operations.save_transaction_edit(
        db.get_collection(ACCOUNT_TRANSACTIONS), db.update_collection, db.gen_id, USER_ID,
        t.id,
        {"amount": Decimal("-200"), "date": date(2024, 3, 11), "memo": "評価損"},
        _transaction_changes(db, t, amount=Decimal("-200")),
    )

    assert balance(db, 1) == Decimal("800")
    [linked] = db.get_collection(TRANSACTIONS)
    assert linked.type == "expense"
    assert linked.amount == Decimal("200")
    assert linked.category == "運用損益"
    assert linked.date == date(2024, 3, 11)
    assert linked.memo == "評価損"


def test_archive_deletes_linked_accounting_row(db):
    account = db.get_collection(ACCOUNTS)[0]
    t = operations.post_account_income(
        db.update_collection, db.gen_id, USER_ID, account=account, type="interest",
        amount=Decimal("40"), date=DAY,
    )

    operations.archive_account_transaction(t, db.update_collection, db.gen_id, USER_ID)

    assert db.get_collection(TRANSACTIONS) == []
    assert balance(db, 1) == Decimal("1000")
    assert db.get_collection(ACCOUNT_TRANSACTION_HISTORIES)[-1].action == "archived"


def test_partial_failure_propagates_and_keeps_earlier_steps(db):
    lending = lend(db, "200")
    changes = generate_change_description(
        {"amount": lending.amount}, {"amount": Decimal("-300")}, [], []
    ).changes

    with pytest.raises(RuntimeError, match="lending_histories"):
        operations.save_lending_edit(
            db.get_collection(LENDINGS),
            failing_on(db, LENDING_HISTORIES),
            db.gen_id,
            USER_ID,
            lending.id,
            {"amount": Decimal("-300")},
            changes,
        )

    # Balance and record steps ran before the history write failed
    assert balance(db, 1) == Decimal("700")
    assert db.get_collection(LENDINGS)[0].amount == Decimal("-300")
    assert len(db.get_collection(LENDING_HISTORIES)) == 1


def test_atomic_block_restores_snapshots_on_failure(db):
    before = snapshot(db)

    with pytest.raises(RuntimeError):
        with db.atomic():
            operations.create_lending(
                failing_on(db, LENDING_HISTORIES), db.gen_id, USER_ID, account_id=1,
                counterparty_type="person", counterparty_id=1, type="lend",
                amount=Decimal("200"), date=DAY,
            )

    assert snapshot(db) == before
