"""Ledger operations.

Each operation is a linear sequence of ``update_collection`` calls: reverse
the old balance effect, apply the new one, persist the record, append a
history entry and propagate to the managerial-accounting ledger. Deltas are
computed from the records passed in, never from intermediate re-reads.

The sequence is not atomic by itself. If a later ``update_collection``
raises, the earlier steps stay applied and the error propagates to the
caller. Services run each operation inside ``Database.atomic()`` so a store
with real transactions commits or rolls back the whole sequence.
"""

import json
import logging
from dataclasses import replace
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Any, Mapping, Optional, Sequence

from ledgerbook.domain.changes import describe_changes
from ledgerbook.domain.collections import (
    ACCOUNTS,
    ACCOUNT_TRANSACTIONS,
    ACCOUNT_TRANSACTION_HISTORIES,
    LENDINGS,
    LENDING_HISTORIES,
    TRANSACTIONS,
    GenId,
    UpdateCollection,
)
from ledgerbook.domain.deltas import (
    calculate_lending_balance_change,
    calculate_return_balance_change,
    calculate_transaction_balance_change,
)
from ledgerbook.domain.entities import (
    Account,
    AccountingTransaction,
    AccountTransaction,
    AccountTransactionHistory,
    FieldChange,
    Lending,
    LendingHistory,
)
from ledgerbook.domain.errors import (
    ConflictError,
    DependencyError,
    ValidationError,
    lending_already_returned,
    lending_delete_blocked,
    unknown_fields,
)
from ledgerbook.domain.updaters import (
    create_single_account_balance_updater,
    create_transfer_balance_updater,
)

log = logging.getLogger(__name__)

DEFAULT_USER_ID = 1
ARCHIVED_DESCRIPTION = "アーカイブ"
RETURN_MEMO = "返済"

INCOME_CATEGORIES = {
    "interest": "受取利息",
    "investment_gain": "運用損益",
}

LENDING_EDITABLE_FIELDS = frozenset(
    {"account_id", "counterparty_type", "counterparty_id", "type", "amount", "date", "memo"}
)
TRANSACTION_EDITABLE_FIELDS = frozenset(
    {"type", "amount", "date", "memo", "account_id", "from_account_id", "to_account_id"}
)


def _now() -> datetime:
    return datetime.now(UTC)


def _check_updates(updates: Mapping[str, Any], allowed: frozenset[str]) -> None:
    unknown = set(updates) - allowed
    if unknown:
        raise ValidationError(unknown_fields(unknown))


def _serialize_changes(changes: Sequence[FieldChange]) -> str:
    return json.dumps([c.to_dict() for c in changes], ensure_ascii=False)


def _append_lending_history(
    update_collection: UpdateCollection,
    gen_id: GenId,
    lending_id: int,
    action: str,
    description: str,
    user_id: Optional[int],
    changes: Optional[str] = None,
) -> None:
    created_at = _now()
    update_collection(
        LENDING_HISTORIES,
        lambda items: [
            *items,
            LendingHistory(
                id=gen_id(items),
                lending_id=lending_id,
                action=action,
                description=description,
                changes=changes,
                user_id=user_id or DEFAULT_USER_ID,
                created_at=created_at,
            ),
        ],
    )


def _append_transaction_history(
    update_collection: UpdateCollection,
    gen_id: GenId,
    transaction_id: int,
    action: str,
    description: str,
    user_id: Optional[int],
    changes: Optional[str] = None,
) -> None:
    created_at = _now()
    update_collection(
        ACCOUNT_TRANSACTION_HISTORIES,
        lambda items: [
            *items,
            AccountTransactionHistory(
                id=gen_id(items),
                account_transaction_id=transaction_id,
                action=action,
                description=description,
                changes=changes,
                user_id=user_id or DEFAULT_USER_ID,
                created_at=created_at,
            ),
        ],
    )


def _apply_transaction_effect(
    update_collection: UpdateCollection,
    type: str,
    amount: Decimal,
    account_id: Optional[int],
    from_account_id: Optional[int],
    to_account_id: Optional[int],
    is_reversing: bool = False,
) -> None:
    if type == "transfer":
        update_collection(
            ACCOUNTS,
            create_transfer_balance_updater(
                from_account_id, to_account_id, amount, is_reversing=is_reversing
            ),
        )
    else:
        delta = calculate_transaction_balance_change(type, amount, is_reversing=is_reversing)
        update_collection(ACCOUNTS, create_single_account_balance_updater(account_id, delta))


def _reverse_transaction(
    update_collection: UpdateCollection, transaction: AccountTransaction
) -> None:
    if not (transaction.account_id or transaction.from_account_id):
        return
    _apply_transaction_effect(
        update_collection,
        transaction.type,
        transaction.amount,
        transaction.account_id or transaction.from_account_id,
        transaction.from_account_id,
        transaction.to_account_id,
        is_reversing=True,
    )


# Edits


def save_lending_edit(
    current_lendings: Sequence[Lending],
    update_collection: UpdateCollection,
    gen_id: GenId,
    user_id: Optional[int],
    target_id: int,
    updates: Mapping[str, Any],
    changes: Sequence[FieldChange],
) -> None:
    """Save an edit of a lending and record it in its history.

    The old balance effect is reversed and the merged one applied, both only
    while the lending is not returned. Missing records and empty change lists
    are silent no-ops.

    Args:
        current_lendings: Snapshot of the lendings collection
        update_collection: Host collection-update callable
        gen_id: Host id generator
        user_id: Editing user (history falls back to 1)
        target_id: Lending to edit
        updates: Field values overriding the current record
        changes: Field changes describing the edit
    """
    if not changes:
        return

    old = next((l for l in current_lendings if l.id == target_id), None)
    if old is None:
        return

    _check_updates(updates, LENDING_EDITABLE_FIELDS)
    is_open = not old.returned

    if is_open:
        update_collection(
            ACCOUNTS,
            create_single_account_balance_updater(
                old.account_id,
                calculate_lending_balance_change(old.type, old.amount, is_reversing=True),
            ),
        )

    new_account_id = updates.get("account_id") or old.account_id
    new_type = updates.get("type") or old.type
    new_amount = updates["amount"] if updates.get("amount") is not None else old.amount

    if is_open:
        update_collection(
            ACCOUNTS,
            create_single_account_balance_updater(
                new_account_id, calculate_lending_balance_change(new_type, new_amount)
            ),
        )

    edited_at = _now()
    update_collection(
        LENDINGS,
        lambda items: [
            replace(l, **updates, last_edited_by_user_id=user_id, last_edited_at=edited_at)
            if l.id == target_id
            else l
            for l in items
        ],
    )

    _append_lending_history(
        update_collection,
        gen_id,
        target_id,
        "updated",
        describe_changes(changes),
        user_id,
        changes=_serialize_changes(changes),
    )
    log.info("Edited lending %s (%d field changes)", target_id, len(changes))


def save_transaction_edit(
    current_transactions: Sequence[AccountTransaction],
    update_collection: UpdateCollection,
    gen_id: GenId,
    user_id: Optional[int],
    target_id: int,
    updates: Mapping[str, Any],
    changes: Sequence[FieldChange],
) -> None:
    """Save an edit of an account transaction and record it in its history.

    Interest and investment-gain postings with a linked accounting row get the
    new amount, date and memo propagated to that row.
    """
    if not changes:
        return

    old = next((t for t in current_transactions if t.id == target_id), None)
    if old is None:
        return

    _check_updates(updates, TRANSACTION_EDITABLE_FIELDS)

    _reverse_transaction(update_collection, old)

    new_type = updates.get("type") or old.type
    new_amount = updates["amount"] if updates.get("amount") is not None else old.amount
    _apply_transaction_effect(
        update_collection,
        new_type,
        new_amount,
        updates.get("account_id") or old.account_id,
        updates.get("from_account_id") or old.from_account_id,
        updates.get("to_account_id") or old.to_account_id,
    )

    edited_at = _now()
    update_collection(
        ACCOUNT_TRANSACTIONS,
        lambda items: [
            replace(t, **updates, last_edited_by_user_id=user_id, last_edited_at=edited_at)
            if t.id == target_id
            else t
            for t in items
        ],
    )

    _append_transaction_history(
        update_collection,
        gen_id,
        target_id,
        "updated",
        describe_changes(changes),
        user_id,
        changes=_serialize_changes(changes),
    )

    if old.linked_transaction_id and old.type in INCOME_CATEGORIES:
        linked_id = old.linked_transaction_id
        category = INCOME_CATEGORIES[old.type]
        new_date = updates.get("date") or old.date
        new_memo = updates.get("memo") or old.memo
        update_collection(
            TRANSACTIONS,
            lambda items: [
                replace(
                    t,
                    type="expense" if new_amount < 0 else "income",
                    category=category,
                    amount=abs(new_amount),
                    date=new_date,
                    memo=new_memo,
                )
                if t.id == linked_id
                else t
                for t in items
            ],
        )
    log.info("Edited account transaction %s (%d field changes)", target_id, len(changes))


# Archival


def archive_lending(
    lending: Lending,
    update_collection: UpdateCollection,
    gen_id: GenId,
    user_id: Optional[int],
) -> None:
    """Soft-delete a lending, reversing its balance effect while open."""
    if not lending.returned:
        update_collection(
            ACCOUNTS,
            create_single_account_balance_updater(
                lending.account_id,
                calculate_lending_balance_change(lending.type, lending.amount, is_reversing=True),
            ),
        )

    edited_at = _now()
    update_collection(
        LENDINGS,
        lambda items: [
            replace(l, is_archived=True, last_edited_by_user_id=user_id, last_edited_at=edited_at)
            if l.id == lending.id
            else l
            for l in items
        ],
    )

    _append_lending_history(
        update_collection, gen_id, lending.id, "archived", ARCHIVED_DESCRIPTION, user_id
    )
    log.info("Archived lending %s", lending.id)


def archive_account_transaction(
    transaction: AccountTransaction,
    update_collection: UpdateCollection,
    gen_id: GenId,
    user_id: Optional[int],
) -> None:
    """Soft-delete an account transaction.

    The linked accounting row, if any, is deleted outright.
    """
    _reverse_transaction(update_collection, transaction)

    edited_at = _now()
    update_collection(
        ACCOUNT_TRANSACTIONS,
        lambda items: [
            replace(t, is_archived=True, last_edited_by_user_id=user_id, last_edited_at=edited_at)
            if t.id == transaction.id
            else t
            for t in items
        ],
    )

    _append_transaction_history(
        update_collection, gen_id, transaction.id, "archived", ARCHIVED_DESCRIPTION, user_id
    )

    if transaction.linked_transaction_id:
        linked_id = transaction.linked_transaction_id
        update_collection(TRANSACTIONS, lambda items: [t for t in items if t.id != linked_id])
    log.info("Archived account transaction %s", transaction.id)


# Creation and return


def create_lending(
    update_collection: UpdateCollection,
    gen_id: GenId,
    user_id: Optional[int],
    *,
    account_id: int,
    counterparty_type: str,
    counterparty_id: int,
    type: str,
    amount: Decimal,
    date: date,
    memo: Optional[str] = None,
) -> Lending:
    """Record a new lend or borrow and apply its balance effect.

    ``amount`` is the magnitude entered by the user; the stored amount is the
    signed effect on the account.
    """
    signed_amount = calculate_lending_balance_change(type, abs(amount))
    created_at = _now()
    created: list[Lending] = []

    def append(items: list[Lending]) -> list[Lending]:
        lending = Lending(
            id=gen_id(items),
            account_id=account_id,
            counterparty_type=counterparty_type,
            counterparty_id=counterparty_id,
            type=type,
            amount=signed_amount,
            date=date,
            memo=memo,
            returned=False,
            created_at=created_at,
            created_by_user_id=user_id,
        )
        created.append(lending)
        return [*items, lending]

    update_collection(LENDINGS, append)
    lending = created[0]

    update_collection(ACCOUNTS, create_single_account_balance_updater(account_id, signed_amount))

    _append_lending_history(update_collection, gen_id, lending.id, "created", "作成", user_id)
    log.info("Created lending %s (%s %s on account %s)", lending.id, type, signed_amount, account_id)
    return lending


def mark_lending_returned(
    lending: Lending,
    update_collection: UpdateCollection,
    gen_id: GenId,
    user_id: Optional[int],
    *,
    return_date: Optional[date] = None,
    memo: str = RETURN_MEMO,
) -> Lending:
    """Close ``lending`` with a return record and apply the repayment.

    Raises:
        ConflictError: If the lending is already returned or is itself a return
    """
    if lending.returned or lending.type == "return":
        raise ConflictError(lending_already_returned(lending.id))

    created_at = _now()
    created: list[Lending] = []

    def close(items: list[Lending]) -> list[Lending]:
        record = Lending(
            id=gen_id(items),
            account_id=lending.account_id,
            counterparty_type=lending.counterparty_type,
            counterparty_id=lending.counterparty_id,
            type="return",
            amount=-lending.amount,
            date=return_date or created_at.date(),
            memo=memo,
            returned=True,
            original_id=lending.id,
            created_at=created_at,
            created_by_user_id=user_id,
        )
        created.append(record)
        return [
            *(replace(l, returned=True) if l.id == lending.id else l for l in items),
            record,
        ]

    update_collection(LENDINGS, close)
    record = created[0]

    update_collection(
        ACCOUNTS,
        create_single_account_balance_updater(
            lending.account_id, calculate_return_balance_change(lending)
        ),
    )

    _append_lending_history(update_collection, gen_id, lending.id, "returned", RETURN_MEMO, user_id)
    log.info("Returned lending %s with return record %s", lending.id, record.id)
    return record


def delete_lending(lending: Lending, update_collection: UpdateCollection) -> None:
    """Hard-delete an open lending together with its history.

    Raises:
        DependencyError: If the lending is already returned
    """
    if lending.returned:
        raise DependencyError(lending_delete_blocked(lending.id))

    update_collection(
        ACCOUNTS,
        create_single_account_balance_updater(
            lending.account_id,
            calculate_lending_balance_change(lending.type, lending.amount, is_reversing=True),
        ),
    )
    update_collection(
        LENDING_HISTORIES, lambda items: [h for h in items if h.lending_id != lending.id]
    )
    update_collection(LENDINGS, lambda items: [l for l in items if l.id != lending.id])
    log.info("Deleted lending %s", lending.id)


def _create_account_transaction(
    update_collection: UpdateCollection,
    gen_id: GenId,
    user_id: Optional[int],
    **fields: Any,
) -> AccountTransaction:
    created_at = _now()
    created: list[AccountTransaction] = []

    def append(items: list[AccountTransaction]) -> list[AccountTransaction]:
        transaction = AccountTransaction(
            id=gen_id(items), created_at=created_at, created_by_user_id=user_id, **fields
        )
        created.append(transaction)
        return [*items, transaction]

    update_collection(ACCOUNT_TRANSACTIONS, append)
    transaction = created[0]

    _apply_transaction_effect(
        update_collection,
        transaction.type,
        transaction.amount,
        transaction.account_id,
        transaction.from_account_id,
        transaction.to_account_id,
    )
    _append_transaction_history(
        update_collection, gen_id, transaction.id, "created", "作成", user_id
    )
    log.info(
        "Created account transaction %s (%s %s)",
        transaction.id,
        transaction.type,
        transaction.amount,
    )
    return transaction


def create_transfer(
    update_collection: UpdateCollection,
    gen_id: GenId,
    user_id: Optional[int],
    *,
    from_account_id: int,
    to_account_id: int,
    amount: Decimal,
    date: date,
    memo: Optional[str] = None,
) -> AccountTransaction:
    """Move ``amount`` from one account to another."""
    return _create_account_transaction(
        update_collection,
        gen_id,
        user_id,
        type="transfer",
        from_account_id=from_account_id,
        to_account_id=to_account_id,
        amount=amount,
        date=date,
        memo=memo,
    )


def post_account_income(
    update_collection: UpdateCollection,
    gen_id: GenId,
    user_id: Optional[int],
    *,
    account: Account,
    type: str,
    amount: Decimal,
    date: date,
    memo: Optional[str] = None,
) -> AccountTransaction:
    """Post interest or an investment gain/loss and mirror it in accounting.

    A negative amount is a loss and is mirrored as an expense of ``abs(amount)``.
    """
    category = INCOME_CATEGORIES[type]
    created_at = _now()
    linked: list[AccountingTransaction] = []

    def append(items: list[AccountingTransaction]) -> list[AccountingTransaction]:
        row = AccountingTransaction(
            id=gen_id(items),
            type="expense" if amount < 0 else "income",
            business_id=account.business_id,
            account_id=account.id,
            category=category,
            amount=abs(amount),
            date=date,
            memo=memo or f"{category}（{account.name}）",
            created_at=created_at,
        )
        linked.append(row)
        return [*items, row]

    update_collection(TRANSACTIONS, append)

    return _create_account_transaction(
        update_collection,
        gen_id,
        user_id,
        type=type,
        account_id=account.id,
        amount=amount,
        date=date,
        memo=memo,
        linked_transaction_id=linked[0].id,
    )


def post_net_flow(
    update_collection: UpdateCollection,
    gen_id: GenId,
    user_id: Optional[int],
    *,
    account_id: int,
    type: str,
    amount: Decimal,
    date: date,
    memo: Optional[str] = None,
) -> AccountTransaction:
    """Post a deposit into or a withdrawal from one account."""
    return _create_account_transaction(
        update_collection,
        gen_id,
        user_id,
        type=type,
        account_id=account_id,
        amount=amount,
        date=date,
        memo=memo,
    )
