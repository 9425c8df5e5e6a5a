"""Mapper functions to convert between domain models and SQLAlchemy models.

Domain records and ORM rows share snake_case field names; this layer also
owns the conversions the schema needs (tags as JSON lists, legacy
counterparty columns).
"""

import logging
from typing import Any, Callable, NamedTuple

from ledgerbook.domain import entities as domain
from ledgerbook.domain.collections import (
    ACCOUNTS,
    ACCOUNT_TRANSACTIONS,
    ACCOUNT_TRANSACTION_HISTORIES,
    LENDINGS,
    LENDING_HISTORIES,
    PERSONS,
    TRANSACTIONS,
)
from ledgerbook.database.models import (
    Base,
    Account as ORMAccount,
    Person as ORMPerson,
    Lending as ORMLending,
    AccountTransaction as ORMAccountTransaction,
    Transaction as ORMTransaction,
    LendingHistory as ORMLendingHistory,
    AccountTransactionHistory as ORMAccountTransactionHistory,
)

log = logging.getLogger(__name__)


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        name=orm_account.name,
        balance=orm_account.balance,
        business_id=orm_account.business_id,
        tags=tuple(orm_account.tags or ()),
        is_archived=bool(orm_account.is_archived),
    )


def account_to_row(account: domain.Account) -> dict[str, Any]:
    """Convert domain Account entity to SQLAlchemy column values."""
    return {
        "id": account.id,
        "name": account.name,
        "balance": account.balance,
        "business_id": account.business_id,
        "tags": list(account.tags),
        "is_archived": account.is_archived,
    }


def person_to_domain(orm_person: ORMPerson) -> domain.Person:
    """Convert SQLAlchemy Person model to domain Person entity."""
    return domain.Person(
        id=orm_person.id,
        name=orm_person.name,
        memo=orm_person.memo,
        business_id=orm_person.business_id,
        tags=tuple(orm_person.tags or ()),
        is_archived=bool(orm_person.is_archived),
    )


def person_to_row(person: domain.Person) -> dict[str, Any]:
    """Convert domain Person entity to SQLAlchemy column values."""
    return {
        "id": person.id,
        "name": person.name,
        "memo": person.memo,
        "business_id": person.business_id,
        "tags": list(person.tags),
        "is_archived": person.is_archived,
    }


def normalize_legacy_counterparty(
    counterparty_type: str | None, counterparty_id: int | None, person_id: int | None
) -> tuple[str | None, int | None]:
    """Map a legacy ``person_id``-only counterparty to the typed form."""
    if counterparty_type is None and person_id is not None:
        return "person", person_id
    return counterparty_type, counterparty_id


def lending_to_domain(orm_lending: ORMLending) -> domain.Lending:
    """Convert SQLAlchemy Lending model to domain Lending entity."""
    counterparty_type, counterparty_id = normalize_legacy_counterparty(
        orm_lending.counterparty_type,
        orm_lending.counterparty_id,
        orm_lending.person_id,
    )
    if counterparty_type != orm_lending.counterparty_type:
        log.warning(
            "Lending %s uses legacy person_id %s; normalized to a person counterparty",
            orm_lending.id,
            orm_lending.person_id,
        )
    return domain.Lending(
        id=orm_lending.id,
        account_id=orm_lending.account_id,
        counterparty_type=counterparty_type,
        counterparty_id=counterparty_id,
        type=orm_lending.type,
        amount=orm_lending.amount,
        date=orm_lending.date,
        memo=orm_lending.memo,
        returned=bool(orm_lending.returned),
        original_id=orm_lending.original_id,
        is_archived=bool(orm_lending.is_archived),
        created_at=orm_lending.created_at,
        created_by_user_id=orm_lending.created_by_user_id,
        last_edited_by_user_id=orm_lending.last_edited_by_user_id,
        last_edited_at=orm_lending.last_edited_at,
    )


def lending_to_row(lending: domain.Lending) -> dict[str, Any]:
    """Convert domain Lending entity to SQLAlchemy column values."""
    return {
        "id": lending.id,
        "account_id": lending.account_id,
        "counterparty_type": lending.counterparty_type,
        "counterparty_id": lending.counterparty_id,
        "person_id": None,
        "type": lending.type,
        "amount": lending.amount,
        "date": lending.date,
        "memo": lending.memo,
        "returned": lending.returned,
        "original_id": lending.original_id,
        "is_archived": lending.is_archived,
        "created_at": lending.created_at,
        "created_by_user_id": lending.created_by_user_id,
        "last_edited_by_user_id": lending.last_edited_by_user_id,
        "last_edited_at": lending.last_edited_at,
    }


def account_transaction_to_domain(
    orm_transaction: ORMAccountTransaction,
) -> domain.AccountTransaction:
    """Convert SQLAlchemy AccountTransaction model to domain entity."""
    return domain.AccountTransaction(
        id=orm_transaction.id,
        type=orm_transaction.type,
        amount=orm_transaction.amount,
        date=orm_transaction.date,
        account_id=orm_transaction.account_id,
        from_account_id=orm_transaction.from_account_id,
        to_account_id=orm_transaction.to_account_id,
        memo=orm_transaction.memo,
        is_archived=bool(orm_transaction.is_archived),
        linked_transaction_id=orm_transaction.linked_transaction_id,
        created_at=orm_transaction.created_at,
        created_by_user_id=orm_transaction.created_by_user_id,
        last_edited_by_user_id=orm_transaction.last_edited_by_user_id,
        last_edited_at=orm_transaction.last_edited_at,
    )


def account_transaction_to_row(transaction: domain.AccountTransaction) -> dict[str, Any]:
    """Convert domain AccountTransaction entity to SQLAlchemy column values."""
    return {
        "id": transaction.id,
        "type": transaction.type,
        "amount": transaction.amount,
        "date": transaction.date,
        "account_id": transaction.account_id,
        "from_account_id": transaction.from_account_id,
        "to_account_id": transaction.to_account_id,
        "memo": transaction.memo,
        "is_archived": transaction.is_archived,
        "linked_transaction_id": transaction.linked_transaction_id,
        "created_at": transaction.created_at,
        "created_by_user_id": transaction.created_by_user_id,
        "last_edited_by_user_id": transaction.last_edited_by_user_id,
        "last_edited_at": transaction.last_edited_at,
    }


def accounting_transaction_to_domain(
    orm_transaction: ORMTransaction,
) -> domain.AccountingTransaction:
    """Convert SQLAlchemy Transaction model to domain AccountingTransaction."""
    return domain.AccountingTransaction(
        id=orm_transaction.id,
        type=orm_transaction.type,
        category=orm_transaction.category,
        amount=orm_transaction.amount,
        date=orm_transaction.date,
        business_id=orm_transaction.business_id,
        account_id=orm_transaction.account_id,
        memo=orm_transaction.memo,
        created_at=orm_transaction.created_at,
    )


def accounting_transaction_to_row(
    transaction: domain.AccountingTransaction,
) -> dict[str, Any]:
    """Convert domain AccountingTransaction to SQLAlchemy column values."""
    return {
        "id": transaction.id,
        "type": transaction.type,
        "category": transaction.category,
        "amount": transaction.amount,
        "date": transaction.date,
        "business_id": transaction.business_id,
        "account_id": transaction.account_id,
        "memo": transaction.memo,
        "created_at": transaction.created_at,
    }


def lending_history_to_domain(orm_history: ORMLendingHistory) -> domain.LendingHistory:
    """Convert SQLAlchemy LendingHistory model to domain entity."""
    return domain.LendingHistory(
        id=orm_history.id,
        lending_id=orm_history.lending_id,
        action=orm_history.action,
        description=orm_history.description,
        changes=orm_history.changes,
        user_id=orm_history.user_id,
        created_at=orm_history.created_at,
    )


def lending_history_to_row(history: domain.LendingHistory) -> dict[str, Any]:
    """Convert domain LendingHistory to SQLAlchemy column values."""
    return {
        "id": history.id,
        "lending_id": history.lending_id,
        "action": history.action,
        "description": history.description,
        "changes": history.changes,
        "user_id": history.user_id,
        "created_at": history.created_at,
    }


def account_transaction_history_to_domain(
    orm_history: ORMAccountTransactionHistory,
) -> domain.AccountTransactionHistory:
    """Convert SQLAlchemy AccountTransactionHistory model to domain entity."""
    return domain.AccountTransactionHistory(
        id=orm_history.id,
        account_transaction_id=orm_history.account_transaction_id,
        action=orm_history.action,
        description=orm_history.description,
        changes=orm_history.changes,
        user_id=orm_history.user_id,
        created_at=orm_history.created_at,
    )


def account_transaction_history_to_row(
    history: domain.AccountTransactionHistory,
) -> dict[str, Any]:
    """Convert domain AccountTransactionHistory to SQLAlchemy column values."""
    return {
        "id": history.id,
        "account_transaction_id": history.account_transaction_id,
        "action": history.action,
        "description": history.description,
        "changes": history.changes,
        "user_id": history.user_id,
        "created_at": history.created_at,
    }


class CollectionMapping(NamedTuple):
    model: type[Base]
    to_domain: Callable[[Any], Any]
    to_row: Callable[[Any], dict[str, Any]]


COLLECTION_MAPPINGS: dict[str, CollectionMapping] = {
    ACCOUNTS: CollectionMapping(ORMAccount, account_to_domain, account_to_row),
    PERSONS: CollectionMapping(ORMPerson, person_to_domain, person_to_row),
    LENDINGS: CollectionMapping(ORMLending, lending_to_domain, lending_to_row),
    ACCOUNT_TRANSACTIONS: CollectionMapping(
        ORMAccountTransaction, account_transaction_to_domain, account_transaction_to_row
    ),
    TRANSACTIONS: CollectionMapping(
        ORMTransaction, accounting_transaction_to_domain, accounting_transaction_to_row
    ),
    LENDING_HISTORIES: CollectionMapping(
        ORMLendingHistory, lending_history_to_domain, lending_history_to_row
    ),
    ACCOUNT_TRANSACTION_HISTORIES: CollectionMapping(
        ORMAccountTransactionHistory,
        account_transaction_history_to_domain,
        account_transaction_history_to_row,
    ),
}
