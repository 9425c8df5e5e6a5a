"""Collection names and the callables the ledger core consumes from its host."""

from typing import Any, Callable, Protocol, Sequence

ACCOUNTS = "accounts"
PERSONS = "persons"
LENDINGS = "lendings"
ACCOUNT_TRANSACTIONS = "account_transactions"
TRANSACTIONS = "transactions"
LENDING_HISTORIES = "lending_histories"
ACCOUNT_TRANSACTION_HISTORIES = "account_transaction_histories"

COLLECTION_KEYS = (
    ACCOUNTS,
    PERSONS,
    LENDINGS,
    ACCOUNT_TRANSACTIONS,
    TRANSACTIONS,
    LENDING_HISTORIES,
    ACCOUNT_TRANSACTION_HISTORIES,
)


class HasId(Protocol):
    id: int


Updater = Callable[[list[Any]], list[Any]]
UpdateCollection = Callable[[str, Updater], list[Any]]
GenId = Callable[[Sequence[HasId]], int]


def gen_id(items: Sequence[HasId]) -> int:
    """Return the next id for ``items``: max existing id + 1, or 1 if empty."""
    ids = [item.id for item in items if isinstance(item.id, int)]
    return max(ids) + 1 if ids else 1
