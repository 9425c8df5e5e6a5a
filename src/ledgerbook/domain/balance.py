"""Derived balances.

Balances that are not stored are recomputed from scratch by scanning the
active (non-archived) lendings. The sign rules come from
``calculate_lending_balance_change``: an open lend is a receivable for the
account, an open borrow a payable.
"""

from decimal import Decimal
from typing import Iterable, Sequence

from ledgerbook.domain.deltas import calculate_lending_balance_change
from ledgerbook.domain.entities import Account, Lending, Person

ZERO = Decimal("0")


def _open_lendings(lendings: Iterable[Lending]) -> Iterable[Lending]:
    return (l for l in lendings if not l.is_archived and not l.returned)


def _receivable(lending: Lending) -> Decimal:
    # Money that left the account on a lend is owed back to it.
    return -calculate_lending_balance_change(lending.type, lending.amount)


def get_person_balance(lendings: Sequence[Lending], person_id: int) -> Decimal:
    """Get the open lending balance with a person.

    Args:
        lendings: All lendings
        person_id: Person ID

    Returns:
        Positive when the person owes us (貸し), negative when we owe them (借り)
    """
    return sum(
        (
            _receivable(l)
            for l in _open_lendings(lendings)
            if l.counterparty_type == "person" and l.counterparty_id == person_id
        ),
        ZERO,
    )


def get_account_lending_balance(lendings: Sequence[Lending], account_id: int) -> Decimal:
    """Get the open lending balance of an account.

    Lendings between two accounts count for both sides with opposite signs.
    This is the position with each counterparty, not a cash figure; see
    ``get_account_net_worth`` for the latter.

    Args:
        lendings: All lendings
        account_id: Account ID

    Returns:
        Positive for a net receivable (asset), negative for a net payable
    """
    balance = ZERO
    for l in _open_lendings(lendings):
        if l.account_id == account_id:
            balance += _receivable(l)
        if l.counterparty_type == "account" and l.counterparty_id == account_id:
            balance -= _receivable(l)
    return balance


def get_account_net_worth(account: Account, lendings: Sequence[Lending]) -> Decimal:
    """Stored balance plus the open receivables of lendings the account made.

    Only the principal account's stored balance moves when a lending is
    recorded, so lendings where the account is merely the counterparty are
    left out. Net worth summed over all accounts is unchanged by a lending
    between two of them.
    """
    return (account.balance or ZERO) + sum(
        (_receivable(l) for l in _open_lendings(lendings) if l.account_id == account.id),
        ZERO,
    )


def calculate_person_totals(
    lendings: Sequence[Lending], persons: Iterable[Person]
) -> tuple[Decimal, Decimal]:
    """Sum open balances over persons.

    Returns:
        Tuple of (total_lent, total_borrowed), both non-negative
    """
    total_lent = ZERO
    total_borrowed = ZERO
    for person in persons:
        balance = get_person_balance(lendings, person.id)
        if balance > 0:
            total_lent += balance
        else:
            total_borrowed += abs(balance)
    return total_lent, total_borrowed
