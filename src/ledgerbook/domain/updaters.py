"""Account balance updater builders.

Each builder returns a function ``(accounts) -> accounts`` suitable for
``update_collection("accounts", ...)``. The input list is never mutated.
"""

from dataclasses import replace
from decimal import Decimal
from typing import Callable, Optional

from ledgerbook.domain.entities import Account

AccountsUpdater = Callable[[list[Account]], list[Account]]


def _identity(accounts: list[Account]) -> list[Account]:
    return accounts


def _add_to_balance(account: Account, delta: Decimal) -> Account:
    return replace(account, balance=(account.balance or Decimal("0")) + delta)


def create_single_account_balance_updater(
    account_id: Optional[int], delta: Decimal
) -> AccountsUpdater:
    """Build an updater applying ``delta`` to one account's balance.

    Args:
        account_id: Account to update; None yields a no-op updater
        delta: Signed balance change; zero yields a no-op updater

    Returns:
        Function mapping an account list to an updated copy
    """
    if not account_id or delta == 0:
        return _identity

    def updater(accounts: list[Account]) -> list[Account]:
        return [
            _add_to_balance(a, delta) if a.id == account_id else a
            for a in accounts
        ]

    return updater


def create_transfer_balance_updater(
    from_account_id: Optional[int],
    to_account_id: Optional[int],
    amount: Decimal,
    is_reversing: bool = False,
) -> AccountsUpdater:
    """Build an updater moving ``amount`` between two accounts in one pass.

    The two deltas always sum to zero.

    Args:
        from_account_id: Source account
        to_account_id: Destination account
        amount: Transfer amount
        is_reversing: If True, move the amount back

    Returns:
        Function mapping an account list to an updated copy
    """
    sign = -1 if is_reversing else 1
    delta = amount * sign

    def updater(accounts: list[Account]) -> list[Account]:
        result = []
        for a in accounts:
            if a.id == from_account_id:
                a = _add_to_balance(a, -delta)
            elif a.id == to_account_id:
                a = _add_to_balance(a, delta)
            result.append(a)
        return result

    return updater
