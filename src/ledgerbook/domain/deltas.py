"""Balance delta calculation.

All sign rules of the ledger live here. Call sites never decide a sign on
their own; they ask for a delta and, to undo an earlier effect, ask again
with ``is_reversing=True``.
"""

from decimal import Decimal

from ledgerbook.domain.entities import Lending

ZERO = Decimal("0")


def calculate_lending_balance_change(
    type: str, amount: Decimal, is_reversing: bool = False
) -> Decimal:
    """Calculate the balance change a lending record applies to its account.

    Args:
        type: Lending type ("lend", "borrow" or "return")
        amount: Stored amount of the record
        is_reversing: If True, return the delta that undoes the effect

    Returns:
        Signed balance change
    """
    if type == "borrow":
        change = abs(amount)
    elif type == "lend":
        change = -abs(amount)
    else:
        # A return record already stores the negated effect of its original.
        change = amount
    return -change if is_reversing else change


def calculate_return_balance_change(lending: Lending) -> Decimal:
    """Calculate the balance change of returning ``lending``.

    Money comes back for a lend and is paid out for a borrow.

    Args:
        lending: The original lend/borrow record being closed

    Returns:
        Signed balance change
    """
    if lending.type == "lend":
        return abs(lending.amount)
    return -abs(lending.amount)


def calculate_transaction_balance_change(
    type: str, amount: Decimal, is_reversing: bool = False
) -> Decimal:
    """Calculate the balance change of a single-account transaction.

    ``investment_gain`` may carry a negative amount for a realized loss; the
    direction is applied as-is, never special-cased on the input sign.
    Transfers touch two accounts and always yield zero here.

    Args:
        type: Account transaction type
        amount: Transaction amount
        is_reversing: If True, return the delta that undoes the effect

    Returns:
        Signed balance change
    """
    if type in ("interest", "investment_gain", "deposit"):
        change = amount
    elif type == "withdrawal":
        change = -amount
    else:
        change = ZERO
    return -change if is_reversing else change
