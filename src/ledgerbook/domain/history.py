"""Combined lending and account-transaction history for display."""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Literal, Optional, Sequence

from ledgerbook.domain.entities import AccountTransaction, Lending

LENDING_DISPLAY_TYPES = {
    "lend": "貸し",
    "borrow": "借り",
    "return": "返済",
}

TRANSACTION_DISPLAY_TYPES = {
    "transfer": "振替",
    "interest": "受取利息",
    "investment_gain": "運用損益",
    "deposit": "純入金",
    "withdrawal": "純出金",
}


@dataclass(frozen=True)
class CombinedHistoryItem:
    """One row of the merged history view."""

    id: str
    date: date
    type: str
    display_type: str
    amount: Decimal
    source: Literal["lending", "transaction"]
    original_id: int
    account_id: Optional[int] = None
    to_account_id: Optional[int] = None
    counterparty_type: Optional[str] = None
    counterparty_id: Optional[int] = None
    memo: Optional[str] = None
    returned: Optional[bool] = None
    created_by_user_id: Optional[int] = None
    last_edited_by_user_id: Optional[int] = None
    last_edited_at: Optional[datetime] = None


def lending_to_history_item(lending: Lending) -> CombinedHistoryItem:
    return CombinedHistoryItem(
        id=f"lending-{lending.id}",
        date=lending.date,
        type=lending.type,
        display_type=LENDING_DISPLAY_TYPES.get(lending.type, lending.type),
        amount=lending.amount,
        source="lending",
        original_id=lending.id,
        account_id=lending.account_id,
        counterparty_type=lending.counterparty_type,
        counterparty_id=lending.counterparty_id,
        memo=lending.memo,
        returned=lending.returned,
        created_by_user_id=lending.created_by_user_id,
        last_edited_by_user_id=lending.last_edited_by_user_id,
        last_edited_at=lending.last_edited_at,
    )


def transaction_to_history_item(transaction: AccountTransaction) -> CombinedHistoryItem:
    return CombinedHistoryItem(
        id=f"transaction-{transaction.id}",
        date=transaction.date,
        type=transaction.type,
        display_type=TRANSACTION_DISPLAY_TYPES.get(transaction.type, transaction.type),
        amount=transaction.amount,
        source="transaction",
        original_id=transaction.id,
        account_id=(
            transaction.from_account_id
            if transaction.type == "transfer"
            else transaction.account_id
        ),
        to_account_id=transaction.to_account_id,
        memo=transaction.memo,
        created_by_user_id=transaction.created_by_user_id,
        last_edited_by_user_id=transaction.last_edited_by_user_id,
        last_edited_at=transaction.last_edited_at,
    )


def create_combined_history(
    lendings: Sequence[Lending],
    transactions: Sequence[AccountTransaction],
    exclude_archived: bool = True,
) -> list[CombinedHistoryItem]:
    """Merge lendings and account transactions, newest date first.

    Args:
        lendings: Lendings to include
        transactions: Account transactions to include
        exclude_archived: If True, skip archived records

    Returns:
        List of history items sorted by date descending
    """
    items = [
        lending_to_history_item(l)
        for l in lendings
        if not (exclude_archived and l.is_archived)
    ]
    items.extend(
        transaction_to_history_item(t)
        for t in transactions
        if not (exclude_archived and t.is_archived)
    )
    return sorted(items, key=lambda item: item.date, reverse=True)
