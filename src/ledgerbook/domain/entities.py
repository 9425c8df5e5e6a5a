"""Domain model entities for ledgerbook.

These are pure data classes representing business concepts, independent of
database schema. Collections of these records are replaced wholesale by the
store's ``update_collection``; a record is never mutated in place, a new one
is produced with ``dataclasses.replace``.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from typing import Literal, Optional

LendingType = Literal["lend", "borrow", "return"]
AccountTransactionType = Literal[
    "transfer", "interest", "investment_gain", "deposit", "withdrawal"
]
CounterpartyType = Literal["account", "person"]
HistoryAction = Literal["created", "updated", "archived", "returned"]

LENDING_TYPES = ("lend", "borrow", "return")
ACCOUNT_TRANSACTION_TYPES = (
    "transfer",
    "interest",
    "investment_gain",
    "deposit",
    "withdrawal",
)
COUNTERPARTY_TYPES = ("account", "person")


@dataclass(frozen=True)
class Account:
    """Internal money pool."""

    id: int
    name: str
    balance: Optional[Decimal] = None
    business_id: Optional[int] = None
    tags: tuple[str, ...] = ()
    is_archived: bool = False


@dataclass(frozen=True)
class Person:
    """External counterparty. Its balance is always derived, never stored."""

    id: int
    name: str
    memo: Optional[str] = None
    business_id: Optional[int] = None
    tags: tuple[str, ...] = ()
    is_archived: bool = False


@dataclass(frozen=True)
class Lending:
    """Lend/borrow/return record between an account and a counterparty.

    ``amount`` is the signed effect on ``account_id``'s balance: a lend is
    stored negative (money leaves the account), a borrow positive, and a
    return record carries the negation of the lending it closes.
    """

    id: int
    account_id: int
    type: LendingType
    amount: Decimal
    date: date
    counterparty_type: Optional[CounterpartyType] = None
    counterparty_id: Optional[int] = None
    memo: Optional[str] = None
    returned: bool = False
    original_id: Optional[int] = None
    is_archived: bool = False
    created_at: Optional[datetime] = None
    created_by_user_id: Optional[int] = None
    last_edited_by_user_id: Optional[int] = None
    last_edited_at: Optional[datetime] = None


@dataclass(frozen=True)
class AccountTransaction:
    """Movement touching one account, or two for a transfer."""

    id: int
    type: AccountTransactionType
    amount: Decimal
    date: date
    account_id: Optional[int] = None
    from_account_id: Optional[int] = None
    to_account_id: Optional[int] = None
    memo: Optional[str] = None
    is_archived: bool = False
    linked_transaction_id: Optional[int] = None
    created_at: Optional[datetime] = None
    created_by_user_id: Optional[int] = None
    last_edited_by_user_id: Optional[int] = None
    last_edited_at: Optional[datetime] = None


@dataclass(frozen=True)
class AccountingTransaction:
    """Row of the managerial-accounting ledger (``transactions`` collection)."""

    id: int
    type: Literal["income", "expense"]
    category: str
    amount: Decimal
    date: date
    business_id: Optional[int] = None
    account_id: Optional[int] = None
    memo: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class LendingHistory:
    """Append-only audit entry for a lending."""

    id: int
    lending_id: int
    action: HistoryAction
    description: str
    user_id: int
    created_at: datetime
    changes: Optional[str] = None


@dataclass(frozen=True)
class AccountTransactionHistory:
    """Append-only audit entry for an account transaction."""

    id: int
    account_transaction_id: int
    action: HistoryAction
    description: str
    user_id: int
    created_at: datetime
    changes: Optional[str] = None


@dataclass(frozen=True)
class FieldChange:
    """One field difference, already resolved to display strings."""

    field: str
    old_value: Optional[str]
    new_value: Optional[str]
    display_name: str

    def to_dict(self) -> dict[str, Optional[str]]:
        return {
            "field": self.field,
            "old_value": self.old_value,
            "new_value": self.new_value,
            "display_name": self.display_name,
        }


@dataclass(frozen=True)
class ChangeDescription:
    """Result of diffing old and new field values."""

    description: str
    changes: list[FieldChange] = field(default_factory=list)
