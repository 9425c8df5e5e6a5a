"""Account transaction domain service."""

from datetime import date
from decimal import Decimal
from typing import Any, Optional

from ledgerbook.database.base import Database
from ledgerbook.domain import operations
from ledgerbook.domain.changes import generate_change_description
from ledgerbook.domain.collections import (
    ACCOUNTS,
    ACCOUNT_TRANSACTIONS,
    ACCOUNT_TRANSACTION_HISTORIES,
    PERSONS,
)
from ledgerbook.domain.entities import (
    Account,
    AccountTransaction,
    AccountTransactionHistory,
    ChangeDescription,
)
from ledgerbook.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    account_archived,
    account_not_found,
    account_transaction_not_found,
    already_archived,
    unknown_fields,
)

INCOME_TYPES = ("interest", "investment_gain")
NET_FLOW_TYPES = ("deposit", "withdrawal")

# Types a posting may be edited into without changing its shape.
TYPE_FAMILIES = (("transfer",), INCOME_TYPES, NET_FLOW_TYPES)


def _family(type: str) -> tuple[str, ...]:
    for family in TYPE_FAMILIES:
        if type in family:
            return family
    raise ValidationError(f"Invalid account transaction type '{type}'")


class AccountTransactionService:
    """Service for transfers, income postings and net flows between accounts."""

    def __init__(self, db: Database, user_id: Optional[int] = None):
        """Initialize account transaction service.

        Args:
            db: Database instance
            user_id: Current user, used for audit attribution
        """
        self.db = db
        self.user_id = user_id

    def _require_active_account(self, account_id: int) -> Account:
        for acc in self.db.get_collection(ACCOUNTS):
            if acc.id == account_id:
                if acc.is_archived:
                    raise ValidationError(account_archived(account_id))
                return acc
        raise NotFoundError(account_not_found(account_id))

    @staticmethod
    def _validate_amount(type: str, amount: Decimal) -> None:
        if type in INCOME_TYPES:
            if amount == 0:
                raise ValidationError("Amount must not be zero")
        elif amount <= 0:
            raise ValidationError("Amount must be positive")

    def create_transfer(
        self,
        from_account_id: int,
        to_account_id: int,
        amount: Decimal,
        date: date,
        memo: Optional[str] = None,
    ) -> AccountTransaction:
        """Transfer money between two accounts.

        Raises:
            ValidationError: If amount is not positive or both accounts are the same
            NotFoundError: If either account does not exist
        """
        if from_account_id == to_account_id:
            raise ValidationError("Cannot transfer to the same account")
        self._validate_amount("transfer", amount)
        self._require_active_account(from_account_id)
        self._require_active_account(to_account_id)
        with self.db.atomic():
            return operations.create_transfer(
                self.db.update_collection,
                self.db.gen_id,
                self.user_id,
                from_account_id=from_account_id,
                to_account_id=to_account_id,
                amount=amount,
                date=date,
                memo=memo,
            )

    def post_income(
        self,
        account_id: int,
        type: str,
        amount: Decimal,
        date: date,
        memo: Optional[str] = None,
    ) -> AccountTransaction:
        """Post interest or an investment gain (negative for a loss).

        A linked managerial-accounting transaction is created alongside.

        Raises:
            ValidationError: If type is not an income type or amount is zero
            NotFoundError: If the account does not exist
        """
        if type not in INCOME_TYPES:
            raise ValidationError(f"Invalid income type '{type}'")
        self._validate_amount(type, amount)
        account = self._require_active_account(account_id)
        with self.db.atomic():
            return operations.post_account_income(
                self.db.update_collection,
                self.db.gen_id,
                self.user_id,
                account=account,
                type=type,
                amount=amount,
                date=date,
                memo=memo,
            )

    def post_net_flow(
        self,
        account_id: int,
        type: str,
        amount: Decimal,
        date: date,
        memo: Optional[str] = None,
    ) -> AccountTransaction:
        """Post a deposit or withdrawal on one account."""
        if type not in NET_FLOW_TYPES:
            raise ValidationError(f"Invalid net flow type '{type}'")
        self._validate_amount(type, amount)
        self._require_active_account(account_id)
        with self.db.atomic():
            return operations.post_net_flow(
                self.db.update_collection,
                self.db.gen_id,
                self.user_id,
                account_id=account_id,
                type=type,
                amount=amount,
                date=date,
                memo=memo,
            )

    def get_transaction(self, transaction_id: int) -> Optional[AccountTransaction]:
        """Get account transaction by ID, or None if not found."""
        for t in self.db.get_collection(ACCOUNT_TRANSACTIONS):
            if t.id == transaction_id:
                return t
        return None

    def require_transaction(self, transaction_id: int) -> AccountTransaction:
        """Get account transaction by ID or raise NotFoundError."""
        transaction = self.get_transaction(transaction_id)
        if transaction is None:
            raise NotFoundError(account_transaction_not_found(transaction_id))
        return transaction

    def list_transactions(
        self, include_archived: bool = False, account_id: Optional[int] = None
    ) -> list[AccountTransaction]:
        """List account transactions, newest first.

        Args:
            include_archived: If True, include archived transactions
            account_id: Optional filter on any account the transaction touches
        """
        result = [
            t
            for t in self.db.get_collection(ACCOUNT_TRANSACTIONS)
            if (include_archived or not t.is_archived)
            and (
                account_id is None
                or account_id in (t.account_id, t.from_account_id, t.to_account_id)
            )
        ]
        return sorted(result, key=lambda t: (t.date, t.id), reverse=True)

    def edit_transaction(self, transaction_id: int, **fields: Any) -> ChangeDescription:
        """Edit an account transaction.

        The type may only change within its family (interest and
        investment_gain, or deposit and withdrawal); transfers stay transfers.

        Args:
            transaction_id: Transaction to edit
            **fields: Any of type, amount, date, memo, account_id,
                from_account_id, to_account_id

        Returns:
            ChangeDescription of what changed

        Raises:
            NotFoundError: If the transaction or an account is not found
            ConflictError: If the transaction is archived
            ValidationError: If a field is unknown or invalid
        """
        transaction = self.require_transaction(transaction_id)
        if transaction.is_archived:
            raise ConflictError(already_archived("Account transaction", transaction_id))
        fields = {key: value for key, value in fields.items() if value is not None}
        unknown = set(fields) - operations.TRANSACTION_EDITABLE_FIELDS
        if unknown:
            raise ValidationError(unknown_fields(unknown))

        new_type = fields.get("type", transaction.type)
        if new_type not in _family(transaction.type):
            raise ValidationError(
                f"Cannot change {transaction.type} into {new_type}"
            )
        if new_type == "transfer" and "account_id" in fields:
            raise ValidationError("A transfer uses from/to accounts")
        if new_type != "transfer" and ({"from_account_id", "to_account_id"} & set(fields)):
            raise ValidationError(f"A {new_type} posting uses a single account")
        self._validate_amount(new_type, fields.get("amount", transaction.amount))
        for key in ("account_id", "from_account_id", "to_account_id"):
            if key in fields:
                self._require_active_account(fields[key])
        if new_type == "transfer" and fields.get(
            "from_account_id", transaction.from_account_id
        ) == fields.get("to_account_id", transaction.to_account_id):
            raise ValidationError("Cannot transfer to the same account")

        old_values = {
            "type": transaction.type,
            "amount": transaction.amount,
            "date": transaction.date,
            "memo": transaction.memo or "",
            "account_id": transaction.account_id,
            "from_account_id": transaction.from_account_id,
            "to_account_id": transaction.to_account_id,
        }
        new_values = {**old_values, **fields}
        result = generate_change_description(
            old_values,
            new_values,
            self.db.get_collection(ACCOUNTS),
            self.db.get_collection(PERSONS),
        )
        updates = {
            key: value for key, value in fields.items() if new_values[key] != old_values[key]
        }

        with self.db.atomic():
            operations.save_transaction_edit(
                self.db.get_collection(ACCOUNT_TRANSACTIONS),
                self.db.update_collection,
                self.db.gen_id,
                self.user_id,
                transaction_id,
                updates,
                result.changes,
            )
        return result

    def archive_transaction(self, transaction_id: int) -> None:
        """Archive an account transaction, reversing its balance effect.

        Raises:
            NotFoundError: If transaction not found
            ConflictError: If transaction is already archived
        """
        transaction = self.require_transaction(transaction_id)
        if transaction.is_archived:
            raise ConflictError(already_archived("Account transaction", transaction_id))
        with self.db.atomic():
            operations.archive_account_transaction(
                transaction, self.db.update_collection, self.db.gen_id, self.user_id
            )

    def get_history(self, transaction_id: int) -> list[AccountTransactionHistory]:
        """Get the audit history of an account transaction, oldest first."""
        self.require_transaction(transaction_id)
        return [
            h
            for h in self.db.get_collection(ACCOUNT_TRANSACTION_HISTORIES)
            if h.account_transaction_id == transaction_id
        ]
