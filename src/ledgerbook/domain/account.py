"""Account domain service."""

from dataclasses import replace
from decimal import Decimal
from typing import Optional

from ledgerbook.database.base import Database
from ledgerbook.domain.balance import get_account_lending_balance, get_account_net_worth
from ledgerbook.domain.collections import ACCOUNTS, LENDINGS
from ledgerbook.domain.entities import Account as AccountEntity
from ledgerbook.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    account_not_found,
    already_archived,
    duplicate_name,
)


class AccountService:
    """Service for managing accounts."""

    def __init__(self, db: Database):
        """Initialize account service.

        Args:
            db: Database instance
        """
        self.db = db

    def _check_unique_name(self, name: str, exclude_id: Optional[int] = None) -> None:
        for acc in self.db.get_collection(ACCOUNTS):
            if acc.id != exclude_id and acc.name == name:
                raise ConflictError(duplicate_name("Account", name))

    def create_account(
        self,
        name: str,
        balance: Optional[Decimal] = None,
        business_id: Optional[int] = None,
    ) -> int:
        """Create a new account.

        Args:
            name: Account name
            balance: Optional opening balance
            business_id: Optional owning business

        Returns:
            Account ID

        Raises:
            ValidationError: If the name is empty
            ConflictError: If account name already exists
        """
        if not name or not name.strip():
            raise ValidationError("Account name must not be empty")
        self._check_unique_name(name)

        created: list[AccountEntity] = []

        def append(items: list[AccountEntity]) -> list[AccountEntity]:
            account = AccountEntity(
                id=self.db.gen_id(items),
                name=name,
                balance=balance,
                business_id=business_id,
            )
            created.append(account)
            return [*items, account]

        self.db.update_collection(ACCOUNTS, append)
        return created[0].id

    def get_account(self, account_id: int) -> Optional[AccountEntity]:
        """Get account by ID.

        Args:
            account_id: Account ID

        Returns:
            Account entity or None if not found
        """
        for acc in self.db.get_collection(ACCOUNTS):
            if acc.id == account_id:
                return acc
        return None

    def require_account(self, account_id: int) -> AccountEntity:
        """Get account by ID or raise NotFoundError."""
        account = self.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        return account

    def list_accounts(self, include_archived: bool = False) -> list[AccountEntity]:
        """List accounts ordered by name.

        Args:
            include_archived: If True, include archived accounts

        Returns:
            List of account entities
        """
        accounts = [
            acc
            for acc in self.db.get_collection(ACCOUNTS)
            if include_archived or not acc.is_archived
        ]
        return sorted(accounts, key=lambda acc: acc.name)

    def edit_account(
        self,
        account_id: int,
        name: Optional[str] = None,
        balance: Optional[Decimal] = None,
        business_id: Optional[int] = None,
    ) -> None:
        """Edit account details.

        Setting ``balance`` overwrites the maintained balance; this is the
        only way to change it outside of ledger postings.

        Raises:
            NotFoundError: If account not found
            ConflictError: If the new name already exists
        """
        self.require_account(account_id)
        if name is not None:
            self._check_unique_name(name, exclude_id=account_id)

        def edit(a: AccountEntity) -> AccountEntity:
            return replace(
                a,
                name=name if name is not None else a.name,
                balance=balance if balance is not None else a.balance,
                business_id=business_id if business_id is not None else a.business_id,
            )

        self.db.update_collection(
            ACCOUNTS,
            lambda items: [edit(a) if a.id == account_id else a for a in items],
        )

    def set_archived(self, account_id: int, archived: bool = True) -> None:
        """Archive or restore an account.

        Raises:
            NotFoundError: If account not found
            ConflictError: If the account is already archived
        """
        account = self.require_account(account_id)
        if archived and account.is_archived:
            raise ConflictError(already_archived("Account", account_id))
        self.db.update_collection(
            ACCOUNTS,
            lambda items: [
                replace(a, is_archived=archived) if a.id == account_id else a for a in items
            ],
        )

    def add_tag(self, account_id: int, tag: str) -> None:
        """Add a tag to an account; existing or blank tags are ignored."""
        account = self.require_account(account_id)
        tag = tag.strip()
        if not tag or tag in account.tags:
            return
        self.db.update_collection(
            ACCOUNTS,
            lambda items: [
                replace(a, tags=(*a.tags, tag)) if a.id == account_id else a for a in items
            ],
        )

    def remove_tag(self, account_id: int, tag: str) -> None:
        """Remove a tag from an account."""
        self.require_account(account_id)
        self.db.update_collection(
            ACCOUNTS,
            lambda items: [
                replace(a, tags=tuple(t for t in a.tags if t != tag)) if a.id == account_id else a
                for a in items
            ],
        )

    def get_lending_balance(self, account_id: int) -> Decimal:
        """Get the open lending balance of an account."""
        self.require_account(account_id)
        return get_account_lending_balance(self.db.get_collection(LENDINGS), account_id)

    def get_net_worth(self, account_id: int) -> Decimal:
        """Get stored balance plus open receivables of lendings the account made."""
        account = self.require_account(account_id)
        return get_account_net_worth(account, self.db.get_collection(LENDINGS))
