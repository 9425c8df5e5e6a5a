"""Lending domain service."""

from datetime import date
from decimal import Decimal
from typing import Any, Optional

from ledgerbook.database.base import Database
from ledgerbook.domain import operations
from ledgerbook.domain.changes import generate_change_description
from ledgerbook.domain.collections import ACCOUNTS, LENDINGS, LENDING_HISTORIES, PERSONS
from ledgerbook.domain.deltas import calculate_lending_balance_change
from ledgerbook.domain.entities import (
    COUNTERPARTY_TYPES,
    ChangeDescription,
    Lending,
    LendingHistory,
)
from ledgerbook.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    account_archived,
    account_not_found,
    already_archived,
    closed_lending_fields,
    lending_not_found,
    person_archived,
    person_not_found,
    unknown_fields,
)

OPEN_TYPES = ("lend", "borrow")

# A return record mirrors the lending it closes; only these may change once settled.
SETTLED_EDITABLE_FIELDS = frozenset({"date", "memo"})


class LendingService:
    """Service for recording, editing and archiving lendings."""

    def __init__(self, db: Database, user_id: Optional[int] = None):
        """Initialize lending service.

        Args:
            db: Database instance
            user_id: Current user, used for audit attribution
        """
        self.db = db
        self.user_id = user_id

    def _require_active_account(self, account_id: int) -> None:
        for acc in self.db.get_collection(ACCOUNTS):
            if acc.id == account_id:
                if acc.is_archived:
                    raise ValidationError(account_archived(account_id))
                return
        raise NotFoundError(account_not_found(account_id))

    def _require_active_person(self, person_id: int) -> None:
        for person in self.db.get_collection(PERSONS):
            if person.id == person_id:
                if person.is_archived:
                    raise ValidationError(person_archived(person_id))
                return
        raise NotFoundError(person_not_found(person_id))

    def _validate_counterparty(
        self, account_id: int, counterparty_type: str, counterparty_id: int
    ) -> None:
        if counterparty_type not in COUNTERPARTY_TYPES:
            raise ValidationError(f"Invalid counterparty type '{counterparty_type}'")
        if counterparty_type == "account":
            if counterparty_id == account_id:
                raise ValidationError("An account cannot lend to itself")
            self._require_active_account(counterparty_id)
        else:
            self._require_active_person(counterparty_id)

    @staticmethod
    def _validate_magnitude(amount: Decimal) -> None:
        if amount <= 0:
            raise ValidationError("Amount must be positive")

    def create_lending(
        self,
        account_id: int,
        counterparty_type: str,
        counterparty_id: int,
        type: str,
        amount: Decimal,
        date: date,
        memo: Optional[str] = None,
    ) -> Lending:
        """Record a lend or borrow.

        Args:
            account_id: Account whose balance the lending affects
            counterparty_type: "account" or "person"
            counterparty_id: ID of the counterparty
            type: "lend" or "borrow"
            amount: Positive amount
            date: Lending date
            memo: Optional memo

        Returns:
            The created lending

        Raises:
            ValidationError: If type, amount or counterparty is invalid
            NotFoundError: If the account or counterparty does not exist
        """
        if type not in OPEN_TYPES:
            raise ValidationError(f"Invalid lending type '{type}'")
        self._validate_magnitude(amount)
        self._require_active_account(account_id)
        self._validate_counterparty(account_id, counterparty_type, counterparty_id)

        with self.db.atomic():
            return operations.create_lending(
                self.db.update_collection,
                self.db.gen_id,
                self.user_id,
                account_id=account_id,
                counterparty_type=counterparty_type,
                counterparty_id=counterparty_id,
                type=type,
                amount=amount,
                date=date,
                memo=memo,
            )

    def get_lending(self, lending_id: int) -> Optional[Lending]:
        """Get lending by ID, or None if not found."""
        for lending in self.db.get_collection(LENDINGS):
            if lending.id == lending_id:
                return lending
        return None

    def require_lending(self, lending_id: int) -> Lending:
        """Get lending by ID or raise NotFoundError."""
        lending = self.get_lending(lending_id)
        if lending is None:
            raise NotFoundError(lending_not_found(lending_id))
        return lending

    def list_lendings(
        self,
        include_archived: bool = False,
        status: Optional[str] = None,
        account_id: Optional[int] = None,
        person_id: Optional[int] = None,
    ) -> list[Lending]:
        """List lendings, newest first.

        Args:
            include_archived: If True, include archived lendings
            status: "open" for unreturned, "returned" for returned, None for all
            account_id: Optional filter on the account or account counterparty
            person_id: Optional filter on the person counterparty

        Returns:
            List of lending entities
        """
        result = []
        for l in self.db.get_collection(LENDINGS):
            if l.is_archived and not include_archived:
                continue
            if status == "open" and l.returned:
                continue
            if status == "returned" and not l.returned:
                continue
            if account_id is not None and not (
                l.account_id == account_id
                or (l.counterparty_type == "account" and l.counterparty_id == account_id)
            ):
                continue
            if person_id is not None and not (
                l.counterparty_type == "person" and l.counterparty_id == person_id
            ):
                continue
            result.append(l)
        return sorted(result, key=lambda l: (l.date, l.id), reverse=True)

    def mark_returned(self, lending_id: int, return_date: Optional[date] = None) -> Lending:
        """Close a lending with a return record.

        Returns:
            The created return record

        Raises:
            NotFoundError: If lending not found
            ConflictError: If lending is archived or already returned
        """
        lending = self.require_lending(lending_id)
        if lending.is_archived:
            raise ConflictError(already_archived("Lending", lending_id))
        with self.db.atomic():
            return operations.mark_lending_returned(
                lending,
                self.db.update_collection,
                self.db.gen_id,
                self.user_id,
                return_date=return_date,
            )

    def edit_lending(self, lending_id: int, **fields: Any) -> ChangeDescription:
        """Edit a lending.

        ``amount`` is the magnitude as entered; the stored sign follows the
        (possibly new) type. Fields not passed keep their current value.
        Once a lending is returned, it and its return record only accept
        date and memo changes.

        Args:
            lending_id: Lending to edit
            **fields: Any of account_id, counterparty_type, counterparty_id,
                type, amount, date, memo

        Returns:
            ChangeDescription of what changed (empty changes when nothing did)

        Raises:
            NotFoundError: If lending, account or counterparty not found
            ValidationError: If a field is unknown or invalid
            ConflictError: If the lending is archived, or settled and a field
                other than date or memo would change
        """
        lending = self.require_lending(lending_id)
        if lending.is_archived:
            raise ConflictError(already_archived("Lending", lending_id))
        fields = {key: value for key, value in fields.items() if value is not None}
        unknown = set(fields) - operations.LENDING_EDITABLE_FIELDS
        if unknown:
            raise ValidationError(unknown_fields(unknown))
        new_type = fields.get("type", lending.type)
        if new_type != lending.type and (
            lending.type == "return" or new_type not in OPEN_TYPES
        ):
            raise ValidationError(f"Cannot change lending type to '{new_type}'")
        if "amount" in fields:
            self._validate_magnitude(fields["amount"])
        if "account_id" in fields:
            self._require_active_account(fields["account_id"])
        if "counterparty_type" in fields or "counterparty_id" in fields:
            self._validate_counterparty(
                fields.get("account_id", lending.account_id),
                fields.get("counterparty_type", lending.counterparty_type),
                fields.get("counterparty_id", lending.counterparty_id),
            )

        old_values = {
            "type": lending.type,
            "amount": abs(lending.amount),
            "date": lending.date,
            "memo": lending.memo or "",
            "account_id": lending.account_id,
            "counterparty_type": lending.counterparty_type,
            "counterparty_id": lending.counterparty_id,
        }
        new_values = {**old_values, **fields}
        if "amount" in fields:
            new_values["amount"] = abs(fields["amount"])
        if lending.returned or lending.type == "return":
            locked = {
                key
                for key in fields
                if key not in SETTLED_EDITABLE_FIELDS and new_values[key] != old_values[key]
            }
            if locked:
                raise ConflictError(closed_lending_fields(lending_id, locked))

        result = generate_change_description(
            old_values,
            new_values,
            self.db.get_collection(ACCOUNTS),
            self.db.get_collection(PERSONS),
        )

        updates = {
            key: value for key, value in fields.items() if new_values[key] != old_values[key]
        }
        if "amount" in updates or "type" in updates:
            updates["amount"] = calculate_lending_balance_change(new_type, new_values["amount"])

        with self.db.atomic():
            operations.save_lending_edit(
                self.db.get_collection(LENDINGS),
                self.db.update_collection,
                self.db.gen_id,
                self.user_id,
                lending_id,
                updates,
                result.changes,
            )
        return result

    def archive_lending(self, lending_id: int) -> None:
        """Archive a lending, reversing its balance effect while open.

        Raises:
            NotFoundError: If lending not found
            ConflictError: If lending is already archived
        """
        lending = self.require_lending(lending_id)
        if lending.is_archived:
            raise ConflictError(already_archived("Lending", lending_id))
        with self.db.atomic():
            operations.archive_lending(
                lending, self.db.update_collection, self.db.gen_id, self.user_id
            )

    def delete_lending(self, lending_id: int) -> None:
        """Hard-delete an open lending and its history.

        Raises:
            NotFoundError: If lending not found
            DependencyError: If lending is already returned
        """
        lending = self.require_lending(lending_id)
        with self.db.atomic():
            operations.delete_lending(lending, self.db.update_collection)

    def get_history(self, lending_id: int) -> list[LendingHistory]:
        """Get the audit history of a lending, oldest first."""
        self.require_lending(lending_id)
        return [h for h in self.db.get_collection(LENDING_HISTORIES) if h.lending_id == lending_id]
