"""Person (external counterparty) domain service."""

from dataclasses import replace
from decimal import Decimal
from typing import Optional

from ledgerbook.database.base import Database
from ledgerbook.domain.balance import calculate_person_totals, get_person_balance
from ledgerbook.domain.collections import LENDINGS, PERSONS
from ledgerbook.domain.entities import Person as PersonEntity
from ledgerbook.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    already_archived,
    person_not_found,
)


class PersonService:
    """Service for managing persons."""

    def __init__(self, db: Database):
        """Initialize person service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_person(
        self,
        name: str,
        memo: Optional[str] = None,
        business_id: Optional[int] = None,
    ) -> int:
        """Create a new person.

        Args:
            name: Person name
            memo: Optional memo
            business_id: Optional linked business

        Returns:
            Person ID

        Raises:
            ValidationError: If the name is empty
        """
        if not name or not name.strip():
            raise ValidationError("Person name must not be empty")

        created: list[PersonEntity] = []

        def append(items: list[PersonEntity]) -> list[PersonEntity]:
            person = PersonEntity(
                id=self.db.gen_id(items), name=name, memo=memo, business_id=business_id
            )
            created.append(person)
            return [*items, person]

        self.db.update_collection(PERSONS, append)
        return created[0].id

    def get_person(self, person_id: int) -> Optional[PersonEntity]:
        """Get person by ID, or None if not found."""
        for person in self.db.get_collection(PERSONS):
            if person.id == person_id:
                return person
        return None

    def require_person(self, person_id: int) -> PersonEntity:
        """Get person by ID or raise NotFoundError."""
        person = self.get_person(person_id)
        if person is None:
            raise NotFoundError(person_not_found(person_id))
        return person

    def list_persons(self, include_archived: bool = False) -> list[PersonEntity]:
        """List persons ordered by name."""
        persons = [
            p for p in self.db.get_collection(PERSONS) if include_archived or not p.is_archived
        ]
        return sorted(persons, key=lambda p: p.name)

    def set_archived(self, person_id: int, archived: bool = True) -> None:
        """Archive or restore a person.

        Raises:
            NotFoundError: If person not found
            ConflictError: If the person is already archived
        """
        person = self.require_person(person_id)
        if archived and person.is_archived:
            raise ConflictError(already_archived("Person", person_id))
        self.db.update_collection(
            PERSONS,
            lambda items: [
                replace(p, is_archived=archived) if p.id == person_id else p for p in items
            ],
        )

    def get_balance(self, person_id: int) -> Decimal:
        """Get the open lending balance with a person (positive: they owe us)."""
        self.require_person(person_id)
        return get_person_balance(self.db.get_collection(LENDINGS), person_id)

    def get_totals(self) -> tuple[Decimal, Decimal]:
        """Get (total_lent, total_borrowed) over active persons."""
        return calculate_person_totals(self.db.get_collection(LENDINGS), self.list_persons())
