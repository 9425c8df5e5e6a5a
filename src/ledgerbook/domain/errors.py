"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as returning a lending twice."""


class DependencyError(DomainError):
    """Operation blocked due to dependent domain data."""


def account_not_found(account_id: int) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def account_archived(account_id: int) -> str:
    """Return message for an archived account used in a new posting."""
    return f"Account {account_id} is archived"


def person_not_found(person_id: int) -> str:
    """Return message for missing person."""
    return f"Person {person_id} not found"


def person_archived(person_id: int) -> str:
    """Return message for an archived person used in a new lending."""
    return f"Person {person_id} is archived"


def lending_not_found(lending_id: int) -> str:
    """Return message for missing lending."""
    return f"Lending {lending_id} not found"


def account_transaction_not_found(transaction_id: int) -> str:
    """Return message for missing account transaction."""
    return f"Account transaction {transaction_id} not found"


def lending_already_returned(lending_id: int) -> str:
    """Return message when a lending is returned twice."""
    return f"Lending {lending_id} is already returned"


def closed_lending_fields(lending_id: int, fields: set[str]) -> str:
    """Return message when a settled lending is edited beyond date and memo."""
    return (
        f"Lending {lending_id} is settled; cannot change: {', '.join(sorted(fields))}"
    )


def lending_delete_blocked(lending_id: int) -> str:
    """Return message when a reconciled lending is hard-deleted."""
    return (
        f"Cannot delete lending {lending_id}: it is already returned. "
        "Archive it instead."
    )


def unknown_fields(fields: set[str]) -> str:
    """Return message for update keys that are not record fields."""
    return f"Unknown field{'s' if len(fields) != 1 else ''}: {', '.join(sorted(fields))}"


def already_archived(kind: str, record_id: int) -> str:
    """Return message when a record is archived twice."""
    return f"{kind} {record_id} is already archived"


def duplicate_name(kind: str, name: str) -> str:
    """Return message for a name uniqueness violation."""
    return f"{kind} with name '{name}' already exists"
