"""Utility for resolving account and person names to IDs."""

from ledgerbook.domain.account import AccountService
from ledgerbook.domain.errors import NotFoundError
from ledgerbook.domain.person import PersonService


def _as_id(value: str | int) -> int | None:
    if isinstance(value, int):
        return value
    try:
        return int(value)
    except (ValueError, TypeError):
        return None


def resolve_account(account_service: AccountService, account: str | int) -> int:
    """Resolve account name or ID to account ID.

    Args:
        account_service: AccountService instance
        account: Account name, or ID (int or string representation of int)

    Returns:
        Account ID

    Raises:
        NotFoundError: If account is not found
    """
    account_id = _as_id(account)
    if account_id is not None:
        return account_service.require_account(account_id).id

    for acc in account_service.list_accounts(include_archived=True):
        if acc.name == account:
            return acc.id
    raise NotFoundError(f"Account '{account}' not found")


def resolve_person(person_service: PersonService, person: str | int) -> int:
    """Resolve person name or ID to person ID.

    Raises:
        NotFoundError: If person is not found, or the name is ambiguous
    """
    person_id = _as_id(person)
    if person_id is not None:
        return person_service.require_person(person_id).id

    matches = [p for p in person_service.list_persons(include_archived=True) if p.name == person]
    if not matches:
        raise NotFoundError(f"Person '{person}' not found")
    if len(matches) > 1:
        raise NotFoundError(f"Person name '{person}' is ambiguous; use the ID")
    return matches[0].id
