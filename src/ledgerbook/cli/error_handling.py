"""CLI error handling helpers."""

from datetime import date
from decimal import Decimal

import click

from ledgerbook.domain.account import AccountService
from ledgerbook.domain.errors import DomainError
from ledgerbook.domain.person import PersonService
from ledgerbook.utils.account_resolver import resolve_account, resolve_person
from ledgerbook.utils.amount_parser import parse_amount
from ledgerbook.utils.date_parser import parse_date


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)


def resolve_account_or_exit(
    ctx: click.Context, account_service: AccountService, account: str | int
) -> int:
    """Resolve account name or ID, or exit with a CLI error."""
    try:
        return resolve_account(account_service, account)
    except ValueError as exc:
        handle_domain_error(ctx, exc)


def resolve_person_or_exit(
    ctx: click.Context, person_service: PersonService, person: str | int
) -> int:
    """Resolve person name or ID, or exit with a CLI error."""
    try:
        return resolve_person(person_service, person)
    except ValueError as exc:
        handle_domain_error(ctx, exc)


def parse_amount_or_exit(ctx: click.Context, value: str) -> Decimal:
    try:
        return parse_amount(value)
    except ValueError as exc:
        click.echo(f"Error: Invalid amount format: {exc}", err=True)
        ctx.exit(1)


def parse_date_or_exit(ctx: click.Context, value: str) -> date:
    try:
        return parse_date(value)
    except ValueError as exc:
        click.echo(f"Error: Invalid date format: {exc}", err=True)
        ctx.exit(1)
