"""Lending commands."""

import click

from ledgerbook.cli.error_handling import (
    handle_domain_error,
    parse_amount_or_exit,
    parse_date_or_exit,
    resolve_account_or_exit,
    resolve_person_or_exit,
)
from ledgerbook.domain.account import AccountService
from ledgerbook.domain.history import LENDING_DISPLAY_TYPES
from ledgerbook.domain.lending import LendingService
from ledgerbook.domain.person import PersonService
from ledgerbook.utils.amount_parser import format_amount


def _services(ctx) -> tuple[LendingService, AccountService, PersonService]:
    db = ctx.obj["db"]
    return (
        LendingService(db, user_id=ctx.obj.get("user_id")),
        AccountService(db),
        PersonService(db),
    )


def _resolve_counterparty(
    ctx, accounts: AccountService, persons: PersonService, person: str | None, to_account: str | None
) -> tuple[str | None, int | None]:
    if person is not None and to_account is not None:
        click.echo("Error: Use either --person or --to-account, not both.", err=True)
        ctx.exit(1)
    if person is not None:
        return "person", resolve_person_or_exit(ctx, persons, person)
    if to_account is not None:
        return "account", resolve_account_or_exit(ctx, accounts, to_account)
    return None, None


@click.group()
def lending_group():
    """Record lends, borrows and returns."""
    pass


@lending_group.command("add")
@click.argument("type", type=click.Choice(["lend", "borrow"]))
@click.argument("amount")
@click.option("--account", required=True, help="Account name or ID whose balance is affected")
@click.option("--person", help="Person name or ID")
@click.option("--to-account", help="Counterparty account name or ID")
@click.option("--date", "date_str", default="today", help="Date (YYYY-MM-DD or 'today', 'yesterday')")
@click.option("--memo", help="Memo")
@click.pass_context
def add_lending(
    ctx,
    type: str,
    amount: str,
    account: str,
    person: str | None,
    to_account: str | None,
    date_str: str,
    memo: str | None,
):
    """Record a lend or borrow.

    Examples:
        ledgerbook lending add lend 30000 --account Cash --person Tanaka
        ledgerbook lending add borrow ¥100,000 --account Bank --to-account Savings
    """
    lendings, accounts, persons = _services(ctx)
    account_id = resolve_account_or_exit(ctx, accounts, account)
    counterparty_type, counterparty_id = _resolve_counterparty(
        ctx, accounts, persons, person, to_account
    )
    if counterparty_type is None:
        click.echo("Error: A counterparty is required (--person or --to-account).", err=True)
        ctx.exit(1)
    value = parse_amount_or_exit(ctx, amount)
    lending_date = parse_date_or_exit(ctx, date_str)

    try:
        lending = lendings.create_lending(
            account_id=account_id,
            counterparty_type=counterparty_type,
            counterparty_id=counterparty_id,
            type=type,
            amount=value,
            date=lending_date,
            memo=memo,
        )
        click.echo(
            f"Recorded {LENDING_DISPLAY_TYPES[type]} {format_amount(value)} (ID: {lending.id})"
        )
    except ValueError as e:
        handle_domain_error(ctx, e)


@lending_group.command("list")
@click.option("--open", "status", flag_value="open", help="Only unreturned lendings")
@click.option("--returned", "status", flag_value="returned", help="Only returned lendings")
@click.option("--account", help="Filter by account name or ID")
@click.option("--person", help="Filter by person name or ID")
@click.option("--all", "include_archived", is_flag=True, help="Include archived lendings")
@click.pass_context
def list_lendings(
    ctx,
    status: str | None,
    account: str | None,
    person: str | None,
    include_archived: bool,
):
    """List lendings, newest first."""
    lendings, accounts, persons = _services(ctx)
    account_id = resolve_account_or_exit(ctx, accounts, account) if account else None
    person_id = resolve_person_or_exit(ctx, persons, person) if person else None

    result = lendings.list_lendings(
        include_archived=include_archived,
        status=status,
        account_id=account_id,
        person_id=person_id,
    )
    if not result:
        click.echo("No lendings found.")
        return

    account_names = {a.id: a.name for a in accounts.list_accounts(include_archived=True)}
    person_names = {p.id: p.name for p in persons.list_persons(include_archived=True)}
    for l in result:
        names = account_names if l.counterparty_type == "account" else person_names
        flags = []
        if l.returned and l.type != "return":
            flags.append("returned")
        if l.is_archived:
            flags.append("archived")
        suffix = f" ({', '.join(flags)})" if flags else ""
        click.echo(
            f"ID: {l.id:4d} | {l.date} | {LENDING_DISPLAY_TYPES.get(l.type, l.type):4s} | "
            f"{format_amount(l.amount):>12s} | {account_names.get(l.account_id, '-'):15s} | "
            f"{names.get(l.counterparty_id, '-'):15s} | {l.memo or ''}{suffix}"
        )


@lending_group.command("return")
@click.argument("lending_id", type=int)
@click.option("--date", "date_str", help="Return date (defaults to today)")
@click.pass_context
def return_lending(ctx, lending_id: int, date_str: str | None):
    """Mark a lending as returned."""
    lendings, _, _ = _services(ctx)
    return_date = parse_date_or_exit(ctx, date_str) if date_str else None
    try:
        record = lendings.mark_returned(lending_id, return_date=return_date)
        click.echo(f"Returned lending {lending_id} (return record ID: {record.id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@lending_group.command("edit")
@click.argument("lending_id", type=int)
@click.option("--type", type=click.Choice(["lend", "borrow"]), help="Lending type")
@click.option("--amount", help="Amount")
@click.option("--account", help="Account name or ID")
@click.option("--person", help="Person name or ID")
@click.option("--to-account", help="Counterparty account name or ID")
@click.option("--date", "date_str", help="Date")
@click.option("--memo", help="Memo")
@click.pass_context
def edit_lending(
    ctx,
    lending_id: int,
    type: str | None,
    amount: str | None,
    account: str | None,
    person: str | None,
    to_account: str | None,
    date_str: str | None,
    memo: str | None,
):
    """Edit a lending. Only the given fields change.

    Examples:
        ledgerbook lending edit 3 --amount 25000
        ledgerbook lending edit 3 --person Suzuki --memo "立替"
    """
    lendings, accounts, persons = _services(ctx)
    counterparty_type, counterparty_id = _resolve_counterparty(
        ctx, accounts, persons, person, to_account
    )
    fields = {
        "type": type,
        "amount": parse_amount_or_exit(ctx, amount) if amount is not None else None,
        "account_id": resolve_account_or_exit(ctx, accounts, account) if account else None,
        "counterparty_type": counterparty_type,
        "counterparty_id": counterparty_id,
        "date": parse_date_or_exit(ctx, date_str) if date_str else None,
        "memo": memo,
    }

    try:
        result = lendings.edit_lending(lending_id, **fields)
        click.echo(f"Updated lending {lending_id}: {result.description}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@lending_group.command("archive")
@click.argument("lending_id", type=int)
@click.pass_context
def archive_lending(ctx, lending_id: int):
    """Archive a lending, reversing its balance effect while open."""
    lendings, _, _ = _services(ctx)
    try:
        lendings.archive_lending(lending_id)
        click.echo(f"Archived lending {lending_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@lending_group.command("delete")
@click.argument("lending_id", type=int)
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_lending(ctx, lending_id: int, yes: bool):
    """Permanently delete an unreturned lending and its history."""
    lendings, _, _ = _services(ctx)
    if not yes and not click.confirm(f"Are you sure you want to delete lending {lending_id}?"):
        click.echo("Deletion cancelled.")
        return
    try:
        lendings.delete_lending(lending_id)
        click.echo(f"Deleted lending {lending_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@lending_group.command("history")
@click.argument("lending_id", type=int)
@click.pass_context
def lending_history(ctx, lending_id: int):
    """Show the audit history of a lending."""
    lendings, _, _ = _services(ctx)
    try:
        entries = lendings.get_history(lending_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
        return
    if not entries:
        click.echo("No history found.")
        return
    for h in entries:
        click.echo(
            f"{h.created_at:%Y-%m-%d %H:%M} | user {h.user_id} | {h.action:8s} | {h.description}"
        )


def register_commands(cli):
    """Register lending commands with main CLI."""
    cli.add_command(lending_group, name="lending")
