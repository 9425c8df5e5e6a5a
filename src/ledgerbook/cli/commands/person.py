"""Person management commands."""

import click

from ledgerbook.cli.error_handling import handle_domain_error, resolve_person_or_exit
from ledgerbook.domain.person import PersonService
from ledgerbook.domain.report import person_status
from ledgerbook.utils.amount_parser import format_amount


@click.group()
def person_group():
    """Manage persons (external counterparties)."""
    pass


@person_group.command("create")
@click.argument("name", metavar="PERSON_NAME")
@click.option("--memo", help="Free-form memo")
@click.option("--business-id", type=int, help="Linked business ID")
@click.pass_context
def create_person(ctx, name: str, memo: str | None, business_id: int | None):
    """Create a new person."""
    service = PersonService(ctx.obj["db"])
    try:
        person_id = service.create_person(name=name, memo=memo, business_id=business_id)
        click.echo(f"Created person '{name}' (ID: {person_id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@person_group.command("list")
@click.option("--all", "include_archived", is_flag=True, help="Include archived persons")
@click.pass_context
def list_persons(ctx, include_archived: bool):
    """List persons with their open lending balance."""
    service = PersonService(ctx.obj["db"])

    persons = service.list_persons(include_archived=include_archived)
    if not persons:
        click.echo("No persons found.")
        return

    click.echo("\nPersons:")
    click.echo("-" * 60)
    for p in persons:
        balance = service.get_balance(p.id)
        archived = " (archived)" if p.is_archived else ""
        click.echo(
            f"ID: {p.id:3d} | {p.name:20s} | {person_status(balance)} "
            f"{format_amount(balance):>12s}{archived}"
        )

    total_lent, total_borrowed = service.get_totals()
    click.echo("-" * 60)
    click.echo(f"貸し合計: {format_amount(total_lent)}  借り合計: {format_amount(total_borrowed)}")


@person_group.command("show")
@click.argument("person", metavar="PERSON")
@click.pass_context
def show_person(ctx, person: str):
    """Show one person. PERSON can be a name or ID."""
    service = PersonService(ctx.obj["db"])
    person_id = resolve_person_or_exit(ctx, service, person)
    p = service.require_person(person_id)
    balance = service.get_balance(person_id)

    click.echo(f"Person {p.id}: {p.name}")
    click.echo(f"  Balance: {person_status(balance)} {format_amount(balance)}")
    if p.memo:
        click.echo(f"  Memo:    {p.memo}")
    if p.is_archived:
        click.echo("  (archived)")


@person_group.command("archive")
@click.argument("person", metavar="PERSON")
@click.option("--restore", is_flag=True, help="Restore an archived person")
@click.pass_context
def archive_person(ctx, person: str, restore: bool) -> None:
    """Archive (or restore) a person."""
    service = PersonService(ctx.obj["db"])
    person_id = resolve_person_or_exit(ctx, service, person)
    try:
        service.set_archived(person_id, archived=not restore)
        click.echo(f"{'Restored' if restore else 'Archived'} person {person_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register person commands with main CLI."""
    cli.add_command(person_group, name="person")
