"""Account management commands."""

import click

from ledgerbook.cli.error_handling import (
    handle_domain_error,
    parse_amount_or_exit,
    resolve_account_or_exit,
)
from ledgerbook.domain.account import AccountService
from ledgerbook.utils.amount_parser import format_amount


@click.group()
def account_group():
    """Manage accounts."""
    pass


@account_group.command("create")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option("--balance", help="Opening balance (e.g., 100000 or ¥100,000)")
@click.option("--business-id", type=int, help="Owning business ID")
@click.pass_context
def create_account(ctx, name: str, balance: str | None, business_id: int | None):
    """Create a new account.

    Examples:
        ledgerbook account create "Main bank"
        ledgerbook account create "Cash" --balance ¥50,000
    """
    service = AccountService(ctx.obj["db"])
    opening = parse_amount_or_exit(ctx, balance) if balance is not None else None

    try:
        account_id = service.create_account(name=name, balance=opening, business_id=business_id)
        click.echo(f"Created account '{name}' (ID: {account_id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@account_group.command("list")
@click.option("--all", "include_archived", is_flag=True, help="Include archived accounts")
@click.pass_context
def list_accounts(ctx, include_archived: bool):
    """List accounts with their balances."""
    service = AccountService(ctx.obj["db"])

    accounts = service.list_accounts(include_archived=include_archived)
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 72)
    for acc in accounts:
        balance = format_amount(acc.balance, signed=True) if acc.balance is not None else "-"
        lending = format_amount(service.get_lending_balance(acc.id), signed=True)
        archived = " (archived)" if acc.is_archived else ""
        click.echo(
            f"ID: {acc.id:3d} | {acc.name:20s} | Balance: {balance:>14s} | "
            f"Lending: {lending:>12s}{archived}"
        )


@account_group.command("show")
@click.argument("account", metavar="ACCOUNT")
@click.pass_context
def show_account(ctx, account: str):
    """Show one account. ACCOUNT can be an account name or ID."""
    service = AccountService(ctx.obj["db"])
    account_id = resolve_account_or_exit(ctx, service, account)
    acc = service.require_account(account_id)

    click.echo(f"Account {acc.id}: {acc.name}")
    if acc.balance is not None:
        click.echo(f"  Balance:         {format_amount(acc.balance, signed=True)}")
    click.echo(
        f"  Lending balance: {format_amount(service.get_lending_balance(acc.id), signed=True)}"
    )
    click.echo(f"  Net worth:       {format_amount(service.get_net_worth(acc.id), signed=True)}")
    if acc.tags:
        click.echo(f"  Tags:            {', '.join(acc.tags)}")
    if acc.business_id is not None:
        click.echo(f"  Business:        {acc.business_id}")
    if acc.is_archived:
        click.echo("  (archived)")


@account_group.command("edit")
@click.argument("account", metavar="ACCOUNT")
@click.option("--name", help="New account name")
@click.option("--balance", help="Overwrite the stored balance")
@click.option("--business-id", type=int, help="Owning business ID")
@click.option("--add-tag", multiple=True, help="Tag to add (repeatable)")
@click.option("--remove-tag", multiple=True, help="Tag to remove (repeatable)")
@click.pass_context
def edit_account(
    ctx,
    account: str,
    name: str | None,
    balance: str | None,
    business_id: int | None,
    add_tag: tuple[str, ...],
    remove_tag: tuple[str, ...],
) -> None:
    """Edit an account.

    Examples:
        ledgerbook account edit "Cash" --name "Wallet"
        ledgerbook account edit 1 --balance 120000 --add-tag family
    """
    service = AccountService(ctx.obj["db"])
    account_id = resolve_account_or_exit(ctx, service, account)
    new_balance = parse_amount_or_exit(ctx, balance) if balance is not None else None

    try:
        service.edit_account(
            account_id, name=name, balance=new_balance, business_id=business_id
        )
        for tag in add_tag:
            service.add_tag(account_id, tag)
        for tag in remove_tag:
            service.remove_tag(account_id, tag)
        click.echo(f"Updated account {account_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@account_group.command("archive")
@click.argument("account", metavar="ACCOUNT")
@click.option("--restore", is_flag=True, help="Restore an archived account")
@click.pass_context
def archive_account(ctx, account: str, restore: bool) -> None:
    """Archive (or restore) an account. ACCOUNT can be a name or ID."""
    service = AccountService(ctx.obj["db"])
    account_id = resolve_account_or_exit(ctx, service, account)

    try:
        service.set_archived(account_id, archived=not restore)
        click.echo(f"{'Restored' if restore else 'Archived'} account {account_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
