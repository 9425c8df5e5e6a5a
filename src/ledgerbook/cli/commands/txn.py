"""Account transaction commands: transfers, income and net flows."""

import click

from ledgerbook.cli.error_handling import (
    handle_domain_error,
    parse_amount_or_exit,
    parse_date_or_exit,
    resolve_account_or_exit,
)
from ledgerbook.domain.account import AccountService
from ledgerbook.domain.account_transaction import AccountTransactionService
from ledgerbook.domain.history import TRANSACTION_DISPLAY_TYPES
from ledgerbook.utils.amount_parser import format_amount


def _services(ctx) -> tuple[AccountTransactionService, AccountService]:
    db = ctx.obj["db"]
    return AccountTransactionService(db, user_id=ctx.obj.get("user_id")), AccountService(db)


@click.group()
def txn_group():
    """Record transfers, interest, investment results, deposits and withdrawals."""
    pass


@txn_group.command("transfer")
@click.argument("amount")
@click.option("--from", "from_account", required=True, help="Source account name or ID")
@click.option("--to", "to_account", required=True, help="Destination account name or ID")
@click.option("--date", "date_str", default="today", help="Date (YYYY-MM-DD or 'today', 'yesterday')")
@click.option("--memo", help="Memo")
@click.pass_context
def transfer(ctx, amount: str, from_account: str, to_account: str, date_str: str, memo: str | None):
    """Transfer money between two accounts.

    Examples:
        ledgerbook txn transfer 50000 --from Bank --to Cash
    """
    service, accounts = _services(ctx)
    from_id = resolve_account_or_exit(ctx, accounts, from_account)
    to_id = resolve_account_or_exit(ctx, accounts, to_account)
    value = parse_amount_or_exit(ctx, amount)
    txn_date = parse_date_or_exit(ctx, date_str)

    try:
        t = service.create_transfer(from_id, to_id, value, txn_date, memo=memo)
        click.echo(f"Transferred {format_amount(value)} (ID: {t.id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@txn_group.command("income")
@click.argument("type", type=click.Choice(["interest", "investment_gain"]))
@click.argument("amount")
@click.option("--account", required=True, help="Account name or ID")
@click.option("--date", "date_str", default="today", help="Date")
@click.option("--memo", help="Memo (defaults to the accounting category and account name)")
@click.pass_context
def income(ctx, type: str, amount: str, account: str, date_str: str, memo: str | None):
    """Post interest or an investment result.

    A negative investment_gain amount records a loss.

    Examples:
        ledgerbook txn income interest 120 --account Bank
        ledgerbook txn income investment_gain -- -5000 --account Brokerage
    """
    service, accounts = _services(ctx)
    account_id = resolve_account_or_exit(ctx, accounts, account)
    value = parse_amount_or_exit(ctx, amount)
    txn_date = parse_date_or_exit(ctx, date_str)

    try:
        t = service.post_income(account_id, type, value, txn_date, memo=memo)
        click.echo(
            f"Posted {TRANSACTION_DISPLAY_TYPES[type]} {format_amount(value, signed=True)} "
            f"(ID: {t.id}, accounting ID: {t.linked_transaction_id})"
        )
    except ValueError as e:
        handle_domain_error(ctx, e)


def _net_flow_command(type: str, help_text: str):
    @click.argument("amount")
    @click.option("--account", required=True, help="Account name or ID")
    @click.option("--date", "date_str", default="today", help="Date")
    @click.option("--memo", help="Memo")
    @click.pass_context
    def command(ctx, amount: str, account: str, date_str: str, memo: str | None):
        service, accounts = _services(ctx)
        account_id = resolve_account_or_exit(ctx, accounts, account)
        value = parse_amount_or_exit(ctx, amount)
        txn_date = parse_date_or_exit(ctx, date_str)
        try:
            t = service.post_net_flow(account_id, type, value, txn_date, memo=memo)
            click.echo(f"Posted {TRANSACTION_DISPLAY_TYPES[type]} {format_amount(value)} (ID: {t.id})")
        except ValueError as e:
            handle_domain_error(ctx, e)

    command.__doc__ = help_text
    return txn_group.command(type)(command)


_net_flow_command("deposit", "Post a net deposit into an account.")
_net_flow_command("withdrawal", "Post a net withdrawal from an account.")


@txn_group.command("list")
@click.option("--account", help="Filter by account name or ID")
@click.option("--all", "include_archived", is_flag=True, help="Include archived transactions")
@click.pass_context
def list_transactions(ctx, account: str | None, include_archived: bool):
    """List account transactions, newest first."""
    service, accounts = _services(ctx)
    account_id = resolve_account_or_exit(ctx, accounts, account) if account else None

    result = service.list_transactions(include_archived=include_archived, account_id=account_id)
    if not result:
        click.echo("No account transactions found.")
        return

    names = {a.id: a.name for a in accounts.list_accounts(include_archived=True)}
    for t in result:
        if t.type == "transfer":
            where = f"{names.get(t.from_account_id, '-')} → {names.get(t.to_account_id, '-')}"
        else:
            where = names.get(t.account_id, "-")
        archived = " (archived)" if t.is_archived else ""
        click.echo(
            f"ID: {t.id:4d} | {t.date} | {TRANSACTION_DISPLAY_TYPES.get(t.type, t.type):6s} | "
            f"{format_amount(t.amount, signed=True):>12s} | {where:25s} | {t.memo or ''}{archived}"
        )


@txn_group.command("edit")
@click.argument("transaction_id", type=int)
@click.option(
    "--type",
    type=click.Choice(["interest", "investment_gain", "deposit", "withdrawal"]),
    help="New type (within the same family)",
)
@click.option("--amount", help="Amount")
@click.option("--account", help="Account name or ID")
@click.option("--from", "from_account", help="Transfer source account")
@click.option("--to", "to_account", help="Transfer destination account")
@click.option("--date", "date_str", help="Date")
@click.option("--memo", help="Memo")
@click.pass_context
def edit_transaction(
    ctx,
    transaction_id: int,
    type: str | None,
    amount: str | None,
    account: str | None,
    from_account: str | None,
    to_account: str | None,
    date_str: str | None,
    memo: str | None,
):
    """Edit an account transaction. Only the given fields change."""
    service, accounts = _services(ctx)
    fields = {
        "type": type,
        "amount": parse_amount_or_exit(ctx, amount) if amount is not None else None,
        "account_id": resolve_account_or_exit(ctx, accounts, account) if account else None,
        "from_account_id": (
            resolve_account_or_exit(ctx, accounts, from_account) if from_account else None
        ),
        "to_account_id": resolve_account_or_exit(ctx, accounts, to_account) if to_account else None,
        "date": parse_date_or_exit(ctx, date_str) if date_str else None,
        "memo": memo,
    }

    try:
        result = service.edit_transaction(transaction_id, **fields)
        click.echo(f"Updated account transaction {transaction_id}: {result.description}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@txn_group.command("archive")
@click.argument("transaction_id", type=int)
@click.pass_context
def archive_transaction(ctx, transaction_id: int):
    """Archive an account transaction, reversing its balance effect."""
    service, _ = _services(ctx)
    try:
        service.archive_transaction(transaction_id)
        click.echo(f"Archived account transaction {transaction_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@txn_group.command("history")
@click.argument("transaction_id", type=int)
@click.pass_context
def transaction_history(ctx, transaction_id: int):
    """Show the audit history of an account transaction."""
    service, _ = _services(ctx)
    try:
        entries = service.get_history(transaction_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
        return
    for h in entries:
        click.echo(
            f"{h.created_at:%Y-%m-%d %H:%M} | user {h.user_id} | {h.action:8s} | {h.description}"
        )


def register_commands(cli):
    """Register account transaction commands with main CLI."""
    cli.add_command(txn_group, name="txn")
