"""Report commands."""

from datetime import date

import click

from ledgerbook.cli.error_handling import handle_domain_error
from ledgerbook.domain.collections import ACCOUNTS, ACCOUNT_TRANSACTIONS, LENDINGS, PERSONS
from ledgerbook.domain.history import create_combined_history
from ledgerbook.domain.report import ReportService
from ledgerbook.utils.amount_parser import format_amount
from ledgerbook.utils.date_parser import parse_month


@click.group()
def report_group():
    """Monthly report and combined history."""
    pass


@report_group.command("monthly")
@click.argument("month", required=False)
@click.pass_context
def monthly(ctx, month: str | None):
    """Show the monthly lending report.

    MONTH is YYYY-MM, 'this month' or 'last month' (default: this month).

    Examples:
        ledgerbook report monthly 2024-03
    """
    if month is None:
        today = date.today()
        year, month_number = today.year, today.month
    else:
        try:
            year, month_number = parse_month(month)
        except ValueError as e:
            handle_domain_error(ctx, e)

    try:
        report = ReportService(ctx.obj["db"]).monthly_report(year, month_number)
    except ValueError as e:
        handle_domain_error(ctx, e)

    period = report.period
    s = report.summary
    click.echo(f"\n月次貸借レポート {period.year}年{period.month}月")
    click.echo(f"期間: {period.start_date} 〜 {period.end_date}")
    click.echo("=" * 60)
    click.echo(f"貸出合計: {format_amount(s.total_lent):>14s}")
    click.echo(f"借入合計: {format_amount(s.total_borrowed):>14s}")
    click.echo(f"返済合計: {format_amount(s.total_returned):>14s}")
    click.echo(f"差引残高: {format_amount(s.net_balance, signed=True):>14s}")

    if report.account_balances:
        click.echo("\n口座別残高")
        click.echo("-" * 60)
        for a in report.account_balances:
            manual = format_amount(a.manual_balance, signed=True) if a.manual_balance is not None else "-"
            click.echo(
                f"{a.name:20s} | 残高 {manual:>14s} | 貸借 {format_amount(a.lending_balance, signed=True):>12s}"
            )

    if report.person_balances:
        click.echo("\n相手先別残高")
        click.echo("-" * 60)
        for p in report.person_balances:
            click.echo(f"{p.name:20s} | {p.status:4s} {format_amount(p.balance):>12s}")

    click.echo("\n取引履歴")
    click.echo("-" * 60)
    if not report.rows:
        click.echo("取引なし")
    for r in report.rows:
        click.echo(
            f"{r.date} | {r.display_type:4s} | {format_amount(r.amount):>12s} | "
            f"{r.account_name:15s} | {r.counterparty_name:15s} | {r.memo or ''}"
        )


@report_group.command("history")
@click.option("--limit", type=int, default=50, show_default=True, help="Maximum rows")
@click.option("--all", "include_archived", is_flag=True, help="Include archived records")
@click.pass_context
def history(ctx, limit: int, include_archived: bool):
    """Show lendings and account transactions merged, newest first."""
    db = ctx.obj["db"]
    items = create_combined_history(
        db.get_collection(LENDINGS),
        db.get_collection(ACCOUNT_TRANSACTIONS),
        exclude_archived=not include_archived,
    )
    if not items:
        click.echo("No history found.")
        return

    account_names = {a.id: a.name for a in db.get_collection(ACCOUNTS)}
    person_names = {p.id: p.name for p in db.get_collection(PERSONS)}
    for item in items[:limit]:
        if item.source == "transaction" and item.to_account_id is not None:
            counterparty = f"→ {account_names.get(item.to_account_id, '-')}"
        elif item.counterparty_type == "account":
            counterparty = account_names.get(item.counterparty_id, "-")
        elif item.counterparty_type == "person":
            counterparty = person_names.get(item.counterparty_id, "-")
        else:
            counterparty = "-"
        click.echo(
            f"{item.date} | {item.id:16s} | {item.display_type:6s} | "
            f"{format_amount(item.amount, signed=True):>12s} | "
            f"{account_names.get(item.account_id, '-'):15s} | {counterparty:15s} | {item.memo or ''}"
        )


def register_commands(cli):
    """Register report commands with main CLI."""
    cli.add_command(report_group, name="report")
