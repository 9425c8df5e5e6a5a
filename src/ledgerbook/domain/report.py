"""Monthly lending report domain service."""

from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Literal, Optional, Sequence

from dateutil.relativedelta import relativedelta

from ledgerbook.database.base import Database
from ledgerbook.domain.balance import get_account_lending_balance, get_person_balance
from ledgerbook.domain.collections import ACCOUNTS, ACCOUNT_TRANSACTIONS, LENDINGS, PERSONS
from ledgerbook.domain.entities import Account, AccountTransaction, Lending, Person
from ledgerbook.domain.errors import ValidationError
from ledgerbook.domain.history import LENDING_DISPLAY_TYPES, TRANSACTION_DISPLAY_TYPES

ZERO = Decimal("0")
MISSING_NAME = "-"

PersonStatus = Literal["貸し", "借り", "精算済"]


@dataclass(frozen=True)
class ReportPeriod:
    year: int
    month: int
    start_date: date
    end_date: date


@dataclass(frozen=True)
class ReportSummary:
    """Totals over the lendings dated within the period."""

    total_lent: Decimal
    total_borrowed: Decimal
    total_returned: Decimal
    net_balance: Decimal


@dataclass(frozen=True)
class AccountBalanceRow:
    id: int
    name: str
    manual_balance: Optional[Decimal]
    lending_balance: Decimal


@dataclass(frozen=True)
class PersonBalanceRow:
    id: int
    name: str
    balance: Decimal
    status: PersonStatus


@dataclass(frozen=True)
class ReportRow:
    """Lending or account transaction dated within the period."""

    id: str
    date: date
    type: str
    display_type: str
    amount: Decimal
    account_name: str
    counterparty_name: str
    memo: Optional[str] = None


@dataclass(frozen=True)
class MonthlyReport:
    period: ReportPeriod
    summary: ReportSummary
    account_balances: list[AccountBalanceRow] = field(default_factory=list)
    person_balances: list[PersonBalanceRow] = field(default_factory=list)
    rows: list[ReportRow] = field(default_factory=list)
    generated_at: Optional[datetime] = None


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """Get the first and last day of a month.

    Raises:
        ValidationError: If month is not in 1..12
    """
    if not 1 <= month <= 12:
        raise ValidationError(f"Invalid month: {month}")
    start = date(year, month, 1)
    return start, start + relativedelta(months=1, days=-1)


def person_status(balance: Decimal) -> PersonStatus:
    if balance > 0:
        return "貸し"
    if balance < 0:
        return "借り"
    return "精算済"


def _names(records: Sequence[Account] | Sequence[Person]) -> dict[int, str]:
    return {r.id: r.name for r in records}


def _lending_row(
    lending: Lending, account_names: dict[int, str], person_names: dict[int, str]
) -> ReportRow:
    if lending.counterparty_type == "account":
        counterparty = account_names.get(lending.counterparty_id, MISSING_NAME)
    else:
        counterparty = person_names.get(lending.counterparty_id, MISSING_NAME)
    return ReportRow(
        id=f"lending-{lending.id}",
        date=lending.date,
        type=lending.type,
        display_type=LENDING_DISPLAY_TYPES.get(lending.type, lending.type),
        amount=abs(lending.amount),
        account_name=account_names.get(lending.account_id, MISSING_NAME),
        counterparty_name=counterparty,
        memo=lending.memo,
    )


def _transaction_row(
    transaction: AccountTransaction, account_names: dict[int, str]
) -> ReportRow:
    if transaction.type == "transfer":
        account_name = account_names.get(transaction.from_account_id, MISSING_NAME)
        counterparty = f"→ {account_names.get(transaction.to_account_id, MISSING_NAME)}"
    else:
        account_name = account_names.get(transaction.account_id, MISSING_NAME)
        counterparty = MISSING_NAME

    if transaction.type == "investment_gain":
        display_type = "運用損" if transaction.amount < 0 else "運用益"
    else:
        display_type = TRANSACTION_DISPLAY_TYPES.get(transaction.type, transaction.type)

    return ReportRow(
        id=f"transaction-{transaction.id}",
        date=transaction.date,
        type=transaction.type,
        display_type=display_type,
        amount=abs(transaction.amount),
        account_name=account_name,
        counterparty_name=counterparty,
        memo=transaction.memo,
    )


def generate_monthly_report(
    year: int,
    month: int,
    accounts: Sequence[Account],
    persons: Sequence[Person],
    lendings: Sequence[Lending],
    account_transactions: Sequence[AccountTransaction],
) -> MonthlyReport:
    """Build the monthly lending report.

    Summary totals and rows cover records dated within the month; balances
    are computed over all active lendings as of now. Archived records,
    accounts and persons are left out.

    Args:
        year: Report year
        month: Report month (1-12)
        accounts: All accounts
        persons: All persons
        lendings: All lendings
        account_transactions: All account transactions

    Returns:
        MonthlyReport with rows sorted by date descending
    """
    start, end = month_bounds(year, month)
    active_accounts = [a for a in accounts if not a.is_archived]
    active_persons = [p for p in persons if not p.is_archived]
    account_names = _names(accounts)
    person_names = _names(persons)

    period_lendings = [
        l for l in lendings if not l.is_archived and start <= l.date <= end
    ]
    period_transactions = [
        t for t in account_transactions if not t.is_archived and start <= t.date <= end
    ]

    def total(type: str) -> Decimal:
        return sum((abs(l.amount) for l in period_lendings if l.type == type), ZERO)

    total_lent = total("lend")
    total_borrowed = total("borrow")
    summary = ReportSummary(
        total_lent=total_lent,
        total_borrowed=total_borrowed,
        total_returned=total("return"),
        net_balance=total_lent - total_borrowed,
    )

    account_balances = [
        AccountBalanceRow(
            id=a.id,
            name=a.name,
            manual_balance=a.balance,
            lending_balance=get_account_lending_balance(lendings, a.id),
        )
        for a in active_accounts
    ]

    person_balances = []
    for p in active_persons:
        balance = get_person_balance(lendings, p.id)
        person_balances.append(
            PersonBalanceRow(
                id=p.id, name=p.name, balance=abs(balance), status=person_status(balance)
            )
        )

    rows = [_lending_row(l, account_names, person_names) for l in period_lendings]
    rows.extend(_transaction_row(t, account_names) for t in period_transactions)
    rows.sort(key=lambda r: r.date, reverse=True)

    return MonthlyReport(
        period=ReportPeriod(year=year, month=month, start_date=start, end_date=end),
        summary=summary,
        account_balances=account_balances,
        person_balances=person_balances,
        rows=rows,
        generated_at=datetime.now(UTC),
    )


class ReportService:
    """Service for building reports from the current store snapshot."""

    def __init__(self, db: Database):
        """Initialize report service.

        Args:
            db: Database instance
        """
        self.db = db

    def monthly_report(self, year: int, month: int) -> MonthlyReport:
        """Build the monthly lending report for ``year``/``month``."""
        return generate_monthly_report(
            year,
            month,
            self.db.get_collection(ACCOUNTS),
            self.db.get_collection(PERSONS),
            self.db.get_collection(LENDINGS),
            self.db.get_collection(ACCOUNT_TRANSACTIONS),
        )
