"""Utility functions for ledgerbook."""

from ledgerbook.utils.date_parser import parse_date, parse_month
from ledgerbook.utils.amount_parser import format_amount, parse_amount
from ledgerbook.utils.account_resolver import resolve_account, resolve_person

__all__ = [
    "parse_date",
    "parse_month",
    "parse_amount",
    "format_amount",
    "resolve_account",
    "resolve_person",
]
