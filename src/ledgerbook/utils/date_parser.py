"""Date parsing utilities."""

import re
from datetime import date, timedelta

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

_DAYS_AGO = re.compile(r"^(\d+)\s+days?\s+ago$")


def parse_date(date_str: str) -> date:
    """Parse a date string into a date object.

    Supports absolute dates ("2024-01-15", "2024/1/15", "January 15, 2024")
    and relative ones: "today", "yesterday", "tomorrow", "N days ago",
    "this month" and "last month" (first day of that month).

    Args:
        date_str: Date string

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    today = date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
        "this month": today.replace(day=1),
        "last month": (today - relativedelta(months=1)).replace(day=1),
    }
    if date_str in relative_dates:
        return relative_dates[date_str]

    match = _DAYS_AGO.match(date_str)
    if match:
        return today - timedelta(days=int(match.group(1)))

    try:
        return date_parser.parse(date_str).date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}") from e


def parse_month(month_str: str) -> tuple[int, int]:
    """Parse a report month into ``(year, month)``.

    Accepts "YYYY-MM", "YYYY/MM", "this month" and "last month".

    Raises:
        ValueError: If the string is not a month
    """
    value = month_str.strip().lower()
    if value in ("this month", "last month"):
        first = parse_date(value)
        return first.year, first.month

    match = re.fullmatch(r"(\d{4})[-/](\d{1,2})", value)
    if not match:
        raise ValueError(f"Could not parse month '{month_str}' (expected YYYY-MM)")
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month: {month}")
    return year, month
