"""Tests for date parser with relative dates."""

from datetime import date, timedelta

import pytest
from dateutil.relativedelta import relativedelta

from ledgerbook.utils.date_parser import parse_date, parse_month


def test_parse_absolute_date():
    """Test parsing absolute dates."""
    assert parse_date("2024-01-15") == date(2024, 1, 15)


def test_parse_slash_date():
    assert parse_date("2024/1/5") == date(2024, 1, 5)


def test_parse_today():
    """Test parsing 'today'."""
    assert parse_date("today") == date.today()


def test_parse_yesterday():
    """Test parsing 'yesterday'."""
    assert parse_date("Yesterday") == date.today() - timedelta(days=1)


def test_parse_tomorrow():
    assert parse_date("tomorrow") == date.today() + timedelta(days=1)


def test_parse_days_ago():
    """Test parsing 'N days ago'."""
    assert parse_date("3 days ago") == date.today() - timedelta(days=3)
    assert parse_date("1 day ago") == date.today() - timedelta(days=1)


def test_parse_this_month():
    """Test parsing 'this month' as the first of the month."""
    assert parse_date("this month") == date.today().replace(day=1)


def test_parse_last_month():
    """Test parsing 'last month'."""
    expected = (date.today() - relativedelta(months=1)).replace(day=1)
    assert parse_date("last month") == expected


def test_parse_invalid_date():
    """Test that garbage raises ValueError."""
    with pytest.raises(ValueError, match="Could not parse date"):
        parse_date("not a date")


def test_parse_month():
    assert parse_month("2024-03") == (2024, 3)
    assert parse_month("2024/12") == (2024, 12)


def test_parse_month_relative():
    today = date.today()
    assert parse_month("this month") == (today.year, today.month)
    last = today - relativedelta(months=1)
    assert parse_month("last month") == (last.year, last.month)


def test_parse_month_invalid():
    with pytest.raises(ValueError):
        parse_month("2024-13")
    with pytest.raises(ValueError, match="expected YYYY-MM"):
        parse_month("March")
