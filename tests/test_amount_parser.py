"""Tests for amount parsing and formatting."""

from decimal import Decimal

import pytest

from ledgerbook.utils.amount_parser import format_amount, parse_amount


@pytest.mark.parametrize(
    "text, expected",
    [
        ("1500", Decimal("1500")),
        ("¥1,500", Decimal("1500")),
        ("1,500円", Decimal("1500")),
        ("￥1，500", Decimal("1500")),
        ("12.50", Decimal("12.50")),
        ("-300", Decimal("-300")),
        ("▲300", Decimal("-300")),
        ("(1,200)", Decimal("-1200")),
    ],
)
def test_parse_amount(text, expected):
    assert parse_amount(text) == expected


@pytest.mark.parametrize("text", ["", "   ", "abc", "1.2.3", "nan"])
def test_parse_amount_invalid(text):
    with pytest.raises(ValueError):
        parse_amount(text)


def test_format_amount():
    assert format_amount(Decimal("1500")) == "¥1,500"
    assert format_amount(Decimal("1000.00")) == "¥1,000"
    assert format_amount(Decimal("12.50")) == "¥12.50"


def test_format_amount_signed():
    assert format_amount(Decimal("-1500"), signed=True) == "-¥1,500"
    assert format_amount(Decimal("-1500")) == "¥1,500"
    assert format_amount(Decimal("1500"), signed=True) == "¥1,500"
