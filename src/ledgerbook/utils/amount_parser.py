"""Amount parsing and formatting utilities."""

from decimal import Decimal, InvalidOperation
import re

from ledgerbook.domain.changes import format_yen


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "1500"
    - "¥1,500" or "1,500円"
    - "-1500" or "▲1500" (negative, e.g. an investment loss)
    - "(1,500)" (negative in parentheses)

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    amount_str = amount_str.strip()

    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]
    if amount_str.startswith("▲"):
        is_negative = True
        amount_str = amount_str[1:]

    # Currency marks and thousands separators (half and full width)
    amount_str = re.sub(r"[¥￥円$,，\s]", "", amount_str)

    try:
        amount = Decimal(amount_str)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}'") from e
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")
    return -amount if is_negative else amount


def format_amount(amount: Decimal, signed: bool = False) -> str:
    """Format an amount in yen, e.g. ``¥1,500`` or ``-¥1,500`` when signed."""
    sign = "-" if signed and amount < 0 else ""
    return f"{sign}{format_yen(amount)}"
