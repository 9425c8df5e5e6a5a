"""Change description generation for audit history entries."""

from decimal import Decimal
from typing import Any, Mapping, Optional, Sequence

from ledgerbook.domain.entities import Account, ChangeDescription, FieldChange, Person

FIELD_LABELS = {
    "amount": "金額",
    "date": "日付",
    "memo": "メモ",
    "account_id": "口座",
    "counterparty_id": "相手",
    "counterparty_type": "相手タイプ",
    "type": "種類",
    "from_account_id": "振替元",
    "to_account_id": "振替先",
}

FIELDS_TO_CHECK = tuple(FIELD_LABELS)

TYPE_LABELS = {
    "lend": "貸し",
    "borrow": "借り",
    "return": "返済",
    "transfer": "振替",
    "interest": "利息",
    "investment_gain": "運用損益",
    "deposit": "純入金",
    "withdrawal": "純出金",
}

ACCOUNT_FIELDS = ("account_id", "from_account_id", "to_account_id")

NO_VALUE = "(なし)"
NO_CHANGES = "変更なし"


def format_yen(amount: Any) -> str:
    """Format an amount as yen with thousands separators, sign dropped.

    Whole amounts drop trailing zero decimals (stored ``1000.00`` is ``¥1,000``).
    """
    value = abs(Decimal(str(amount)))
    if value == value.to_integral_value():
        value = value.quantize(Decimal(1))
    return f"¥{value:,}"


def _raw(value: Any) -> str:
    return str(value) if value else ""


def _lookup_name(records: Sequence[Account | Person], record_id: Any) -> str:
    for record in records:
        if record.id == record_id:
            return record.name
    return _raw(record_id)


def _display(
    key: str,
    value: Any,
    counterparty_type: Optional[str],
    accounts: Sequence[Account],
    persons: Sequence[Person],
) -> Optional[str]:
    if key in ACCOUNT_FIELDS:
        return _lookup_name(accounts, value)
    if key == "counterparty_id":
        if counterparty_type == "account":
            return _lookup_name(accounts, value)
        return _lookup_name(persons, value)
    if key == "type":
        return TYPE_LABELS.get(value, _raw(value))
    if key == "amount":
        return format_yen(value) if value is not None else ""
    if value is None:
        return None
    return str(value)


def describe_changes(changes: Sequence[FieldChange]) -> str:
    """Join field changes into one human-readable sentence."""
    return "、".join(
        f"{c.display_name}を{c.old_value or NO_VALUE}→{c.new_value or NO_VALUE}に変更"
        for c in changes
    )


def generate_change_description(
    old_values: Mapping[str, Any],
    new_values: Mapping[str, Any],
    accounts: Sequence[Account],
    persons: Sequence[Person],
) -> ChangeDescription:
    """Diff old and new field values into display-ready changes.

    Foreign keys are resolved to names, types to labels and amounts to yen.
    Unresolvable ids and unknown types fall back to their raw string.

    Args:
        old_values: Field values before the edit
        new_values: Field values after the edit
        accounts: Accounts used to resolve account ids
        persons: Persons used to resolve person counterparty ids

    Returns:
        ChangeDescription with the joined description and the change list
    """
    counterparty_type = new_values.get("counterparty_type") or old_values.get(
        "counterparty_type"
    )
    changes = []
    for key in FIELDS_TO_CHECK:
        old_val = old_values.get(key)
        new_val = new_values.get(key)
        if old_val == new_val or (old_val is None and new_val is None):
            continue
        changes.append(
            FieldChange(
                field=key,
                old_value=_display(key, old_val, counterparty_type, accounts, persons),
                new_value=_display(key, new_val, counterparty_type, accounts, persons),
                display_name=FIELD_LABELS[key],
            )
        )

    return ChangeDescription(
        description=describe_changes(changes) or NO_CHANGES,
        changes=changes,
    )
