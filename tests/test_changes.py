"""Tests for change description generation."""

from datetime import date
from decimal import Decimal

from ledgerbook.domain.changes import (
    NO_CHANGES,
    describe_changes,
    format_yen,
    generate_change_description,
)
from ledgerbook.domain.entities import Account, FieldChange, Person

ACCOUNTS = [Account(id=1, name="メイン口座"), Account(id=2, name="現金")]
PERSONS = [Person(id=1, name="田中"), Person(id=2, name="鈴木")]


def test_format_yen_drops_sign_and_groups_thousands():
    assert format_yen(Decimal("1234567")) == "¥1,234,567"
    assert format_yen(Decimal("-1500")) == "¥1,500"
    assert format_yen(Decimal("1000.00")) == "¥1,000"
    assert format_yen(Decimal("99.5")) == "¥99.5"


def test_no_changes_yields_sentinel():
    result = generate_change_description({"amount": Decimal("1")}, {"amount": Decimal("1")}, [], [])
    assert result.description == NO_CHANGES
    assert result.changes == []


def test_amount_change_is_formatted():
    result = generate_change_description(
        {"amount": Decimal("-200")}, {"amount": Decimal("-300")}, ACCOUNTS, PERSONS
    )
    assert result.changes == [
        FieldChange(field="amount", old_value="¥200", new_value="¥300", display_name="金額")
    ]
    assert result.description == "金額を¥200→¥300に変更"


def test_account_ids_resolve_to_names():
    result = generate_change_description(
        {"account_id": 1, "to_account_id": 1},
        {"account_id": 2, "to_account_id": 99},
        ACCOUNTS,
        PERSONS,
    )
    by_field = {c.field: c for c in result.changes}
    assert by_field["account_id"].old_value == "メイン口座"
    assert by_field["account_id"].new_value == "現金"
    # Unknown ids fall back to the raw id
    assert by_field["to_account_id"].new_value == "99"


def test_counterparty_resolves_against_persons_by_default():
    result = generate_change_description(
        {"counterparty_type": "person", "counterparty_id": 1},
        {"counterparty_type": "person", "counterparty_id": 2},
        ACCOUNTS,
        PERSONS,
    )
    assert result.description == "相手を田中→鈴木に変更"


def test_counterparty_uses_new_type_for_resolution():
    result = generate_change_description(
        {"counterparty_type": "person", "counterparty_id": 1},
        {"counterparty_type": "account", "counterparty_id": 2},
        ACCOUNTS,
        PERSONS,
    )
    by_field = {c.field: c for c in result.changes}
    assert by_field["counterparty_id"].new_value == "現金"
    assert by_field["counterparty_type"].old_value == "person"
    assert by_field["counterparty_type"].new_value == "account"


def test_type_labels_and_unknown_type():
    result = generate_change_description(
        {"type": "interest"}, {"type": "mystery"}, ACCOUNTS, PERSONS
    )
    assert result.changes[0].old_value == "利息"
    assert result.changes[0].new_value == "mystery"


def test_memo_and_date_pass_through():
    result = generate_change_description(
        {"memo": "", "date": date(2024, 1, 1)},
        {"memo": "立替", "date": date(2024, 1, 2)},
        ACCOUNTS,
        PERSONS,
    )
    assert result.description == "日付を2024-01-01→2024-01-02に変更、メモを(なし)→立替に変更"


def test_fields_outside_checked_set_are_ignored():
    result = generate_change_description({"returned": False}, {"returned": True}, [], [])
    assert result.changes == []


def test_describe_changes_uses_placeholder_for_missing_values():
    changes = [FieldChange(field="memo", old_value=None, new_value="x", display_name="メモ")]
    assert describe_changes(changes) == "メモを(なし)→xに変更"
