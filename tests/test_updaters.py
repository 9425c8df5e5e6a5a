"""Tests for account balance updater builders."""

from decimal import Decimal

import pytest

from ledgerbook.domain.entities import Account
from ledgerbook.domain.updaters import (
    create_single_account_balance_updater,
    create_transfer_balance_updater,
)


@pytest.fixture
def accounts():
    return [
        Account(id=1, name="A", balance=Decimal("1000")),
        Account(id=2, name="B", balance=Decimal("500")),
        Account(id=3, name="C"),
    ]


def _balances(accounts):
    return {a.id: a.balance for a in accounts}


def test_single_updater_applies_delta(accounts):
    result = create_single_account_balance_updater(1, Decimal("-200"))(accounts)
    assert _balances(result) == {1: Decimal("800"), 2: Decimal("500"), 3: None}


def test_single_updater_treats_missing_balance_as_zero(accounts):
    result = create_single_account_balance_updater(3, Decimal("50"))(accounts)
    assert _balances(result)[3] == Decimal("50")


@pytest.mark.parametrize("account_id,delta", [(None, Decimal("100")), (1, Decimal("0"))])
def test_single_updater_noop(accounts, account_id, delta):
    updater = create_single_account_balance_updater(account_id, delta)
    assert updater(accounts) is accounts


def test_single_updater_unknown_account_changes_nothing(accounts):
    result = create_single_account_balance_updater(99, Decimal("100"))(accounts)
    assert result == accounts


def test_single_updater_does_not_mutate_input(accounts):
    before = list(accounts)
    create_single_account_balance_updater(1, Decimal("100"))(accounts)
    assert accounts == before
    assert accounts[0].balance == Decimal("1000")


def test_transfer_updater_moves_amount(accounts):
    result = create_transfer_balance_updater(1, 2, Decimal("200"))(accounts)
    assert _balances(result) == {1: Decimal("800"), 2: Decimal("700"), 3: None}


def test_transfer_updater_reversing_moves_back(accounts):
    moved = create_transfer_balance_updater(1, 2, Decimal("200"))(accounts)
    restored = create_transfer_balance_updater(1, 2, Decimal("200"), is_reversing=True)(moved)
    assert _balances(restored) == _balances(accounts)


@pytest.mark.parametrize("amount", [Decimal("0.01"), Decimal("200"), Decimal("1500")])
@pytest.mark.parametrize("is_reversing", [False, True])
def test_transfer_conserves_total(accounts, amount, is_reversing):
    result = create_transfer_balance_updater(1, 3, amount, is_reversing=is_reversing)(accounts)
    before = sum((a.balance or 0) for a in accounts)
    after = sum((a.balance or 0) for a in result)
    assert before == after


def test_transfer_updater_does_not_mutate_input(accounts):
    create_transfer_balance_updater(1, 2, Decimal("200"))(accounts)
    assert _balances(accounts) == {1: Decimal("1000"), 2: Decimal("500"), 3: None}
