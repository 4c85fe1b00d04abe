from decimal import Decimal

import pytest

from shop.domain.errors import InsufficientFundsError, InvalidInputError, WalletNotFoundError
from shop.services.wallet_ledger import WalletLedger

from conftest import read_balance, set_balance


def test_get_balance_reads_persisted_value(db, seeded, session_factory):
    ledger = WalletLedger(db)
    assert ledger.get_balance("alice") == Decimal("25.00")

    # changed by someone else after our first read
    set_balance(session_factory, "alice", Decimal("7.00"))

    assert ledger.get_balance("alice") == Decimal("7.00")


def test_get_balance_unknown_wallet(db, seeded):
    with pytest.raises(WalletNotFoundError):
        WalletLedger(db).get_balance("nobody")


def test_debit_decrements_and_returns_new_balance(db, seeded, session_factory):
    new_balance = WalletLedger(db).debit("alice", Decimal("23.00"))

    assert new_balance == Decimal("2.00")
    assert read_balance(session_factory, "alice") == Decimal("2.00")


def test_debit_refuses_when_balance_too_low(db, seeded, session_factory):
    ledger = WalletLedger(db)
    ledger.debit("alice", Decimal("23.00"))

    with pytest.raises(InsufficientFundsError) as exc:
        ledger.debit("alice", Decimal("23.00"))

    assert exc.value.required == Decimal("23.00")
    assert exc.value.available == Decimal("2.00")
    assert read_balance(session_factory, "alice") == Decimal("2.00")


def test_debit_exact_balance_reaches_zero(db, seeded):
    assert WalletLedger(db).debit("alice", Decimal("25.00")) == Decimal("0.00")


def test_debit_unknown_wallet(db, seeded):
    with pytest.raises(WalletNotFoundError):
        WalletLedger(db).debit("nobody", Decimal("1.00"))


@pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5.00")])
def test_non_positive_amounts_are_rejected(db, seeded, session_factory, amount):
    ledger = WalletLedger(db)
    with pytest.raises(InvalidInputError):
        ledger.debit("alice", amount)
    with pytest.raises(InvalidInputError):
        ledger.credit("alice", amount)
    assert read_balance(session_factory, "alice") == Decimal("25.00")


def test_credit_increments(db, seeded, session_factory):
    assert WalletLedger(db).credit("alice", Decimal("5.50")) == Decimal("30.50")
    assert read_balance(session_factory, "alice") == Decimal("30.50")


def test_credit_unknown_wallet(db, seeded):
    with pytest.raises(WalletNotFoundError):
        WalletLedger(db).credit("nobody", Decimal("1.00"))
