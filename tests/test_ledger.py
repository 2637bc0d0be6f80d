from decimal import Decimal
from types import SimpleNamespace

from pooladmin.services.ledger import balance_effects, fold_balances


def _tx(tx_type, amount, source=None, destination=None):
    return SimpleNamespace(
        type=tx_type,
        amount=Decimal(amount),
        related_bank_account_id=source,
        transfer_to_account_id=destination,
    )


def test_balance_effects_by_type():
    assert balance_effects(_tx("INCOME", "45", source=1)) == {1: Decimal("45")}
    assert balance_effects(_tx("EXPENSE", "80", source=1)) == {1: Decimal("-80")}
    assert balance_effects(_tx("TRANSFER", "100", source=1, destination=2)) == {
        1: Decimal("-100"),
        2: Decimal("100"),
    }
    assert balance_effects(_tx("EXPENSE", "80")) == {}


def test_fold_balances_matches_the_sample_ledger():
    accounts = [
        SimpleNamespace(id=1, opening_balance=Decimal("2696.00")),
        SimpleNamespace(id=2, opening_balance=Decimal("5000.00")),
    ]
    transactions = [
        _tx("INCOME", "45.00", source=1),
        _tx("EXPENSE", "120.50", source=1),
        _tx("EXPENSE", "80.00", source=1),
        _tx("EXPENSE", "450.00", source=1),
        # Transactions against unknown accounts are ignored
        _tx("INCOME", "10.00", source=99),
    ]

    assert fold_balances(accounts, transactions) == {1: Decimal("2090.50"), 2: Decimal("5000.00")}


def test_transfer_moves_money_without_changing_the_total():
    accounts = [
        SimpleNamespace(id=1, opening_balance=Decimal("300")),
        SimpleNamespace(id=2, opening_balance=Decimal("0")),
    ]
    balances = fold_balances(accounts, [_tx("TRANSFER", "120", source=1, destination=2)])

    assert balances == {1: Decimal("180"), 2: Decimal("120")}
    assert sum(balances.values()) == Decimal("300")
