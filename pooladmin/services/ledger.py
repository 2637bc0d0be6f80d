from __future__ import annotations

from collections import defaultdict
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..models.models import BankAccount, Transaction


def _ensure_decimal(amount: Decimal | float | int | None) -> Decimal:
    if amount is None:
        return Decimal("0")
    if isinstance(amount, Decimal):
        return amount
    return Decimal(str(amount))


def balance_effects(tx: Any) -> Dict[Any, Decimal]:
    """Signed amount a transaction adds to each bank account it references."""
    amount = _ensure_decimal(tx.amount)
    effects: Dict[Any, Decimal] = {}
    if tx.type == "TRANSFER":
        if tx.related_bank_account_id is not None:
            effects[tx.related_bank_account_id] = -amount
        if tx.transfer_to_account_id is not None:
            effects[tx.transfer_to_account_id] = effects.get(tx.transfer_to_account_id, Decimal("0")) + amount
    elif tx.related_bank_account_id is not None:
        effects[tx.related_bank_account_id] = amount if tx.type == "INCOME" else -amount
    return effects


def fold_balances(accounts: Iterable[Any], transactions: Iterable[Any]) -> Dict[Any, Decimal]:
    balances: Dict[Any, Decimal] = {account.id: _ensure_decimal(account.opening_balance) for account in accounts}
    movements: Dict[Any, Decimal] = defaultdict(Decimal)
    for tx in transactions:
        for account_id, delta in balance_effects(tx).items():
            movements[account_id] += delta
    for account_id in balances:
        balances[account_id] += movements.get(account_id, Decimal("0"))
    return balances


def account_balance(session: Session, account: BankAccount) -> Decimal:
    transactions = (
        session.query(Transaction)
        .filter(
            or_(
                Transaction.related_bank_account_id == account.id,
                Transaction.transfer_to_account_id == account.id,
            )
        )
        .all()
    )
    return fold_balances([account], transactions)[account.id]


def all_account_balances(session: Session, accounts: Optional[List[BankAccount]] = None) -> Dict[int, Decimal]:
    accounts = accounts if accounts is not None else session.query(BankAccount).all()
    transactions = (
        session.query(Transaction)
        .filter(
            or_(
                Transaction.related_bank_account_id.isnot(None),
                Transaction.transfer_to_account_id.isnot(None),
            )
        )
        .all()
    )
    return fold_balances(accounts, transactions)
