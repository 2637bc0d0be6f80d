from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..constants import TRANSACTION_CATEGORIES, TRANSACTION_TYPES
from ..models.models import BankAccount, Member, Project, PurchaseOrder, ServiceOrder, Supplier, Transaction


class TransactionValidationError(ValueError):
    code = "VALIDATION"


def _as_decimal(value: Any) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def validate_transaction(session: Session, data: Dict[str, Any]) -> Dict[str, Any]:
    """Check a transaction payload before anything is written and return the normalized fields."""
    cleaned = dict(data)
    tx_type = cleaned.get("type")
    if tx_type not in TRANSACTION_TYPES:
        raise TransactionValidationError(f"Unknown transaction type: {tx_type}")

    amount = _as_decimal(cleaned.get("amount") or 0)
    if amount <= 0:
        raise TransactionValidationError("Amount must be greater than zero")
    cleaned["amount"] = amount.quantize(Decimal("0.01"))

    if not (cleaned.get("description") or "").strip():
        raise TransactionValidationError("Description is required")

    source_id = cleaned.get("related_bank_account_id")
    destination_id = cleaned.get("transfer_to_account_id")

    if tx_type == "TRANSFER":
        if source_id is None:
            raise TransactionValidationError("A transfer needs a source account")
        if destination_id is None:
            raise TransactionValidationError("A transfer needs a destination account")
        if source_id == destination_id:
            raise TransactionValidationError("Source and destination accounts cannot be the same")
        cleaned["category"] = cleaned.get("category") or "INTERNAL"
        cleaned["related_member_id"] = None
    else:
        cleaned["transfer_to_account_id"] = None
        destination_id = None

    if cleaned.get("category") not in TRANSACTION_CATEGORIES:
        raise TransactionValidationError(f"Unknown transaction category: {cleaned.get('category')}")

    for account_id in (source_id, destination_id):
        if account_id is not None and not session.get(BankAccount, account_id):
            raise TransactionValidationError(f"Bank account {account_id} not found")
    if cleaned.get("related_member_id") is not None and not session.get(Member, cleaned["related_member_id"]):
        raise TransactionValidationError("Related member not found")
    if cleaned.get("related_project_id") is not None and not session.get(Project, cleaned["related_project_id"]):
        raise TransactionValidationError("Related project not found")
    supplier_id = cleaned.get("related_supplier_id")
    if supplier_id is not None:
        supplier = session.get(Supplier, supplier_id)
        if not supplier:
            raise TransactionValidationError("Related supplier not found")
        cleaned["related_supplier"] = cleaned.get("related_supplier") or supplier.business_name
    return cleaned


def is_member_payment(tx: Transaction) -> bool:
    return tx.type == "INCOME" and tx.category == "CONTRIBUTION" and tx.related_member_id is not None


def refresh_last_payment(session: Session, member_id: Optional[int]) -> Optional[Member]:
    """Point ``last_payment_date`` at the member's latest remaining contribution, or clear it."""
    if member_id is None:
        return None
    member = session.get(Member, member_id)
    if not member:
        return None
    member.last_payment_date = (
        session.query(func.max(Transaction.date))
        .filter(
            Transaction.related_member_id == member_id,
            Transaction.type == "INCOME",
            Transaction.category == "CONTRIBUTION",
        )
        .scalar()
    )
    session.add(member)
    return member


def create_transaction(session: Session, data: Dict[str, Any]) -> Transaction:
    cleaned = validate_transaction(session, data)
    if not cleaned.get("date"):
        cleaned["date"] = date.today()
    tx = Transaction(**cleaned)
    session.add(tx)
    session.flush()
    if is_member_payment(tx):
        refresh_last_payment(session, tx.related_member_id)
    return tx


def update_transaction(session: Session, tx: Transaction, changes: Dict[str, Any]) -> Transaction:
    affected = {tx.related_member_id} if is_member_payment(tx) else set()
    merged = {
        column.name: getattr(tx, column.name)
        for column in Transaction.__table__.columns
        if column.name not in {"id", "created_at"}
    }
    merged.update(changes)
    cleaned = validate_transaction(session, merged)
    for key, value in cleaned.items():
        setattr(tx, key, value)
    session.add(tx)
    session.flush()
    if is_member_payment(tx):
        affected.add(tx.related_member_id)
    for member_id in affected:
        refresh_last_payment(session, member_id)
    return tx


def snapshot(tx: Transaction) -> Dict[str, Any]:
    return {column.name: getattr(tx, column.name) for column in Transaction.__table__.columns}


def delete_transaction(session: Session, tx: Transaction) -> None:
    """Remove a transaction; orders it settled become payable again."""
    member_id = tx.related_member_id if is_member_payment(tx) else None
    for order_model in (ServiceOrder, PurchaseOrder):
        for order in session.query(order_model).filter(order_model.related_transaction_id == tx.id).all():
            order.related_transaction_id = None
            order.payment_status = "PENDING"
            session.add(order)
    session.delete(tx)
    session.flush()
    refresh_last_payment(session, member_id)
