from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..constants import TRANSACTION_CATEGORIES
from ..models.models import BankAccount, PurchaseOrder, ServiceOrder, Transaction, User
from .audit import audit_log
from .commands import CommandExecutor, CommandResult, CommandStep
from .ledger import account_balance

SERVICE = "SERVICE"
PURCHASE = "PURCHASE"


class PayableError(ValueError):
    code = "PAYABLE"


@dataclass
class Payable:
    kind: str
    order_id: int
    reference: str
    beneficiary: str
    date: date
    amount: Decimal
    supplier_id: Optional[int] = None


@dataclass
class PayablesSummary:
    total_payable: Decimal
    items: List[Payable] = field(default_factory=list)


def _ensure_decimal(value: Any) -> Decimal:
    if value is None:
        return Decimal("0")
    return value if isinstance(value, Decimal) else Decimal(str(value))


def _is_unpaid(order: Any) -> bool:
    return (order.payment_status or "PENDING") == "PENDING"


def service_payable(order: ServiceOrder) -> Optional[Payable]:
    if order.status not in {"COMPLETED", "IN_PROGRESS"} or not _is_unpaid(order):
        return None
    # Actual cost wins once it is known; a zero actual cost falls back to the estimate.
    amount = _ensure_decimal(order.actual_cost) or _ensure_decimal(order.estimated_cost)
    return Payable(
        kind=SERVICE,
        order_id=order.id,
        reference=order.title,
        beneficiary=order.responsible,
        date=order.start_date,
        amount=amount,
    )


def purchase_payable(order: PurchaseOrder) -> Optional[Payable]:
    if order.status in {"DRAFT", "CANCELLED"} or not _is_unpaid(order):
        return None
    return Payable(
        kind=PURCHASE,
        order_id=order.id,
        reference=f"Purchase order #{order.id}",
        beneficiary=order.supplier,
        date=order.date,
        amount=_ensure_decimal(order.total_amount),
        supplier_id=order.supplier_id,
    )


def collect_payables(service_orders: List[ServiceOrder], purchase_orders: List[PurchaseOrder]) -> PayablesSummary:
    items = [p for p in (service_payable(order) for order in service_orders) if p]
    items.extend(p for p in (purchase_payable(order) for order in purchase_orders) if p)
    items.sort(key=lambda item: (-item.amount, item.kind, item.order_id))
    total = sum((item.amount for item in items), Decimal("0"))
    return PayablesSummary(total_payable=total, items=items)


def load_payables(session: Session) -> PayablesSummary:
    return collect_payables(session.query(ServiceOrder).all(), session.query(PurchaseOrder).all())


@dataclass
class PaymentRequest:
    kind: str
    order_id: int
    bank_account_id: int
    payment_date: date
    category: str = "MAINTENANCE"


def pay_payable(session: Session, request: PaymentRequest, actor: Optional[User]) -> CommandResult:
    """Book an expense for a pending service or purchase order and mark it paid."""

    def prepare(db: Session, context: Dict[str, Any]) -> Dict[str, Any]:
        if request.kind not in {SERVICE, PURCHASE}:
            raise PayableError(f"Unknown payable kind: {request.kind}")
        if request.category not in TRANSACTION_CATEGORIES:
            raise PayableError(f"Unknown transaction category: {request.category}")
        model = ServiceOrder if request.kind == SERVICE else PurchaseOrder
        order = db.get(model, request.order_id)
        if not order:
            raise PayableError("Order not found")
        payable = service_payable(order) if request.kind == SERVICE else purchase_payable(order)
        if payable is None:
            raise PayableError("This order has nothing pending to pay")
        if payable.amount <= 0:
            raise PayableError("The order amount must be greater than zero")
        account = db.get(BankAccount, request.bank_account_id)
        if not account:
            raise PayableError("Bank account not found")
        return {"order": order, "payable": payable, "account": account}

    def record_expense(db: Session, context: Dict[str, Any]) -> Transaction:
        prepared = context["prepare"]
        payable: Payable = prepared["payable"]
        is_purchase = payable.kind == PURCHASE
        tx = Transaction(
            date=request.payment_date,
            description=f"Accounts payable {payable.kind.lower()}: {payable.reference}",
            amount=payable.amount,
            type="EXPENSE",
            category=request.category,
            related_bank_account_id=prepared["account"].id,
            related_supplier=payable.beneficiary if is_purchase else None,
            related_supplier_id=payable.supplier_id if is_purchase else None,
        )
        db.add(tx)
        return tx

    def mark_paid(db: Session, context: Dict[str, Any]) -> None:
        order = context["prepare"]["order"]
        order.payment_status = "PAID"
        order.related_transaction_id = context["record_expense"].id
        db.add(order)

    def sync_balance(db: Session, context: Dict[str, Any]) -> Decimal:
        return account_balance(db, context["prepare"]["account"])

    def write_audit(db: Session, context: Dict[str, Any]) -> None:
        payable: Payable = context["prepare"]["payable"]
        audit_log(
            db_session=db,
            actor=actor,
            action="payables.pay",
            entity="ServiceOrder" if payable.kind == SERVICE else "PurchaseOrder",
            entity_id=payable.order_id,
            details=f"Paid {payable.reference} to {payable.beneficiary} (${payable.amount})",
            after={
                "transaction_id": context["record_expense"].id,
                "bank_account_id": request.bank_account_id,
                "bank_balance": str(context["sync_balance"]),
            },
            commit=False,
        )

    steps = [
        CommandStep("prepare", "Validate pending order", prepare),
        CommandStep("record_expense", "Save expense transaction", record_expense),
        CommandStep("mark_paid", "Mark order as paid", mark_paid),
        CommandStep("sync_balance", "Recompute bank balance", sync_balance),
        CommandStep("audit", "Write audit log", write_audit),
    ]
    return CommandExecutor(session).run("payables.pay", steps)
