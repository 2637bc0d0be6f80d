from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from ..constants import REAGENT_KEYWORDS
from ..models.models import InventoryItem, MaintenanceLog, PurchaseOrder, User
from .audit import audit_log
from .commands import CommandExecutor, CommandResult, CommandStep
from .dosing import PoolReadings, ReagentPurity, calculate_dosage

REAGENT_LABELS = {
    "chlorine": "Chlorine",
    "ph_down": "pH reducer",
    "alkalinity": "Alkalinity increaser",
}


class InventoryError(ValueError):
    code = "INVENTORY"


def _as_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value or 0))


@dataclass
class UsageLine:
    item_id: Optional[int]
    amount: Decimal
    label: str


def low_stock_items(session: Session) -> List[InventoryItem]:
    return (
        session.query(InventoryItem)
        .filter(InventoryItem.quantity <= InventoryItem.min_threshold)
        .order_by(InventoryItem.name.asc())
        .all()
    )


def match_reagent_items(items: Sequence[InventoryItem]) -> Dict[str, Optional[int]]:
    """Guess which inventory item holds each reagent from its name."""
    mapping: Dict[str, Optional[int]] = {}
    for reagent, keywords in REAGENT_KEYWORDS.items():
        match = next(
            (item for item in items if any(keyword in (item.name or "").lower() for keyword in keywords)),
            None,
        )
        mapping[reagent] = match.id if match else None
    return mapping


def dosing_usage_lines(
    session: Session,
    readings: PoolReadings,
    purity: ReagentPurity,
    item_ids: Optional[Dict[str, Optional[int]]] = None,
) -> List[UsageLine]:
    dosage = calculate_dosage(readings, purity)
    mapping = match_reagent_items(session.query(InventoryItem).all())
    for reagent, item_id in (item_ids or {}).items():
        if item_id is not None:
            mapping[reagent] = item_id
    return [
        UsageLine(item_id=mapping.get(reagent), amount=amount, label=REAGENT_LABELS[reagent])
        for reagent, amount in dosage.as_reagent_map().items()
        if amount > 0
    ]


def _consume_inventory(
    session: Session,
    name: str,
    lines: List[UsageLine],
    log_fields: Dict[str, Any],
    actor: Optional[User],
    empty_message: str,
) -> CommandResult:
    """Validate every line, then decrement every line, then log. Nothing is written if a check fails."""

    def check_stock(db: Session, context: Dict[str, Any]) -> Dict[int, InventoryItem]:
        if not lines:
            raise InventoryError(empty_message)
        items: Dict[int, InventoryItem] = {}
        for line in lines:
            item = db.get(InventoryItem, line.item_id) if line.item_id is not None else None
            if not item:
                raise InventoryError(f"{line.label} is not linked to an inventory item")
            if line.amount <= 0:
                raise InventoryError(f"Amount for {item.name} must be greater than zero")
            required = line.amount + sum(
                (other.amount for other in lines if other is not line and other.item_id == line.item_id),
                Decimal("0"),
            )
            if _as_decimal(item.quantity) < required:
                raise InventoryError(f"Insufficient stock of {item.name}. Required: {required} {item.unit}")
            items[item.id] = item
        return items

    def deduct(db: Session, context: Dict[str, Any]) -> List[Dict[str, Any]]:
        items = context["check_stock"]
        used = []
        for line in lines:
            item = items[line.item_id]
            item.quantity = (_as_decimal(item.quantity) - line.amount).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
            db.add(item)
            used.append({"item_id": item.id, "item_name": item.name, "amount_used": float(line.amount)})
        return used

    def write_log(db: Session, context: Dict[str, Any]) -> MaintenanceLog:
        entry = MaintenanceLog(
            date=date.today(),
            performed_by=(actor.full_name if actor else None) or "Operator",
            items_used=context["deduct"],
            **log_fields,
        )
        db.add(entry)
        return entry

    def write_audit(db: Session, context: Dict[str, Any]) -> None:
        audit_log(
            db_session=db,
            actor=actor,
            action=name,
            entity="MaintenanceLog",
            entity_id=context["write_log"].id,
            details=log_fields.get("description"),
            after={"items_used": context["deduct"]},
            commit=False,
        )

    steps = [
        CommandStep("check_stock", "Validate available stock", check_stock),
        CommandStep("deduct", "Update physical inventory", deduct),
        CommandStep("write_log", "Record maintenance log", write_log),
        CommandStep("audit", "Write audit log", write_audit),
    ]
    return CommandExecutor(session).run(name, steps)


def apply_dosing_suggestion(
    session: Session,
    readings: PoolReadings,
    purity: ReagentPurity,
    actor: Optional[User],
    item_ids: Optional[Dict[str, Optional[int]]] = None,
) -> CommandResult:
    lines = dosing_usage_lines(session, readings, purity, item_ids)
    log_fields = {
        "description": "Suggested chemical adjustment",
        "notes": f"pH: {readings.ph} -> {readings.target_ph}. Suggestion applied.",
        "ph_reading": float(readings.ph),
        "chlorine_reading": float(readings.chlorine),
        "alkalinity_reading": float(readings.alkalinity),
    }
    return _consume_inventory(
        session,
        "inventory.dosing.apply",
        lines,
        log_fields,
        actor,
        "No chemicals need to be applied at the current levels",
    )


def record_manual_usage(
    session: Session,
    usage: Sequence[Dict[str, Any]],
    actor: Optional[User],
    notes: Optional[str] = None,
) -> CommandResult:
    lines = [
        UsageLine(item_id=entry.get("item_id"), amount=_as_decimal(entry.get("amount")), label=f"Item {entry.get('item_id')}")
        for entry in usage
    ]
    log_fields = {
        "description": "Manual supplies dispatch",
        "notes": notes or "Manual dispatch of supplies for corrective maintenance.",
    }
    return _consume_inventory(
        session,
        "inventory.manual_usage",
        lines,
        log_fields,
        actor,
        "Add at least one item to the manual usage list",
    )


def purchase_order_total(items: Sequence[Dict[str, Any]]) -> Decimal:
    total = sum(
        (_as_decimal(item.get("quantity")) * _as_decimal(item.get("unit_price")) for item in items),
        Decimal("0"),
    )
    return total.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def receive_purchase_order(
    session: Session,
    order_id: int,
    reception_date: date,
    actor: Optional[User],
) -> CommandResult:
    def load_order(db: Session, context: Dict[str, Any]) -> PurchaseOrder:
        order = db.get(PurchaseOrder, order_id)
        if not order:
            raise InventoryError("Purchase order not found")
        if order.status not in {"ORDERED", "PAID"}:
            raise InventoryError(f"Purchase orders in status {order.status} cannot be received")
        return order

    def restock(db: Session, context: Dict[str, Any]) -> List[int]:
        restocked = []
        for line in context["load_order"].items or []:
            item_id = line.get("inventory_item_id")
            item = db.get(InventoryItem, item_id) if item_id else None
            if not item:
                continue
            item.quantity = _as_decimal(item.quantity) + _as_decimal(line.get("quantity"))
            item.unit_cost = _as_decimal(line.get("unit_price"))
            item.last_restock_date = reception_date
            db.add(item)
            restocked.append(item.id)
        return restocked

    def mark_received(db: Session, context: Dict[str, Any]) -> None:
        order = context["load_order"]
        order.status = "RECEIVED"
        db.add(order)

    def write_audit(db: Session, context: Dict[str, Any]) -> None:
        audit_log(
            db_session=db,
            actor=actor,
            action="inventory.purchase_order.receive",
            entity="PurchaseOrder",
            entity_id=order_id,
            details=f"Received purchase order #{order_id} on {reception_date.isoformat()}",
            after={"restocked_item_ids": context["restock"]},
            commit=False,
        )

    steps = [
        CommandStep("load_order", "Load purchase order", load_order),
        CommandStep("restock", "Update stock levels", restock),
        CommandStep("mark_received", "Mark order received", mark_received),
        CommandStep("audit", "Write audit log", write_audit),
    ]
    return CommandExecutor(session).run("inventory.purchase_order.receive", steps)
