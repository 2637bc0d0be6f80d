from datetime import date
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..api.dependencies import apply_changes, get_db, get_or_404, model_snapshot, raise_for_command
from ..auth.jwt import require_permission
from ..models.models import InventoryItem, MaintenanceLog, PurchaseOrder, Supplier, User
from ..schemas.schemas import (
    CommandResultRead,
    DosingApplyRequest,
    DosingRequest,
    DosingResultRead,
    InventoryCommandResponse,
    InventoryItemCreate,
    InventoryItemRead,
    InventoryItemUpdate,
    MaintenanceLogRead,
    ManualUsageRequest,
    PurchaseOrderCreate,
    PurchaseOrderRead,
    PurchaseOrderUpdate,
    ReceivePurchaseOrderRequest,
)
from ..services import inventory as inventory_service
from ..services.audit import audit_log
from ..services.commands import CommandResult
from ..services.dosing import DosingError, PoolReadings, ReagentPurity, calculate_dosage

router = APIRouter(prefix="/inventory", tags=["inventory"])


def _readings(payload: DosingRequest) -> PoolReadings:
    return PoolReadings(**payload.readings.model_dump())


def _purity(payload: DosingRequest) -> ReagentPurity:
    return ReagentPurity(**payload.purity.model_dump())


def _command_response(db: Session, result: CommandResult) -> InventoryCommandResponse:
    raise_for_command(result)
    log = result.output("write_log")
    db.refresh(log)
    return InventoryCommandResponse(
        command=CommandResultRead.model_validate(result),
        log=MaintenanceLogRead.model_validate(log),
    )


# --- Items ---


@router.get("/items", response_model=List[InventoryItemRead])
def list_items(
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("inventory:read")),
) -> List[InventoryItem]:
    return db.query(InventoryItem).order_by(InventoryItem.name.asc()).all()


@router.get("/items/low-stock", response_model=List[InventoryItemRead])
def list_low_stock(
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("inventory:read")),
) -> List[InventoryItem]:
    return inventory_service.low_stock_items(db)


@router.post("/items", response_model=InventoryItemRead, status_code=201)
def create_item(
    payload: InventoryItemCreate,
    db: Session = Depends(get_db),
    actor: User = Depends(require_permission("inventory:write")),
) -> InventoryItem:
    item = InventoryItem(**payload.model_dump())
    db.add(item)
    db.flush()
    audit_log(
        db_session=db,
        actor=actor,
        action="inventory.item.create",
        entity="InventoryItem",
        entity_id=item.id,
        after=model_snapshot(item),
    )
    db.refresh(item)
    return item


@router.patch("/items/{item_id}", response_model=InventoryItemRead)
def update_item(
    item_id: int,
    payload: InventoryItemUpdate,
    db: Session = Depends(get_db),
    actor: User = Depends(require_permission("inventory:write")),
) -> InventoryItem:
    item = get_or_404(db, InventoryItem, item_id, "Inventory item")
    before = model_snapshot(item)
    apply_changes(item, payload.model_dump(exclude_unset=True))
    db.add(item)
    db.flush()
    audit_log(
        db_session=db,
        actor=actor,
        action="inventory.item.update",
        entity="InventoryItem",
        entity_id=item.id,
        before=before,
        after=model_snapshot(item),
    )
    db.refresh(item)
    return item


@router.delete("/items/{item_id}", status_code=204)
def delete_item(
    item_id: int,
    db: Session = Depends(get_db),
    actor: User = Depends(require_permission("inventory:delete")),
) -> None:
    item = get_or_404(db, InventoryItem, item_id, "Inventory item")
    before = model_snapshot(item)
    db.delete(item)
    db.flush()
    audit_log(
        db_session=db,
        actor=actor,
        action="inventory.item.delete",
        entity="InventoryItem",
        entity_id=item_id,
        before=before,
    )


# --- Dosing and usage ---


@router.post("/dosing/calculate", response_model=DosingResultRead)
def calculate(
    payload: DosingRequest,
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("inventory:read")),
) -> DosingResultRead:
    try:
        result = calculate_dosage(_readings(payload), _purity(payload))
    except DosingError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    read = DosingResultRead.model_validate(result)
    read.suggested_items = inventory_service.match_reagent_items(db.query(InventoryItem).all())
    return read


@router.post("/dosing/apply", response_model=InventoryCommandResponse)
def apply_dosing(
    payload: DosingApplyRequest,
    db: Session = Depends(get_db),
    actor: User = Depends(require_permission("inventory:write")),
) -> InventoryCommandResponse:
    try:
        result = inventory_service.apply_dosing_suggestion(
            db, _readings(payload), _purity(payload), actor, item_ids=dict(payload.item_ids)
        )
    except DosingError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _command_response(db, result)


@router.post("/usage", response_model=InventoryCommandResponse)
def record_usage(
    payload: ManualUsageRequest,
    db: Session = Depends(get_db),
    actor: User = Depends(require_permission("inventory:write")),
) -> InventoryCommandResponse:
    usage = [line.model_dump() for line in payload.items]
    result = inventory_service.record_manual_usage(db, usage, actor, notes=payload.notes)
    return _command_response(db, result)


@router.get("/logs", response_model=List[MaintenanceLogRead])
def list_logs(
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("inventory:read")),
) -> List[MaintenanceLog]:
    return (
        db.query(MaintenanceLog)
        .order_by(MaintenanceLog.date.desc(), MaintenanceLog.id.desc())
        .limit(limit)
        .all()
    )


# --- Purchase orders ---


@router.get("/purchase-orders", response_model=List[PurchaseOrderRead])
def list_purchase_orders(
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("inventory:read")),
) -> List[PurchaseOrder]:
    return db.query(PurchaseOrder).order_by(PurchaseOrder.date.desc(), PurchaseOrder.id.desc()).all()


@router.post("/purchase-orders", response_model=PurchaseOrderRead, status_code=201)
def create_purchase_order(
    payload: PurchaseOrderCreate,
    db: Session = Depends(get_db),
    actor: User = Depends(require_permission("inventory:write")),
) -> PurchaseOrder:
    supplier_name = payload.supplier
    if payload.supplier_id is not None:
        supplier = get_or_404(db, Supplier, payload.supplier_id, "Supplier")
        supplier_name = supplier.business_name
    for line in payload.items:
        if line.inventory_item_id is not None:
            get_or_404(db, InventoryItem, line.inventory_item_id, "Inventory item")
    items = [line.model_dump(mode="json") for line in payload.items]
    order = PurchaseOrder(
        supplier=supplier_name,
        supplier_id=payload.supplier_id,
        date=payload.date or date.today(),
        status=payload.status,
        items=items,
        total_amount=inventory_service.purchase_order_total(items),
    )
    db.add(order)
    db.flush()
    audit_log(
        db_session=db,
        actor=actor,
        action="inventory.purchase_order.create",
        entity="PurchaseOrder",
        entity_id=order.id,
        details=f"Purchase order to {order.supplier} for ${order.total_amount}",
        after=model_snapshot(order),
    )
    db.refresh(order)
    return order


@router.patch("/purchase-orders/{order_id}", response_model=PurchaseOrderRead)
def update_purchase_order(
    order_id: int,
    payload: PurchaseOrderUpdate,
    db: Session = Depends(get_db),
    actor: User = Depends(require_permission("inventory:write")),
) -> PurchaseOrder:
    order = get_or_404(db, PurchaseOrder, order_id, "Purchase order")
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("status") == "RECEIVED":
        raise HTTPException(status_code=400, detail="Use the receive endpoint to receive an order")
    if order.status == "RECEIVED" and changes.get("status"):
        raise HTTPException(status_code=409, detail="Received orders cannot change status")
    before = model_snapshot(order)
    apply_changes(order, changes)
    db.add(order)
    db.flush()
    audit_log(
        db_session=db,
        actor=actor,
        action="inventory.purchase_order.update",
        entity="PurchaseOrder",
        entity_id=order.id,
        before=before,
        after=model_snapshot(order),
    )
    db.refresh(order)
    return order


@router.post("/purchase-orders/{order_id}/receive", response_model=PurchaseOrderRead)
def receive_purchase_order(
    order_id: int,
    payload: ReceivePurchaseOrderRequest,
    db: Session = Depends(get_db),
    actor: User = Depends(require_permission("inventory:write")),
) -> PurchaseOrder:
    result = inventory_service.receive_purchase_order(db, order_id, payload.reception_date or date.today(), actor)
    raise_for_command(result)
    return get_or_404(db, PurchaseOrder, order_id, "Purchase order")


@router.delete("/purchase-orders/{order_id}", status_code=204)
def delete_purchase_order(
    order_id: int,
    db: Session = Depends(get_db),
    actor: User = Depends(require_permission("inventory:delete")),
) -> None:
    order = get_or_404(db, PurchaseOrder, order_id, "Purchase order")
    before = model_snapshot(order)
    db.delete(order)
    db.flush()
    audit_log(
        db_session=db,
        actor=actor,
        action="inventory.purchase_order.delete",
        entity="PurchaseOrder",
        entity_id=order_id,
        before=before,
    )
