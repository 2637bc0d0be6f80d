from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..api.dependencies import apply_changes, get_db, get_or_404, model_snapshot
from ..auth.jwt import require_permission
from ..models.models import ServiceOrder, User
from ..schemas.schemas import ServiceOrderCreate, ServiceOrderRead, ServiceOrderUpdate
from ..services.audit import audit_log

router = APIRouter(prefix="/service-orders", tags=["service orders"])


@router.get("/", response_model=List[ServiceOrderRead])
def list_service_orders(
    status: Optional[str] = None,
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("projects:read")),
) -> List[ServiceOrder]:
    query = db.query(ServiceOrder)
    if status:
        query = query.filter(ServiceOrder.status == status.upper())
    return query.order_by(ServiceOrder.start_date.desc(), ServiceOrder.id.desc()).all()


@router.post("/", response_model=ServiceOrderRead, status_code=201)
def create_service_order(
    payload: ServiceOrderCreate,
    db: Session = Depends(get_db),
    actor: User = Depends(require_permission("projects:write")),
) -> ServiceOrder:
    data = payload.model_dump()
    data["materials"] = [material.model_dump(mode="json") for material in payload.materials]
    order = ServiceOrder(**data)
    db.add(order)
    db.flush()
    audit_log(
        db_session=db,
        actor=actor,
        action="service_order.create",
        entity="ServiceOrder",
        entity_id=order.id,
        details=f"Service order {order.title} assigned to {order.responsible}",
        after=model_snapshot(order),
    )
    db.refresh(order)
    return order


@router.patch("/{order_id}", response_model=ServiceOrderRead)
def update_service_order(
    order_id: int,
    payload: ServiceOrderUpdate,
    db: Session = Depends(get_db),
    actor: User = Depends(require_permission("projects:write")),
) -> ServiceOrder:
    order = get_or_404(db, ServiceOrder, order_id, "Service order")
    if order.payment_status == "PAID" and payload.model_fields_set & {"actual_cost", "estimated_cost"}:
        raise HTTPException(status_code=409, detail="Costs of a paid service order cannot change")
    changes = payload.model_dump(exclude_unset=True)
    if payload.materials is not None:
        changes["materials"] = [material.model_dump(mode="json") for material in payload.materials]
    before = model_snapshot(order)
    apply_changes(order, changes)
    db.add(order)
    db.flush()
    audit_log(
        db_session=db,
        actor=actor,
        action="service_order.update",
        entity="ServiceOrder",
        entity_id=order.id,
        before=before,
        after=model_snapshot(order),
    )
    db.refresh(order)
    return order


@router.delete("/{order_id}", status_code=204)
def delete_service_order(
    order_id: int,
    db: Session = Depends(get_db),
    actor: User = Depends(require_permission("projects:delete")),
) -> None:
    order = get_or_404(db, ServiceOrder, order_id, "Service order")
    before = model_snapshot(order)
    db.delete(order)
    db.flush()
    audit_log(
        db_session=db,
        actor=actor,
        action="service_order.delete",
        entity="ServiceOrder",
        entity_id=order_id,
        before=before,
    )
