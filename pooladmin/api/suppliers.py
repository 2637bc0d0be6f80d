from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..api.dependencies import apply_changes, get_db, get_or_404, model_snapshot
from ..auth.jwt import require_permission
from ..models.models import Supplier, User
from ..schemas.schemas import SupplierCreate, SupplierRead, SupplierUpdate
from ..services.audit import audit_log

router = APIRouter(prefix="/suppliers", tags=["suppliers"])


@router.get("/", response_model=List[SupplierRead])
def list_suppliers(
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("suppliers:read")),
) -> List[Supplier]:
    return db.query(Supplier).order_by(Supplier.business_name.asc()).all()


@router.post("/", response_model=SupplierRead, status_code=201)
def create_supplier(
    payload: SupplierCreate,
    db: Session = Depends(get_db),
    actor: User = Depends(require_permission("suppliers:write")),
) -> Supplier:
    supplier = Supplier(**payload.model_dump())
    db.add(supplier)
    db.flush()
    audit_log(
        db_session=db,
        actor=actor,
        action="supplier.create",
        entity="Supplier",
        entity_id=supplier.id,
        details=f"Registered supplier {supplier.business_name}",
        after=model_snapshot(supplier),
    )
    db.refresh(supplier)
    return supplier


@router.patch("/{supplier_id}", response_model=SupplierRead)
def update_supplier(
    supplier_id: int,
    payload: SupplierUpdate,
    db: Session = Depends(get_db),
    actor: User = Depends(require_permission("suppliers:write")),
) -> Supplier:
    supplier = get_or_404(db, Supplier, supplier_id, "Supplier")
    before = model_snapshot(supplier)
    apply_changes(supplier, payload.model_dump(exclude_unset=True))
    db.add(supplier)
    db.flush()
    audit_log(
        db_session=db,
        actor=actor,
        action="supplier.update",
        entity="Supplier",
        entity_id=supplier.id,
        before=before,
        after=model_snapshot(supplier),
    )
    db.refresh(supplier)
    return supplier


@router.delete("/{supplier_id}", status_code=204)
def delete_supplier(
    supplier_id: int,
    db: Session = Depends(get_db),
    actor: User = Depends(require_permission("suppliers:delete")),
) -> None:
    supplier = get_or_404(db, Supplier, supplier_id, "Supplier")
    before = model_snapshot(supplier)
    db.delete(supplier)
    db.flush()
    audit_log(
        db_session=db,
        actor=actor,
        action="supplier.delete",
        entity="Supplier",
        entity_id=supplier_id,
        before=before,
    )
