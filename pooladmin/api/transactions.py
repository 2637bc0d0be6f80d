from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from ..api.dependencies import get_db, get_or_404
from ..auth.jwt import require_permission
from ..models.models import Transaction, User
from ..schemas.schemas import TransactionCreate, TransactionRead, TransactionUpdate
from ..services import transactions as transaction_service
from ..services.audit import audit_log
from ..utils.csv_utils import transactions_to_csv

router = APIRouter(prefix="/transactions", tags=["finance"])


def _filtered(
    db: Session,
    type: Optional[str],
    category: Optional[str],
    start: Optional[date],
    end: Optional[date],
    bank_account_id: Optional[int],
):
    query = db.query(Transaction)
    if type:
        query = query.filter(Transaction.type == type.upper())
    if category:
        query = query.filter(Transaction.category == category.upper())
    if start:
        query = query.filter(Transaction.date >= start)
    if end:
        query = query.filter(Transaction.date <= end)
    if bank_account_id is not None:
        query = query.filter(
            (Transaction.related_bank_account_id == bank_account_id)
            | (Transaction.transfer_to_account_id == bank_account_id)
        )
    return query.order_by(Transaction.date.desc(), Transaction.id.desc())


@router.get("/", response_model=List[TransactionRead])
def list_transactions(
    type: Optional[str] = None,
    category: Optional[str] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
    bank_account_id: Optional[int] = None,
    limit: int = Query(500, ge=1, le=5000),
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("finance:read")),
) -> List[Transaction]:
    return _filtered(db, type, category, start, end, bank_account_id).limit(limit).all()


@router.get("/export")
def export_transactions(
    type: Optional[str] = None,
    category: Optional[str] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
    bank_account_id: Optional[int] = None,
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("finance:read")),
) -> Response:
    content = transactions_to_csv(_filtered(db, type, category, start, end, bank_account_id).all())
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="transactions.csv"'},
    )


@router.get("/{transaction_id}", response_model=TransactionRead)
def get_transaction(
    transaction_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("finance:read")),
) -> Transaction:
    return get_or_404(db, Transaction, transaction_id, "Transaction")


@router.post("/", response_model=TransactionRead, status_code=201)
def create_transaction(
    payload: TransactionCreate,
    db: Session = Depends(get_db),
    actor: User = Depends(require_permission("finance:write")),
) -> Transaction:
    try:
        tx = transaction_service.create_transaction(db, payload.model_dump())
    except transaction_service.TransactionValidationError as exc:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    audit_log(
        db_session=db,
        actor=actor,
        action="transaction.create",
        entity="Transaction",
        entity_id=tx.id,
        details=f"{tx.type} {tx.category}: {tx.description} (${tx.amount})",
        after=transaction_service.snapshot(tx),
    )
    db.refresh(tx)
    return tx


@router.patch("/{transaction_id}", response_model=TransactionRead)
def update_transaction(
    transaction_id: int,
    payload: TransactionUpdate,
    db: Session = Depends(get_db),
    actor: User = Depends(require_permission("finance:write")),
) -> Transaction:
    tx = get_or_404(db, Transaction, transaction_id, "Transaction")
    before = transaction_service.snapshot(tx)
    try:
        transaction_service.update_transaction(db, tx, payload.model_dump(exclude_unset=True))
    except transaction_service.TransactionValidationError as exc:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    audit_log(
        db_session=db,
        actor=actor,
        action="transaction.update",
        entity="Transaction",
        entity_id=tx.id,
        before=before,
        after=transaction_service.snapshot(tx),
    )
    db.refresh(tx)
    return tx


@router.delete("/{transaction_id}", status_code=204)
def delete_transaction(
    transaction_id: int,
    db: Session = Depends(get_db),
    actor: User = Depends(require_permission("finance:delete")),
) -> None:
    tx = get_or_404(db, Transaction, transaction_id, "Transaction")
    before = transaction_service.snapshot(tx)
    transaction_service.delete_transaction(db, tx)
    audit_log(
        db_session=db,
        actor=actor,
        action="transaction.delete",
        entity="Transaction",
        entity_id=transaction_id,
        details=f"Deleted {before['type']} {before['description']} (${before['amount']})",
        before=before,
    )
