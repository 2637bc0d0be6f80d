from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from ..api.dependencies import get_db, get_or_404
from ..auth.jwt import require_permission
from ..models.models import BankAccount, Member, Transaction, User
from ..schemas.schemas import IncomeStatementRead
from ..services.audit import audit_log
from ..services.reports import IncomeStatement, income_statement
from ..utils.pdf_utils import generate_income_statement_pdf, generate_receipt_pdf

router = APIRouter(prefix="/reports", tags=["reports"])


def _load_statement(db: Session, year: Optional[int], month: Optional[int]) -> IncomeStatement:
    try:
        return income_statement(db, year or date.today().year, month)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.get("/income-statement", response_model=IncomeStatementRead)
def get_income_statement(
    year: Optional[int] = Query(None, ge=1900, le=2999),
    month: Optional[int] = None,
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("reports:read")),
) -> IncomeStatementRead:
    return IncomeStatementRead.model_validate(_load_statement(db, year, month))


@router.get("/income-statement/pdf")
def download_income_statement(
    year: Optional[int] = Query(None, ge=1900, le=2999),
    month: Optional[int] = None,
    db: Session = Depends(get_db),
    actor: User = Depends(require_permission("reports:read")),
) -> FileResponse:
    statement = _load_statement(db, year, month)
    pdf_path = generate_income_statement_pdf(statement)
    audit_log(
        db_session=db,
        actor=actor,
        action="report.income_statement.pdf",
        entity="Report",
        entity_id=statement.period_label,
    )
    return FileResponse(
        path=pdf_path,
        media_type="application/pdf",
        filename=f"income_statement_{statement.period_label}.pdf",
    )


@router.get("/receipts/{transaction_id}/pdf")
def download_receipt(
    transaction_id: int,
    db: Session = Depends(get_db),
    actor: User = Depends(require_permission("reports:read")),
) -> FileResponse:
    tx = get_or_404(db, Transaction, transaction_id, "Transaction")
    if tx.type != "INCOME":
        raise HTTPException(status_code=400, detail="Receipts are only issued for income transactions")
    member = db.get(Member, tx.related_member_id) if tx.related_member_id else None
    account = db.get(BankAccount, tx.related_bank_account_id) if tx.related_bank_account_id else None
    pdf_path = generate_receipt_pdf(tx, member, account)
    audit_log(
        db_session=db,
        actor=actor,
        action="report.receipt.pdf",
        entity="Transaction",
        entity_id=tx.id,
    )
    return FileResponse(path=pdf_path, media_type="application/pdf", filename=f"receipt_{tx.id}.pdf")
