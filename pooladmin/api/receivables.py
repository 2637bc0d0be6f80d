from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.orm import Session

from ..api.dependencies import get_db, raise_for_command
from ..auth.jwt import require_permission
from ..models.models import User
from ..schemas.schemas import (
    CommandResultRead,
    DebtorRead,
    ReceivablesRead,
    SettleDebtRequest,
    SettleDebtResponse,
    TransactionRead,
)
from ..services.billing import Debtor, ReceivablesSummary
from ..services.receivables import SettlementRequest, debtors_to_csv, load_receivables, settle_member_debt

router = APIRouter(prefix="/receivables", tags=["receivables"])


def _debtor_read(debtor: Debtor) -> DebtorRead:
    return DebtorRead(
        member_id=debtor.member.id,
        full_name=debtor.member.full_name,
        category=debtor.member.category,
        effective_fee=debtor.effective_fee,
        billable_cycles=debtor.billable_cycles,
        expected_total=debtor.expected_total,
        paid_total=debtor.paid_total,
        amount_owed=debtor.amount_owed,
        months_owed=debtor.months_owed,
        last_payment=debtor.last_payment,
    )


def _summary_read(summary: ReceivablesSummary) -> ReceivablesRead:
    return ReceivablesRead(
        evaluated_on=summary.evaluated_on,
        total_receivable=summary.total_receivable,
        debtors=[_debtor_read(debtor) for debtor in summary.debtors],
    )


@router.get("/", response_model=ReceivablesRead)
def list_receivables(
    as_of: Optional[date] = None,
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("finance:read")),
) -> ReceivablesRead:
    return _summary_read(load_receivables(db, as_of))


@router.get("/export")
def export_receivables(
    as_of: Optional[date] = None,
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("finance:read")),
) -> Response:
    summary = load_receivables(db, as_of)
    return Response(
        content=debtors_to_csv(summary),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="debtors_{summary.evaluated_on.isoformat()}.csv"'},
    )


@router.post("/settle", response_model=SettleDebtResponse)
def settle_debt(
    payload: SettleDebtRequest,
    db: Session = Depends(get_db),
    actor: User = Depends(require_permission("finance:write")),
) -> SettleDebtResponse:
    request = SettlementRequest(
        member_id=payload.member_id,
        bank_account_id=payload.bank_account_id,
        settlement_date=payload.settlement_date or date.today(),
    )
    result = settle_member_debt(db, request, actor)
    raise_for_command(result)
    tx = result.output("record_income")
    db.refresh(tx)
    return SettleDebtResponse(
        command=CommandResultRead.model_validate(result),
        transaction=TransactionRead.model_validate(tx),
        bank_balance=result.output("sync_balance"),
    )
