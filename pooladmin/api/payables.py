from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..api.dependencies import get_db, raise_for_command
from ..auth.jwt import require_permission
from ..models.models import User
from ..schemas.schemas import CommandResultRead, PayablesRead, PayPayableRequest, PayPayableResponse, TransactionRead
from ..services.payables import PaymentRequest, load_payables, pay_payable

router = APIRouter(prefix="/payables", tags=["payables"])


@router.get("/", response_model=PayablesRead)
def list_payables(
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("finance:read")),
) -> PayablesRead:
    return PayablesRead.model_validate(load_payables(db))


@router.post("/pay", response_model=PayPayableResponse)
def pay(
    payload: PayPayableRequest,
    db: Session = Depends(get_db),
    actor: User = Depends(require_permission("finance:write")),
) -> PayPayableResponse:
    request = PaymentRequest(
        kind=payload.kind,
        order_id=payload.order_id,
        bank_account_id=payload.bank_account_id,
        payment_date=payload.payment_date or date.today(),
        category=payload.category,
    )
    result = pay_payable(db, request, actor)
    raise_for_command(result)
    tx = result.output("record_expense")
    db.refresh(tx)
    return PayPayableResponse(
        command=CommandResultRead.model_validate(result),
        transaction=TransactionRead.model_validate(tx),
        bank_balance=result.output("sync_balance"),
    )
