from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..api.dependencies import apply_changes, get_db, get_or_404, model_snapshot
from ..auth.jwt import require_permission
from ..models.models import BankAccount, Transaction, User
from ..schemas.schemas import BankAccountCreate, BankAccountRead, BankAccountUpdate
from ..services.audit import audit_log
from ..services.ledger import account_balance, all_account_balances

router = APIRouter(prefix="/bank-accounts", tags=["finance"])


def _as_read(db: Session, account: BankAccount) -> BankAccountRead:
    read = BankAccountRead.model_validate(account)
    read.balance = account_balance(db, account)
    return read


@router.get("/", response_model=List[BankAccountRead])
def list_bank_accounts(
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("finance:read")),
) -> List[BankAccountRead]:
    accounts = db.query(BankAccount).order_by(BankAccount.id.asc()).all()
    balances = all_account_balances(db, accounts)
    results = []
    for account in accounts:
        read = BankAccountRead.model_validate(account)
        read.balance = balances[account.id]
        results.append(read)
    return results


@router.get("/{account_id}", response_model=BankAccountRead)
def get_bank_account(
    account_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("finance:read")),
) -> BankAccountRead:
    return _as_read(db, get_or_404(db, BankAccount, account_id, "Bank account"))


@router.post("/", response_model=BankAccountRead, status_code=201)
def create_bank_account(
    payload: BankAccountCreate,
    db: Session = Depends(get_db),
    actor: User = Depends(require_permission("finance:write")),
) -> BankAccountRead:
    account = BankAccount(**payload.model_dump())
    db.add(account)
    db.flush()
    audit_log(
        db_session=db,
        actor=actor,
        action="bank_account.create",
        entity="BankAccount",
        entity_id=account.id,
        after=model_snapshot(account),
    )
    db.refresh(account)
    return _as_read(db, account)


@router.patch("/{account_id}", response_model=BankAccountRead)
def update_bank_account(
    account_id: int,
    payload: BankAccountUpdate,
    db: Session = Depends(get_db),
    actor: User = Depends(require_permission("finance:write")),
) -> BankAccountRead:
    account = get_or_404(db, BankAccount, account_id, "Bank account")
    before = model_snapshot(account)
    apply_changes(account, payload.model_dump(exclude_unset=True))
    db.add(account)
    db.flush()
    audit_log(
        db_session=db,
        actor=actor,
        action="bank_account.update",
        entity="BankAccount",
        entity_id=account.id,
        before=before,
        after=model_snapshot(account),
    )
    db.refresh(account)
    return _as_read(db, account)


@router.delete("/{account_id}", status_code=204)
def delete_bank_account(
    account_id: int,
    db: Session = Depends(get_db),
    actor: User = Depends(require_permission("finance:delete")),
) -> None:
    account = get_or_404(db, BankAccount, account_id, "Bank account")
    in_use = (
        db.query(Transaction)
        .filter(or_(Transaction.related_bank_account_id == account.id, Transaction.transfer_to_account_id == account.id))
        .first()
    )
    if in_use:
        raise HTTPException(status_code=409, detail="Bank account has transactions and cannot be deleted")
    before = model_snapshot(account)
    db.delete(account)
    db.flush()
    audit_log(
        db_session=db,
        actor=actor,
        action="bank_account.delete",
        entity="BankAccount",
        entity_id=account_id,
        before=before,
    )
