from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from ..models.models import BankAccount, Member, Transaction, User
from ..utils.csv_utils import rows_to_csv
from .audit import audit_log
from .billing import ReceivablesSummary, resolve_debtors, summarize_receivables
from .commands import CommandExecutor, CommandResult, CommandStep
from .ledger import account_balance


class SettlementError(ValueError):
    code = "SETTLEMENT"


def load_receivables(session: Session, today: Optional[date] = None) -> ReceivablesSummary:
    members = session.query(Member).all()
    transactions = session.query(Transaction).filter(Transaction.type == "INCOME").all()
    return summarize_receivables(members, transactions, today or date.today())


def debtors_to_csv(summary: ReceivablesSummary) -> str:
    headers = ["member_id", "full_name", "category", "effective_fee", "months_owed", "amount_owed", "last_payment"]
    rows = [
        [
            str(debtor.member.id),
            debtor.member.full_name,
            debtor.member.category,
            str(debtor.effective_fee),
            str(debtor.months_owed),
            str(debtor.amount_owed),
            debtor.last_payment or "",
        ]
        for debtor in summary.debtors
    ]
    return rows_to_csv(headers, rows)


@dataclass
class SettlementRequest:
    member_id: int
    bank_account_id: int
    settlement_date: date


def settle_member_debt(
    session: Session,
    request: SettlementRequest,
    actor: Optional[User],
    today: Optional[date] = None,
) -> CommandResult:
    """Book the full outstanding amount of a debtor as one contribution."""

    def prepare(db: Session, context: Dict[str, Any]) -> Dict[str, Any]:
        member = db.get(Member, request.member_id)
        if not member:
            raise SettlementError("Member not found")
        account = db.get(BankAccount, request.bank_account_id)
        if not account:
            raise SettlementError("The selected bank account no longer exists")
        members = db.query(Member).all()
        transactions = db.query(Transaction).filter(Transaction.type == "INCOME").all()
        debtor = next(
            (entry for entry in resolve_debtors(members, transactions, today or date.today()) if entry.member.id == member.id),
            None,
        )
        if debtor is None:
            raise SettlementError(f"{member.full_name} has no outstanding balance")
        return {"member": member, "account": account, "amount": debtor.amount_owed}

    def record_income(db: Session, context: Dict[str, Any]) -> Transaction:
        prepared = context["prepare"]
        tx = Transaction(
            date=request.settlement_date,
            description=f"Settlement of accumulated dues - Member: {prepared['member'].full_name}",
            amount=prepared["amount"],
            type="INCOME",
            category="CONTRIBUTION",
            related_member_id=prepared["member"].id,
            related_bank_account_id=prepared["account"].id,
        )
        db.add(tx)
        return tx

    def update_member(db: Session, context: Dict[str, Any]) -> Member:
        member = context["prepare"]["member"]
        member.last_payment_date = request.settlement_date
        db.add(member)
        return member

    def sync_balance(db: Session, context: Dict[str, Any]) -> Decimal:
        return account_balance(db, context["prepare"]["account"])

    def write_audit(db: Session, context: Dict[str, Any]) -> None:
        prepared = context["prepare"]
        audit_log(
            db_session=db,
            actor=actor,
            action="receivables.settle",
            entity="Member",
            entity_id=prepared["member"].id,
            details=(
                f"Settled member debt: {prepared['member'].full_name} "
                f"(${prepared['amount']}) on {request.settlement_date.isoformat()}"
            ),
            after={
                "transaction_id": context["record_income"].id,
                "amount": str(prepared["amount"]),
                "bank_account_id": prepared["account"].id,
                "bank_balance": str(context["sync_balance"]),
            },
            commit=False,
        )

    steps = [
        CommandStep("prepare", "Prepare accounting records", prepare),
        CommandStep("record_income", "Save income transaction", record_income),
        CommandStep("update_member", "Update member payment history", update_member),
        CommandStep("sync_balance", "Recompute bank balance", sync_balance),
        CommandStep("audit", "Write audit log", write_audit),
    ]
    return CommandExecutor(session).run("receivables.settle", steps)
