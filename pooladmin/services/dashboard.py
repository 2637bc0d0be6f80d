from __future__ import annotations

from collections import Counter
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from ..models.models import Member
from .inventory import low_stock_items
from .ledger import all_account_balances
from .payables import load_payables
from .receivables import load_receivables


def dashboard_summary(session: Session, today: Optional[date] = None) -> Dict[str, Any]:
    members = session.query(Member).all()
    by_status = Counter(member.status for member in members)
    balances = all_account_balances(session)
    receivables = load_receivables(session, today)
    payables = load_payables(session)
    return {
        "members_total": len(members),
        "members_by_status": dict(by_status),
        "cash_position": sum(balances.values(), Decimal("0")),
        "total_receivable": receivables.total_receivable,
        "debtor_count": len(receivables.debtors),
        "total_payable": payables.total_payable,
        "low_stock_count": len(low_stock_items(session)),
    }
