from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import OperationalError, ProgrammingError
from sqlalchemy.orm import Session

from ..models.models import (
    AuditLog,
    BankAccount,
    BoardMember,
    Employee,
    InventoryItem,
    MaintenanceLog,
    Member,
    Project,
    ProjectTask,
    PurchaseOrder,
    ServiceOrder,
    Supplier,
    Transaction,
    User,
)
from ..seeds.fallback_state import FALLBACK_STATE
from .ledger import fold_balances

logger = logging.getLogger(__name__)

SNAPSHOT_TABLES = {
    "members": Member,
    "transactions": Transaction,
    "inventory_items": InventoryItem,
    "maintenance_logs": MaintenanceLog,
    "bank_accounts": BankAccount,
    "projects": Project,
    "project_tasks": ProjectTask,
    "service_orders": ServiceOrder,
    "purchase_orders": PurchaseOrder,
    "board_members": BoardMember,
    "employees": Employee,
    "suppliers": Supplier,
    "users": User,
    "audit_logs": AuditLog,
}

HIDDEN_COLUMNS = {"hashed_password"}

REMEDIATION_HINT = (
    "The database schema is missing one or more tables. Start the API with AUTO_CREATE_TABLES=true "
    "or run scripts/init_db.py against DATABASE_URL, then reload."
)


@dataclass
class StateSnapshot:
    data: Dict[str, List[Dict[str, Any]]]
    missing_tables: bool = False
    hint: Optional[str] = None
    errors: List[str] = field(default_factory=list)


def _plain(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def row_to_dict(row: Any) -> Dict[str, Any]:
    return {
        column.name: _plain(getattr(row, column.name))
        for column in row.__table__.columns
        if column.name not in HIDDEN_COLUMNS
    }


def load_state(session: Session) -> StateSnapshot:
    """Read every table. A missing table switches the whole snapshot to the built-in dataset."""
    data: Dict[str, List[Dict[str, Any]]] = {}
    rows_by_table: Dict[str, List[Any]] = {}
    try:
        for name, model in SNAPSHOT_TABLES.items():
            rows = session.query(model).all()
            rows_by_table[name] = rows
            data[name] = [row_to_dict(row) for row in rows]
    except (OperationalError, ProgrammingError) as exc:
        session.rollback()
        logger.warning("State snapshot fell back to the built-in dataset: %s", getattr(exc, "orig", exc))
        return StateSnapshot(
            data=copy.deepcopy(FALLBACK_STATE),
            missing_tables=True,
            hint=REMEDIATION_HINT,
            errors=[str(getattr(exc, "orig", exc))],
        )

    balances = fold_balances(rows_by_table["bank_accounts"], rows_by_table["transactions"])
    for account in data["bank_accounts"]:
        account["balance"] = str(balances.get(account["id"], Decimal("0")))
    users = {user.id: user for user in rows_by_table["users"]}
    for user in data["users"]:
        user["role"] = users[user["id"]].role_name
    return StateSnapshot(data=data)
