from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, Optional

from sqlalchemy import extract
from sqlalchemy.orm import Session

from ..models.models import Project, Transaction

GENERAL_PROJECT = "General project"
MISC_PROJECTS = "Miscellaneous projects"


@dataclass
class IncomeStatement:
    year: int
    month: Optional[int]
    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")
    income_by_category: Dict[str, Decimal] = field(default_factory=dict)
    expense_by_category: Dict[str, Decimal] = field(default_factory=dict)
    project_expenses: Dict[str, Decimal] = field(default_factory=dict)

    @property
    def total_operating_expense(self) -> Decimal:
        return sum(self.expense_by_category.values(), Decimal("0"))

    @property
    def total_project_expense(self) -> Decimal:
        return sum(self.project_expenses.values(), Decimal("0"))

    @property
    def operating_result(self) -> Decimal:
        return self.income - self.total_operating_expense

    @property
    def net_result(self) -> Decimal:
        return self.income - self.total_operating_expense - self.total_project_expense

    @property
    def period_label(self) -> str:
        return f"{self.year}-{self.month:02d}" if self.month else str(self.year)


def _add(bucket: Dict[str, Decimal], key: str, amount: Decimal) -> None:
    bucket[key] = bucket.get(key, Decimal("0")) + amount


def build_income_statement(
    transactions: Iterable[Transaction],
    project_names: Dict[int, str],
    year: int,
    month: Optional[int] = None,
) -> IncomeStatement:
    """Fold already-filtered transactions into an income statement. Transfers never count."""
    statement = IncomeStatement(year=year, month=month)
    for tx in transactions:
        amount = tx.amount if isinstance(tx.amount, Decimal) else Decimal(str(tx.amount))
        if tx.type == "INCOME":
            statement.income += amount
            _add(statement.income_by_category, tx.category, amount)
        elif tx.type == "EXPENSE":
            statement.expense += amount
            if tx.category == "PROJECT":
                if tx.related_project_id is None:
                    name = MISC_PROJECTS
                else:
                    name = project_names.get(tx.related_project_id, GENERAL_PROJECT)
                _add(statement.project_expenses, name, amount)
            else:
                _add(statement.expense_by_category, tx.category, amount)
    return statement


def income_statement(session: Session, year: int, month: Optional[int] = None) -> IncomeStatement:
    if month is not None and not 1 <= month <= 12:
        raise ValueError("Month must be between 1 and 12")
    query = session.query(Transaction).filter(extract("year", Transaction.date) == year)
    if month is not None:
        query = query.filter(extract("month", Transaction.date) == month)
    project_names = {project.id: project.name for project in session.query(Project).all()}
    return build_income_statement(query.order_by(Transaction.date.asc()).all(), project_names, year, month)
