from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List

from ..models.models import Project

UNORDERED = 999


@dataclass
class BudgetUsage:
    budget: Decimal
    allocated: Decimal
    remaining: Decimal
    usage_percent: Decimal
    over_budget: bool


def budget_usage(project: Project) -> BudgetUsage:
    budget = Decimal(str(project.budget or 0))
    allocated = sum((Decimal(str(task.estimated_cost or 0)) for task in project.tasks), Decimal("0"))
    if budget > 0:
        percent = (allocated / budget * 100).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    else:
        percent = Decimal("0.0")
    return BudgetUsage(
        budget=budget,
        allocated=allocated,
        remaining=budget - allocated,
        usage_percent=percent,
        over_budget=allocated > budget,
    )


def order_projects(projects: Iterable[Project]) -> List[Project]:
    return sorted(
        projects,
        key=lambda project: (
            project.execution_order if project.execution_order is not None else UNORDERED,
            project.id or 0,
        ),
    )
