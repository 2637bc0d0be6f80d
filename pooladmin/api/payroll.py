from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..api.dependencies import apply_changes, get_db, get_or_404, model_snapshot
from ..auth.jwt import require_permission
from ..models.models import Employee, User
from ..schemas.schemas import (
    EmployeeCreate,
    EmployeeRead,
    EmployeeUpdate,
    PayrollEstimateRead,
    PayrollEstimateRequest,
)
from ..services.audit import audit_log
from ..services.payroll import estimate_payroll

router = APIRouter(prefix="/payroll", tags=["payroll"])


@router.get("/employees", response_model=List[EmployeeRead])
def list_employees(
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("payroll:read")),
) -> List[Employee]:
    return db.query(Employee).order_by(Employee.full_name.asc()).all()


@router.post("/employees", response_model=EmployeeRead, status_code=201)
def create_employee(
    payload: EmployeeCreate,
    db: Session = Depends(get_db),
    actor: User = Depends(require_permission("payroll:write")),
) -> Employee:
    employee = Employee(**payload.model_dump())
    db.add(employee)
    db.flush()
    audit_log(
        db_session=db,
        actor=actor,
        action="employee.create",
        entity="Employee",
        entity_id=employee.id,
        details=f"Hired {employee.full_name} as {employee.position}",
        after=model_snapshot(employee),
    )
    db.refresh(employee)
    return employee


@router.patch("/employees/{employee_id}", response_model=EmployeeRead)
def update_employee(
    employee_id: int,
    payload: EmployeeUpdate,
    db: Session = Depends(get_db),
    actor: User = Depends(require_permission("payroll:write")),
) -> Employee:
    employee = get_or_404(db, Employee, employee_id, "Employee")
    before = model_snapshot(employee)
    apply_changes(employee, payload.model_dump(exclude_unset=True))
    db.add(employee)
    db.flush()
    audit_log(
        db_session=db,
        actor=actor,
        action="employee.update",
        entity="Employee",
        entity_id=employee.id,
        before=before,
        after=model_snapshot(employee),
    )
    db.refresh(employee)
    return employee


@router.delete("/employees/{employee_id}", status_code=204)
def delete_employee(
    employee_id: int,
    db: Session = Depends(get_db),
    actor: User = Depends(require_permission("payroll:delete")),
) -> None:
    employee = get_or_404(db, Employee, employee_id, "Employee")
    before = model_snapshot(employee)
    db.delete(employee)
    db.flush()
    audit_log(
        db_session=db,
        actor=actor,
        action="employee.delete",
        entity="Employee",
        entity_id=employee_id,
        before=before,
    )


@router.post("/estimate", response_model=PayrollEstimateRead)
def estimate(
    payload: PayrollEstimateRequest,
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("payroll:read")),
) -> PayrollEstimateRead:
    salary = payload.base_salary
    if salary is None:
        salary = get_or_404(db, Employee, payload.employee_id, "Employee").base_salary
    try:
        result = estimate_payroll(salary, payload.professional_risk_rate)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return PayrollEstimateRead.model_validate(result)
