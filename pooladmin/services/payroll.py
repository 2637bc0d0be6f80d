"""Monthly payroll cost estimate under Panamanian social security rules."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict

from ..constants import DEFAULT_PROFESSIONAL_RISK_RATE, PAYROLL_RATES

CENT = Decimal("0.01")


def _rate(name: str) -> Decimal:
    return Decimal(str(PAYROLL_RATES[name]))


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass
class PayrollEstimate:
    base_salary: Decimal
    professional_risk_rate: Decimal
    employee_social_security: Decimal
    employee_education_tax: Decimal
    total_deductions: Decimal
    net_pay: Decimal
    employer_social_security: Decimal
    employer_education_tax: Decimal
    employer_professional_risk: Decimal
    total_employer_taxes: Decimal
    thirteenth_month: Decimal
    vacation: Decimal
    seniority_premium: Decimal
    total_provisions: Decimal
    total_monthly_cost: Decimal
    annual_provision_liability: Decimal

    def as_dict(self) -> Dict[str, Any]:
        return {key: str(value) for key, value in self.__dict__.items()}


def estimate_payroll(base_salary: Any, professional_risk_rate: Any = DEFAULT_PROFESSIONAL_RISK_RATE) -> PayrollEstimate:
    """``professional_risk_rate`` is a percentage (0.98, 2.10, 5.67 for classes I to III)."""
    salary = Decimal(str(base_salary))
    risk = Decimal(str(professional_risk_rate))
    if salary < 0:
        raise ValueError("Base salary cannot be negative")
    if risk < 0:
        raise ValueError("Professional risk rate cannot be negative")

    employee_ss = salary * _rate("employee_social_security")
    employee_se = salary * _rate("employee_education_tax")
    deductions = employee_ss + employee_se

    employer_ss = salary * _rate("employer_social_security")
    employer_se = salary * _rate("employer_education_tax")
    employer_risk = salary * risk / Decimal("100")
    employer_taxes = employer_ss + employer_se + employer_risk

    thirteenth = salary * _rate("thirteenth_month")
    vacation = salary * _rate("vacation")
    seniority = salary * _rate("seniority_premium")
    provisions = thirteenth + vacation + seniority

    return PayrollEstimate(
        base_salary=_money(salary),
        professional_risk_rate=risk,
        employee_social_security=_money(employee_ss),
        employee_education_tax=_money(employee_se),
        total_deductions=_money(deductions),
        net_pay=_money(salary - deductions),
        employer_social_security=_money(employer_ss),
        employer_education_tax=_money(employer_se),
        employer_professional_risk=_money(employer_risk),
        total_employer_taxes=_money(employer_taxes),
        thirteenth_month=_money(thirteenth),
        vacation=_money(vacation),
        seniority_premium=_money(seniority),
        total_provisions=_money(provisions),
        total_monthly_cost=_money(salary + employer_taxes + provisions),
        annual_provision_liability=_money(provisions * 12),
    )
