"""Member dues aging.

Pure functions over in-memory members and transactions. A member owes one
monthly fee per billable cycle since joining; Principals are billed for their
active Dependents and collect their Dependents' payments. Anything that has
``id``, ``category``, ``status``, ``monthly_fee``, ``join_date`` and
``parent_member_id`` attributes works as a member, so ORM rows and plain
objects are handled alike.
"""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

DEBT_TOLERANCE = Decimal("-0.01")
CENTS = Decimal("0.01")
TENTHS = Decimal("0.1")


def _ensure_decimal(amount: Decimal | float | int | None) -> Decimal:
    if amount is None:
        return Decimal("0")
    if isinstance(amount, Decimal):
        return amount
    return Decimal(str(amount))


def parse_join_date(value: Any) -> Optional[Tuple[int, int, int]]:
    """Split a join date into (year, month, day), or None when it cannot be read."""
    if isinstance(value, date):
        return value.year, value.month, value.day
    parts = (value or "").split("-")
    if len(parts) != 3:
        return None
    try:
        year, month, day = (int(part) for part in parts)
    except ValueError:
        return None
    return year, month, day


def billable_cycles(join_date: Any, today: date) -> Optional[int]:
    parsed = parse_join_date(join_date)
    if parsed is None:
        return None
    join_year, join_month, join_day = parsed

    total_months = (today.year - join_year) * 12 + (today.month - join_month)
    if today.day < join_day:
        total_months -= 1
    return max(1, total_months + 1)


def _index_active_dependents(members: Iterable[Any]) -> Dict[Any, List[Any]]:
    dependents: Dict[Any, List[Any]] = defaultdict(list)
    for member in members:
        if member.category == "DEPENDENT" and member.parent_member_id is not None and member.status == "ACTIVE":
            dependents[member.parent_member_id].append(member)
    return dependents


def _contributions_by_member(transactions: Iterable[Any]) -> Dict[Any, Decimal]:
    paid: Dict[Any, Decimal] = defaultdict(Decimal)
    for tx in transactions:
        if tx.type == "INCOME" and tx.category == "CONTRIBUTION" and tx.related_member_id is not None:
            paid[tx.related_member_id] += _ensure_decimal(tx.amount)
    return paid


def _billed_dependents(member: Any, dependents_by_parent: Dict[Any, List[Any]]) -> List[Any]:
    if member.category != "PRINCIPAL":
        return []
    return dependents_by_parent.get(member.id, [])


def _effective_fee(member: Any, dependents_by_parent: Dict[Any, List[Any]]) -> Decimal:
    if member.category == "DEPENDENT":
        return Decimal("0")
    fee = _ensure_decimal(member.monthly_fee)
    for dependent in _billed_dependents(member, dependents_by_parent):
        fee += _ensure_decimal(dependent.monthly_fee)
    return fee


def _paid_total(
    member: Any,
    dependents_by_parent: Dict[Any, List[Any]],
    paid_by_member: Dict[Any, Decimal],
) -> Decimal:
    total = paid_by_member.get(member.id, Decimal("0"))
    for dependent in _billed_dependents(member, dependents_by_parent):
        total += paid_by_member.get(dependent.id, Decimal("0"))
    return total


def effective_fee(member: Any, members: Sequence[Any]) -> Decimal:
    return _effective_fee(member, _index_active_dependents(members))


def paid_total(member: Any, members: Sequence[Any], transactions: Sequence[Any]) -> Decimal:
    return _paid_total(member, _index_active_dependents(members), _contributions_by_member(transactions))


@dataclass(frozen=True)
class MemberStanding:
    member: Any
    billable_cycles: int
    effective_fee: Decimal
    expected_total: Decimal
    paid_total: Decimal
    balance: Decimal

    @property
    def is_debtor(self) -> bool:
        return self.balance < DEBT_TOLERANCE


@dataclass(frozen=True)
class Debtor:
    member: Any
    amount_owed: Decimal
    months_owed: Decimal
    effective_fee: Decimal
    expected_total: Decimal
    paid_total: Decimal
    billable_cycles: int
    last_payment: Optional[str]


@dataclass
class ReceivablesSummary:
    evaluated_on: date
    total_receivable: Decimal = Decimal("0.00")
    debtors: List[Debtor] = field(default_factory=list)


def member_standings(members: Sequence[Any], transactions: Sequence[Any], today: date) -> List[MemberStanding]:
    """Signed dues balance for every active member billed directly."""
    dependents_by_parent = _index_active_dependents(members)
    paid_by_member = _contributions_by_member(transactions)

    standings: List[MemberStanding] = []
    for member in members:
        if member.status != "ACTIVE" or member.category == "DEPENDENT":
            continue
        cycles = billable_cycles(member.join_date, today)
        if cycles is None:
            continue
        fee = _effective_fee(member, dependents_by_parent)
        expected = fee * cycles
        paid = _paid_total(member, dependents_by_parent, paid_by_member)
        standings.append(
            MemberStanding(
                member=member,
                billable_cycles=cycles,
                effective_fee=fee,
                expected_total=expected,
                paid_total=paid,
                balance=paid - expected,
            )
        )
    return standings


def _as_debtor(standing: MemberStanding) -> Debtor:
    amount_owed = abs(standing.balance).quantize(CENTS, rounding=ROUND_HALF_UP)
    if standing.effective_fee > 0:
        months_owed = (amount_owed / standing.effective_fee).quantize(TENTHS, rounding=ROUND_HALF_UP)
    else:
        months_owed = Decimal("0.0")
    member = standing.member
    last_payment = member.last_payment_date or member.join_date
    return Debtor(
        member=member,
        amount_owed=amount_owed,
        months_owed=months_owed,
        effective_fee=standing.effective_fee,
        expected_total=standing.expected_total,
        paid_total=standing.paid_total,
        billable_cycles=standing.billable_cycles,
        last_payment=str(last_payment) if last_payment else None,
    )


def resolve_debtors(members: Sequence[Any], transactions: Sequence[Any], today: date) -> List[Debtor]:
    debtors = [_as_debtor(standing) for standing in member_standings(members, transactions, today) if standing.is_debtor]
    debtors.sort(key=lambda debtor: (-debtor.amount_owed, debtor.member.id))
    return debtors


def summarize_receivables(members: Sequence[Any], transactions: Sequence[Any], today: date) -> ReceivablesSummary:
    debtors = resolve_debtors(members, transactions, today)
    total = sum((debtor.amount_owed for debtor in debtors), Decimal("0.00"))
    return ReceivablesSummary(evaluated_on=today, total_receivable=total, debtors=debtors)
