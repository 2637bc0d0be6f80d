from datetime import date
from decimal import Decimal
from types import SimpleNamespace

from pooladmin.services.billing import (
    billable_cycles,
    effective_fee,
    parse_join_date,
    resolve_debtors,
    summarize_receivables,
)


def _member(member_id, fee="45.00", join_date="2023-01-15", category="INDIVIDUAL", status="ACTIVE", parent=None):
    return SimpleNamespace(
        id=member_id,
        full_name=f"Member {member_id}",
        category=category,
        status=status,
        monthly_fee=Decimal(fee),
        join_date=join_date,
        parent_member_id=parent,
        last_payment_date=None,
    )


def _contribution(member_id, amount):
    return SimpleNamespace(type="INCOME", category="CONTRIBUTION", related_member_id=member_id, amount=Decimal(amount))


def test_billable_cycles_counts_the_join_month_and_completed_anniversaries():
    assert billable_cycles("2023-01-15", date(2023, 4, 10)) == 3
    assert billable_cycles("2023-01-15", date(2023, 4, 15)) == 4
    assert billable_cycles("2023-01-15", date(2023, 1, 15)) == 1


def test_billable_cycles_never_drops_below_one_for_future_join_dates():
    assert billable_cycles("2024-05-20", date(2024, 1, 1)) == 1


def test_join_date_is_split_without_calendar_checks():
    assert parse_join_date("2023-02-30") == (2023, 2, 30)
    assert parse_join_date("2023/02/01") is None
    assert parse_join_date("") is None
    assert parse_join_date(None) is None
    assert billable_cycles("2023-02-30", date(2023, 3, 30)) == 2


def test_partial_payment_leaves_one_month_owed():
    member = _member(1)
    debtors = resolve_debtors([member], [_contribution(1, "90.00")], date(2023, 4, 10))

    assert len(debtors) == 1
    debtor = debtors[0]
    assert debtor.billable_cycles == 3
    assert debtor.expected_total == Decimal("135.00")
    assert debtor.amount_owed == Decimal("45.00")
    assert debtor.months_owed == Decimal("1.0")
    assert debtor.last_payment == "2023-01-15"


def test_principal_is_billed_for_active_dependents_and_credited_their_payments():
    principal = _member(4, fee="0.00", join_date="2023-08-01", category="PRINCIPAL")
    first = _member(5, fee="25.00", join_date="2023-08-05", category="DEPENDENT", parent=4)
    second = _member(6, fee="25.00", join_date="2023-08-05", category="DEPENDENT", parent=4)
    retired = _member(7, fee="25.00", join_date="2023-08-05", category="DEPENDENT", status="INACTIVE", parent=4)
    members = [principal, first, second, retired]

    assert effective_fee(principal, members) == Decimal("50.00")
    assert effective_fee(first, members) == Decimal("0")

    debtors = resolve_debtors(members, [_contribution(5, "25.00")], date(2023, 10, 15))

    assert [debtor.member.id for debtor in debtors] == [4]
    assert debtors[0].expected_total == Decimal("150.00")
    assert debtors[0].paid_total == Decimal("25.00")
    assert debtors[0].amount_owed == Decimal("125.00")
    assert debtors[0].months_owed == Decimal("2.5")


def test_inactive_unreadable_and_settled_members_are_not_debtors():
    members = [
        _member(1, status="INACTIVE"),
        _member(2, join_date="not-a-date"),
        _member(3, fee="30.00", join_date="2023-03-01"),
    ]
    transactions = [
        _contribution(3, "30.00"),
        # Only income contributions count towards dues
        SimpleNamespace(type="INCOME", category="DONATION", related_member_id=3, amount=Decimal("500")),
    ]
    assert resolve_debtors(members, transactions, date(2023, 3, 20)) == []


def test_overpayment_and_sub_cent_shortfalls_are_ignored():
    members = [_member(1, fee="10.00"), _member(2, fee="10.00")]
    transactions = [_contribution(1, "50.00"), _contribution(2, "29.995")]

    assert resolve_debtors(members, transactions, date(2023, 3, 20)) == []


def test_principal_without_dependents_owes_nothing():
    principal = _member(1, fee="0.00", category="PRINCIPAL")
    assert resolve_debtors([principal], [], date(2023, 4, 10)) == []


def test_debtors_sort_by_amount_then_id_and_total_is_summed():
    members = [_member(3, fee="20.00"), _member(1, fee="45.00"), _member(2, fee="20.00")]
    summary = summarize_receivables(members, [], date(2023, 1, 20))

    assert [debtor.member.id for debtor in summary.debtors] == [1, 2, 3]
    assert summary.total_receivable == Decimal("85.00")
    assert summary.evaluated_on == date(2023, 1, 20)


def test_debtor_list_is_stable_across_runs_and_input_order():
    # Equal debts of 40.00: three cycles at 40, one cycle paid.
    members = [_member(member_id, fee="40.00") for member_id in (3, 1, 2)]
    payments = [_contribution(member_id, "80.00") for member_id in (2, 3, 1)]
    today = date(2023, 4, 10)

    first = [(debtor.member.id, debtor.amount_owed) for debtor in resolve_debtors(members, payments, today)]
    second = [(debtor.member.id, debtor.amount_owed) for debtor in resolve_debtors(members, payments, today)]
    reversed_input = [
        (debtor.member.id, debtor.amount_owed)
        for debtor in resolve_debtors(list(reversed(members)), list(reversed(payments)), today)
    ]

    assert first == [(1, Decimal("40.00")), (2, Decimal("40.00")), (3, Decimal("40.00"))]
    assert second == first
    assert reversed_input == first
