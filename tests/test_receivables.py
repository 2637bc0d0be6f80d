from datetime import date
from decimal import Decimal

from pooladmin.models.models import AuditLog, Member, Transaction
from pooladmin.services.ledger import account_balance
from pooladmin.services.receivables import (
    SettlementRequest,
    debtors_to_csv,
    load_receivables,
    settle_member_debt,
)


def _pay(db_session, member, account, amount):
    db_session.add(
        Transaction(
            date=date(2023, 2, 1),
            description=f"Contribution {member.full_name}",
            amount=Decimal(amount),
            type="INCOME",
            category="CONTRIBUTION",
            related_member_id=member.id,
            related_bank_account_id=account.id,
        )
    )
    db_session.commit()


def test_settlement_books_income_updates_member_and_balance(db_session, create_member, create_account, create_user):
    actor = create_user("treasurer", "EDITOR")
    member = create_member("Juan Perez")
    account = create_account(opening_balance="500.00")
    _pay(db_session, member, account, "90.00")

    request = SettlementRequest(member_id=member.id, bank_account_id=account.id, settlement_date=date(2023, 4, 10))
    result = settle_member_debt(db_session, request, actor, today=date(2023, 4, 10))

    assert result.ok, result.error
    assert [step.key for step in result.steps] == ["prepare", "record_income", "update_member", "sync_balance", "audit"]
    tx = result.output("record_income")
    assert tx.amount == Decimal("45.00")
    assert tx.category == "CONTRIBUTION"
    assert tx.description == "Settlement of accumulated dues - Member: Juan Perez"
    assert result.output("sync_balance") == Decimal("635.00")

    db_session.expire_all()
    assert db_session.get(Member, member.id).last_payment_date == date(2023, 4, 10)
    assert account_balance(db_session, account) == Decimal("635.00")
    entry = db_session.query(AuditLog).filter(AuditLog.action == "receivables.settle").one()
    assert entry.actor_name == "Treasurer"
    assert load_receivables(db_session, date(2023, 4, 10)).debtors == []


def test_settlement_of_member_without_debt_fails_without_writes(db_session, create_member, create_account):
    member = create_member(join_date="2023-04-01", monthly_fee="45.00")
    account = create_account()
    _pay(db_session, member, account, "45.00")

    request = SettlementRequest(member_id=member.id, bank_account_id=account.id, settlement_date=date(2023, 4, 10))
    result = settle_member_debt(db_session, request, None, today=date(2023, 4, 10))

    assert not result.ok
    assert result.failed_step == "prepare"
    assert "has no outstanding balance" in result.error
    assert db_session.query(Transaction).count() == 1
    assert db_session.query(AuditLog).count() == 0


def test_settlement_with_missing_account_reports_prepare_step(db_session, create_member):
    member = create_member()
    request = SettlementRequest(member_id=member.id, bank_account_id=999, settlement_date=date(2023, 4, 10))
    result = settle_member_debt(db_session, request, None, today=date(2023, 4, 10))

    assert result.failed_step == "prepare"
    assert result.error == "[SETTLEMENT] The selected bank account no longer exists"


def test_debtors_csv_export(db_session, create_member):
    create_member("Maria Rodriguez", join_date="2023-03-10", monthly_fee="35.00")
    csv_text = debtors_to_csv(load_receivables(db_session, date(2023, 4, 10)))

    lines = csv_text.strip().splitlines()
    assert lines[0] == "member_id,full_name,category,effective_fee,months_owed,amount_owed,last_payment"
    assert lines[1].startswith("1,Maria Rodriguez,INDIVIDUAL,35.00,2.0,70.00,2023-03-10")


def test_settle_endpoint_returns_transaction_and_balance(db_session, client, create_member, create_account, create_user):
    editor = create_user("operator", "EDITOR")
    member = create_member(join_date=date.today().isoformat(), monthly_fee="45.00")
    account = create_account(opening_balance="500.00")
    api = client(editor)

    listing = api.get("/receivables/")
    assert listing.status_code == 200
    assert listing.json()["total_receivable"] == "45.00"

    response = api.post("/receivables/settle", json={"member_id": member.id, "bank_account_id": account.id})
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["command"]["ok"] is True
    assert body["transaction"]["amount"] == "45.00"
    assert Decimal(body["bank_balance"]) == Decimal("545.00")

    again = api.post("/receivables/settle", json={"member_id": member.id, "bank_account_id": account.id})
    assert again.status_code == 409
    detail = again.json()["detail"]
    assert detail["command"]["failed_step"] == "prepare"


def test_viewer_cannot_settle(client, create_user):
    viewer = create_user("guest", "VIEWER")
    response = client(viewer).post("/receivables/settle", json={"member_id": 1, "bank_account_id": 1})
    assert response.status_code == 403
