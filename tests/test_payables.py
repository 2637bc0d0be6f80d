from datetime import date
from decimal import Decimal

from pooladmin.models.models import PurchaseOrder, ServiceOrder, Transaction
from pooladmin.services.payables import PaymentRequest, collect_payables, load_payables, pay_payable


def _service(db_session, title, status="COMPLETED", estimated="100.00", actual=None, payment_status="PENDING"):
    order = ServiceOrder(
        title=title,
        responsible="Aquatech",
        start_date=date(2023, 9, 1),
        status=status,
        estimated_cost=Decimal(estimated),
        actual_cost=Decimal(actual) if actual is not None else None,
        payment_status=payment_status,
    )
    db_session.add(order)
    db_session.commit()
    return order


def _purchase(db_session, status="ORDERED", total="300.00", payment_status="PENDING"):
    order = PurchaseOrder(
        supplier="Químicos del Istmo",
        date=date(2023, 9, 5),
        status=status,
        items=[],
        total_amount=Decimal(total),
        payment_status=payment_status,
    )
    db_session.add(order)
    db_session.commit()
    return order


def test_pending_orders_become_payables(db_session):
    actual = _service(db_session, "Pump repair", estimated="100.00", actual="140.00")
    estimate = _service(db_session, "Tile cleaning", status="IN_PROGRESS", estimated="60.00", actual="0")
    _service(db_session, "Painting", status="PENDING")
    _service(db_session, "Old job", payment_status="PAID")
    purchase = _purchase(db_session)
    _purchase(db_session, status="DRAFT")
    _purchase(db_session, status="CANCELLED")

    summary = load_payables(db_session)

    assert [(item.kind, item.order_id) for item in summary.items] == [
        ("PURCHASE", purchase.id),
        ("SERVICE", actual.id),
        ("SERVICE", estimate.id),
    ]
    assert [item.amount for item in summary.items] == [Decimal("300.00"), Decimal("140.00"), Decimal("60.00")]
    assert summary.total_payable == Decimal("500.00")


def test_equal_amounts_sort_by_kind_then_id(db_session):
    purchase = _purchase(db_session, total="100.00")
    service = _service(db_session, "Pump repair", estimated="100.00")

    summary = collect_payables([service], [purchase])
    assert [item.kind for item in summary.items] == ["PURCHASE", "SERVICE"]


def test_paying_a_purchase_order_books_an_expense(db_session, create_account, create_user):
    actor = create_user("treasurer", "EDITOR")
    account = create_account(opening_balance="1000.00")
    order = _purchase(db_session)

    request = PaymentRequest(
        kind="PURCHASE", order_id=order.id, bank_account_id=account.id, payment_date=date(2023, 9, 10), category="CHEMICALS"
    )
    result = pay_payable(db_session, request, actor)

    assert result.ok, result.error
    assert result.output("sync_balance") == Decimal("700.00")
    db_session.expire_all()
    tx = db_session.query(Transaction).one()
    assert tx.type == "EXPENSE"
    assert tx.category == "CHEMICALS"
    assert tx.description == f"Accounts payable purchase: Purchase order #{order.id}"
    assert tx.related_supplier == "Químicos del Istmo"
    paid = db_session.get(PurchaseOrder, order.id)
    assert paid.payment_status == "PAID"
    assert paid.related_transaction_id == tx.id
    assert load_payables(db_session).items == []


def test_paying_twice_fails_at_prepare(db_session, create_account):
    account = create_account()
    order = _service(db_session, "Pump repair")
    request = PaymentRequest(kind="SERVICE", order_id=order.id, bank_account_id=account.id, payment_date=date(2023, 9, 10))

    assert pay_payable(db_session, request, None).ok
    second = pay_payable(db_session, request, None)

    assert second.failed_step == "prepare"
    assert second.error == "[PAYABLE] This order has nothing pending to pay"
    assert db_session.query(Transaction).count() == 1


def test_zero_amount_order_cannot_be_paid(db_session, create_account):
    account = create_account()
    order = _service(db_session, "Volunteer cleanup", estimated="0")
    request = PaymentRequest(kind="SERVICE", order_id=order.id, bank_account_id=account.id, payment_date=date(2023, 9, 10))

    result = pay_payable(db_session, request, None)
    assert result.error == "[PAYABLE] The order amount must be greater than zero"


def test_pay_endpoint(db_session, client, create_account, create_user):
    editor = create_user("operator", "EDITOR")
    account = create_account(opening_balance="500.00")
    order = _service(db_session, "Pump repair", estimated="120.00")
    api = client(editor)

    listing = api.get("/payables/")
    assert listing.status_code == 200
    assert listing.json()["total_payable"] == "120.00"

    response = api.post("/payables/pay", json={"kind": "SERVICE", "order_id": order.id, "bank_account_id": account.id})
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["transaction"]["category"] == "MAINTENANCE"
    assert Decimal(body["bank_balance"]) == Decimal("380.00")

    missing = api.post("/payables/pay", json={"kind": "SERVICE", "order_id": 999, "bank_account_id": account.id})
    assert missing.status_code == 409
    assert missing.json()["detail"]["message"] == "[PAYABLE] Order not found"
