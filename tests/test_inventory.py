from datetime import date
from decimal import Decimal

from pooladmin.models.models import AuditLog, InventoryItem, MaintenanceLog, PurchaseOrder
from pooladmin.services.dosing import PoolReadings, ReagentPurity
from pooladmin.services.inventory import (
    apply_dosing_suggestion,
    match_reagent_items,
    purchase_order_total,
    receive_purchase_order,
    record_manual_usage,
)


def _item(db_session, name, quantity, min_threshold="10.00", unit="lb"):
    item = InventoryItem(
        name=name,
        unit=unit,
        quantity=Decimal(quantity),
        unit_cost=Decimal("2.00"),
        min_threshold=Decimal(min_threshold),
    )
    db_session.add(item)
    db_session.commit()
    return item


def _readings(**overrides):
    values = {
        "ph": Decimal("7.8"),
        "chlorine": Decimal("1.0"),
        "alkalinity": Decimal("80"),
        "target_ph": Decimal("7.4"),
        "target_chlorine": Decimal("3.0"),
        "target_alkalinity": Decimal("100"),
    }
    values.update(overrides)
    return PoolReadings(**values)


def test_reagents_are_matched_by_name_keywords(db_session):
    chlorine = _item(db_session, "Cloro Granulado 65%", "50")
    acid = _item(db_session, "Ácido Seco (pH-)", "100")
    _item(db_session, "Clarificador", "8", unit="litros")

    mapping = match_reagent_items(db_session.query(InventoryItem).all())
    assert mapping == {"chlorine": chlorine.id, "ph_down": acid.id, "alkalinity": None}


def test_applying_a_dose_deducts_stock_and_logs(db_session, create_user):
    actor = create_user("operator", "EDITOR")
    chlorine = _item(db_session, "Cloro Granulado 65%", "50")
    acid = _item(db_session, "Ácido Seco (pH-)", "200")

    readings = _readings(alkalinity=Decimal("100"))
    result = apply_dosing_suggestion(db_session, readings, ReagentPurity(), actor)

    assert result.ok, result.error
    db_session.expire_all()
    assert db_session.get(InventoryItem, chlorine.id).quantity == Decimal("34.75")
    assert db_session.get(InventoryItem, acid.id).quantity == Decimal("78.00")
    log = db_session.query(MaintenanceLog).one()
    assert log.performed_by == "Operator"
    assert log.ph_reading == 7.8
    assert {entry["item_id"] for entry in log.items_used} == {chlorine.id, acid.id}
    assert db_session.query(AuditLog).filter(AuditLog.action == "inventory.dosing.apply").count() == 1


def test_insufficient_stock_leaves_inventory_untouched(db_session):
    chlorine = _item(db_session, "Cloro Granulado 65%", "50")
    acid = _item(db_session, "Ácido Seco (pH-)", "20")

    result = apply_dosing_suggestion(db_session, _readings(alkalinity=Decimal("100")), ReagentPurity(), None)

    assert not result.ok
    assert result.failed_step == "check_stock"
    assert "Insufficient stock of Ácido Seco (pH-)" in result.error
    db_session.expire_all()
    assert db_session.get(InventoryItem, chlorine.id).quantity == Decimal("50.00")
    assert db_session.get(InventoryItem, acid.id).quantity == Decimal("20.00")
    assert db_session.query(MaintenanceLog).count() == 0


def test_unlinked_reagent_fails_the_check(db_session):
    _item(db_session, "Cloro Granulado 65%", "50")
    result = apply_dosing_suggestion(db_session, _readings(), ReagentPurity(), None)

    assert result.failed_step == "check_stock"
    assert "is not linked to an inventory item" in result.error


def test_nothing_to_apply_when_on_target(db_session):
    readings = _readings(ph=Decimal("7.4"), chlorine=Decimal("3.0"), alkalinity=Decimal("100"))
    result = apply_dosing_suggestion(db_session, readings, ReagentPurity(), None)

    assert result.failed_step == "check_stock"
    assert "No chemicals need to be applied" in result.error


def test_manual_usage_sums_repeated_lines_for_stock_check(db_session):
    clarifier = _item(db_session, "Clarificador", "8", unit="litros")

    too_much = record_manual_usage(
        db_session,
        [{"item_id": clarifier.id, "amount": "5"}, {"item_id": clarifier.id, "amount": "4"}],
        None,
    )
    assert not too_much.ok
    assert "Required: 9" in too_much.error

    ok = record_manual_usage(db_session, [{"item_id": clarifier.id, "amount": "3"}], None, notes="Cloudy water")
    assert ok.ok
    db_session.expire_all()
    assert db_session.get(InventoryItem, clarifier.id).quantity == Decimal("5.00")
    assert db_session.query(MaintenanceLog).one().notes == "Cloudy water"


def test_manual_usage_requires_lines(db_session):
    result = record_manual_usage(db_session, [], None)
    assert result.error == "[INVENTORY] Add at least one item to the manual usage list"


def test_receiving_an_order_restocks_linked_items(db_session):
    chlorine = _item(db_session, "Cloro Granulado 65%", "5")
    items = [
        {"inventory_item_id": chlorine.id, "item_name": "Cloro", "quantity": "40", "unit_price": "3.75"},
        {"inventory_item_id": None, "item_name": "Test strips", "quantity": "2", "unit_price": "12.00"},
    ]
    order = PurchaseOrder(
        supplier="Químicos del Istmo",
        date=date(2023, 10, 1),
        status="ORDERED",
        items=items,
        total_amount=purchase_order_total(items),
    )
    db_session.add(order)
    db_session.commit()
    assert order.total_amount == Decimal("174.00")

    result = receive_purchase_order(db_session, order.id, date(2023, 10, 5), None)
    assert result.ok, result.error
    db_session.expire_all()
    restocked = db_session.get(InventoryItem, chlorine.id)
    assert restocked.quantity == Decimal("45.00")
    assert restocked.unit_cost == Decimal("3.75")
    assert restocked.last_restock_date == date(2023, 10, 5)
    assert db_session.get(PurchaseOrder, order.id).status == "RECEIVED"

    again = receive_purchase_order(db_session, order.id, date(2023, 10, 6), None)
    assert again.failed_step == "load_order"


def test_inventory_api_low_stock_and_dosing(db_session, client, create_user):
    viewer = create_user("guest", "VIEWER")
    _item(db_session, "Cloro Granulado 65%", "8")
    _item(db_session, "Incrementador Alcalinidad", "150", min_threshold="50")
    api = client(viewer)

    low = api.get("/inventory/items/low-stock")
    assert low.status_code == 200
    assert [item["name"] for item in low.json()] == ["Cloro Granulado 65%"]

    calc = api.post("/inventory/dosing/calculate", json={})
    assert calc.status_code == 200
    body = calc.json()
    assert body["ph_down_lb"] == "122.00"
    assert body["chlorine_lb"] == "15.25"
    assert body["suggested_items"]["alkalinity"] is not None

    bad = api.post("/inventory/dosing/calculate", json={"purity": {"chlorine": 0}})
    assert bad.status_code == 400

    assert api.post("/inventory/usage", json={"items": [{"item_id": 1, "amount": "1"}]}).status_code == 403


def test_usage_api_returns_command_report_on_failure(db_session, client, create_user):
    editor = create_user("operator", "EDITOR")
    item = _item(db_session, "Clarificador", "1", unit="litros")

    response = client(editor).post("/inventory/usage", json={"items": [{"item_id": item.id, "amount": "2"}]})
    assert response.status_code == 409
    command = response.json()["detail"]["command"]
    assert command["failed_step"] == "check_stock"
    assert [step["status"] for step in command["steps"]] == ["error", "pending", "pending", "pending"]
