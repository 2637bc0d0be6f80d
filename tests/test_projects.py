from decimal import Decimal
from types import SimpleNamespace

from pooladmin.models.models import ServiceOrder
from pooladmin.services.projects import budget_usage, order_projects


def _project(project_id, budget="1000", costs=(), execution_order=None):
    tasks = [SimpleNamespace(estimated_cost=Decimal(cost)) for cost in costs]
    return SimpleNamespace(id=project_id, budget=Decimal(budget), tasks=tasks, execution_order=execution_order)


def test_budget_usage_sums_task_estimates():
    usage = budget_usage(_project(1, "1000", ["250", "125.50"]))

    assert usage.allocated == Decimal("375.50")
    assert usage.remaining == Decimal("624.50")
    assert usage.usage_percent == Decimal("37.6")
    assert usage.over_budget is False


def test_over_budget_and_zero_budget():
    over = budget_usage(_project(1, "100", ["80", "40"]))
    assert over.over_budget is True
    assert over.remaining == Decimal("-20")

    unbudgeted = budget_usage(_project(2, "0", ["10"]))
    assert unbudgeted.usage_percent == Decimal("0.0")
    assert unbudgeted.over_budget is True


def test_projects_without_execution_order_sort_last():
    projects = [_project(3), _project(2, execution_order=2), _project(1, execution_order=2), _project(4, execution_order=1)]
    assert [project.id for project in order_projects(projects)] == [4, 1, 2, 3]


def test_project_and_task_endpoints(client, create_user):
    editor = create_user("operator", "EDITOR")
    api = client(editor)

    created = api.post(
        "/projects/",
        json={"name": "Deck renovation", "start_date": "2023-11-01", "budget": "2000.00", "execution_order": 1},
    )
    assert created.status_code == 201, created.text
    project_id = created.json()["id"]
    assert created.json()["budget_usage"]["allocated"] == "0"

    task = api.post(
        f"/projects/{project_id}/tasks",
        json={"name": "Buy treated lumber", "start_date": "2023-11-02", "estimated_cost": "450.00"},
    )
    assert task.status_code == 201
    task_id = task.json()["id"]

    project = api.get(f"/projects/{project_id}").json()
    assert project["budget_usage"]["usage_percent"] == "22.5"
    assert [entry["name"] for entry in project["tasks"]] == ["Buy treated lumber"]

    done = api.patch(f"/projects/{project_id}/tasks/{task_id}", json={"status": "COMPLETED"})
    assert done.json()["status"] == "COMPLETED"
    assert api.patch(f"/projects/999/tasks/{task_id}", json={"status": "PENDING"}).status_code == 404
    assert api.delete(f"/projects/{project_id}").status_code == 403


def test_service_order_costs_are_frozen_once_paid(db_session, client, create_user):
    api = client(create_user("operator", "EDITOR"))
    created = api.post(
        "/service-orders/",
        json={
            "title": "Pump repair",
            "responsible": "Aquatech",
            "start_date": "2023-09-01",
            "estimated_cost": "250.00",
            "materials": [{"item_name": "Seal kit", "quantity": "2"}],
        },
    )
    assert created.status_code == 201, created.text
    assert created.json()["materials"][0]["quantity"] == "2"

    order = db_session.get(ServiceOrder, created.json()["id"])
    order.payment_status = "PAID"
    db_session.commit()

    response = api.patch(f"/service-orders/{order.id}", json={"actual_cost": "300.00"})
    assert response.status_code == 409
    assert api.patch(f"/service-orders/{order.id}", json={"status": "COMPLETED"}).status_code == 200
