from datetime import date
from decimal import Decimal
from pathlib import Path
from types import SimpleNamespace

import pytest

from pooladmin.models.models import Project, Transaction
from pooladmin.services.reports import GENERAL_PROJECT, MISC_PROJECTS, build_income_statement, income_statement
from pooladmin.utils.pdf_utils import generate_income_statement_pdf


def _tx(tx_type, category, amount, project_id=None, when=date(2023, 10, 5)):
    return Transaction(
        date=when,
        description=f"{tx_type} {category}",
        amount=Decimal(amount),
        type=tx_type,
        category=category,
        related_project_id=project_id,
    )


def test_income_statement_separates_operating_and_project_expenses():
    transactions = [
        SimpleNamespace(type="INCOME", category="CONTRIBUTION", amount=Decimal("45.00"), related_project_id=None),
        SimpleNamespace(type="INCOME", category="DONATION", amount=Decimal("500.00"), related_project_id=None),
        SimpleNamespace(type="EXPENSE", category="CHEMICALS", amount=Decimal("120.50"), related_project_id=None),
        SimpleNamespace(type="EXPENSE", category="PROJECT", amount=Decimal("450.00"), related_project_id=None),
        SimpleNamespace(type="EXPENSE", category="PROJECT", amount=Decimal("200.00"), related_project_id=1),
        SimpleNamespace(type="EXPENSE", category="PROJECT", amount=Decimal("10.00"), related_project_id=77),
        SimpleNamespace(type="TRANSFER", category="INTERNAL", amount=Decimal("1000.00"), related_project_id=None),
    ]
    statement = build_income_statement(transactions, {1: "Deck renovation"}, 2023, 10)

    assert statement.income == Decimal("545.00")
    assert statement.income_by_category == {"CONTRIBUTION": Decimal("45.00"), "DONATION": Decimal("500.00")}
    assert statement.expense_by_category == {"CHEMICALS": Decimal("120.50")}
    assert statement.project_expenses == {
        MISC_PROJECTS: Decimal("450.00"),
        "Deck renovation": Decimal("200.00"),
        GENERAL_PROJECT: Decimal("10.00"),
    }
    assert statement.operating_result == Decimal("424.50")
    assert statement.net_result == Decimal("-235.50")
    assert statement.period_label == "2023-10"


def test_income_statement_filters_by_period(db_session):
    project = Project(name="Deck renovation", start_date=date(2023, 9, 1), budget=Decimal("5000"))
    db_session.add(project)
    db_session.flush()
    db_session.add_all(
        [
            _tx("INCOME", "CONTRIBUTION", "45.00"),
            _tx("EXPENSE", "PROJECT", "200.00", project_id=project.id),
            _tx("EXPENSE", "MAINTENANCE", "80.00", when=date(2023, 11, 2)),
            _tx("INCOME", "DONATION", "99.00", when=date(2022, 10, 5)),
        ]
    )
    db_session.commit()

    october = income_statement(db_session, 2023, 10)
    assert october.income == Decimal("45.00")
    assert october.project_expenses == {"Deck renovation": Decimal("200.00")}
    assert october.expense_by_category == {}

    year = income_statement(db_session, 2023)
    assert year.period_label == "2023"
    assert year.expense == Decimal("280.00")

    with pytest.raises(ValueError):
        income_statement(db_session, 2023, 13)


def test_report_endpoints(db_session, client, create_user, create_member):
    api = client(create_user("guest", "VIEWER"))
    member = create_member("Juan Pérez")
    income = _tx("INCOME", "CONTRIBUTION", "45.00")
    income.related_member_id = member.id
    expense = _tx("EXPENSE", "CHEMICALS", "120.50")
    db_session.add_all([income, expense])
    db_session.commit()

    statement = api.get("/reports/income-statement", params={"year": 2023, "month": 10})
    assert statement.status_code == 200
    assert statement.json()["operating_result"] == "-75.50"
    assert api.get("/reports/income-statement", params={"year": 2023, "month": 0}).status_code == 400

    pdf = api.get("/reports/income-statement/pdf", params={"year": 2023, "month": 10})
    assert pdf.status_code == 200
    assert pdf.headers["content-type"] == "application/pdf"
    assert pdf.content.startswith(b"%PDF")

    receipt = api.get(f"/reports/receipts/{income.id}/pdf")
    assert receipt.status_code == 200
    assert receipt.content.startswith(b"%PDF")
    assert api.get(f"/reports/receipts/{expense.id}/pdf").status_code == 400


def test_pdfs_land_in_the_configured_directory(tmp_path, db_session):
    statement = build_income_statement([], {}, 2024, None)
    path = Path(generate_income_statement_pdf(statement))
    assert path.exists()
    assert path.parent == tmp_path / "pdfs"
