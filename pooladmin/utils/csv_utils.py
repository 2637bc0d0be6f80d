import csv
from datetime import date
from decimal import Decimal
from io import StringIO
from typing import Any, Iterable, List, Sequence

TRANSACTION_HEADERS = [
    "id",
    "date",
    "type",
    "category",
    "amount",
    "description",
    "bank_account_id",
    "transfer_to_account_id",
    "member_id",
    "project_id",
    "supplier",
]


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, Decimal):
        return f"{value:.2f}"
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def rows_to_csv(headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> str:
    """Render rows with money at two decimals, dates as ISO strings and None as blank."""
    buffer = StringIO()
    writer = csv.writer(buffer)
    writer.writerow(headers)
    for row in rows:
        writer.writerow([_cell(value) for value in row])
    return buffer.getvalue()


def transactions_to_csv(transactions: List) -> str:
    rows = [
        [
            tx.id,
            tx.date,
            tx.type,
            tx.category,
            tx.amount,
            tx.description,
            tx.related_bank_account_id,
            tx.transfer_to_account_id,
            tx.related_member_id,
            tx.related_project_id,
            tx.related_supplier,
        ]
        for tx in transactions
    ]
    return rows_to_csv(TRANSACTION_HEADERS, rows)
