from datetime import date
from pathlib import Path
from textwrap import wrap
from typing import Iterable, List, Optional

from reportlab.lib.pagesizes import LETTER
from reportlab.pdfgen import canvas

from ..config import settings

MARGIN_X = 72  # 1 inch
MARGIN_Y = 72
MAX_CHARS_PER_LINE = 90
LINE_HEIGHT = 14


def _output_path(filename: str) -> Path:
    base = Path(settings.pdf_output_dir)
    base.mkdir(parents=True, exist_ok=True)
    return base / filename


def _write_pdf(filename: str, lines: Iterable[Optional[str]]) -> str:
    path = _output_path(filename)
    pdf_canvas = canvas.Canvas(str(path), pagesize=LETTER)
    width, height = LETTER
    text_stream = pdf_canvas.beginText(MARGIN_X, height - MARGIN_Y)
    text_stream.setFont("Helvetica", 12)

    for line in lines:
        normalized = "" if line is None else str(line)
        if normalized.strip() == "":
            text_stream.textLine("")
            continue
        for chunk in wrap(normalized, MAX_CHARS_PER_LINE) or [normalized]:
            if text_stream.getY() < MARGIN_Y:
                pdf_canvas.drawText(text_stream)
                pdf_canvas.showPage()
                text_stream = pdf_canvas.beginText(MARGIN_X, height - MARGIN_Y)
                text_stream.setFont("Helvetica", 12)
            text_stream.textLine(chunk)

    pdf_canvas.drawText(text_stream)
    pdf_canvas.showPage()
    pdf_canvas.save()
    return str(path)


def _money(value) -> str:
    return f"${value:,.2f}"


def generate_receipt_pdf(transaction, member=None, bank_account=None) -> str:
    payer = member.full_name if member else "Walk-in contributor"
    account = f"{bank_account.bank_name} {bank_account.account_number}" if bank_account else "Cash"
    lines = [
        settings.organization_name,
        "Payment Receipt",
        "",
        f"Receipt #: {transaction.id:06d}",
        f"Date: {transaction.date.isoformat()}",
        f"Received from: {payer}",
        f"Concept: {transaction.description}",
        f"Category: {transaction.category}",
        f"Deposited to: {account}",
        "",
        f"Amount: {_money(transaction.amount)}",
        "",
        "Thank you for supporting the association.",
        f"Issued on {date.today().isoformat()}",
    ]
    return _write_pdf(f"receipt_{transaction.id}.pdf", lines)


def _section(title: str, entries: dict, total_label: str, total) -> List[str]:
    lines = [title]
    if not entries:
        lines.append("  (no movements)")
    for name, amount in sorted(entries.items()):
        lines.append(f"  {name}: {_money(amount)}")
    lines.append(f"{total_label}: {_money(total)}")
    lines.append("")
    return lines


def generate_income_statement_pdf(statement) -> str:
    lines = [
        settings.organization_name,
        f"Income Statement - {statement.period_label}",
        "",
    ]
    lines += _section("Income", statement.income_by_category, "Total income", statement.income)
    lines += _section(
        "Operating expenses",
        statement.expense_by_category,
        "Total operating expenses",
        statement.total_operating_expense,
    )
    lines.append(f"Operating result: {_money(statement.operating_result)}")
    lines.append("")
    lines += _section(
        "Projects and investments",
        statement.project_expenses,
        "Total project expenses",
        statement.total_project_expense,
    )
    lines.append(f"Net result: {_money(statement.net_result)}")
    return _write_pdf(f"income_statement_{statement.period_label}.pdf", lines)
