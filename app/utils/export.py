import csv
import io
import re
from typing import Any, Dict, List

from fpdf import FPDF
from fpdf.enums import XPos, YPos

from app.core.config import settings

CSV_HEADERS = ["Date", "Description", "Category", "Type", "Amount"]
TYPE_LABELS = {"income": "Income", "expense": "Expense"}
# Column widths (mm) for the PDF transactions table, in CSV_HEADERS order
PDF_COLUMN_WIDTHS = [25, 65, 40, 25, 35]


def format_currency(amount: float) -> str:
    sign = "-" if amount < 0 else ""
    return f"{sign}{settings.CURRENCY_SYMBOL}{abs(amount):,.2f}"


def export_filename(title: str, extension: str) -> str:
    slug = re.sub(r"\s+", "-", title.strip().lower())
    return f"financial-report-{slug}.{extension}"


def _latin1(text: str) -> str:
    # Core PDF fonts only cover latin-1
    return str(text).encode("latin-1", "replace").decode("latin-1")


def _line(pdf: FPDF, text: str, height: float = 8) -> None:
    pdf.cell(0, height, _latin1(text), new_x=XPos.LMARGIN, new_y=YPos.NEXT)


def render_csv(transactions: List[Dict[str, Any]]) -> bytes:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(CSV_HEADERS)
    for t in transactions:
        writer.writerow([
            t["date"],
            t.get("description", ""),
            t["category"],
            TYPE_LABELS.get(t["type"], t["type"]),
            t["amount"],
        ])
    return output.getvalue().encode("utf-8")


def render_pdf(report: Dict[str, Any]) -> bytes:
    pdf = FPDF()
    pdf.add_page()
    pdf.set_font("Helvetica", "B", 20)
    pdf.cell(0, 12, "Financial Report", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.set_font("Helvetica", "", 12)
    _line(pdf, f"Period: {report['title']}")
    pdf.ln(5)

    pdf.set_font("Helvetica", "B", 14)
    pdf.cell(0, 10, "Summary", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.set_font("Helvetica", "", 11)
    _line(pdf, f"Total income: {format_currency(report['income'])}")
    _line(pdf, f"Total expenses: {format_currency(report['expenses'])}")
    _line(pdf, f"Balance: {format_currency(report['balance'])}")
    pdf.ln(5)

    pdf.set_font("Helvetica", "B", 9)
    pdf.set_fill_color(16, 185, 129)
    pdf.set_text_color(255, 255, 255)
    for header, width in zip(CSV_HEADERS, PDF_COLUMN_WIDTHS):
        pdf.cell(width, 8, header, border=1, fill=True)
    pdf.ln()

    pdf.set_font("Helvetica", "", 8)
    pdf.set_text_color(0, 0, 0)
    for t in report["transactions"]:
        row = [
            str(t["date"]),
            _latin1(t.get("description") or "")[:40],
            _latin1(t["category"])[:24],
            TYPE_LABELS.get(t["type"], t["type"]),
            _latin1(format_currency(float(t["amount"]))),
        ]
        for value, width in zip(row, PDF_COLUMN_WIDTHS):
            pdf.cell(width, 7, value, border=1)
        pdf.ln()

    return bytes(pdf.output())
