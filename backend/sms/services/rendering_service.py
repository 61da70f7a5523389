# Overview: PDF rendering of resolved invoice and credit note records (read-only).

"""
Document rendering

Input is a plain dict produced by sales_service.invoice_record() or
return_service.credit_note_record(); nothing here touches the session.
Output is the PDF as bytes (A4, company header, customer block, line table,
totals).
"""

from __future__ import annotations

from io import BytesIO
from xml.sax.saxutils import escape

from flask import current_app, has_app_context
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle


_DEFAULT_HEADER = {
    "name": "SMS Pro",
    "address": "",
    "contact": "",
    "currency": "Rs.",
}

_TABLE_STYLE = [
    ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
    ("TEXTCOLOR", (0, 0), (-1, -1), colors.black),
    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
    ("FONTNAME", (0, 1), (-1, -1), "Helvetica"),
    ("FONTSIZE", (0, 0), (-1, -1), 9),
    ("ALIGN", (-3, 1), (-1, -1), "RIGHT"),
    ("BOTTOMPADDING", (0, 0), (-1, -1), 5),
    ("GRID", (0, 0), (-1, -1), 0.5, colors.black),
]

_INFO_STYLE = [
    ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
    ("FONTNAME", (1, 0), (1, -1), "Helvetica"),
    ("FONTSIZE", (0, 0), (-1, -1), 10),
    ("ALIGN", (0, 0), (-1, -1), "LEFT"),
    ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
]


def company_header() -> dict:
    if not has_app_context():
        return dict(_DEFAULT_HEADER)
    cfg = current_app.config
    return {
        "name": cfg.get("COMPANY_NAME", _DEFAULT_HEADER["name"]),
        "address": cfg.get("COMPANY_ADDRESS", ""),
        "contact": cfg.get("COMPANY_CONTACT", ""),
        "currency": cfg.get("CURRENCY_LABEL", _DEFAULT_HEADER["currency"]),
    }


def format_cents(cents: int | None, currency: str = "") -> str:
    cents = cents or 0
    sign = "-" if cents < 0 else ""
    whole, frac = divmod(abs(cents), 100)
    amount = f"{sign}{whole:,}.{frac:02d}"
    return f"{currency} {amount}".strip()


def _text(value) -> str:
    return "" if value is None else str(value)


def _build(title: str, header: dict, info_rows: list, item_rows: list, col_widths: list, total_rows: list) -> bytes:
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        title=title,
        topMargin=0.6 * inch,
        bottomMargin=0.6 * inch,
        leftMargin=0.6 * inch,
        rightMargin=0.6 * inch,
    )
    styles = getSampleStyleSheet()
    title_style = ParagraphStyle("DocTitle", parent=styles["Heading1"], fontSize=18, spaceAfter=6, alignment=1)
    company_style = ParagraphStyle("Company", parent=styles["Heading2"], fontSize=14, spaceAfter=2)

    story = [Paragraph(escape(header["name"]), company_style)]
    for line in (header.get("address"), header.get("contact")):
        if line:
            story.append(Paragraph(escape(line), styles["Normal"]))
    story.append(Spacer(1, 10))
    story.append(Paragraph(title, title_style))
    story.append(Spacer(1, 8))

    info = Table(info_rows, colWidths=[1.8 * inch, 4.6 * inch])
    info.setStyle(TableStyle(_INFO_STYLE))
    story.append(info)
    story.append(Spacer(1, 12))

    items = Table(item_rows, colWidths=col_widths, repeatRows=1)
    items.setStyle(TableStyle(_TABLE_STYLE))
    story.append(items)
    story.append(Spacer(1, 12))

    totals = Table(total_rows, colWidths=[5.0 * inch, 1.6 * inch])
    totals.setStyle(TableStyle([
        ("FONTNAME", (0, 0), (-1, -1), "Helvetica"),
        ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
        ("ALIGN", (0, 0), (-1, -1), "RIGHT"),
        ("FONTSIZE", (0, 0), (-1, -1), 10),
        ("LINEABOVE", (0, -1), (-1, -1), 0.5, colors.black),
    ]))
    story.append(totals)

    doc.build(story)
    return buffer.getvalue()


def _customer_rows(record: dict) -> list:
    rows = [["Customer:", _text(record.get("customer_name"))]]
    if record.get("company_name"):
        rows.append(["Company:", record["company_name"]])
    if record.get("address"):
        rows.append(["Address:", record["address"]])
    if record.get("contact_number"):
        rows.append(["Contact:", record["contact_number"]])
    return rows


def render_invoice_pdf(record: dict, *, header: dict | None = None) -> bytes:
    header = header or company_header()
    currency = header.get("currency", "")

    info_rows = [
        ["Invoice No:", _text(record.get("invoice_number"))],
        ["Date:", _text(record.get("date_of_sale"))],
    ] + _customer_rows(record)

    item_rows = [["#", "Code", "Description", "Brand / Model", "Qty", "Unit Price", "Amount"]]
    for item in record.get("items", []):
        brand_model = " / ".join(v for v in (item.get("brand"), item.get("model")) if v)
        item_rows.append([
            _text(item.get("line_number")),
            _text(item.get("product_code")),
            _text(item.get("description")),
            brand_model,
            _text(item.get("quantity_sold")),
            format_cents(item.get("unit_price_cents")),
            format_cents(item.get("line_total_cents")),
        ])

    subtotal = record.get("subtotal_cents")
    if subtotal is None:
        subtotal = sum(item.get("line_total_cents") or 0 for item in record.get("items", []))
    total_rows = [
        ["Subtotal:", format_cents(subtotal, currency)],
        ["Discount:", format_cents(record.get("discount_cents"), currency)],
        ["Total:", format_cents(record.get("total_amount_cents"), currency)],
    ]

    col_widths = [0.3 * inch, 0.9 * inch, 1.9 * inch, 1.2 * inch, 0.5 * inch, 0.9 * inch, 0.9 * inch]
    return _build("INVOICE", header, info_rows, item_rows, col_widths, total_rows)


def render_credit_note_pdf(record: dict, *, header: dict | None = None) -> bytes:
    header = header or company_header()
    currency = header.get("currency", "")

    info_rows = [
        ["Credit Note No:", _text(record.get("credit_note_number"))],
        ["Invoice No:", _text(record.get("invoice_number"))],
        ["Date:", _text(record.get("date_of_return"))],
    ] + _customer_rows(record)
    if record.get("remarks"):
        info_rows.append(["Remarks:", record["remarks"]])

    item_rows = [["#", "Part No", "Description", "Brand / Model", "Qty", "Unit Price", "Amount"]]
    for item in record.get("items", []):
        description = _text(item.get("description"))
        if item.get("additional_description"):
            description = f"{description} ({item['additional_description']})".strip()
        brand_model = " / ".join(v for v in (item.get("brand"), item.get("model")) if v)
        item_rows.append([
            _text(item.get("line_number")),
            _text(item.get("part_number")),
            description,
            brand_model,
            _text(item.get("quantity")),
            format_cents(item.get("unit_price_cents")),
            format_cents(item.get("line_total_cents")),
        ])

    total_rows = [
        ["Total Bill Value:", format_cents(record.get("total_bill_value_cents"), currency)],
        [
            f"Discount ({record.get('discount_percent', 0):g}%):",
            format_cents(record.get("discount_amount_cents"), currency),
        ],
        ["Grand Total:", format_cents(record.get("grand_total_cents"), currency)],
    ]

    col_widths = [0.3 * inch, 0.9 * inch, 1.9 * inch, 1.2 * inch, 0.5 * inch, 0.9 * inch, 0.9 * inch]
    return _build("CREDIT NOTE", header, info_rows, item_rows, col_widths, total_rows)
