# Overview: Sales invoices; the oversell-safe goods-out path plus low-stock alerting.

"""
Sales Service - one invoice, one unit of work

WHY: Stock check and stock decrement must see the same rows. Everything
below runs between begin_write_transaction() and commit:

1. Resolve customer (optional) and lock every product on the invoice
2. Sum quantities per product and compare against current_stock
3. Insert the header (invoice_number collision -> DuplicateDocumentNumber)
4. Insert lines, decrement stock
5. Insert one alert per product left below its threshold

Any failure rolls back the whole invoice; nothing partial is ever visible.
"""

from __future__ import annotations

import logging

from sqlalchemy.orm import joinedload

from ..errors import CustomerNotFound, InventoryError, InvoiceNotFound, ValidationError
from ..models import Customer, SalesInvoice, SalesInvoiceLine
from ..validation import (
    clean_date,
    clean_document_number,
    clean_cents,
    parse_sale_lines,
)
from .alert_service import raise_low_stock_alerts
from .concurrency import _session, begin_write_transaction, flush_document, run_with_retry
from .inventory_service import (
    adjust_stock,
    check_sufficient_stock,
    load_products_for_update,
    quantities_by_product,
)


logger = logging.getLogger(__name__)


def _resolve_customer(session, customer_id: int | None) -> Customer | None:
    if customer_id is None:
        return None
    customer = session.get(Customer, customer_id)
    if customer is None:
        raise CustomerNotFound(f"Customer {customer_id} not found", details={"customer_id": customer_id})
    return customer


def create_sale(
    *,
    invoice_number: str,
    date_of_sale,
    lines,
    customer_id: int | None = None,
    customer_name: str | None = None,
    discount_cents: int | None = 0,
    session=None,
) -> SalesInvoice:
    """
    Commit a sales invoice and decrement stock.

    Line unit_price_cents defaults to the product's catalog price.
    customer_name defaults to the referenced customer's name.

    Raises:
        ValidationError: malformed input, or discount larger than the subtotal
        ProductNotFound / CustomerNotFound: unknown reference
        InsufficientStock: cumulative quantity for a product exceeds its stock
        DuplicateDocumentNumber: invoice_number already committed
    """
    session = _session(session)
    invoice_number = clean_document_number(invoice_number, "invoice_number")
    date_of_sale = clean_date(date_of_sale, "date_of_sale")
    discount_cents = clean_cents(discount_cents, "discount_cents", default=0)
    sale_lines = parse_sale_lines(lines)
    if customer_name is not None:
        customer_name = str(customer_name).strip() or None

    def _op():
        begin_write_transaction(session)

        customer = _resolve_customer(session, customer_id)
        name = customer_name or (customer.customer_name if customer else None)
        if not name:
            raise ValidationError("customer_name is required")

        products = load_products_for_update([l.product_id for l in sale_lines], session=session)
        requested = quantities_by_product(sale_lines)
        check_sufficient_stock(products, requested)

        priced = []
        for line in sale_lines:
            price = line.unit_price_cents
            if price is None:
                price = products[line.product_id].unit_price_cents
            priced.append((line, price, line.quantity * price))

        subtotal = sum(total for _, _, total in priced)
        if discount_cents > subtotal:
            raise ValidationError(
                "discount_cents cannot exceed the invoice subtotal",
                details={"discount_cents": discount_cents, "subtotal_cents": subtotal},
            )

        invoice = SalesInvoice(
            invoice_number=invoice_number,
            customer_id=customer.id if customer else None,
            customer_name=name,
            date_of_sale=date_of_sale,
            discount_cents=discount_cents,
            total_amount_cents=subtotal - discount_cents,
        )
        session.add(invoice)
        flush_document(
            session,
            doc_type="Invoice",
            number=invoice_number,
            table="sales_invoices",
            column="invoice_number",
            constraint="uq_sales_invoices_number",
        )

        for line_number, (line, price, line_total) in enumerate(priced, start=1):
            session.add(SalesInvoiceLine(
                invoice_id=invoice.id,
                line_number=line_number,
                product_id=line.product_id,
                quantity_sold=line.quantity,
                unit_price_cents=price,
                line_total_cents=line_total,
            ))

        for product_id, quantity in requested.items():
            adjust_stock(products[product_id], -quantity)

        raise_low_stock_alerts(
            [products[pid] for pid in requested],
            invoice_id=invoice.id,
            session=session,
        )

        session.commit()
        return invoice

    try:
        invoice = run_with_retry(_op, session=session)
    except InventoryError as exc:
        logger.warning("Rejected invoice %s: %s", invoice_number, exc.message)
        raise
    logger.info("Committed invoice %s total=%d", invoice.invoice_number, invoice.total_amount_cents)
    return invoice


# =============================================================================
# READ PATHS
# =============================================================================

def _invoice_query(session):
    return session.query(SalesInvoice).options(
        joinedload(SalesInvoice.customer),
        joinedload(SalesInvoice.lines).joinedload(SalesInvoiceLine.product),
    )


def get_invoice(invoice_id: int, *, session=None) -> SalesInvoice:
    invoice = _invoice_query(_session(session)).filter(SalesInvoice.id == invoice_id).first()
    if invoice is None:
        raise InvoiceNotFound(f"Invoice {invoice_id} not found", details={"invoice_id": invoice_id})
    return invoice


def get_invoice_by_number(invoice_number: str, *, session=None) -> SalesInvoice:
    invoice = (
        _invoice_query(_session(session))
        .filter(SalesInvoice.invoice_number == invoice_number)
        .first()
    )
    if invoice is None:
        raise InvoiceNotFound(
            f"Invoice {invoice_number} not found",
            details={"invoice_number": invoice_number},
        )
    return invoice


def invoice_record(invoice: SalesInvoice) -> dict:
    """
    Fully resolved invoice: header, customer block and lines joined with
    product descriptive fields. This is what the API returns and what the
    PDF renderer consumes.
    """
    record = invoice.to_dict(include_lines=False)
    customer = invoice.customer
    record.update({
        "company_name": customer.company_name if customer else None,
        "address": customer.address if customer else None,
        "contact_number": customer.contact_number if customer else None,
        "subtotal_cents": invoice.subtotal_cents,
    })
    items = []
    for line in invoice.lines:
        item = line.to_dict()
        product = line.product
        item.update({
            "product_code": product.product_code if product else None,
            "description": product.description if product else None,
            "model": product.model if product else None,
            "brand": product.brand if product else None,
        })
        items.append(item)
    record["items"] = items
    return record
