# Overview: Credit notes; customer returns against one original invoice.

"""
Return Service - credit notes

INVARIANT: for every product on a credit note,

    already_returned + requested <= quantity_sold

where quantity_sold is summed over the original invoice's lines for that
product and already_returned over every earlier credit note against the same
invoice. Lines of the note itself are summed first, so splitting a return
over two lines cannot bypass the bound.

Totals:
    total_bill_value = sum(qty * unit_price)
    discount_amount  = round_half_up(total_bill_value * discount_bps / 10000)
    grand_total      = total_bill_value - discount_amount
"""

from __future__ import annotations

import logging

from sqlalchemy import func
from sqlalchemy.orm import joinedload

from ..errors import CustomerNotFound, DocumentNotFound, InventoryError, InvoiceNotFound, ReturnExceedsOriginal
from ..models import CreditNote, CreditNoteLine, Customer, SalesInvoice, SalesInvoiceLine
from ..validation import clean_date, clean_document_number, parse_return_lines, percent_to_bps
from .concurrency import _session, begin_write_transaction, flush_document, lock_for_update, run_with_retry
from .inventory_service import adjust_stock, load_products_for_update, quantities_by_product


logger = logging.getLogger(__name__)


def discount_amount_for(total_cents: int, discount_bps: int) -> int:
    """Half-up rounding to the nearest cent."""
    return (total_cents * discount_bps + 5000) // 10000


def _returned_quantities(session, invoice_id: int) -> dict[int, int]:
    rows = (
        session.query(CreditNoteLine.product_id, func.coalesce(func.sum(CreditNoteLine.quantity), 0))
        .join(CreditNote, CreditNote.id == CreditNoteLine.credit_note_id)
        .filter(CreditNote.invoice_id == invoice_id)
        .group_by(CreditNoteLine.product_id)
        .all()
    )
    return {product_id: int(qty) for product_id, qty in rows}


def _load_invoice(session, invoice_id: int) -> SalesInvoice:
    invoice = lock_for_update(session.query(SalesInvoice).filter(SalesInvoice.id == invoice_id)).first()
    if invoice is None or not invoice.lines:
        raise InvoiceNotFound(f"Invoice {invoice_id} not found", details={"invoice_id": invoice_id})
    return invoice


def create_return(
    *,
    credit_note_number: str,
    invoice_id: int,
    date_of_return,
    lines,
    customer_id: int | None = None,
    remarks: str | None = None,
    discount_percent=0,
    session=None,
) -> CreditNote:
    """
    Commit a credit note and add the returned quantities back to stock.

    Snapshot fields (part_number, description, brand, model) default from the
    product; unit_price_cents defaults from the original invoice line.
    customer_id defaults to the invoice's customer.

    Raises:
        ValidationError: malformed input
        InvoiceNotFound: invoice missing or without lines
        CustomerNotFound / ProductNotFound: unknown reference
        ReturnExceedsOriginal: product not sold on the invoice, or the
            cumulative returned quantity would exceed what was sold
        DuplicateDocumentNumber: credit_note_number already committed
    """
    session = _session(session)
    credit_note_number = clean_document_number(credit_note_number, "credit_note_number")
    date_of_return = clean_date(date_of_return, "date_of_return")
    discount_bps = percent_to_bps(discount_percent)
    return_lines = parse_return_lines(lines)
    if remarks is not None:
        remarks = str(remarks).strip() or None

    def _op():
        begin_write_transaction(session)

        invoice = _load_invoice(session, invoice_id)

        resolved_customer_id = customer_id if customer_id is not None else invoice.customer_id
        if customer_id is not None and session.get(Customer, customer_id) is None:
            raise CustomerNotFound(f"Customer {customer_id} not found", details={"customer_id": customer_id})

        sold: dict[int, int] = {}
        first_line: dict[int, SalesInvoiceLine] = {}
        for inv_line in invoice.lines:
            sold[inv_line.product_id] = sold.get(inv_line.product_id, 0) + inv_line.quantity_sold
            first_line.setdefault(inv_line.product_id, inv_line)

        products = load_products_for_update([l.product_id for l in return_lines], session=session)
        requested = quantities_by_product(return_lines)
        returned = _returned_quantities(session, invoice.id)

        for product_id, quantity in requested.items():
            sold_qty = sold.get(product_id, 0)
            already = returned.get(product_id, 0)
            if sold_qty == 0 or already + quantity > sold_qty:
                raise ReturnExceedsOriginal(
                    product_id=product_id,
                    product_code=products[product_id].product_code,
                    sold=sold_qty,
                    already_returned=already,
                    requested=quantity,
                )

        built = []
        for line in return_lines:
            product = products[line.product_id]
            inv_line = first_line[line.product_id]
            price = line.unit_price_cents
            if price is None:
                price = inv_line.unit_price_cents
            built.append(CreditNoteLine(
                product_id=product.id,
                invoice_line_id=inv_line.id,
                part_number=line.part_number or product.product_code,
                description=line.description or product.description,
                brand=line.brand or product.brand,
                model=line.model or product.model,
                additional_description=line.additional_description,
                quantity=line.quantity,
                unit_price_cents=price,
                line_total_cents=line.quantity * price,
            ))

        total_bill = sum(l.line_total_cents for l in built)
        discount_amount = discount_amount_for(total_bill, discount_bps)

        note = CreditNote(
            credit_note_number=credit_note_number,
            invoice_id=invoice.id,
            customer_id=resolved_customer_id,
            date_of_return=date_of_return,
            remarks=remarks,
            total_bill_value_cents=total_bill,
            discount_bps=discount_bps,
            discount_amount_cents=discount_amount,
            grand_total_cents=total_bill - discount_amount,
        )
        session.add(note)
        flush_document(
            session,
            doc_type="Credit note",
            number=credit_note_number,
            table="credit_notes",
            column="credit_note_number",
            constraint="uq_credit_notes_number",
        )

        for line_number, line in enumerate(built, start=1):
            line.credit_note_id = note.id
            line.line_number = line_number
            session.add(line)

        for product_id, quantity in requested.items():
            adjust_stock(products[product_id], quantity)

        session.commit()
        return note

    try:
        note = run_with_retry(_op, session=session)
    except InventoryError as exc:
        logger.warning("Rejected credit note %s: %s", credit_note_number, exc.message)
        raise
    logger.info("Committed credit note %s grand_total=%d", note.credit_note_number, note.grand_total_cents)
    return note


# =============================================================================
# READ PATHS
# =============================================================================

def get_credit_note(credit_note_id: int, *, session=None) -> CreditNote:
    note = (
        _session(session).query(CreditNote)
        .options(
            joinedload(CreditNote.invoice),
            joinedload(CreditNote.customer),
            joinedload(CreditNote.lines),
        )
        .filter(CreditNote.id == credit_note_id)
        .first()
    )
    if note is None:
        raise DocumentNotFound(
            f"Credit note {credit_note_id} not found",
            details={"credit_note_id": credit_note_id},
        )
    return note


def credit_note_record(note: CreditNote) -> dict:
    """Credit note header with customer block and lines, as rendered."""
    record = note.to_dict(include_lines=True)
    customer = note.customer
    record.update({
        "customer_name": customer.customer_name if customer else (
            note.invoice.customer_name if note.invoice else None
        ),
        "company_name": customer.company_name if customer else None,
        "address": customer.address if customer else None,
        "contact_number": customer.contact_number if customer else None,
    })
    record["items"] = record.pop("lines")
    return record
